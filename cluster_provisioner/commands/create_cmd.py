# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Create subcommands (cluster)."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

import typer

from cluster_provisioner import logger
from cluster_provisioner.config import ProvisionerSettings, build_request, display_request
from cluster_provisioner.orchestrator import run_create
from cluster_provisioner.toolchain import ToolchainResolver
from cluster_provisioner.utils import find_repo_root

app = typer.Typer(help="Create infrastructure resources.")


@app.command("cluster")
def cluster(
    name: str = typer.Option(..., "--name", help="Cluster name, also used as the terraform workspace"),
    vpc_name: str = typer.Option("", "--vpc-name", help="VPC name, defaults to the cluster name"),
    nodes: int | None = typer.Option(None, "--nodes", help="Number of worker nodes"),
    timeout: int | None = typer.Option(None, "--timeout", help="Overall timeout in seconds"),
    terraform_version: str | None = typer.Option(None, "--terraform-version", help="Exact terraform version"),
    run_id: str = typer.Option("", "--run-id", help="Id used to name plan and state files"),
    fast: bool = typer.Option(False, "--fast", help="Skip the optional identity provider sub-module"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logs for this run"),
) -> None:
    """Create a VPC and an EKS cluster, then apply the tactical psp fix."""
    if debug:
        logger.setLevel(logging.DEBUG)

    settings = ProvisionerSettings()
    overrides: dict = {}
    if nodes is not None:
        overrides["node_count"] = nodes
    if timeout is not None:
        overrides["timeout"] = timeout
    if terraform_version is not None:
        overrides["terraform_version"] = terraform_version
    if overrides:
        settings = settings.model_copy(update=overrides)

    request = build_request(
        settings,
        name=name,
        repo_root=find_repo_root(Path.cwd()),
        run_id=run_id or uuid.uuid4().hex[:12],
        vpc_name=vpc_name,
        debug=debug,
        fast=fast,
    )
    display_request(request)
    run_create(request, resolver=ToolchainResolver(settings.cache_dir, settings.releases_url))
