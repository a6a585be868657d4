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

"""Toolchain subcommands (install)."""

from __future__ import annotations

import typer

from cluster_provisioner import console
from cluster_provisioner.config import ProvisionerSettings
from cluster_provisioner.toolchain import ToolchainResolver

app = typer.Typer(help="Manage the terraform toolchain.")


@app.command("install")
def install(
    version: str | None = typer.Option(None, "--version", help="Exact terraform version"),
    no_path: bool = typer.Option(False, "--no-path", help="Ignore any terraform found on PATH"),
) -> None:
    """Resolve a terraform version into the local cache and print its path."""
    settings = ProvisionerSettings()
    resolver = ToolchainResolver(settings.cache_dir, settings.releases_url, search_path=not no_path)
    handle = resolver.resolve(version or settings.terraform_version)
    console.print(str(handle.exec_path))
