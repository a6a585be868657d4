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

"""Settings, request models, and request validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.table import Table

from cluster_provisioner import console
from cluster_provisioner.aws import AwsCredentials
from cluster_provisioner.constants import (
    DEFAULT_AWS_REGION,
    DEFAULT_CACHE_DIR,
    DEFAULT_CLUSTER_SUFFIX,
    DEFAULT_MAX_NAME_LENGTH,
    DEFAULT_NODE_COUNT,
    DEFAULT_RELEASES_URL,
    DEFAULT_TERRAFORM_VERSION,
    DEFAULT_TIMEOUT_SECONDS,
    RESERVED_CLUSTER_NAMES,
    VERSION_PATTERN,
)
from cluster_provisioner.errors import PreconditionError
from cluster_provisioner.utils import validate_repository_root


# ============================================================================
# Settings
# ============================================================================

class ProvisionerSettings(BaseSettings):
    """Provisioner defaults, auto-loaded from CP_* env vars.

    Attributes:
        terraform_version: Exact Terraform version to run.
        releases_url: Base URL of the Terraform release archive.
        cache_dir: Directory holding downloaded Terraform binaries.
        aws_region: AWS region the VPC and cluster are created in.
        aws_profile: AWS CLI profile, or empty for the default credential chain.
        node_count: Number of worker nodes.
        max_name_length: Upper bound on the cluster name length.
        timeout: Overall provisioning timeout in seconds.
        cluster_suffix: DNS suffix appended to the cluster name for ingress.
        kubeconfig: Kubeconfig path for the new cluster, or empty for the default.
        kube_context: Kubeconfig context, or empty for the current context.
        auth0_domain: Auth0 tenant domain.
        auth0_client_id: Auth0 client id.
        auth0_client_secret: Auth0 client secret.
    """

    model_config = SettingsConfigDict(env_prefix="CP_", extra="ignore")

    terraform_version: str = Field(default=DEFAULT_TERRAFORM_VERSION, pattern=VERSION_PATTERN.pattern)
    releases_url: str = DEFAULT_RELEASES_URL
    cache_dir: Path = DEFAULT_CACHE_DIR
    aws_region: str = DEFAULT_AWS_REGION
    aws_profile: str = ""
    node_count: int = Field(default=DEFAULT_NODE_COUNT, ge=1, le=100)
    max_name_length: int = Field(default=DEFAULT_MAX_NAME_LENGTH, ge=1, le=63)
    timeout: int = Field(default=DEFAULT_TIMEOUT_SECONDS, ge=1)
    cluster_suffix: str = DEFAULT_CLUSTER_SUFFIX
    kubeconfig: str = ""
    kube_context: str = ""
    auth0_domain: str = ""
    auth0_client_id: str = ""
    auth0_client_secret: str = ""


# ============================================================================
# Request
# ============================================================================

@dataclass(frozen=True)
class AuthOptions:
    """Auth0 identity provider settings consumed by the terraform modules.

    Attributes:
        domain: Auth0 tenant domain.
        client_id: Auth0 client id.
        client_secret: Auth0 client secret.
    """

    domain: str = ""
    client_id: str = ""
    client_secret: str = field(default="", repr=False)

    def as_env(self) -> dict[str, str]:
        """Environment variables read by the terraform Auth0 provider."""
        env = {
            "AUTH0_DOMAIN": self.domain,
            "AUTH0_CLIENT_ID": self.client_id,
            "AUTH0_CLIENT_SECRET": self.client_secret,
        }
        return {key: value for key, value in env.items() if value}


@dataclass(frozen=True)
class CreateOptions:
    """Everything a single ``create`` run needs. Immutable for the run.

    Attributes:
        name: Cluster name; also the terraform workspace name.
        repo_root: Resolved root of the infrastructure repository checkout.
        run_id: Unique id used to name per-run artifacts.
        vpc_name: VPC the cluster is built in; defaults to the cluster name.
        cluster_suffix: DNS suffix for the cluster ingress.
        node_count: Number of worker nodes.
        max_name_length: Upper bound on the cluster name length.
        timeout: Overall provisioning timeout in seconds.
        debug: Whether to print verbose terraform output.
        fast: Whether to skip the optional identity provider sub-module.
        auth0: Auth0 identity provider settings.
        aws_credentials: AWS session handle, or None to build one from settings.
        aws_region: AWS region used when no credentials are supplied.
        aws_profile: AWS profile used when no credentials are supplied.
        terraform_version: Exact Terraform version.
        kubeconfig: Kubeconfig for the new cluster, or empty for the default.
        kube_context: Kubeconfig context, or empty for the current one.
    """

    name: str
    repo_root: Path
    run_id: str
    vpc_name: str = ""
    cluster_suffix: str = DEFAULT_CLUSTER_SUFFIX
    node_count: int = DEFAULT_NODE_COUNT
    max_name_length: int = DEFAULT_MAX_NAME_LENGTH
    timeout: int = DEFAULT_TIMEOUT_SECONDS
    debug: bool = False
    fast: bool = False
    auth0: AuthOptions = field(default_factory=AuthOptions)
    aws_credentials: AwsCredentials | None = None
    aws_region: str = DEFAULT_AWS_REGION
    aws_profile: str = ""
    terraform_version: str = DEFAULT_TERRAFORM_VERSION
    kubeconfig: str = ""
    kube_context: str = ""

    @property
    def resolved_vpc_name(self) -> str:
        return self.vpc_name or self.name


def build_request(
    settings: ProvisionerSettings,
    *,
    name: str,
    repo_root: Path,
    run_id: str,
    vpc_name: str = "",
    debug: bool = False,
    fast: bool = False,
) -> CreateOptions:
    """Combine settings and per-run CLI values into a CreateOptions.

    Args:
        settings: Resolved provisioner settings.
        name: Cluster name.
        repo_root: Infrastructure repository root.
        run_id: Unique id for this run.
        vpc_name: Optional VPC name override.
        debug: Verbose output flag.
        fast: Skip optional sub-modules flag.

    Returns:
        The immutable request for this run.
    """
    return CreateOptions(
        name=name,
        repo_root=repo_root,
        run_id=run_id,
        vpc_name=vpc_name,
        cluster_suffix=settings.cluster_suffix,
        node_count=settings.node_count,
        max_name_length=settings.max_name_length,
        timeout=settings.timeout,
        debug=debug,
        fast=fast,
        auth0=AuthOptions(
            domain=settings.auth0_domain,
            client_id=settings.auth0_client_id,
            client_secret=settings.auth0_client_secret,
        ),
        aws_region=settings.aws_region,
        aws_profile=settings.aws_profile,
        terraform_version=settings.terraform_version,
        kubeconfig=settings.kubeconfig,
        kube_context=settings.kube_context,
    )


def validate_request(request: CreateOptions) -> None:
    """Check the preconditions of a create run.

    Args:
        request: The request to validate.

    Raises:
        PreconditionError: On a reserved or over-long name, or a wrong repository root.
    """
    if request.name in RESERVED_CLUSTER_NAMES:
        reserved = " or ".join(sorted(RESERVED_CLUSTER_NAMES))
        raise PreconditionError(f"cannot create a cluster with the name {reserved}")
    if not request.name:
        raise PreconditionError("cluster name must not be empty")
    if len(request.name) > request.max_name_length:
        raise PreconditionError(
            f"cluster name '{request.name}' is longer than {request.max_name_length} characters"
        )
    validate_repository_root(request.repo_root)


def display_request(request: CreateOptions) -> None:
    """Print the resolved request as a table."""
    table = Table(title="Cluster request", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Cluster name", request.name)
    table.add_row("VPC name", request.resolved_vpc_name)
    table.add_row("Ingress", f"{request.name}.{request.cluster_suffix}")
    table.add_row("Nodes", str(request.node_count))
    table.add_row("Terraform", request.terraform_version)
    table.add_row("AWS region", request.aws_region)
    table.add_row("Repository", str(request.repo_root))
    table.add_row("Run id", request.run_id)
    table.add_row("Fast", str(request.fast))
    table.add_row("Timeout", f"{request.timeout}s")
    console.print(table)
