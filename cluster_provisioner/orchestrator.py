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

"""The create workflow: validate, resolve terraform, VPC, verify, EKS, fix, install, check."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum

from cluster_provisioner import console, logger
from cluster_provisioner.aws import ec2_client, new_aws_credentials
from cluster_provisioner.cluster import ClusterResource
from cluster_provisioner.components import health_check, install_components
from cluster_provisioner.config import CreateOptions, validate_request
from cluster_provisioner.constants import (
    DEFAULT_CACHE_DIR,
    FAST_SKIP_VARIABLE,
    REL_EKS_MODULE,
    REL_VPC_MODULE,
    VPC_ID_OUTPUT,
)
from cluster_provisioner.errors import ProvisioningFailed
from cluster_provisioner.executor import PlanApplyExecutor
from cluster_provisioner.kube import KubeClient
from cluster_provisioner.remediation import Remediator
from cluster_provisioner.state import extract_output
from cluster_provisioner.toolchain import ToolchainResolver
from cluster_provisioner.utils import Deadline
from cluster_provisioner.verifier import NetworkVerifier

Hook = Callable[[CreateOptions], None]


class Stage(str, Enum):
    """Stages of a create run, in order."""

    VALIDATING = "validating"
    RESOLVING_TOOLCHAIN = "resolving-toolchain"
    PROVISIONING_NETWORK = "provisioning-network"
    VERIFYING_NETWORK = "verifying-network"
    PROVISIONING_CLUSTER = "provisioning-cluster"
    REMEDIATING = "remediating"
    INSTALLING_COMPONENTS = "installing-components"
    HEALTH_CHECKING = "health-checking"
    DONE = "done"


# ============================================================================
# Default collaborators, built from the request on first use
# ============================================================================

def default_verifier(request: CreateOptions, deadline: Deadline) -> NetworkVerifier:
    credentials = request.aws_credentials or new_aws_credentials(request.aws_region, request.aws_profile)
    return NetworkVerifier(ec2_client(credentials, deadline))


def default_remediator(request: CreateOptions, deadline: Deadline) -> Remediator:
    kube = KubeClient.from_kubeconfig(
        request.kubeconfig, request.kube_context, request_timeout=deadline.remaining()
    )
    return Remediator(kube)


class Provisioner:
    """Sequences one cluster creation.

    Any stage failing ends the run with ProvisioningFailed carrying the stage
    and the cause. There are no retries between stages.

    Args:
        resolver: Terraform toolchain resolver.
        executor: Plan/apply executor shared by the VPC and EKS stages.
        verifier_factory: Builds the VPC verifier for a request.
        remediator_factory: Builds the remediator for a request.
        installer: Component installation hook.
        health_checker: Health check hook.
    """

    def __init__(
        self,
        *,
        resolver: ToolchainResolver | None = None,
        executor: PlanApplyExecutor | None = None,
        verifier_factory: Callable[[CreateOptions, Deadline], NetworkVerifier] = default_verifier,
        remediator_factory: Callable[[CreateOptions, Deadline], Remediator] = default_remediator,
        installer: Hook = install_components,
        health_checker: Hook = health_check,
    ) -> None:
        self.resolver = resolver or ToolchainResolver(DEFAULT_CACHE_DIR)
        self.executor = executor or PlanApplyExecutor()
        self.verifier_factory = verifier_factory
        self.remediator_factory = remediator_factory
        self.installer = installer
        self.health_checker = health_checker
        self.stage = Stage.VALIDATING

    @contextmanager
    def _stage(self, stage: Stage) -> Iterator[None]:
        self.stage = stage
        logger.info("Stage: %s", stage.value)
        try:
            yield
        except Exception as err:
            raise ProvisioningFailed(stage.value, err) from err

    def create(self, request: CreateOptions) -> ClusterResource:
        """Create the VPC and EKS cluster described by *request*.

        Args:
            request: The immutable request for this run.

        Returns:
            The cluster aggregate with its verified VPC id.

        Raises:
            ProvisioningFailed: If any stage fails.
        """
        cluster = ClusterResource(name=request.name)

        with self._stage(Stage.VALIDATING):
            validate_request(request)
            deadline = Deadline(request.timeout)

        with self._stage(Stage.RESOLVING_TOOLCHAIN):
            toolchain = self.resolver.resolve(request.terraform_version, deadline)

        with self._stage(Stage.PROVISIONING_NETWORK):
            result = self.executor.run(
                request.repo_root / REL_VPC_MODULE,
                toolchain,
                request.name,
                run_id=f"vpc-{request.run_id}",
                env=request.auth0.as_env(),
                deadline=deadline,
            )
            vpc_id = extract_output(result, VPC_ID_OUTPUT)

        with self._stage(Stage.VERIFYING_NETWORK):
            self.verifier_factory(request, deadline).verify(cluster, vpc_id)

        with self._stage(Stage.PROVISIONING_CLUSTER):
            options = toolchain.options
            if request.fast:
                options = options.with_variables(**{FAST_SKIP_VARIABLE: "false"})
            console.print("[yellow]\u2139\ufe0f  Creating Kubernetes cluster[/yellow]")
            self.executor.run(
                request.repo_root / REL_EKS_MODULE,
                toolchain,
                request.name,
                run_id=f"eks-{request.run_id}",
                options=options,
                env=request.auth0.as_env(),
                deadline=deadline,
            )

        with self._stage(Stage.REMEDIATING):
            self.remediator_factory(request, deadline).apply_tactical_fix(cluster.name)

        with self._stage(Stage.INSTALLING_COMPONENTS):
            self.installer(request)

        with self._stage(Stage.HEALTH_CHECKING):
            self.health_checker(request)

        self.stage = Stage.DONE
        console.print(f"[green]\u2705 Cluster {cluster.name} created in vpc {cluster.network_id}[/green]")
        return cluster


def run_create(request: CreateOptions, resolver: ToolchainResolver | None = None) -> ClusterResource:
    """Create a cluster with the default collaborators."""
    return Provisioner(resolver=resolver).create(request)
