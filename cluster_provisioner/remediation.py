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

"""Tactical PodSecurityPolicy fix for freshly created EKS clusters."""

from __future__ import annotations

from kubernetes.client.rest import ApiException
from rich.panel import Panel
from urllib3.exceptions import HTTPError

from cluster_provisioner import console
from cluster_provisioner.constants import TACTICAL_PSP_NAME
from cluster_provisioner.errors import RemediationFailed, RemediationStep
from cluster_provisioner.kube import KubeClient


class Remediator:
    """Replaces the default EKS pod security policy on a new cluster.

    Deleted pods are recreated by their controllers. Nothing here waits
    for or checks that recreation.

    Args:
        kube: Client bound to the new cluster.
        policy_name: Cluster-scoped PodSecurityPolicy to delete.
    """

    def __init__(self, kube: KubeClient, policy_name: str = TACTICAL_PSP_NAME) -> None:
        self._kube = kube
        self.policy_name = policy_name

    def apply_tactical_fix(self, cluster_name: str) -> None:
        """Delete the policy, then recycle every pod so the new policy applies.

        Args:
            cluster_name: Name of the cluster, for operator output.

        Raises:
            RemediationFailed: With step POLICY_DELETE or WORKLOAD_RECYCLE.
        """
        console.print(Panel.fit(f"Applying tactical psp fix to {cluster_name}", style="bold blue"))
        try:
            self._kube.delete_policy(self.policy_name)
        except (ApiException, HTTPError) as err:
            raise RemediationFailed(RemediationStep.POLICY_DELETE, err) from err
        console.print(f"[yellow]   Deleted psp {self.policy_name}[/yellow]")

        try:
            count = self._kube.delete_all_workloads()
        except (ApiException, HTTPError) as err:
            raise RemediationFailed(RemediationStep.WORKLOAD_RECYCLE, err) from err
        console.print(f"[green]\u2705 Recycled pods in {count} namespaces[/green]")
