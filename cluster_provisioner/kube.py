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

"""Thin Kubernetes API client used for snapshots and the tactical fix."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from kubernetes import client, config

from cluster_provisioner import logger
from cluster_provisioner.constants import PSP_GROUP, PSP_PLURAL, PSP_VERSION


def default_kubeconfig_path() -> Path:
    return Path.home() / ".kube" / "config"


@dataclass
class KubeClient:
    """Pass-through wrapper over the CoreV1 and CustomObjects APIs.

    Attributes:
        core: CoreV1Api instance.
        custom: CustomObjectsApi instance, used for cluster-scoped policy objects.
        request_timeout: Per-request timeout in seconds, or None.
    """

    core: Any
    custom: Any
    request_timeout: float | None = None

    @classmethod
    def from_kubeconfig(
        cls,
        path: str = "",
        context: str = "",
        request_timeout: float | None = None,
    ) -> KubeClient:
        """Build a client from a kubeconfig file and optional context.

        Args:
            path: Kubeconfig path; empty means ``~/.kube/config``.
            context: Context name; empty means the current context.
            request_timeout: Per-request timeout in seconds.
        """
        config_file = path or str(default_kubeconfig_path())
        logger.debug("Loading kubeconfig %s (context: %s)", config_file, context or "current")
        api_client = config.new_client_from_config(config_file=config_file, context=context or None)
        return cls(
            core=client.CoreV1Api(api_client),
            custom=client.CustomObjectsApi(api_client),
            request_timeout=request_timeout,
        )

    def _kwargs(self) -> dict[str, Any]:
        if self.request_timeout is None:
            return {}
        return {"_request_timeout": self.request_timeout}

    def list_nodes(self) -> list[Any]:
        return self.core.list_node(**self._kwargs()).items

    def list_pods(self) -> list[Any]:
        return self.core.list_pod_for_all_namespaces(**self._kwargs()).items

    def list_namespaces(self) -> list[Any]:
        return self.core.list_namespace(**self._kwargs()).items

    def delete_policy(self, name: str) -> None:
        """Delete a cluster-scoped PodSecurityPolicy by name."""
        self.custom.delete_cluster_custom_object(
            PSP_GROUP, PSP_VERSION, PSP_PLURAL, name, **self._kwargs()
        )

    def delete_all_workloads(self) -> int:
        """Delete every pod in every namespace.

        Returns:
            Number of namespaces whose pods were deleted.
        """
        namespaces = [ns.metadata.name for ns in self.list_namespaces()]
        for namespace in namespaces:
            logger.debug("Deleting pods in namespace %s", namespace)
            self.core.delete_collection_namespaced_pod(namespace, **self._kwargs())
        return len(namespaces)
