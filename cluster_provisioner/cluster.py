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

"""The cluster aggregate and node/pod/namespace snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from cluster_provisioner.constants import (
    CLUSTER_NAME_NODE_LABEL,
    MONITORING_NODE_LABEL,
    STUCK_POD_PHASES,
)
from cluster_provisioner.kube import KubeClient


@dataclass
class ClusterResource:
    """A cloud platform cluster as seen during and after provisioning.

    Attributes:
        name: Cluster name.
        nodes: Node snapshot.
        pods: Pod snapshot across all namespaces.
        stuck_pods: Pods in the Pending, Failed, or Unknown phase.
        namespaces: Namespace snapshot.
        newest_node: Most recently created node, if any.
        oldest_node: Oldest untainted node, if any.
    """

    name: str
    nodes: list[Any] = field(default_factory=list)
    pods: list[Any] = field(default_factory=list)
    stuck_pods: list[Any] = field(default_factory=list)
    namespaces: list[Any] = field(default_factory=list)
    newest_node: Any = None
    oldest_node: Any = None
    _network_id: str = field(default="", repr=False)

    @property
    def network_id(self) -> str:
        return self._network_id

    def record_network_id(self, network_id: str) -> None:
        """Set the verified VPC id. It can be set once and never changed."""
        if self._network_id and self._network_id != network_id:
            raise ValueError(f"network id already recorded as {self._network_id}, refusing {network_id}")
        self._network_id = network_id

    @classmethod
    def from_cluster(cls, kube: KubeClient) -> ClusterResource:
        """Build a populated aggregate from a live cluster.

        The cluster name is only available from the ``Cluster`` label on its nodes.
        """
        nodes = kube.list_nodes()
        cluster = cls(name=cluster_name_from_nodes(nodes))
        cluster.refresh(kube, nodes=nodes)
        return cluster

    def refresh(self, kube: KubeClient, nodes: list[Any] | None = None) -> None:
        """Re-read node, pod, and namespace snapshots."""
        self.nodes = kube.list_nodes() if nodes is None else nodes
        self.pods = kube.list_pods()
        self.stuck_pods = stuck_pods(self.pods)
        self.namespaces = kube.list_namespaces()
        self.newest_node = newest_node(self.nodes)
        self.oldest_node = oldest_node(self.nodes)


def cluster_name_from_nodes(nodes: list[Any]) -> str:
    """Read the cluster name from the first node's ``Cluster`` label."""
    if not nodes:
        return ""
    labels = nodes[0].metadata.labels or {}
    return labels.get(CLUSTER_NAME_NODE_LABEL, "")


def monitoring_nodes(nodes: list[Any]) -> list[Any]:
    return [node for node in nodes if (node.metadata.labels or {}).get(MONITORING_NODE_LABEL) == "true"]


def newest_node(nodes: list[Any]) -> Any:
    if not nodes:
        return None
    return max(nodes, key=lambda node: node.metadata.creation_timestamp)


def oldest_node(nodes: list[Any]) -> Any:
    """Oldest node that carries no taints."""
    untainted = [node for node in nodes if not node.spec.taints]
    if not untainted:
        return None
    return min(untainted, key=lambda node: node.metadata.creation_timestamp)


def stuck_pods(pods: list[Any]) -> list[Any]:
    return [pod for pod in pods if pod.status.phase in STUCK_POD_PHASES]
