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

"""Tests for the cluster aggregate and snapshot helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from cluster_provisioner.cluster import (
    ClusterResource,
    cluster_name_from_nodes,
    monitoring_nodes,
    newest_node,
    oldest_node,
    stuck_pods,
)
from cluster_provisioner.kube import KubeClient


# ══════════════════════════════════════════════════════════════════════════════
#  Helpers
# ══════════════════════════════════════════════════════════════════════════════


def _node(name: str, day: int, labels: dict | None = None, taints: list | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        metadata=SimpleNamespace(
            name=name,
            labels=labels,
            creation_timestamp=datetime(2026, 1, day, tzinfo=timezone.utc),
        ),
        spec=SimpleNamespace(taints=taints),
    )


def _pod(name: str, phase: str) -> SimpleNamespace:
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, namespace="default"),
        status=SimpleNamespace(phase=phase),
    )


# ══════════════════════════════════════════════════════════════════════════════
#  Aggregate
# ══════════════════════════════════════════════════════════════════════════════


class TestClusterResource:
    def test_network_id_is_write_once(self) -> None:
        cluster = ClusterResource(name="dev-abc")
        cluster.record_network_id("vpc-123")
        cluster.record_network_id("vpc-123")

        with pytest.raises(ValueError):
            cluster.record_network_id("vpc-999")

        assert cluster.network_id == "vpc-123"

    def test_from_cluster(self) -> None:
        nodes = [_node("a", 1, labels={"Cluster": "dev-abc"}), _node("b", 3, labels={"Cluster": "dev-abc"})]
        core = MagicMock()
        core.list_node.return_value = SimpleNamespace(items=nodes)
        core.list_pod_for_all_namespaces.return_value = SimpleNamespace(
            items=[_pod("web", "Running"), _pod("job", "Pending")]
        )
        core.list_namespace.return_value = SimpleNamespace(items=[SimpleNamespace()])

        cluster = ClusterResource.from_cluster(KubeClient(core=core, custom=MagicMock()))

        assert cluster.name == "dev-abc"
        assert len(cluster.pods) == 2
        assert [p.metadata.name for p in cluster.stuck_pods] == ["job"]
        assert cluster.newest_node.metadata.name == "b"
        assert cluster.oldest_node.metadata.name == "a"
        core.list_node.assert_called_once()


# ══════════════════════════════════════════════════════════════════════════════
#  Snapshot helpers
# ══════════════════════════════════════════════════════════════════════════════


class TestNodeHelpers:
    def test_cluster_name_from_nodes(self) -> None:
        assert cluster_name_from_nodes([_node("a", 1, labels={"Cluster": "dev-abc"})]) == "dev-abc"
        assert cluster_name_from_nodes([_node("a", 1)]) == ""
        assert cluster_name_from_nodes([]) == ""

    def test_monitoring_nodes(self) -> None:
        nodes = [_node("a", 1, labels={"monitoring_ng": "true"}), _node("b", 2, labels={})]
        assert [n.metadata.name for n in monitoring_nodes(nodes)] == ["a"]

    def test_newest_node(self) -> None:
        assert newest_node([_node("a", 1), _node("b", 5), _node("c", 2)]).metadata.name == "b"
        assert newest_node([]) is None

    def test_oldest_node_skips_tainted(self) -> None:
        nodes = [_node("a", 1, taints=[SimpleNamespace(key="monitoring")]), _node("b", 2), _node("c", 3)]
        assert oldest_node(nodes).metadata.name == "b"

    def test_oldest_node_all_tainted(self) -> None:
        assert oldest_node([_node("a", 1, taints=[SimpleNamespace(key="x")])]) is None


def test_stuck_pods() -> None:
    pods = [_pod("a", "Running"), _pod("b", "Pending"), _pod("c", "Failed"), _pod("d", "Succeeded"), _pod("e", "Unknown")]
    assert [p.metadata.name for p in stuck_pods(pods)] == ["b", "c", "e"]
