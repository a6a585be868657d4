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

"""Inspect subcommands (cluster)."""

from __future__ import annotations

import typer
from rich.table import Table

from cluster_provisioner import console
from cluster_provisioner.cluster import ClusterResource, monitoring_nodes
from cluster_provisioner.config import ProvisionerSettings
from cluster_provisioner.kube import KubeClient

app = typer.Typer(help="Inspect an existing cluster.")


def _node_name(node) -> str:
    return node.metadata.name if node is not None else "-"


@app.command("cluster")
def cluster(
    kubeconfig: str | None = typer.Option(None, "--kubeconfig", help="Kubeconfig path"),
    context: str | None = typer.Option(None, "--context", help="Kubeconfig context"),
) -> None:
    """Print a node, pod, and namespace summary of the current cluster."""
    settings = ProvisionerSettings()
    kube = KubeClient.from_kubeconfig(
        kubeconfig if kubeconfig is not None else settings.kubeconfig,
        context if context is not None else settings.kube_context,
    )
    snapshot = ClusterResource.from_cluster(kube)

    table = Table(title=f"Cluster {snapshot.name or '(unlabelled)'}", show_header=False)
    table.add_column("Item", style="cyan")
    table.add_column("Value")
    table.add_row("Nodes", str(len(snapshot.nodes)))
    table.add_row("Monitoring nodes", str(len(monitoring_nodes(snapshot.nodes))))
    table.add_row("Namespaces", str(len(snapshot.namespaces)))
    table.add_row("Pods", str(len(snapshot.pods)))
    table.add_row("Stuck pods", str(len(snapshot.stuck_pods)))
    table.add_row("Newest node", _node_name(snapshot.newest_node))
    table.add_row("Oldest untainted node", _node_name(snapshot.oldest_node))
    console.print(table)

    for pod in snapshot.stuck_pods:
        console.print(f"[yellow]\u26a0\ufe0f  {pod.metadata.namespace}/{pod.metadata.name} is {pod.status.phase}[/yellow]")
