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

"""Cross-check a provisioned VPC against the EC2 API."""

from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from rich.panel import Panel

from cluster_provisioner import console
from cluster_provisioner.cluster import ClusterResource
from cluster_provisioner.constants import CLUSTER_TAG_KEY, VPC_AVAILABLE_STATE
from cluster_provisioner.errors import (
    IdentifierMismatch,
    ResourceNotFound,
    ResourceNotReady,
    VerificationError,
)


class NetworkVerifier:
    """Reads the VPC tagged with the cluster name straight from EC2.

    Terraform's outputs are trusted for ids but not for state: EC2 can
    report a VPC before it is available, so the next stage only starts
    after this read-after-write check passes.

    Args:
        ec2: boto3 EC2 client.
    """

    def __init__(self, ec2: Any) -> None:
        self._ec2 = ec2

    def describe(self, cluster_name: str) -> list[dict[str, str]]:
        """Return ``{"id", "status"}`` for each VPC tagged with *cluster_name*.

        Raises:
            VerificationError: If the EC2 call fails.
        """
        try:
            response = self._ec2.describe_vpcs(
                Filters=[{"Name": f"tag:{CLUSTER_TAG_KEY}", "Values": [cluster_name]}],
            )
        except (ClientError, BotoCoreError) as err:
            raise VerificationError(f"error describing vpc: {err}") from err
        return [
            {"id": vpc.get("VpcId", ""), "status": vpc.get("State", "")}
            for vpc in response.get("Vpcs", [])
        ]

    def verify(self, cluster: ClusterResource, expected_id: str) -> None:
        """Confirm the cluster's VPC exists, matches *expected_id*, and is available.

        On success the id is recorded on *cluster*.

        Args:
            cluster: Aggregate for the run; its name is the tag value.
            expected_id: VPC id reported by terraform.

        Raises:
            ResourceNotFound: No VPC carries the cluster tag.
            IdentifierMismatch: The first tagged VPC has a different id.
            ResourceNotReady: The VPC is not in the ``available`` state.
            VerificationError: The EC2 call failed.
        """
        console.print(Panel.fit(f"Verifying vpc {expected_id}", style="bold blue"))
        vpcs = self.describe(cluster.name)
        if not vpcs:
            raise ResourceNotFound(cluster.name)

        vpc = vpcs[0]
        if vpc["id"] != expected_id:
            raise IdentifierMismatch(expected=expected_id, actual=vpc["id"])
        if vpc["status"] != VPC_AVAILABLE_STATE:
            raise ResourceNotReady(vpc["id"], vpc["status"])

        cluster.record_network_id(vpc["id"])
        console.print(f"[green]\u2705 vpc {vpc['id']} is {VPC_AVAILABLE_STATE}[/green]")
