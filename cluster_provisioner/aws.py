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

"""AWS credential handles and client construction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import boto3
from botocore.config import Config

from cluster_provisioner.constants import DEFAULT_AWS_REGION
from cluster_provisioner.utils import Deadline


@dataclass(frozen=True)
class AwsCredentials:
    """An authenticated boto3 session plus the profile and region it was built for.

    Attributes:
        session: boto3 session used for every AWS API call.
        profile: AWS CLI profile name, or empty for the default chain.
        region: AWS region the cluster is created in.
    """

    session: Any
    profile: str = ""
    region: str = DEFAULT_AWS_REGION


def new_aws_credentials(region: str = DEFAULT_AWS_REGION, profile: str = "") -> AwsCredentials:
    """Build an AwsCredentials handle for *region* and an optional *profile*."""
    kwargs: dict[str, str] = {"region_name": region}
    if profile:
        kwargs["profile_name"] = profile
    return AwsCredentials(session=boto3.Session(**kwargs), profile=profile, region=region)


def ec2_client(credentials: AwsCredentials, deadline: Deadline | None = None) -> Any:
    """Create an EC2 client whose socket timeouts respect *deadline*.

    Args:
        credentials: Session and region to build the client from.
        deadline: Optional run deadline bounding connect and read timeouts.

    Returns:
        A boto3 EC2 client.
    """
    client_config = None
    remaining = deadline.remaining() if deadline else None
    if remaining is not None:
        client_config = Config(connect_timeout=remaining, read_timeout=remaining)
    return credentials.session.client("ec2", region_name=credentials.region, config=client_config)
