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

"""Constants, dependency loading, and dep_value helper."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml


def load_dependencies() -> dict:
    """Load pinned tool versions and module paths from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = Path(__file__).resolve().parent / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Cluster naming --
RESERVED_CLUSTER_NAMES = frozenset({"live", "manager"})
CLUSTER_TAG_KEY = "Cluster"

# -- Infrastructure repository --
REPO_MARKER = ".git"
INFRA_REPOSITORY_NAME = dep_value("infrastructure", "repository", default="cloud-platform-infrastructure")
REL_VPC_MODULE = dep_value("infrastructure", "vpc_module", default="terraform/aws-accounts/cloud-platform-aws/vpc")
REL_EKS_MODULE = dep_value("infrastructure", "eks_module", default="terraform/aws-accounts/cloud-platform-aws/vpc/eks")

# -- Terraform --
TERRAFORM_PRODUCT = "terraform"
TERRAFORM_LOCAL_CACHE_DIR = ".terraform"
TERRAFORM_PARALLELISM = 1
VPC_ID_OUTPUT = "vpc_id"
FAST_SKIP_VARIABLE = dep_value("terraform", "fast_skip_variable", default="enable_oidc_associate")
PLAN_ARTIFACT_PREFIX = "plan"
STATE_ARTIFACT_PREFIX = "state"
APPLY_MAX_ATTEMPTS = 2
VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+(-[0-9A-Za-z.]+)?$")

# Patterns terraform prints when the working directory needs `init`.
NO_INIT_PATTERNS = (
    r"Error: Could not satisfy plugin requirements",
    r"Error: Could not load plugin",
    r"Please run \"terraform init\"",
    r"run:\s+terraform init",
    r"Run\s+\"terraform init\"",
    r"Error: Initialization required",
    r"Error: Backend initialization required",
    r"Error: Required plugins are not installed",
    r"Error: Inconsistent dependency lock file",
    r"Error: Module not installed",
)
CONFIG_INVALID_PATTERNS = (
    r"There are some problems with the configuration, described below",
)

# -- Toolchain --
DEFAULT_TERRAFORM_VERSION = dep_value("terraform", "version", default="0.14.8")
DEFAULT_RELEASES_URL = dep_value("terraform", "releases_url", default="https://releases.hashicorp.com")
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "cluster-provisioner"
DOWNLOAD_TIMEOUT_SECONDS = 120.0
DOWNLOAD_CHUNK_SIZE = 1024 * 1024

# -- AWS --
DEFAULT_AWS_REGION = dep_value("aws", "region", default="eu-west-2")
VPC_AVAILABLE_STATE = "available"

# -- Kubernetes --
TACTICAL_PSP_NAME = "eks.privileged"
PSP_GROUP = "policy"
PSP_VERSION = "v1beta1"
PSP_PLURAL = "podsecuritypolicies"
CLUSTER_NAME_NODE_LABEL = "Cluster"
MONITORING_NODE_LABEL = "monitoring_ng"
STUCK_POD_PHASES = frozenset({"Pending", "Failed", "Unknown"})

# -- Request defaults --
DEFAULT_NODE_COUNT = 3
DEFAULT_MAX_NAME_LENGTH = 12
DEFAULT_TIMEOUT_SECONDS = 3600
DEFAULT_CLUSTER_SUFFIX = "cloud-platform.service.justice.gov.uk"
