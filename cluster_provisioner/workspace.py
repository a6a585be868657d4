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

"""Terraform workspace selection."""

from __future__ import annotations

from cluster_provisioner import console
from cluster_provisioner.errors import TerraformCommandError, WorkspaceError
from cluster_provisioner.terraform import Terraform


def ensure_workspace(terraform: Terraform, name: str) -> str:
    """Select workspace *name*, creating it first if it does not exist.

    Must run after every ``init``: selection is not assumed to survive
    between terraform processes.

    Args:
        terraform: Adapter bound to an initialised module directory.
        name: Workspace name (the cluster name).

    Returns:
        The name of the workspace terraform reports as selected.

    Raises:
        WorkspaceError: If listing, creating, or selecting fails.
    """
    try:
        existing, _ = terraform.workspace_list()
        if name in existing:
            terraform.workspace_select(name)
            console.print(f"[yellow]   Selected existing workspace '{name}'[/yellow]")
            return name

        terraform.workspace_new(name)
        console.print(f"[yellow]   Created workspace '{name}'[/yellow]")
        return terraform.workspace_show()
    except TerraformCommandError as err:
        raise WorkspaceError(f"failed to ensure workspace '{name}': {err}") from err
