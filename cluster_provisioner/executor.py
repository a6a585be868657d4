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

"""init, plan, apply, and show for one terraform module directory."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path

from rich.panel import Panel
from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

from cluster_provisioner import console, logger
from cluster_provisioner.constants import (
    APPLY_MAX_ATTEMPTS,
    PLAN_ARTIFACT_PREFIX,
    STATE_ARTIFACT_PREFIX,
    TERRAFORM_LOCAL_CACHE_DIR,
)
from cluster_provisioner.errors import PreconditionError, TerraformCommandError
from cluster_provisioner.state import ProvisionResult
from cluster_provisioner.terraform import Terraform
from cluster_provisioner.toolchain import RunOptions, ToolchainHandle
from cluster_provisioner.utils import Deadline, remove_local_state, scoped_artifact
from cluster_provisioner.workspace import ensure_workspace

TerraformFactory = Callable[..., Terraform]


def _is_transient(err: BaseException) -> bool:
    return isinstance(err, TerraformCommandError) and err.is_transient


class PlanApplyExecutor:
    """Runs the full init/plan/apply cycle against a module directory.

    Used unchanged for the VPC and EKS stages.

    Args:
        terraform_factory: Builds the terraform adapter; called as
            ``factory(module_dir, exec_path, env=..., deadline=...)``.
    """

    def __init__(self, terraform_factory: TerraformFactory = Terraform) -> None:
        self._terraform_factory = terraform_factory

    def run(
        self,
        module_dir: Path,
        toolchain: ToolchainHandle,
        workspace: str,
        *,
        run_id: str,
        options: RunOptions | None = None,
        env: Mapping[str, str] | None = None,
        deadline: Deadline | None = None,
    ) -> ProvisionResult:
        """Provision *module_dir* in *workspace* and return its outputs.

        Args:
            module_dir: Terraform module directory.
            toolchain: Resolved terraform binary.
            workspace: Workspace name; must be the one selected at apply time.
            run_id: Unique id naming this run's plan and state artifacts.
            options: Plan/apply options; defaults to the toolchain's.
            env: Extra environment for terraform (provider credentials).
            deadline: Run deadline passed to every terraform call.

        Returns:
            The outputs of the applied module.

        Raises:
            PreconditionError: If the selected workspace is not *workspace*.
            WorkspaceError: If the workspace cannot be selected or created.
            TerraformCommandError: If init, plan, apply, or show fails.
        """
        options = options or toolchain.options
        console.print(Panel.fit(f"Terraform {module_dir.name} (workspace: {workspace})", style="bold blue"))

        console.print("[yellow]\u2139\ufe0f  Deleting local .terraform directory[/yellow]")
        remove_local_state(module_dir / TERRAFORM_LOCAL_CACHE_DIR)

        terraform = self._terraform_factory(module_dir, toolchain.exec_path, env=env, deadline=deadline)
        self._init(terraform, workspace)

        with scoped_artifact(module_dir, PLAN_ARTIFACT_PREFIX, run_id) as plan_path:
            console.print(f"[yellow]\u2139\ufe0f  Planning in workspace {workspace}[/yellow]")
            terraform.plan(plan_path, options)
            if options.show_plan:
                console.print(terraform.show_plan(plan_path))

            console.print("[yellow]\u2139\ufe0f  Applying plan, may take a while...[/yellow]")
            self._apply(terraform, plan_path, options, workspace)

        with scoped_artifact(module_dir, STATE_ARTIFACT_PREFIX, run_id) as state_path:
            document = terraform.show_state(state_path)

        console.print(f"[green]\u2705 {module_dir.name} applied[/green]")
        return ProvisionResult.from_show_json(document, applied=True)

    def _init(self, terraform: Terraform, workspace: str) -> None:
        terraform.init()
        selected = ensure_workspace(terraform, workspace)
        if selected != workspace:
            raise PreconditionError(
                f"workspace '{selected}' is selected in {terraform.working_dir}, expected '{workspace}'"
            )

    def _apply(self, terraform: Terraform, plan_path: Path, options: RunOptions, workspace: str) -> None:
        """Apply the saved plan, re-initialising and retrying once on a transient failure."""

        def _reinit(retry_state: RetryCallState) -> None:
            err = retry_state.outcome.exception()
            console.print("[yellow]\u26a0\ufe0f  Init required, running init again[/yellow]")
            logger.info("Re-initialising %s after %s", terraform.working_dir, err)
            self._init(terraform, workspace)

        retrying = Retrying(
            stop=stop_after_attempt(APPLY_MAX_ATTEMPTS),
            retry=retry_if_exception(_is_transient),
            before_sleep=_reinit,
            reraise=True,
        )
        retrying(terraform.apply, plan_path, options)
