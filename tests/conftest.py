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

"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest

from cluster_provisioner.config import CreateOptions
from cluster_provisioner.constants import INFRA_REPOSITORY_NAME, REL_EKS_MODULE, REL_VPC_MODULE
from cluster_provisioner.kube import KubeClient
from cluster_provisioner.toolchain import ToolchainHandle


# ══════════════════════════════════════════════════════════════════════════════
#  Fake terraform adapter
# ══════════════════════════════════════════════════════════════════════════════


class FakeTerraform:
    """Stands in for cluster_provisioner.terraform.Terraform and records every call."""

    def __init__(
        self,
        working_dir: Path,
        exec_path: Path,
        env: dict[str, str] | None = None,
        deadline: Any = None,
        *,
        outputs: dict[str, Any] | None = None,
        apply_errors: list[Exception] | None = None,
        workspaces: list[str] | None = None,
        reported_workspace: str | None = None,
    ) -> None:
        self.working_dir = Path(working_dir)
        self.exec_path = exec_path
        self.env = dict(env or {})
        self.deadline = deadline
        self.outputs = outputs or {}
        self.apply_errors = list(apply_errors or [])
        self.workspaces = list(workspaces or ["default"])
        self.current = "default"
        self.reported_workspace = reported_workspace
        self.calls: list[str] = []
        self.plan_options = None
        self.plan_paths: list[Path] = []
        self.state_paths: list[Path] = []

    def count(self, name: str) -> int:
        return self.calls.count(name)

    def init(self) -> None:
        self.calls.append("init")

    def workspace_list(self) -> tuple[list[str], str]:
        self.calls.append("workspace list")
        return list(self.workspaces), self.current

    def workspace_select(self, name: str) -> None:
        self.calls.append("workspace select")
        self.current = name

    def workspace_new(self, name: str) -> None:
        self.calls.append("workspace new")
        self.workspaces.append(name)
        self.current = name

    def workspace_show(self) -> str:
        self.calls.append("workspace show")
        return self.reported_workspace or self.current

    def plan(self, plan_path: Path, options: Any) -> None:
        self.calls.append("plan")
        self.plan_options = options
        self.plan_paths.append(plan_path)
        plan_path.write_text("saved plan")

    def show_plan(self, plan_path: Path) -> str:
        self.calls.append("show plan")
        return "Plan: 1 to add, 0 to change, 0 to destroy."

    def apply(self, plan_path: Path, options: Any) -> None:
        self.calls.append("apply")
        if self.apply_errors:
            raise self.apply_errors.pop(0)

    def show_state(self, state_path: Path) -> dict:
        self.calls.append("show state")
        self.state_paths.append(state_path)
        document = {"values": {"outputs": {k: {"value": v} for k, v in self.outputs.items()}}}
        state_path.write_text(json.dumps(document))
        return document


class FakeTerraformFactory:
    """Builds one FakeTerraform per module directory, configured per module name."""

    def __init__(self) -> None:
        self.outputs: dict[str, dict[str, Any]] = {"vpc": {"vpc_id": "vpc-123"}, "eks": {}}
        self.apply_errors: dict[str, list[Exception]] = {}
        self.instances: list[FakeTerraform] = []

    def __call__(self, working_dir: Path, exec_path: Path, env=None, deadline=None) -> FakeTerraform:
        module = Path(working_dir).name
        terraform = FakeTerraform(
            working_dir,
            exec_path,
            env=env,
            deadline=deadline,
            outputs=self.outputs.get(module, {}),
            apply_errors=self.apply_errors.get(module, []),
        )
        self.instances.append(terraform)
        return terraform

    def for_module(self, module: str) -> FakeTerraform:
        return next(t for t in self.instances if t.working_dir.name == module)


# ══════════════════════════════════════════════════════════════════════════════
#  Fixtures
# ══════════════════════════════════════════════════════════════════════════════


@pytest.fixture()
def infra_repo(tmp_path: Path) -> Path:
    """Create a fake infrastructure checkout with the VPC and EKS module directories."""
    root = tmp_path / INFRA_REPOSITORY_NAME
    (root / ".git").mkdir(parents=True)
    (root / REL_VPC_MODULE).mkdir(parents=True)
    (root / REL_EKS_MODULE).mkdir(parents=True)
    return root


@pytest.fixture()
def toolchain(tmp_path: Path) -> ToolchainHandle:
    return ToolchainHandle(version="0.14.8", exec_path=tmp_path / "bin" / "terraform")


@pytest.fixture()
def terraform_factory() -> FakeTerraformFactory:
    return FakeTerraformFactory()


@pytest.fixture()
def make_request(infra_repo: Path):
    """Return a builder for CreateOptions rooted at the fake checkout."""

    def _make(**overrides: Any) -> CreateOptions:
        values: dict[str, Any] = {"name": "dev-abc", "repo_root": infra_repo, "run_id": "run1"}
        values.update(overrides)
        return CreateOptions(**values)

    return _make


def _namespace(name: str) -> SimpleNamespace:
    return SimpleNamespace(metadata=SimpleNamespace(name=name))


@pytest.fixture()
def kube() -> KubeClient:
    """KubeClient over mocked CoreV1 and CustomObjects APIs with two namespaces."""
    core = MagicMock()
    core.list_namespace.return_value = SimpleNamespace(items=[_namespace("default"), _namespace("kube-system")])
    return KubeClient(core=core, custom=MagicMock())


@pytest.fixture()
def ec2() -> MagicMock:
    client = MagicMock()
    client.describe_vpcs.return_value = {"Vpcs": [{"VpcId": "vpc-123", "State": "available"}]}
    return client
