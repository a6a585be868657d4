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

"""Tests for the terraform subprocess adapter."""

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import sh

from cluster_provisioner import terraform as terraform_module
from cluster_provisioner.errors import (
    DeadlineExceeded,
    TerraformCommandError,
    TerraformErrorKind,
    TransientApplyError,
)
from cluster_provisioner.terraform import Terraform, classify_failure, parse_workspace_list
from cluster_provisioner.toolchain import RunOptions
from cluster_provisioner.utils import Deadline


# ══════════════════════════════════════════════════════════════════════════════
#  Helpers
# ══════════════════════════════════════════════════════════════════════════════


@pytest.fixture()
def fake_sh(monkeypatch) -> MagicMock:
    """Replace sh.Command in the adapter; returns the baked command mock."""
    baked = MagicMock(return_value="")
    command = MagicMock()
    command.return_value.bake.return_value = baked
    monkeypatch.setattr(
        terraform_module,
        "sh",
        SimpleNamespace(
            Command=command,
            ErrorReturnCode=sh.ErrorReturnCode,
            TimeoutException=sh.TimeoutException,
        ),
    )
    return baked


def _error_return(stderr: str, stdout: str = "") -> sh.ErrorReturnCode:
    return sh.ErrorReturnCode_1("terraform apply", stdout.encode(), stderr.encode())


# ══════════════════════════════════════════════════════════════════════════════
#  Failure classification
# ══════════════════════════════════════════════════════════════════════════════


class TestClassifyFailure:
    @pytest.mark.parametrize(
        "output",
        [
            'Error: Could not satisfy plugin requirements\n\nPlease run "terraform init".',
            "Error: Initialization required. Please see the error message above.",
            "Error: Backend initialization required, please run \"terraform init\"",
            "Error: Module not installed",
        ],
    )
    def test_no_init(self, output: str) -> None:
        assert classify_failure(output) == TerraformErrorKind.NO_INIT

    @pytest.mark.parametrize(
        "output",
        [
            "There are some problems with the configuration, described below.",
            "Error: Failed to load\n\nThere are some problems with the configuration, described below.",
        ],
    )
    def test_config_invalid(self, output: str) -> None:
        assert classify_failure(output) == TerraformErrorKind.CONFIG_INVALID

    @pytest.mark.parametrize(
        "output",
        [
            'Error: Unsupported argument\n\n  on main.tf line 3: An argument named "foo" is not expected here.',
            'Error: Unsupported block type\n\n  on main.tf line 9: Blocks of type "foo" are not expected here.',
        ],
    )
    def test_permanent_config_errors_are_not_transient(self, output: str) -> None:
        assert classify_failure(output) == TerraformErrorKind.OTHER

    def test_other(self) -> None:
        assert classify_failure("Error: creating EC2 VPC: VpcLimitExceeded") == TerraformErrorKind.OTHER

    def test_empty_output(self) -> None:
        assert classify_failure("") == TerraformErrorKind.OTHER


class TestParseWorkspaceList:
    def test_marks_current(self) -> None:
        workspaces, current = parse_workspace_list("  default\n* dev-abc\n  live\n\n")
        assert workspaces == ["default", "dev-abc", "live"]
        assert current == "dev-abc"

    def test_empty(self) -> None:
        assert parse_workspace_list("") == ([], "")


# ══════════════════════════════════════════════════════════════════════════════
#  Adapter
# ══════════════════════════════════════════════════════════════════════════════


class TestTerraform:
    def test_environment_and_cwd(self, tmp_path: Path, fake_sh: MagicMock) -> None:
        Terraform(tmp_path, tmp_path / "terraform", env={"AUTH0_DOMAIN": "tenant"})

        command = terraform_module.sh.Command
        command.assert_called_once_with(str(tmp_path / "terraform"))
        bake_kwargs = command.return_value.bake.call_args.kwargs
        assert bake_kwargs["_cwd"] == str(tmp_path)
        assert bake_kwargs["_env"]["AUTH0_DOMAIN"] == "tenant"
        assert bake_kwargs["_env"]["TF_IN_AUTOMATION"] == "1"

    def test_plan_arguments(self, tmp_path: Path, fake_sh: MagicMock) -> None:
        terraform = Terraform(tmp_path, tmp_path / "terraform")
        options = RunOptions().with_variables(enable_oidc_associate="false", a="1")

        terraform.plan(tmp_path / "plan-r1", options)

        args = fake_sh.call_args.args
        assert args[0] == "plan"
        assert f"-out={tmp_path / 'plan-r1'}" in args
        assert "-refresh=true" in args
        assert "-parallelism=1" in args
        assert list(args[-4:]) == ["-var", "a=1", "-var", "enable_oidc_associate=false"]

    def test_apply_arguments(self, tmp_path: Path, fake_sh: MagicMock) -> None:
        terraform = Terraform(tmp_path, tmp_path / "terraform")

        terraform.apply(tmp_path / "plan-r1", RunOptions())

        args = fake_sh.call_args.args
        assert args[0] == "apply"
        assert "-auto-approve" in args
        assert "-parallelism=1" in args
        assert args[-1] == str(tmp_path / "plan-r1")

    def test_workspace_subcommands_are_split(self, tmp_path: Path, fake_sh: MagicMock) -> None:
        fake_sh.return_value = "  default\n* dev\n"
        terraform = Terraform(tmp_path, tmp_path / "terraform")

        assert terraform.workspace_list() == (["default", "dev"], "dev")
        assert fake_sh.call_args.args[:2] == ("workspace", "list")

    def test_transient_failure_is_typed(self, tmp_path: Path, fake_sh: MagicMock) -> None:
        fake_sh.side_effect = _error_return('Error: Could not load plugin\nPlease run "terraform init".')
        terraform = Terraform(tmp_path, tmp_path / "terraform")

        with pytest.raises(TransientApplyError) as exc:
            terraform.apply(tmp_path / "plan-r1", RunOptions())

        assert exc.value.kind == TerraformErrorKind.NO_INIT
        assert exc.value.is_transient
        assert exc.value.command == "apply"

    def test_other_failure_is_not_transient(self, tmp_path: Path, fake_sh: MagicMock) -> None:
        fake_sh.side_effect = _error_return("Error: creating EC2 VPC: VpcLimitExceeded")
        terraform = Terraform(tmp_path, tmp_path / "terraform")

        with pytest.raises(TerraformCommandError) as exc:
            terraform.apply(tmp_path / "plan-r1", RunOptions())

        assert not isinstance(exc.value, TransientApplyError)
        assert exc.value.kind == TerraformErrorKind.OTHER
        assert not exc.value.is_transient

    def test_timeout_maps_to_timeout_kind(self, tmp_path: Path, fake_sh: MagicMock) -> None:
        fake_sh.side_effect = sh.TimeoutException(-9, "terraform apply")
        terraform = Terraform(tmp_path, tmp_path / "terraform", deadline=Deadline(60))

        with pytest.raises(TerraformCommandError) as exc:
            terraform.apply(tmp_path / "plan-r1", RunOptions())

        assert exc.value.kind == TerraformErrorKind.TIMEOUT

    def test_deadline_passed_as_timeout(self, tmp_path: Path, fake_sh: MagicMock) -> None:
        terraform = Terraform(tmp_path, tmp_path / "terraform", deadline=Deadline(60))

        terraform.init()

        timeout = fake_sh.call_args.kwargs["_timeout"]
        assert 0 < timeout <= 60

    def test_expired_deadline_runs_nothing(self, tmp_path: Path, fake_sh: MagicMock) -> None:
        terraform = Terraform(tmp_path, tmp_path / "terraform", deadline=Deadline(0))

        with pytest.raises(DeadlineExceeded):
            terraform.init()

        fake_sh.assert_not_called()

    def test_show_state_parses_written_file(self, tmp_path: Path, fake_sh: MagicMock) -> None:
        state_path = tmp_path / "state-r1"
        document = {"values": {"outputs": {"vpc_id": {"value": "vpc-123"}}}}

        def _write(*args, **kwargs):
            Path(kwargs["_out"]).write_text(json.dumps(document))

        fake_sh.side_effect = _write
        terraform = Terraform(tmp_path, tmp_path / "terraform")

        assert terraform.show_state(state_path) == document
        assert fake_sh.call_args.args[:2] == ("show", "-json")
