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

"""Subprocess adapter over the terraform binary.

Every terraform failure leaves this module as a TerraformCommandError whose
``kind`` is one of TerraformErrorKind. Callers decide on retries from the
kind alone and never look at terraform's output text.
"""

from __future__ import annotations

import json
import os
import re
from collections.abc import Mapping
from pathlib import Path

import sh

from cluster_provisioner import logger
from cluster_provisioner.constants import CONFIG_INVALID_PATTERNS, NO_INIT_PATTERNS
from cluster_provisioner.errors import (
    TRANSIENT_KINDS,
    TerraformCommandError,
    TerraformErrorKind,
    TransientApplyError,
)
from cluster_provisioner.toolchain import RunOptions
from cluster_provisioner.utils import Deadline

_NO_INIT_RE = re.compile("|".join(NO_INIT_PATTERNS))
_CONFIG_INVALID_RE = re.compile("|".join(CONFIG_INVALID_PATTERNS))


def classify_failure(output: str) -> TerraformErrorKind:
    """Map terraform error output to a TerraformErrorKind.

    Args:
        output: Combined stderr and stdout of the failed command.

    Returns:
        NO_INIT or CONFIG_INVALID for the recognised transient failures, OTHER otherwise.
    """
    if _NO_INIT_RE.search(output):
        return TerraformErrorKind.NO_INIT
    if _CONFIG_INVALID_RE.search(output):
        return TerraformErrorKind.CONFIG_INVALID
    return TerraformErrorKind.OTHER


def _decode(stream: bytes | str | None) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode("utf-8", errors="replace")
    return stream


def parse_workspace_list(output: str) -> tuple[list[str], str]:
    """Parse ``terraform workspace list`` output.

    Args:
        output: Raw command output; the current workspace is prefixed with ``*``.

    Returns:
        Tuple of (all workspace names, current workspace name).
    """
    workspaces: list[str] = []
    current = ""
    for line in output.splitlines():
        name = line.strip()
        if not name:
            continue
        if name.startswith("*"):
            name = name.lstrip("*").strip()
            current = name
        workspaces.append(name)
    return workspaces, current


class Terraform:
    """Runs terraform subcommands in one module directory.

    Args:
        working_dir: Terraform module directory.
        exec_path: Path to the terraform executable.
        env: Extra environment variables for the subprocess.
        deadline: Run deadline; each call gets the remaining time as its timeout.
    """

    def __init__(
        self,
        working_dir: Path,
        exec_path: Path,
        env: Mapping[str, str] | None = None,
        deadline: Deadline | None = None,
    ) -> None:
        self.working_dir = Path(working_dir)
        full_env = {**os.environ, "TF_IN_AUTOMATION": "1", "TF_INPUT": "0", **(env or {})}
        self._cmd = sh.Command(str(exec_path)).bake(_cwd=str(self.working_dir), _env=full_env)
        self._deadline = deadline or Deadline.never()

    def _run(self, subcommand: str, *args: str, **kwargs) -> str:
        logger.debug("terraform %s %s (in %s)", subcommand, " ".join(args), self.working_dir)
        try:
            result = self._cmd(*subcommand.split(), *args, _timeout=self._deadline.remaining(), **kwargs)
        except sh.TimeoutException as err:
            raise TerraformCommandError(subcommand, TerraformErrorKind.TIMEOUT) from err
        except sh.ErrorReturnCode as err:
            stderr = _decode(err.stderr)
            kind = classify_failure(stderr + "\n" + _decode(err.stdout))
            error_cls = TransientApplyError if kind in TRANSIENT_KINDS else TerraformCommandError
            raise error_cls(subcommand, kind, getattr(err, "exit_code", None), stderr) from err
        return "" if result is None else str(result)

    def init(self) -> None:
        self._run("init", "-input=false", "-no-color")

    def workspace_list(self) -> tuple[list[str], str]:
        return parse_workspace_list(self._run("workspace list"))

    def workspace_select(self, name: str) -> None:
        self._run("workspace select", name)

    def workspace_new(self, name: str) -> None:
        self._run("workspace new", name)

    def workspace_show(self) -> str:
        return self._run("workspace show").strip()

    def plan(self, plan_path: Path, options: RunOptions) -> None:
        """Write a saved plan to *plan_path*."""
        args = [
            "-input=false",
            "-no-color",
            f"-out={plan_path}",
            f"-refresh={str(options.refresh).lower()}",
            f"-parallelism={options.parallelism}",
        ]
        for key, value in sorted(options.variables.items()):
            args.extend(["-var", f"{key}={value}"])
        self._run("plan", *args)

    def show_plan(self, plan_path: Path) -> str:
        """Render a saved plan as human-readable text."""
        return self._run("show", "-no-color", str(plan_path))

    def apply(self, plan_path: Path, options: RunOptions) -> None:
        self._run(
            "apply",
            "-input=false",
            "-no-color",
            "-auto-approve",
            f"-parallelism={options.parallelism}",
            str(plan_path),
        )

    def show_state(self, state_path: Path) -> dict:
        """Write ``terraform show -json`` to *state_path* and parse it."""
        self._run("show", "-json", "-no-color", _out=str(state_path))
        return json.loads(state_path.read_text())
