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

"""Exception hierarchy for cluster provisioning."""

from __future__ import annotations

from enum import Enum


class ProvisioningError(Exception):
    """Base exception for all cluster_provisioner errors."""


class PreconditionError(ProvisioningError):
    """A request or working-directory precondition does not hold."""


class DeadlineExceeded(ProvisioningError):
    """The request timeout elapsed before a blocking call could start."""


class ToolchainUnavailable(ProvisioningError):
    """The pinned Terraform version could not be found or downloaded."""


class WorkspaceError(ProvisioningError):
    """A Terraform workspace could not be listed, created, or selected."""


# ============================================================================
# Terraform command failures
# ============================================================================

class TerraformErrorKind(str, Enum):
    """Closed classification of terraform command failures."""

    NO_INIT = "no_init"
    CONFIG_INVALID = "config_invalid"
    TIMEOUT = "timeout"
    OTHER = "other"


TRANSIENT_KINDS = frozenset({TerraformErrorKind.NO_INIT, TerraformErrorKind.CONFIG_INVALID})


class TerraformCommandError(ProvisioningError):
    """A terraform subcommand exited unsuccessfully.

    Attributes:
        command: The terraform subcommand that failed (e.g. ``apply``).
        kind: Classified failure kind.
        exit_code: Process exit code, or None if it never completed.
        stderr: Captured standard error.
    """

    def __init__(
        self,
        command: str,
        kind: TerraformErrorKind,
        exit_code: int | None = None,
        stderr: str = "",
    ) -> None:
        self.command = command
        self.kind = kind
        self.exit_code = exit_code
        self.stderr = stderr
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else "no output"
        super().__init__(f"terraform {command} failed ({kind.value}, exit code {exit_code}): {detail}")

    @property
    def is_transient(self) -> bool:
        return self.kind in TRANSIENT_KINDS


class TransientApplyError(TerraformCommandError):
    """A terraform failure that a fresh ``init`` is known to fix."""


# ============================================================================
# Output and live-state verification
# ============================================================================

class OutputNotFound(ProvisioningError):
    """A terraform output is missing or has the wrong type."""

    def __init__(self, key: str, reason: str = "not present") -> None:
        self.key = key
        super().__init__(f"terraform output '{key}' {reason}")


class VerificationError(ProvisioningError):
    """The cloud provider view does not confirm a provisioned resource."""


class ResourceNotFound(VerificationError):
    """No resource carries the expected cluster tag."""

    def __init__(self, cluster_name: str) -> None:
        self.cluster_name = cluster_name
        super().__init__(f"no vpc found tagged with cluster '{cluster_name}'")


class IdentifierMismatch(VerificationError):
    """The tagged resource's id differs from the terraform output."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"vpc id mismatch: {actual} != {expected}")


class ResourceNotReady(VerificationError):
    """The tagged resource exists but is not yet available."""

    def __init__(self, resource_id: str, status: str) -> None:
        self.resource_id = resource_id
        self.status = status
        super().__init__(f"vpc {resource_id} not available: {status}")


# ============================================================================
# Remediation
# ============================================================================

class RemediationStep(str, Enum):
    """Which part of the tactical fix failed."""

    POLICY_DELETE = "policy_delete"
    WORKLOAD_RECYCLE = "workload_recycle"


class RemediationFailed(ProvisioningError):
    """The tactical remediation could not be applied."""

    def __init__(self, step: RemediationStep, cause: Exception) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"tactical fix failed during {step.value}: {cause}")


# ============================================================================
# Terminal controller failure
# ============================================================================

class ProvisioningFailed(ProvisioningError):
    """Terminal failure of a provisioning run.

    Attributes:
        stage: The stage that was running when the failure happened.
        cause: The underlying exception.
    """

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} failed: {cause}")
