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

"""Terraform output extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from cluster_provisioner.errors import OutputNotFound


@dataclass(frozen=True)
class ProvisionResult:
    """Outputs of one plan/apply cycle.

    Attributes:
        outputs: Output name to value, as reported by ``terraform show -json``.
        applied: Whether the apply completed.
    """

    outputs: dict[str, Any] = field(default_factory=dict)
    applied: bool = False

    @classmethod
    def from_show_json(cls, document: dict, applied: bool = True) -> ProvisionResult:
        """Build a result from the ``terraform show -json`` document.

        Args:
            document: Parsed JSON; outputs live under ``values.outputs``.
            applied: Whether the apply completed.
        """
        raw = (document.get("values") or {}).get("outputs") or {}
        outputs = {
            key: entry.get("value") if isinstance(entry, dict) else entry
            for key, entry in raw.items()
        }
        return cls(outputs=outputs, applied=applied)


def extract_output(result: ProvisionResult, key: str, expected_type: type = str) -> Any:
    """Return output *key* from *result*, checking its type.

    Lookup is exact: no prefix matching and no case folding.

    Args:
        result: Result of a plan/apply cycle.
        key: Output name.
        expected_type: Type the value must have.

    Returns:
        The output value.

    Raises:
        OutputNotFound: If the key is absent, empty, or of the wrong type.
    """
    if key not in result.outputs:
        raise OutputNotFound(key)
    value = result.outputs[key]
    if not isinstance(value, expected_type):
        raise OutputNotFound(key, f"is {type(value).__name__}, expected {expected_type.__name__}")
    if isinstance(value, str) and not value:
        raise OutputNotFound(key, "is empty")
    return value
