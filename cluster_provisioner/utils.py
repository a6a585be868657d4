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

"""Repository checks, deadlines, and run artifacts."""

from __future__ import annotations

import shutil
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from cluster_provisioner import logger
from cluster_provisioner.constants import INFRA_REPOSITORY_NAME, REPO_MARKER
from cluster_provisioner.errors import DeadlineExceeded, PreconditionError


# ============================================================================
# Repository root
# ============================================================================

def find_repo_root(start: Path) -> Path:
    """Walk up from *start* until a directory holding the repository marker is found.

    Args:
        start: Directory to begin the search from.

    Returns:
        The first ancestor (or *start* itself) containing ``.git``.

    Raises:
        PreconditionError: If the filesystem root is reached without a match.
    """
    current = start.resolve()
    for directory in (current, *current.parents):
        if (directory / REPO_MARKER).exists():
            return directory
    raise PreconditionError(f"no git repository found above {current}")


def validate_repository_root(repo_root: Path, expected_name: str = INFRA_REPOSITORY_NAME) -> None:
    """Check that *repo_root* is a checkout of the infrastructure repository.

    Args:
        repo_root: Resolved repository root injected into the request.
        expected_name: Repository name the root path must contain.

    Raises:
        PreconditionError: If the marker is missing or the path is the wrong repository.
    """
    if not (repo_root / REPO_MARKER).exists():
        raise PreconditionError(f"{repo_root} is not a git repository root")
    if expected_name not in str(repo_root.resolve()):
        raise PreconditionError(f"must be run from the {expected_name} repository, got {repo_root}")


# ============================================================================
# Deadlines
# ============================================================================

class Deadline:
    """Absolute point in time after which blocking calls must not start."""

    def __init__(self, seconds: float | None) -> None:
        self._expires_at = None if seconds is None else time.monotonic() + seconds

    @classmethod
    def never(cls) -> Deadline:
        return cls(None)

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded.

        Raises:
            DeadlineExceeded: If the deadline has already passed.
        """
        if self._expires_at is None:
            return None
        left = self._expires_at - time.monotonic()
        if left <= 0:
            raise DeadlineExceeded("provisioning timeout elapsed")
        return left


# ============================================================================
# Local state and run artifacts
# ============================================================================

def remove_local_state(path: Path) -> None:
    """Delete a cached terraform directory if it exists."""
    if path.exists():
        logger.debug("Removing local terraform state %s", path)
        shutil.rmtree(path)


@contextmanager
def scoped_artifact(directory: Path, prefix: str, run_id: str) -> Iterator[Path]:
    """Yield the path of a per-run artifact and remove it on every exit path.

    Args:
        directory: Directory the artifact lives in.
        prefix: Artifact kind, e.g. ``plan`` or ``state``.
        run_id: Caller-supplied unique run identifier.

    Yields:
        Path to ``<directory>/<prefix>-<run_id>``; the file is not created.
    """
    path = directory / f"{prefix}-{run_id}"
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)
