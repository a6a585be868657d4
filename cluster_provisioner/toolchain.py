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

"""Resolve a pinned Terraform version to a local executable."""

from __future__ import annotations

import hashlib
import json
import platform
import shutil
import tempfile
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from pathlib import Path

import httpx
import sh
from rich.panel import Panel

from cluster_provisioner import console, logger
from cluster_provisioner.constants import (
    DEFAULT_CACHE_DIR,
    DEFAULT_RELEASES_URL,
    DOWNLOAD_CHUNK_SIZE,
    DOWNLOAD_TIMEOUT_SECONDS,
    TERRAFORM_PARALLELISM,
    TERRAFORM_PRODUCT,
    VERSION_PATTERN,
)
from cluster_provisioner.errors import ToolchainUnavailable
from cluster_provisioner.utils import Deadline

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "armv7l": "arm",
}


@dataclass(frozen=True)
class RunOptions:
    """Plan/apply options shared by every stage of a run.

    Attributes:
        refresh: Whether ``plan`` refreshes state first.
        parallelism: Upper bound on concurrent resource operations.
        variables: ``-var`` overrides passed to ``plan``.
        show_plan: Whether to render the saved plan for the operator.
    """

    refresh: bool = True
    parallelism: int = TERRAFORM_PARALLELISM
    variables: dict[str, str] = field(default_factory=dict)
    show_plan: bool = True

    def with_variables(self, **overrides: str) -> RunOptions:
        """Return a copy with extra variable overrides layered on top."""
        return replace(self, variables={**self.variables, **overrides})


@dataclass(frozen=True)
class ToolchainHandle:
    """A resolved Terraform binary.

    Attributes:
        version: Exact Terraform version.
        exec_path: Path to the executable.
        options: Default plan/apply options for this run.
    """

    version: str
    exec_path: Path
    options: RunOptions = field(default_factory=RunOptions)


def platform_suffix() -> str:
    """Return the ``<os>_<arch>`` suffix used by HashiCorp release archives."""
    os_name = platform.system().lower()
    machine = platform.machine().lower()
    return f"{os_name}_{_ARCH_ALIASES.get(machine, machine)}"


def binary_name() -> str:
    return f"{TERRAFORM_PRODUCT}.exe" if platform.system().lower() == "windows" else TERRAFORM_PRODUCT


def expected_checksum(sums: str, archive_name: str) -> str:
    """Find the SHA-256 of *archive_name* in a SHA256SUMS document.

    Raises:
        ToolchainUnavailable: If the archive is not listed.
    """
    for line in sums.splitlines():
        parts = line.split()
        if len(parts) == 2 and parts[1] == archive_name:
            return parts[0].lower()
    raise ToolchainUnavailable(f"no checksum published for {archive_name}")


def _sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(DOWNLOAD_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ToolchainResolver:
    """Find or download an exact Terraform version.

    Sources are tried in order: the local cache, a ``terraform`` on PATH
    reporting the same version, then the HashiCorp release archive.
    """

    def __init__(
        self,
        cache_dir: Path = DEFAULT_CACHE_DIR,
        releases_url: str = DEFAULT_RELEASES_URL,
        *,
        http_client: httpx.Client | None = None,
        search_path: bool = True,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.releases_url = releases_url.rstrip("/")
        self.search_path = search_path
        self._http_client = http_client

    def cached_binary(self, version: str) -> Path:
        return self.cache_dir / TERRAFORM_PRODUCT / version / binary_name()

    def resolve(self, version: str, deadline: Deadline | None = None) -> ToolchainHandle:
        """Return a handle for exactly *version*.

        Args:
            version: Exact version string, e.g. ``1.5.0``.
            deadline: Optional run deadline bounding the version probe and download.

        Returns:
            A ToolchainHandle with the executable path and default run options.

        Raises:
            ToolchainUnavailable: If the version is not exact or cannot be obtained.
        """
        if not version or not VERSION_PATTERN.match(version):
            raise ToolchainUnavailable(f"'{version}' is not an exact terraform version")

        console.print(Panel.fit(f"Resolving terraform {version}", style="bold blue"))
        deadline = deadline or Deadline.never()

        path = self._from_cache(version)
        if path is None and self.search_path:
            path = self._from_path(version, deadline)
        if path is None:
            path = self._from_releases(version, deadline)

        console.print(f"[green]\u2705 Using terraform {version} at {path}[/green]")
        return ToolchainHandle(version=version, exec_path=path)

    # ------------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------------

    def _from_cache(self, version: str) -> Path | None:
        path = self.cached_binary(version)
        if path.is_file():
            logger.debug("Found cached terraform %s at %s", version, path)
            return path
        return None

    def _from_path(self, version: str, deadline: Deadline) -> Path | None:
        found_path = sh.which(TERRAFORM_PRODUCT)
        if not found_path:
            return None
        candidate = str(found_path).strip()

        try:
            output = sh.Command(candidate)("version", "-json", _timeout=deadline.remaining())
            found = json.loads(str(output)).get("terraform_version", "")
        except (sh.CommandNotFound, sh.ErrorReturnCode, sh.TimeoutException, json.JSONDecodeError) as err:
            logger.debug("Ignoring terraform on PATH at %s: %s", candidate, err)
            return None

        if found != version:
            logger.debug("terraform on PATH is %s, need %s", found, version)
            return None
        return Path(candidate)

    @contextmanager
    def _http(self) -> Iterator[httpx.Client]:
        if self._http_client is not None:
            yield self._http_client
            return
        with httpx.Client(follow_redirects=True) as http_client:
            yield http_client

    def _from_releases(self, version: str, deadline: Deadline) -> Path:
        archive_name = f"{TERRAFORM_PRODUCT}_{version}_{platform_suffix()}.zip"
        base_url = f"{self.releases_url}/{TERRAFORM_PRODUCT}/{version}"
        remaining = deadline.remaining()
        timeout = DOWNLOAD_TIMEOUT_SECONDS if remaining is None else min(DOWNLOAD_TIMEOUT_SECONDS, remaining)
        console.print(f"[yellow]\u2139\ufe0f  Downloading {archive_name}...[/yellow]")

        # The download directory is always released once the binary is in the cache.
        with tempfile.TemporaryDirectory(prefix="terraform-install-") as tmp:
            archive = Path(tmp) / archive_name
            try:
                with self._http() as http_client:
                    sums_resp = http_client.get(
                        f"{base_url}/{TERRAFORM_PRODUCT}_{version}_SHA256SUMS", timeout=timeout
                    )
                    sums_resp.raise_for_status()
                    with http_client.stream("GET", f"{base_url}/{archive_name}", timeout=timeout) as resp:
                        resp.raise_for_status()
                        with open(archive, "wb") as f:
                            for chunk in resp.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                                f.write(chunk)
            except httpx.HTTPError as err:
                raise ToolchainUnavailable(f"could not download terraform {version}: {err}") from err

            if _sha256(archive) != expected_checksum(sums_resp.text, archive_name):
                raise ToolchainUnavailable(f"checksum mismatch for {archive_name}")

            member = binary_name()
            try:
                with zipfile.ZipFile(archive) as zf:
                    if member not in zf.namelist():
                        raise ToolchainUnavailable(f"{archive_name} does not contain {member}")
                    zf.extract(member, tmp)
            except zipfile.BadZipFile as err:
                raise ToolchainUnavailable(f"{archive_name} is not a valid zip archive") from err

            target = self.cached_binary(version)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(Path(tmp) / member), target)
            target.chmod(0o755)

        logger.debug("Cached terraform %s at %s", version, target)
        return target
