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

"""Component installation and health check hooks run after the cluster exists."""

from __future__ import annotations

from rich.panel import Panel

from cluster_provisioner import console, logger
from cluster_provisioner.config import CreateOptions


def install_components(request: CreateOptions) -> None:
    """Install platform components into the cluster. Currently a no-op."""
    console.print(Panel.fit(f"Installing components into {request.name}", style="bold blue"))
    logger.info("No components configured for %s", request.name)


def health_check(request: CreateOptions) -> None:
    """Check the cluster is healthy. Currently a no-op."""
    console.print(Panel.fit(f"Health checking {request.name}", style="bold blue"))
    logger.info("No health checks configured for %s", request.name)
