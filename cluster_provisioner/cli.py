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

"""
cli.py - Command line entry point for cluster provisioning.

Subcommands:
    create     Create infrastructure resources (cluster)
    toolchain  Manage the pinned terraform binary (install)
    inspect    Summarise an existing cluster (cluster)

Examples:
    # Create a VPC and EKS cluster from inside the infrastructure checkout
    cluster-provisioner create cluster --name dev-abc

    # Skip the identity provider sub-module
    cluster-provisioner create cluster --name dev-abc --fast

    # Download terraform into the local cache
    cluster-provisioner toolchain install --version 0.14.8

For detailed usage information, run: cluster-provisioner --help
"""

from __future__ import annotations

import logging
import sys

import typer

from cluster_provisioner import console
from cluster_provisioner.commands import create_cmd, inspect_cmd, toolchain_cmd

app = typer.Typer(
    help="Terraform-driven VPC and EKS cluster provisioning.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.add_typer(create_cmd.app, name="create")
app.add_typer(toolchain_cmd.app, name="toolchain")
app.add_typer(inspect_cmd.app, name="inspect")


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
