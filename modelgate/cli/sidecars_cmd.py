# -*- coding: utf-8 -*-
"""CLI command: show how each sidecar would be launched."""
from __future__ import annotations

import click

from ..sidecar import DeploymentEnvironment, build_mcp_servers
from .utils import print_json


@click.command("sidecars")
def sidecars_cmd() -> None:
    """Print the resolved launch command of every sidecar server."""
    env = DeploymentEnvironment.from_env()
    click.echo(
        f"packaged={env.is_packaged} bundled={env.use_bundled} "
        f"tools_root={env.tools_root}",
    )
    print_json(build_mcp_servers(env))
