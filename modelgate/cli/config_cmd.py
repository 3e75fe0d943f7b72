# -*- coding: utf-8 -*-
"""CLI command: compile provider settings into the runtime config file."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import click

from ..providers import EnvSecretLookup, load_provider_settings
from ..runtime import (
    build_runtime_config,
    sync_runtime_auth,
    write_runtime_config,
)
from ..sidecar import DeploymentEnvironment
from .utils import print_json


@click.group("config")
def config_group() -> None:
    """Generate the agent runtime configuration."""


@config_group.command("generate")
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Provider settings JSON (read only).",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to write the runtime config.",
)
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Load provider API keys from this .env file.",
)
@click.option(
    "--auth-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Runtime auth file to sync DeepSeek, Z.AI and MiniMax keys into.",
)
@click.option(
    "--print",
    "print_config",
    is_flag=True,
    help="Print the config instead of writing it.",
)
def generate_cmd(
    settings_path: Optional[Path],
    output: Optional[Path],
    env_file: Optional[Path],
    auth_file: Optional[Path],
    print_config: bool,
) -> None:
    """Compile connected providers and sidecars into the runtime config.

    No proxy is started from the CLI, so providers that need one are
    left out.
    """
    settings = load_provider_settings(settings_path)
    secrets = EnvSecretLookup(dotenv_path=env_file)
    config = asyncio.run(
        build_runtime_config(
            settings,
            secrets,
            DeploymentEnvironment.from_env(),
        ),
    )
    if print_config:
        print_json(config)
        return
    path = write_runtime_config(config, output)
    if sync_runtime_auth(secrets, auth_file):
        click.echo("✓ Runtime auth file updated")
    providers = ", ".join(config.get("provider", {})) or "(none)"
    click.echo(f"✓ Runtime config written to {path}")
    click.echo(f"  Providers: {providers}")
