# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
import os

import click

from ..constant import LOG_LEVEL_ENV
from .config_cmd import config_group
from .providers_cmd import providers_group
from .sidecars_cmd import sidecars_cmd


@click.group()
@click.option(
    "--log-level",
    default=lambda: os.environ.get(LOG_LEVEL_ENV, "warning"),
    type=click.Choice(
        ["debug", "info", "warning", "error"],
        case_sensitive=False,
    ),
    show_default=f"${LOG_LEVEL_ENV} or warning",
)
def cli(log_level: str) -> None:
    """modelgate: provider configuration broker for the agent runtime."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


cli.add_command(providers_group)
cli.add_command(config_group)
cli.add_command(sidecars_cmd)


if __name__ == "__main__":
    cli()
