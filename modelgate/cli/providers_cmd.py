# -*- coding: utf-8 -*-
"""CLI commands for inspecting and validating providers."""
from __future__ import annotations

import asyncio
from typing import Optional

import click

from ..constant import DEFAULT_VALIDATION_TIMEOUT_MS
from ..providers import (
    VALIDATORS,
    EnvSecretLookup,
    get_provider,
    list_providers,
    mask_api_key,
    validate_api_key,
    validate_server_url,
)
from .utils import print_json


# ---------------------------------------------------------------------------
# Group
# ---------------------------------------------------------------------------


@click.group("providers")
def providers_group() -> None:
    """Inspect and validate model providers."""


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


@providers_group.command("list")
def list_cmd() -> None:
    """Show all providers and where their API key comes from."""
    secrets = EnvSecretLookup()

    click.echo("\n=== Providers ===")
    for defn in list_providers():
        click.echo(f"\n{'─' * 44}")
        click.echo(f"  {defn.name} ({defn.id.value})")
        click.echo(f"{'─' * 44}")
        click.echo(f"  {'runtime name':16s}: {defn.runtime_name}")
        click.echo(f"  {'credentials':16s}: {defn.credential_type}")
        if defn.default_base_url:
            click.echo(f"  {'base_url':16s}: {defn.default_base_url}")
        if defn.api_key_env_var:
            key = secrets.get_api_key(defn.id.value) or ""
            shown = mask_api_key(key) or "(not set)"
            click.echo(f"  {defn.api_key_env_var:16s}: {shown}")
        checked = "yes" if defn.id in VALIDATORS else "no"
        click.echo(f"  {'key validation':16s}: {checked}")
    click.echo()


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@providers_group.command("validate")
@click.argument("provider_id")
@click.option(
    "--api-key",
    default=None,
    help="Key to check. Defaults to the provider's env var.",
)
@click.option(
    "--timeout-ms",
    type=click.IntRange(min=1),
    default=DEFAULT_VALIDATION_TIMEOUT_MS,
    show_default=True,
)
def validate_cmd(
    provider_id: str,
    api_key: Optional[str],
    timeout_ms: int,
) -> None:
    """Check an API key against the provider's live API."""
    if api_key is None:
        api_key = EnvSecretLookup().get_api_key(provider_id)
    if api_key is None:
        defn = get_provider(provider_id)
        hint = (
            f" Set {defn.api_key_env_var}."
            if defn and defn.api_key_env_var
            else ""
        )
        api_key = click.prompt(
            f"API key for {provider_id}{hint}",
            hide_input=True,
        )

    result = asyncio.run(validate_api_key(provider_id, api_key, timeout_ms))
    if result.valid:
        click.echo(f"✓ {provider_id}: API key is valid")
        return
    click.echo(
        click.style(f"✗ {provider_id}: {result.error}", fg="red"),
    )
    raise SystemExit(1)


# ---------------------------------------------------------------------------
# probe
# ---------------------------------------------------------------------------


@providers_group.command("probe")
@click.argument(
    "provider_id",
    type=click.Choice(["ollama", "lmstudio", "litellm"]),
)
@click.argument("server_url")
@click.option(
    "--timeout-ms",
    type=click.IntRange(min=1),
    default=DEFAULT_VALIDATION_TIMEOUT_MS,
    show_default=True,
)
def probe_cmd(provider_id: str, server_url: str, timeout_ms: int) -> None:
    """Check a self-hosted server and list the models it serves."""
    api_key = EnvSecretLookup().get_api_key(provider_id)
    probe = asyncio.run(
        validate_server_url(
            provider_id,
            server_url,
            timeout_ms,
            api_key=api_key,
        ),
    )
    if not probe.result.valid:
        click.echo(click.style(f"✗ {probe.result.error}", fg="red"))
        raise SystemExit(1)
    print_json(
        [m.model_dump(mode="json", by_alias=True) for m in probe.models],
    )
