# -*- coding: utf-8 -*-
"""Compile connected providers into runtime configuration entries."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Tuple, Union

from .adapters import (
    ADAPTERS,
    AZURE_FOUNDRY_TOKEN_KEY,
    ProxyLookup,
    SecretLookup,
    strip_model_prefix,
)
from .models import ProviderId, ProviderSettings, RuntimeConfig
from .registry import coerce_provider_id

logger = logging.getLogger(__name__)

__all__ = [
    "compile_all",
    "compile_provider",
    "strip_model_prefix",
]


def _with_token(
    secret_lookup: SecretLookup,
    azure_token: Optional[str],
) -> SecretLookup:
    """Overlay an explicitly passed token on top of *secret_lookup*."""
    if azure_token is None:
        return secret_lookup

    def lookup(key: str) -> Optional[str]:
        if key == AZURE_FOUNDRY_TOKEN_KEY:
            return azure_token
        return secret_lookup(key)

    return lookup


async def compile_provider(
    provider_id: Union[ProviderId, str],
    settings: ProviderSettings,
    secret_lookup: SecretLookup,
    proxy_lookup: Optional[ProxyLookup] = None,
    *,
    azure_token: Optional[str] = None,
) -> Optional[RuntimeConfig]:
    """Compile one provider, or return None if it cannot be compiled.

    Providers that need a local proxy are skipped when *proxy_lookup* is
    not given. Errors raised by *secret_lookup* or *proxy_lookup* are
    logged and also yield None.
    """
    pid = coerce_provider_id(provider_id)
    adapter = ADAPTERS.get(pid) if pid is not None else None
    if adapter is None:
        logger.debug("No adapter registered for provider %r", provider_id)
        return None
    try:
        return await adapter.compile(
            settings,
            _with_token(secret_lookup, azure_token),
            proxy_lookup,
        )
    except Exception:  # pylint: disable=broad-except
        logger.exception("Failed to compile provider %s", pid.value)
        return None


async def _compile_one(
    provider_id: ProviderId,
    settings: ProviderSettings,
    secret_lookup: SecretLookup,
    proxy_lookup: Optional[ProxyLookup],
) -> Tuple[ProviderId, Optional[RuntimeConfig]]:
    config = await compile_provider(
        provider_id,
        settings,
        secret_lookup,
        proxy_lookup,
    )
    return provider_id, config


async def compile_all(
    settings: ProviderSettings,
    secret_lookup: SecretLookup,
    proxy_lookup: Optional[ProxyLookup] = None,
    *,
    azure_token: Optional[str] = None,
) -> Dict[ProviderId, RuntimeConfig]:
    """Compile every registered provider independently.

    Returns only the providers that compiled; a failure in one provider
    never affects the others.
    """
    secret_lookup = _with_token(secret_lookup, azure_token)
    results = await asyncio.gather(
        *(
            _compile_one(pid, settings, secret_lookup, proxy_lookup)
            for pid in ADAPTERS
        ),
    )
    compiled = {pid: config for pid, config in results if config is not None}

    skipped = sorted(
        pid.value
        for pid, provider in settings.connected_providers.items()
        if pid in ADAPTERS
        and pid not in compiled
        and provider.connection_status.value == "connected"
    )
    if skipped:
        logger.warning("Providers not compiled: %s", ", ".join(skipped))
    logger.info(
        "Compiled %d provider(s): %s",
        len(compiled),
        ", ".join(p.value for p in compiled) or "(none)",
    )
    return compiled
