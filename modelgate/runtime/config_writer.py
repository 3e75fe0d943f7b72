# -*- coding: utf-8 -*-
"""Assemble and write the agent runtime's configuration file.

Rebuilt from scratch on every runtime launch. Providers that fail to
compile are left out; the launch goes on with the rest.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from ..constant import (
    RUNTIME_AUTH_FILE,
    RUNTIME_CONFIG_DIR,
    RUNTIME_CONFIG_FILE,
    RUNTIME_CONFIG_SCHEMA,
)
from ..providers import (
    ProviderId,
    ProviderSettings,
    ProxyLookup,
    SecretLookup,
    compile_all,
    runtime_provider_name,
)
from ..sidecar import DeploymentEnvironment, build_mcp_servers

logger = logging.getLogger(__name__)

# Cloud providers the runtime configures itself from env vars; always
# enabled so the user can switch between them.
BASE_PROVIDERS: List[str] = [
    "anthropic",
    "openai",
    "openrouter",
    "google",
    "xai",
    "deepseek",
    "moonshot",
    "zai-coding-plan",
    "amazon-bedrock",
    "minimax",
]

# Every tool call is allowed at the runtime level; user confirmation goes
# through the ask-user-question sidecar. todowrite is off unless listed.
PERMISSIONS: Dict[str, str] = {"*": "allow", "todowrite": "allow"}

# Providers whose keys the runtime only reads from its own auth file.
AUTH_SYNCED_PROVIDERS: List[ProviderId] = [
    ProviderId.DEEPSEEK,
    ProviderId.ZAI,
    ProviderId.MINIMAX,
]


def get_runtime_config_path() -> Path:
    return RUNTIME_CONFIG_DIR / RUNTIME_CONFIG_FILE


def _enabled_providers(
    settings: ProviderSettings,
    compiled: Dict[ProviderId, object],
) -> List[str]:
    enabled = list(BASE_PROVIDERS)
    connected = [
        pid
        for pid, provider in settings.connected_providers.items()
        if provider.connection_status.value == "connected"
    ]
    for pid in [*connected, *compiled]:
        name = runtime_provider_name(pid)
        if name not in enabled:
            enabled.append(name)
    return enabled


def _pinned_model(settings: ProviderSettings) -> Dict[str, str]:
    """Pin ``model``/``small_model`` for an active Bedrock selection.

    Without it the runtime falls back to a small model that Bedrock
    accounts often have no access to.
    """
    if settings.active_provider_id != ProviderId.BEDROCK:
        return {}
    provider = settings.connected_providers.get(ProviderId.BEDROCK)
    if provider is None or not provider.selected_model_id:
        return {}
    return {
        "model": provider.selected_model_id,
        "small_model": provider.selected_model_id,
    }


async def build_runtime_config(
    settings: ProviderSettings,
    secret_lookup: SecretLookup,
    deployment: DeploymentEnvironment,
    proxy_lookup: Optional[ProxyLookup] = None,
    *,
    azure_token: Optional[str] = None,
) -> dict:
    """Return the runtime configuration document."""
    compiled = await compile_all(
        settings,
        secret_lookup,
        proxy_lookup,
        azure_token=azure_token,
    )
    providers = {
        runtime_provider_name(pid): config.to_runtime_dict()
        for pid, config in compiled.items()
    }

    config: dict = {"$schema": RUNTIME_CONFIG_SCHEMA}
    config.update(_pinned_model(settings))
    config["enabled_providers"] = _enabled_providers(settings, compiled)
    config["permission"] = dict(PERMISSIONS)
    if providers:
        config["provider"] = providers
    config["mcp"] = build_mcp_servers(deployment)
    return config


def write_runtime_config(config: dict, path: Optional[Path] = None) -> Path:
    """Write *config* as JSON and return the path written."""
    if path is None:
        path = get_runtime_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)
    logger.info("Generated runtime config at: %s", path)
    return path


def get_runtime_auth_path(platform: Optional[str] = None) -> Path:
    """Return the runtime's auth file, honouring ``MODELGATE_RUNTIME_AUTH_FILE``."""
    if RUNTIME_AUTH_FILE:
        return Path(RUNTIME_AUTH_FILE).expanduser()
    home = Path.home()
    if (platform or sys.platform).startswith("win"):
        return home / "AppData" / "Local" / "opencode" / "auth.json"
    return home / ".local" / "share" / "opencode" / "auth.json"


def _read_auth(path: Path) -> dict:
    if not path.is_file():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (json.JSONDecodeError, OSError, ValueError) as exc:
        logger.warning("Could not parse %s, starting a new one: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def sync_runtime_auth(
    secret_lookup: SecretLookup,
    path: Optional[Path] = None,
) -> bool:
    """Merge stored keys into the runtime's auth file.

    Entries for other providers are kept. The file is only rewritten when
    a key was added or changed; returns whether it was.
    """
    if path is None:
        path = get_runtime_auth_path()
    auth = _read_auth(path)

    updated = False
    for pid in AUTH_SYNCED_PROVIDERS:
        key = secret_lookup(pid.value)
        if not key:
            continue
        name = runtime_provider_name(pid)
        entry = auth.get(name)
        if isinstance(entry, dict) and entry.get("key") == key:
            continue
        auth[name] = {"type": "api", "key": key}
        updated = True
        logger.info("Synced %s API key to runtime auth", name)

    if updated:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(auth, fh, indent=2, ensure_ascii=False)
        logger.info("Updated runtime auth at: %s", path)
    return updated
