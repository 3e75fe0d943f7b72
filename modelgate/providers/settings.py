# -*- coding: utf-8 -*-
"""Reading provider settings written by the external settings store.

The broker only reads this file; it never creates, repairs or saves it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..constant import SETTINGS_FILE, WORKING_DIR
from .models import ConnectedProvider, ProviderSettings
from .registry import coerce_provider_id

logger = logging.getLogger(__name__)


def get_settings_path() -> Path:
    """Return the default provider settings path."""
    path = Path(SETTINGS_FILE).expanduser()
    return path if path.is_absolute() else WORKING_DIR / path


def _parse_connected_providers(raw: dict) -> dict:
    """Parse entries one by one, skipping any that are malformed."""
    providers = {}
    for key, value in raw.items():
        pid = coerce_provider_id(key)
        if pid is None:
            logger.warning("Ignoring settings for unknown provider %r", key)
            continue
        if not isinstance(value, dict):
            continue
        try:
            providers[pid] = ConnectedProvider.model_validate(value)
        except ValidationError as exc:
            logger.warning(
                "Ignoring malformed settings for provider %s: %s",
                key,
                exc.errors()[0]["msg"] if exc.errors() else exc,
            )
    return providers


def parse_provider_settings(raw: dict) -> ProviderSettings:
    """Build :class:`ProviderSettings` from a decoded settings document."""
    connected_raw = raw.get("connectedProviders")
    if connected_raw is None:
        connected_raw = raw.get("connected_providers", {})
    active = raw.get("activeProviderId", raw.get("active_provider_id"))
    return ProviderSettings(
        active_provider_id=coerce_provider_id(active),
        connected_providers=(
            _parse_connected_providers(connected_raw)
            if isinstance(connected_raw, dict)
            else {}
        ),
        debug_mode=bool(raw.get("debugMode", raw.get("debug_mode", False))),
    )


def load_provider_settings(path: Optional[Path] = None) -> ProviderSettings:
    """Load provider settings; a missing or corrupt file yields empty settings."""
    if path is None:
        path = get_settings_path()
    if not path.is_file():
        logger.debug("No provider settings at %s", path)
        return ProviderSettings()
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except (json.JSONDecodeError, OSError, ValueError) as exc:
        logger.warning("Could not read provider settings %s: %s", path, exc)
        return ProviderSettings()
    if not isinstance(raw, dict):
        return ProviderSettings()
    return parse_provider_settings(raw)
