# -*- coding: utf-8 -*-
"""Secret lookups handed to the compiler.

The real secret store (OS keychain) lives outside the broker; these
lookups cover environment variables and plain mappings.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .adapters import AZURE_FOUNDRY_TOKEN_KEY
from .registry import PROVIDERS, coerce_provider_id

AZURE_FOUNDRY_TOKEN_ENV = "AZURE_FOUNDRY_TOKEN"


class EnvSecretLookup:
    """Read API keys from the env var registered for each provider."""

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Path] = None,
    ) -> None:
        if dotenv_path is not None:
            load_dotenv(dotenv_path, override=False)
        self._environ = environ if environ is not None else os.environ

    def env_var(self, key: str) -> Optional[str]:
        if key == AZURE_FOUNDRY_TOKEN_KEY:
            return AZURE_FOUNDRY_TOKEN_ENV
        pid = coerce_provider_id(key)
        if pid is None:
            return None
        return PROVIDERS[pid].api_key_env_var or None

    def get_api_key(self, key: str) -> Optional[str]:
        name = self.env_var(key)
        if not name:
            return None
        return self._environ.get(name) or None

    __call__ = get_api_key


class StaticSecretLookup:
    """Serve secrets from an in-memory mapping keyed by provider id."""

    def __init__(self, secrets: Optional[Mapping[str, Optional[str]]] = None):
        self._secrets = {
            _key(k): v for k, v in (secrets or {}).items()
        }

    def get_api_key(self, key: str) -> Optional[str]:
        return self._secrets.get(_key(key))

    __call__ = get_api_key


def _key(key) -> str:
    """Plain string for a provider id or secret name."""
    return str(getattr(key, "value", key))
