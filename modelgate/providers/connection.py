# -*- coding: utf-8 -*-
"""Connect/disconnect transitions for a provider record.

These only build new :class:`ConnectedProvider` values; storing them is the
settings store's job.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

import httpx
from pydantic import BaseModel

from ..constant import DEFAULT_VALIDATION_TIMEOUT_MS
from .models import (
    ApiKeyCredentials,
    ConnectedProvider,
    ConnectionStatus,
    OpenRouterCredentials,
    ProviderId,
    ValidationResult,
    ZaiCredentials,
    key_prefix,
)
from .registry import coerce_provider_id, get_provider
from .validators import UNSUPPORTED_PROVIDER_ERROR, validate_api_key

# Shown in place of a key prefix once a provider is disconnected.
SECRET_PLACEHOLDER = "********"

_SECRET_FIELDS = ("key_prefix", "access_key_id_prefix")


class ConnectionAttempt(BaseModel):
    result: ValidationResult
    provider: Optional[ConnectedProvider] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _api_key_credentials(provider_id: ProviderId, api_key: str):
    prefix = key_prefix(api_key)
    if provider_id == ProviderId.OPENROUTER:
        return OpenRouterCredentials(key_prefix=prefix)
    if provider_id == ProviderId.ZAI:
        return ZaiCredentials(key_prefix=prefix)
    return ApiKeyCredentials(key_prefix=prefix)


async def connect_api_key_provider(
    provider_id: Union[ProviderId, str],
    api_key: str,
    timeout_ms: int = DEFAULT_VALIDATION_TIMEOUT_MS,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ConnectionAttempt:
    """Validate *api_key* and, if it passes, build a connected record.

    The record holds only a display prefix of the key; the key itself goes
    to the secret store, not here.
    """
    pid = coerce_provider_id(provider_id)
    if pid is None:
        return ConnectionAttempt(
            result=ValidationResult(
                valid=False,
                error=UNSUPPORTED_PROVIDER_ERROR,
            ),
        )
    result = await validate_api_key(
        pid,
        api_key,
        timeout_ms,
        transport=transport,
    )
    if not result.valid:
        return ConnectionAttempt(result=result)

    defn = get_provider(pid)
    return ConnectionAttempt(
        result=result,
        provider=ConnectedProvider(
            provider_id=pid,
            connection_status=ConnectionStatus.CONNECTED,
            selected_model_id=defn.models[0].id if defn.models else None,
            credentials=_api_key_credentials(pid, api_key),
            last_connected_at=_now(),
            available_models=list(defn.models),
        ),
    )


def select_model(
    provider: ConnectedProvider,
    model_id: Optional[str],
) -> ConnectedProvider:
    """Return a copy of *provider* with a new model selection."""
    return provider.model_copy(update={"selected_model_id": model_id})


def disconnect_provider(provider: ConnectedProvider) -> ConnectedProvider:
    """Return a disconnected copy with secret-bearing fields masked."""
    cleared = {
        field: SECRET_PLACEHOLDER
        for field in _SECRET_FIELDS
        if getattr(provider.credentials, field, None)
    }
    return provider.model_copy(
        update={
            "connection_status": ConnectionStatus.DISCONNECTED,
            "selected_model_id": None,
            "credentials": provider.credentials.model_copy(update=cleared),
        },
    )
