# -*- coding: utf-8 -*-
"""API key validators.

One stateless strategy per provider family. Each strategy performs the
cheapest live call its backend allows and reports the outcome as a
:class:`ValidationResult`; expected failures (bad key, network error,
timeout) are never raised.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple, Union

import httpx
from pydantic import BaseModel, Field

from ..constant import DEFAULT_VALIDATION_TIMEOUT_MS
from .models import ModelInfo, ProviderId, ToolSupport, ValidationResult
from .registry import coerce_provider_id

logger = logging.getLogger(__name__)

TIMEOUT_ERROR = (
    "Request timed out. Please check your internet connection and try again."
)
NETWORK_ERROR = "Failed to validate API key. Check your internet connection."
NO_MODELS_ERROR = "Unable to validate API key - no available models"
UNSUPPORTED_PROVIDER_ERROR = "Unsupported provider"


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------


async def _request(
    method: str,
    url: str,
    timeout_ms: int,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs,
) -> httpx.Response:
    """Send one request that settles within *timeout_ms*."""
    timeout = timeout_ms / 1000
    async with httpx.AsyncClient(
        timeout=timeout,
        transport=transport,
    ) as client:
        return await asyncio.wait_for(
            client.request(method, url, **kwargs),
            timeout,
        )


def _request_failed(exc: Exception) -> ValidationResult:
    """Map a transport-level failure to a result."""
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return ValidationResult(valid=False, error=TIMEOUT_ERROR)
    logger.debug("Validation request failed: %s", exc)
    return ValidationResult(valid=False, error=NETWORK_ERROR)


def _error_details(response: httpx.Response) -> Tuple[str, str]:
    """Return ``(error_type, error_message)`` from an upstream error body."""
    try:
        data = response.json()
    except ValueError:
        return "", ""
    if not isinstance(data, dict):
        return "", ""
    error = data.get("error")
    if isinstance(error, dict):
        return str(error.get("type") or ""), str(error.get("message") or "")
    if isinstance(error, str):
        return "", error
    return "", str(data.get("message") or "")


def _status_message(response: httpx.Response) -> str:
    return f"API returned status {response.status_code}"


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class ApiKeyValidator(ABC):
    """Base interface for API key validators."""

    @abstractmethod
    async def validate(
        self,
        api_key: str,
        timeout_ms: int,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> ValidationResult:
        ...


class ChatProbeValidator(ApiKeyValidator):
    """Send a 1-token completion, walking a newest-first model list.

    An auth failure is model independent and stops the walk at once; a
    missing model moves on to the next candidate.
    """

    def __init__(
        self,
        url: str,
        fallback_models: Sequence[str],
        headers: Dict[str, str],
        key_header: str,
    ) -> None:
        self.url = url
        self.fallback_models = tuple(fallback_models)
        self.headers = dict(headers)
        self.key_header = key_header

    async def validate(
        self,
        api_key: str,
        timeout_ms: int,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> ValidationResult:
        headers = {**self.headers, self.key_header: api_key}
        for model in self.fallback_models:
            try:
                response = await _request(
                    "POST",
                    self.url,
                    timeout_ms,
                    transport,
                    headers=headers,
                    json={
                        "model": model,
                        "max_tokens": 1,
                        "messages": [{"role": "user", "content": "hi"}],
                    },
                )
            except (httpx.HTTPError, asyncio.TimeoutError) as exc:
                return _request_failed(exc)

            if response.is_success:
                logger.info("Validation succeeded with model: %s", model)
                return ValidationResult(valid=True)

            error_type, error_message = _error_details(response)
            if (
                response.status_code == 401
                or error_type == "authentication_error"
            ):
                return ValidationResult(
                    valid=False,
                    error=error_message or "Invalid API key",
                )
            if response.status_code == 404 or error_type == "not_found_error":
                logger.debug("Model %s not available, trying next", model)
                continue
            return ValidationResult(
                valid=False,
                error=error_message or _status_message(response),
            )

        return ValidationResult(valid=False, error=NO_MODELS_ERROR)


class MetadataProbeValidator(ApiKeyValidator):
    """Single GET against a stable list/metadata endpoint."""

    def __init__(self, url: str, query_param: Optional[str] = None) -> None:
        self.url = url
        # When set, the key travels as a query parameter instead of a
        # bearer header.
        self.query_param = query_param

    async def validate(
        self,
        api_key: str,
        timeout_ms: int,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> ValidationResult:
        kwargs: dict = {}
        if self.query_param:
            kwargs["params"] = {self.query_param: api_key}
        else:
            kwargs["headers"] = {"Authorization": f"Bearer {api_key}"}
        try:
            response = await _request(
                "GET",
                self.url,
                timeout_ms,
                transport,
                **kwargs,
            )
        except (httpx.HTTPError, asyncio.TimeoutError) as exc:
            return _request_failed(exc)

        if response.is_success:
            return ValidationResult(valid=True)
        _, error_message = _error_details(response)
        return ValidationResult(
            valid=False,
            error=error_message or _status_message(response),
        )


class TrustValidator(ApiKeyValidator):
    """Self-declared backends: accepted without a network call."""

    async def validate(
        self,
        api_key: str,
        timeout_ms: int,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> ValidationResult:
        logger.info("Skipping validation for custom provider")
        return ValidationResult(valid=True)


# Newest first. This list is maintained by hand.
ANTHROPIC_FALLBACK_MODELS: List[str] = [
    "claude-3-5-haiku-latest",
    "claude-3-haiku-20240307",
    "claude-3-sonnet-20240229",
]

# Registry: provider_id -> validator
VALIDATORS: Dict[ProviderId, ApiKeyValidator] = {
    ProviderId.ANTHROPIC: ChatProbeValidator(
        "https://api.anthropic.com/v1/messages",
        ANTHROPIC_FALLBACK_MODELS,
        headers={
            "Content-Type": "application/json",
            "anthropic-version": "2023-06-01",
        },
        key_header="x-api-key",
    ),
    ProviderId.OPENAI: MetadataProbeValidator(
        "https://api.openai.com/v1/models",
    ),
    ProviderId.GOOGLE: MetadataProbeValidator(
        "https://generativelanguage.googleapis.com/v1beta/models",
        query_param="key",
    ),
    ProviderId.GROQ: MetadataProbeValidator(
        "https://api.groq.com/openai/v1/models",
    ),
    ProviderId.XAI: MetadataProbeValidator("https://api.x.ai/v1/models"),
    ProviderId.DEEPSEEK: MetadataProbeValidator(
        "https://api.deepseek.com/models",
    ),
    ProviderId.MOONSHOT: MetadataProbeValidator(
        "https://api.moonshot.ai/v1/models",
    ),
    ProviderId.OPENROUTER: MetadataProbeValidator(
        "https://openrouter.ai/api/v1/key",
    ),
    ProviderId.CUSTOM: TrustValidator(),
}


def get_validator(
    provider_id: Union[ProviderId, str],
) -> Optional[ApiKeyValidator]:
    """Return the validator for a provider, or None if there is none."""
    pid = coerce_provider_id(provider_id)
    return VALIDATORS.get(pid) if pid is not None else None


def _check_timeout(timeout_ms: int) -> None:
    if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, (int, float)):
        raise TypeError(f"timeout_ms must be a number, got {timeout_ms!r}")
    if timeout_ms <= 0:
        raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")


async def validate_api_key(
    provider_id: Union[ProviderId, str],
    api_key: str,
    timeout_ms: int = DEFAULT_VALIDATION_TIMEOUT_MS,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ValidationResult:
    """Validate an API key for a given provider.

    Raises only for malformed arguments (non-string key, non-positive
    timeout). *transport* replaces the network layer, e.g. with
    ``httpx.MockTransport``.
    """
    if not isinstance(api_key, str):
        raise TypeError("api_key must be a string")
    _check_timeout(timeout_ms)

    validator = get_validator(provider_id)
    if validator is None:
        return ValidationResult(valid=False, error=UNSUPPORTED_PROVIDER_ERROR)
    return await validator.validate(api_key, timeout_ms, transport)


# ---------------------------------------------------------------------------
# Self-hosted server probes
# ---------------------------------------------------------------------------


class ServerProbeResult(BaseModel):
    """Outcome of probing a self-hosted server plus the models it lists."""

    result: ValidationResult
    models: List[ModelInfo] = Field(default_factory=list)


def _ollama_models(data: dict) -> List[ModelInfo]:
    return [
        ModelInfo(id=f"ollama/{m['name']}", name=m["name"])
        for m in data.get("models", [])
        if isinstance(m, dict) and m.get("name")
    ]


def _lmstudio_tool_support(entry: dict) -> ToolSupport:
    capabilities = entry.get("capabilities")
    if not isinstance(capabilities, list):
        return ToolSupport.UNKNOWN
    if "tool_use" in capabilities:
        return ToolSupport.SUPPORTED
    return ToolSupport.UNSUPPORTED


def _lmstudio_models(data: dict) -> List[ModelInfo]:
    models = []
    for entry in data.get("data", []):
        if not isinstance(entry, dict) or not entry.get("id"):
            continue
        if entry.get("type") == "embeddings":
            continue
        models.append(
            ModelInfo(
                id=f"lmstudio/{entry['id']}",
                name=entry["id"],
                tool_support=_lmstudio_tool_support(entry),
            ),
        )
    return models


def _openai_compatible_models(data: dict) -> List[ModelInfo]:
    return [
        ModelInfo(id=entry["id"], name=entry["id"])
        for entry in data.get("data", [])
        if isinstance(entry, dict) and entry.get("id")
    ]


_SERVER_PROBES = {
    ProviderId.OLLAMA: ("/api/tags", _ollama_models),
    ProviderId.LMSTUDIO: ("/api/v0/models", _lmstudio_models),
    ProviderId.LITELLM: ("/v1/models", _openai_compatible_models),
}


async def validate_server_url(
    provider_id: Union[ProviderId, str],
    server_url: str,
    timeout_ms: int = DEFAULT_VALIDATION_TIMEOUT_MS,
    *,
    api_key: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ServerProbeResult:
    """Check that a self-hosted server answers and list its models."""
    _check_timeout(timeout_ms)
    pid = coerce_provider_id(provider_id)
    if pid not in _SERVER_PROBES:
        return ServerProbeResult(
            result=ValidationResult(
                valid=False,
                error=UNSUPPORTED_PROVIDER_ERROR,
            ),
        )

    path, parse = _SERVER_PROBES[pid]
    headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
    try:
        response = await _request(
            "GET",
            server_url.rstrip("/") + path,
            timeout_ms,
            transport,
            headers=headers,
        )
    except httpx.InvalidURL as exc:
        return ServerProbeResult(
            result=ValidationResult(
                valid=False,
                error=f"Invalid server URL: {exc}",
            ),
        )
    except (httpx.HTTPError, asyncio.TimeoutError) as exc:
        result = _request_failed(exc)
        if result.error == NETWORK_ERROR:
            result.error = f"Could not connect to server at {server_url}"
        return ServerProbeResult(result=result)

    if not response.is_success:
        _, error_message = _error_details(response)
        return ServerProbeResult(
            result=ValidationResult(
                valid=False,
                error=error_message or _status_message(response),
            ),
        )
    try:
        data = response.json()
    except ValueError:
        data = {}
    models = parse(data) if isinstance(data, dict) else []
    logger.info("%s server reachable, %d model(s) listed", pid.value, len(models))
    return ServerProbeResult(result=ValidationResult(valid=True), models=models)
