# -*- coding: utf-8 -*-
"""API routes for provider validation and compilation."""

from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Path
from pydantic import BaseModel, Field

from ...constant import DEFAULT_VALIDATION_TIMEOUT_MS
from ...providers import (
    VALIDATORS,
    ProviderDefinition,
    StaticSecretLookup,
    ValidationResult,
    compile_all,
    get_provider,
    list_providers,
    parse_provider_settings,
    runtime_provider_name,
    validate_api_key,
)

router = APIRouter(prefix="/providers", tags=["providers"])


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class ProviderSummary(BaseModel):
    id: str
    name: str
    runtime_name: str
    credential_type: str
    supports_key_validation: bool = Field(default=False)


class ValidateRequest(BaseModel):
    """Request body for validating an API key."""

    api_key: str = Field(..., description="API key to check")
    timeout_ms: int = Field(
        default=DEFAULT_VALIDATION_TIMEOUT_MS,
        gt=0,
        description="Upper bound for each upstream request",
    )


class CompileRequest(BaseModel):
    """Settings plus secrets to compile. Nothing is stored."""

    settings: dict = Field(
        default_factory=dict,
        description="Provider settings document (camelCase)",
    )
    secrets: Dict[str, Optional[str]] = Field(
        default_factory=dict,
        description="API keys by provider id",
    )
    azure_token: Optional[str] = Field(
        default=None,
        description="Bearer token for token-auth Azure AI Foundry",
    )


def _summary(defn: ProviderDefinition) -> ProviderSummary:
    return ProviderSummary(
        id=defn.id.value,
        name=defn.name,
        runtime_name=defn.runtime_name,
        credential_type=defn.credential_type,
        supports_key_validation=defn.id in VALIDATORS,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=List[ProviderSummary],
    summary="List all providers",
)
async def list_all_providers() -> List[ProviderSummary]:
    """List all registered providers."""
    return [_summary(p) for p in list_providers()]


@router.post(
    "/{provider_id}/validate",
    response_model=ValidationResult,
    summary="Validate an API key",
    description="Probe the provider's live API with the given key. "
    "An invalid key is reported in the body, not as an HTTP error.",
)
async def validate_provider_key(
    provider_id: str = Path(..., description="Provider identifier"),
    body: ValidateRequest = Body(..., description="Key to validate"),
) -> ValidationResult:
    if get_provider(provider_id) is None:
        raise HTTPException(
            status_code=404,
            detail=f"Provider '{provider_id}' not found",
        )
    return await validate_api_key(provider_id, body.api_key, body.timeout_ms)


@router.post(
    "/compile",
    summary="Compile runtime provider entries",
    description="Compile every connected provider. Providers that need a "
    "local proxy are skipped because no proxy is started here.",
)
async def compile_providers(
    body: CompileRequest = Body(...),
) -> Dict[str, dict]:
    compiled = await compile_all(
        parse_provider_settings(body.settings),
        StaticSecretLookup(body.secrets),
        azure_token=body.azure_token,
    )
    return {
        runtime_provider_name(pid): config.to_runtime_dict()
        for pid, config in compiled.items()
    }
