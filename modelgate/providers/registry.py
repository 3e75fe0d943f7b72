# -*- coding: utf-8 -*-
"""Built-in provider definitions and registry."""

from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .models import ModelInfo, ProviderId


class ProviderDefinition(BaseModel):
    """Static definition of a provider family."""

    id: ProviderId = Field(..., description="Provider identifier")
    name: str = Field(..., description="Human-readable provider name")
    runtime_name: str = Field(
        ...,
        description="Provider name the agent runtime CLI uses",
    )
    credential_type: str = Field(
        ...,
        description="Expected ``credentials.type`` discriminant",
    )
    api_key_env_var: str = Field(
        default="",
        description="Env var the secret lookup reads the key from",
    )
    default_base_url: str = Field(default="", description="Default base URL")
    models: List[ModelInfo] = Field(
        default_factory=list,
        description="Built-in model list",
    )


# ---------------------------------------------------------------------------
# Built-in model lists
# ---------------------------------------------------------------------------

ANTHROPIC_MODELS: List[ModelInfo] = [
    ModelInfo(id="anthropic/claude-haiku-4-5", name="Claude Haiku 4.5"),
    ModelInfo(id="anthropic/claude-sonnet-4-5", name="Claude Sonnet 4.5"),
    ModelInfo(id="anthropic/claude-opus-4-5", name="Claude Opus 4.5"),
]

OPENAI_MODELS: List[ModelInfo] = [
    ModelInfo(id="openai/gpt-5-codex", name="GPT 5 Codex"),
]

GOOGLE_MODELS: List[ModelInfo] = [
    ModelInfo(id="google/gemini-3-pro-preview", name="Gemini 3 Pro"),
    ModelInfo(id="google/gemini-3-flash-preview", name="Gemini 3 Flash"),
]

GROQ_MODELS: List[ModelInfo] = [
    ModelInfo(id="groq/llama-3.3-70b", name="Llama 3.3 70B"),
    ModelInfo(id="groq/llama-3.1-8b-instant", name="Llama 3.1 8B Instant"),
]

MOONSHOT_MODELS: List[ModelInfo] = [
    ModelInfo(id="moonshot/kimi-latest", name="Kimi Latest"),
]

ZAI_MODELS: List[ModelInfo] = [
    ModelInfo(id="glm-4.7-flashx", name="GLM-4.7 FlashX (Latest)"),
    ModelInfo(id="glm-4.7", name="GLM-4.7"),
    ModelInfo(id="glm-4.7-flash", name="GLM-4.7 Flash"),
    ModelInfo(id="glm-4.6", name="GLM-4.6"),
    ModelInfo(id="glm-4.5-flash", name="GLM-4.5 Flash"),
]


def _define(
    provider_id: ProviderId,
    name: str,
    credential_type: str,
    *,
    runtime_name: Optional[str] = None,
    api_key_env_var: str = "",
    default_base_url: str = "",
    models: Optional[List[ModelInfo]] = None,
) -> ProviderDefinition:
    return ProviderDefinition(
        id=provider_id,
        name=name,
        runtime_name=runtime_name or provider_id.value,
        credential_type=credential_type,
        api_key_env_var=api_key_env_var,
        default_base_url=default_base_url,
        models=models or [],
    )


# Registry: provider_id -> ProviderDefinition
PROVIDERS: Dict[ProviderId, ProviderDefinition] = {
    d.id: d
    for d in (
        _define(
            ProviderId.ANTHROPIC,
            "Anthropic",
            "api_key",
            api_key_env_var="ANTHROPIC_API_KEY",
            default_base_url="https://api.anthropic.com",
            models=ANTHROPIC_MODELS,
        ),
        _define(
            ProviderId.OPENAI,
            "OpenAI",
            "api_key",
            api_key_env_var="OPENAI_API_KEY",
            default_base_url="https://api.openai.com/v1",
            models=OPENAI_MODELS,
        ),
        _define(
            ProviderId.GOOGLE,
            "Google AI",
            "api_key",
            api_key_env_var="GOOGLE_GENERATIVE_AI_API_KEY",
            default_base_url="https://generativelanguage.googleapis.com",
            models=GOOGLE_MODELS,
        ),
        _define(
            ProviderId.GROQ,
            "Groq",
            "api_key",
            api_key_env_var="GROQ_API_KEY",
            default_base_url="https://api.groq.com/openai/v1",
            models=GROQ_MODELS,
        ),
        _define(
            ProviderId.XAI,
            "xAI",
            "api_key",
            api_key_env_var="XAI_API_KEY",
            default_base_url="https://api.x.ai/v1",
        ),
        _define(
            ProviderId.DEEPSEEK,
            "DeepSeek",
            "api_key",
            api_key_env_var="DEEPSEEK_API_KEY",
            default_base_url="https://api.deepseek.com",
        ),
        _define(
            ProviderId.MOONSHOT,
            "Moonshot AI",
            "api_key",
            api_key_env_var="MOONSHOT_API_KEY",
            default_base_url="https://api.moonshot.ai/v1",
            models=MOONSHOT_MODELS,
        ),
        _define(
            ProviderId.ZAI,
            "Z.AI Coding Plan",
            "zai",
            runtime_name="zai-coding-plan",
            api_key_env_var="ZAI_API_KEY",
            models=ZAI_MODELS,
        ),
        _define(
            ProviderId.MINIMAX,
            "MiniMax",
            "api_key",
            api_key_env_var="MINIMAX_API_KEY",
        ),
        _define(
            ProviderId.BEDROCK,
            "Amazon Bedrock",
            "bedrock",
            runtime_name="amazon-bedrock",
        ),
        _define(
            ProviderId.AZURE_FOUNDRY,
            "Azure AI Foundry",
            "azure-foundry",
            api_key_env_var="AZURE_FOUNDRY_API_KEY",
        ),
        _define(
            ProviderId.OLLAMA,
            "Ollama",
            "ollama",
            default_base_url="http://localhost:11434",
        ),
        _define(
            ProviderId.OPENROUTER,
            "OpenRouter",
            "openrouter",
            api_key_env_var="OPENROUTER_API_KEY",
            default_base_url="https://openrouter.ai/api/v1",
        ),
        _define(
            ProviderId.LITELLM,
            "LiteLLM",
            "litellm",
            api_key_env_var="LITELLM_API_KEY",
            default_base_url="http://localhost:4000",
        ),
        _define(
            ProviderId.LMSTUDIO,
            "LM Studio",
            "lmstudio",
            default_base_url="http://localhost:1234",
        ),
        _define(
            ProviderId.CUSTOM,
            "Custom",
            "api_key",
            api_key_env_var="CUSTOM_API_KEY",
        ),
    )
}


def coerce_provider_id(
    provider_id: Union[ProviderId, str, None],
) -> Optional[ProviderId]:
    """Return *provider_id* as a :class:`ProviderId`, or None if unknown."""
    if isinstance(provider_id, ProviderId):
        return provider_id
    try:
        return ProviderId(provider_id)
    except ValueError:
        return None


def get_provider(
    provider_id: Union[ProviderId, str],
) -> Optional[ProviderDefinition]:
    """Return a provider definition by id, or None if not found."""
    pid = coerce_provider_id(provider_id)
    return PROVIDERS.get(pid) if pid is not None else None


def list_providers() -> List[ProviderDefinition]:
    """Return all registered provider definitions."""
    return list(PROVIDERS.values())


def runtime_provider_name(provider_id: ProviderId) -> str:
    """Map a provider id to the name the agent runtime CLI expects."""
    return PROVIDERS[provider_id].runtime_name
