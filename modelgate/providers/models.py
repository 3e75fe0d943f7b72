# -*- coding: utf-8 -*-
"""Pydantic data models for providers, credentials and compiled configs."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProviderId(str, Enum):
    """Closed set of backend families the broker knows about."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GOOGLE = "google"
    GROQ = "groq"
    XAI = "xai"
    DEEPSEEK = "deepseek"
    MOONSHOT = "moonshot"
    ZAI = "zai"
    MINIMAX = "minimax"
    BEDROCK = "bedrock"
    AZURE_FOUNDRY = "azure-foundry"
    OLLAMA = "ollama"
    OPENROUTER = "openrouter"
    LITELLM = "litellm"
    LMSTUDIO = "lmstudio"
    CUSTOM = "custom"


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class ToolSupport(str, Enum):
    SUPPORTED = "supported"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


class _StoredModel(BaseModel):
    """Base for models read from the settings store (camelCase on disk)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Credentials (tagged union on ``type``)
# ---------------------------------------------------------------------------


class ApiKeyCredentials(_StoredModel):
    type: Literal["api_key"] = "api_key"
    key_prefix: str = Field(default="", description="Masked key for display")


class OllamaCredentials(_StoredModel):
    type: Literal["ollama"] = "ollama"
    server_url: str


class LMStudioCredentials(_StoredModel):
    type: Literal["lmstudio"] = "lmstudio"
    server_url: str


class LiteLLMCredentials(_StoredModel):
    type: Literal["litellm"] = "litellm"
    server_url: str
    has_api_key: bool = False
    key_prefix: Optional[str] = None


class OpenRouterCredentials(_StoredModel):
    type: Literal["openrouter"] = "openrouter"
    key_prefix: str = ""


class ZaiCredentials(_StoredModel):
    type: Literal["zai"] = "zai"
    key_prefix: str = ""
    region: Literal["international", "china"] = "international"


class BedrockCredentials(_StoredModel):
    type: Literal["bedrock"] = "bedrock"
    auth_method: Literal["accessKeys", "profile"] = "accessKeys"
    region: str = ""
    profile_name: Optional[str] = None
    access_key_id_prefix: Optional[str] = None


class AzureFoundryCredentials(_StoredModel):
    type: Literal["azure-foundry"] = "azure-foundry"
    endpoint: str
    deployment_name: str
    auth_method: Literal["api-key", "entra-id"] = "api-key"
    key_prefix: Optional[str] = None


Credentials = Annotated[
    Union[
        ApiKeyCredentials,
        OllamaCredentials,
        LMStudioCredentials,
        LiteLLMCredentials,
        OpenRouterCredentials,
        ZaiCredentials,
        BedrockCredentials,
        AzureFoundryCredentials,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Stored provider state (owned by an external settings store)
# ---------------------------------------------------------------------------


class ModelInfo(_StoredModel):
    """A single model offered by a provider."""

    id: str = Field(..., description="Model identifier used in API calls")
    name: str = Field(..., description="Human-readable model name")
    tool_support: Optional[ToolSupport] = None


class ConnectedProvider(_StoredModel):
    provider_id: ProviderId
    connection_status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    selected_model_id: Optional[str] = None
    credentials: Credentials
    last_connected_at: Optional[str] = None
    available_models: List[ModelInfo] = Field(default_factory=list)


class ProviderSettings(_StoredModel):
    """Top-level provider settings. Read-only for the broker."""

    active_provider_id: Optional[ProviderId] = None
    connected_providers: Dict[ProviderId, ConnectedProvider] = Field(
        default_factory=dict,
    )
    debug_mode: bool = False


class ValidationResult(BaseModel):
    valid: bool
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Compiled runtime configuration (ephemeral, never persisted by the broker)
# ---------------------------------------------------------------------------


class ModelLimit(BaseModel):
    context: int
    output: int


class RuntimeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    tools_capable: bool = Field(default=False, alias="tools")
    limit: ModelLimit


class ConnectionOptions(BaseModel):
    """Client options handed to the runtime's model SDK.

    ``api_key`` stays ``None`` when the provider has no key so it is left out
    of the output entirely; an empty string is emitted as-is.
    """

    model_config = ConfigDict(populate_by_name=True)

    base_url: Optional[str] = Field(default=None, alias="baseURL")
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    headers: Optional[Dict[str, str]] = None
    region: Optional[str] = None
    profile: Optional[str] = None


class RuntimeConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    package_handle: Optional[str] = Field(default=None, alias="npm")
    display_name: Optional[str] = Field(default=None, alias="name")
    connection_options: ConnectionOptions = Field(
        default_factory=ConnectionOptions,
        alias="options",
    )
    models: Dict[str, RuntimeModel] = Field(default_factory=dict)

    def to_runtime_dict(self) -> dict:
        """Serialize in the shape the agent-runtime CLI reads."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ProxyInfo(BaseModel):
    """What the proxy-lifecycle collaborator reports for a running proxy."""

    model_config = ConfigDict(populate_by_name=True)

    base_url: str = Field(..., alias="baseURL")
    target_base_url: str = Field(default="", alias="targetBaseURL")
    port: Optional[int] = None


McpCommand = List[str]


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------


def mask_api_key(api_key: str, visible_chars: int = 4) -> str:
    """Mask an API key for safe display.

    Example: ``"sk-abcdefghijk"`` → ``"sk-****hijk"``
    """
    if not api_key:
        return ""
    if len(api_key) <= visible_chars:
        return "*" * len(api_key)
    prefix = api_key[:3] if len(api_key) > 3 else ""
    suffix = api_key[-visible_chars:]
    hidden_len = len(api_key) - len(prefix) - visible_chars
    return f"{prefix}{'*' * max(hidden_len, 4)}{suffix}"


def key_prefix(api_key: str, visible_chars: int = 8) -> str:
    """Return the stored display prefix of a key, e.g. ``"sk-ant-a..."``."""
    api_key = (api_key or "").strip()
    if not api_key:
        return ""
    if len(api_key) <= visible_chars:
        return "*" * len(api_key)
    return f"{api_key[:visible_chars]}..."
