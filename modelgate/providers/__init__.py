# -*- coding: utf-8 -*-
"""Provider management: models, registry, validation and compilation."""

from .adapters import (
    ADAPTERS,
    AZURE_FOUNDRY_TOKEN_KEY,
    ProviderAdapter,
    ProxyLookup,
    SecretLookup,
    strip_model_prefix,
)
from .compiler import compile_all, compile_provider
from .connection import (
    ConnectionAttempt,
    connect_api_key_provider,
    disconnect_provider,
    select_model,
)
from .models import (
    ConnectedProvider,
    ConnectionOptions,
    ConnectionStatus,
    Credentials,
    ModelInfo,
    ProviderId,
    ProviderSettings,
    ProxyInfo,
    RuntimeConfig,
    RuntimeModel,
    ValidationResult,
    key_prefix,
    mask_api_key,
)
from .registry import (
    PROVIDERS,
    ProviderDefinition,
    get_provider,
    list_providers,
    runtime_provider_name,
)
from .secrets import EnvSecretLookup, StaticSecretLookup
from .settings import load_provider_settings, parse_provider_settings
from .validators import (
    VALIDATORS,
    get_validator,
    validate_api_key,
    validate_server_url,
)

__all__ = [
    # models
    "ConnectedProvider",
    "ConnectionOptions",
    "ConnectionStatus",
    "Credentials",
    "ModelInfo",
    "ProviderId",
    "ProviderSettings",
    "ProxyInfo",
    "RuntimeConfig",
    "RuntimeModel",
    "ValidationResult",
    "key_prefix",
    "mask_api_key",
    # registry
    "PROVIDERS",
    "ProviderDefinition",
    "get_provider",
    "list_providers",
    "runtime_provider_name",
    # validation
    "VALIDATORS",
    "get_validator",
    "validate_api_key",
    "validate_server_url",
    # compilation
    "ADAPTERS",
    "AZURE_FOUNDRY_TOKEN_KEY",
    "ProviderAdapter",
    "ProxyLookup",
    "SecretLookup",
    "compile_all",
    "compile_provider",
    "strip_model_prefix",
    # connection lifecycle
    "ConnectionAttempt",
    "connect_api_key_provider",
    "disconnect_provider",
    "select_model",
    # settings + secrets
    "EnvSecretLookup",
    "StaticSecretLookup",
    "load_provider_settings",
    "parse_provider_settings",
]
