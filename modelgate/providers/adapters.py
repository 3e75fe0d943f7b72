# -*- coding: utf-8 -*-
"""Per-provider adapters that compile stored settings into runtime entries.

Every adapter shares the same gate (registered, connected, matching
credential type, model selected) and then shapes a :class:`RuntimeConfig`
for its backend. Adapters never persist anything and never raise for an
unusable provider; they return ``None`` instead.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, Optional, Union

from .models import (
    AzureFoundryCredentials,
    BedrockCredentials,
    ConnectedProvider,
    ConnectionOptions,
    ConnectionStatus,
    LiteLLMCredentials,
    ModelLimit,
    ProviderId,
    ProviderSettings,
    ProxyInfo,
    RuntimeConfig,
    RuntimeModel,
    ToolSupport,
    ZaiCredentials,
)
from .registry import ZAI_MODELS

logger = logging.getLogger(__name__)

SecretLookup = Callable[[str], Optional[str]]
ProxyLookup = Callable[[str], Awaitable[Union[ProxyInfo, dict]]]

OPENAI_COMPATIBLE_PACKAGE = "@ai-sdk/openai-compatible"

# Secret-lookup key under which a bearer token for token-auth Azure AI
# Foundry deployments is stored.
AZURE_FOUNDRY_TOKEN_KEY = "azure-foundry:entra-id-token"

LOCAL_LIMIT = ModelLimit(context=32768, output=8192)
GATEWAY_LIMIT = ModelLimit(context=128000, output=8192)
# Some deployments cap output at 16384, so stay at or below it.
AZURE_FOUNDRY_LIMIT = ModelLimit(context=128000, output=16384)
ZAI_LIMIT = ModelLimit(context=128000, output=16384)
BEDROCK_LIMIT = ModelLimit(context=200000, output=8192)


def strip_model_prefix(model_id: str, provider_id: Union[ProviderId, str]) -> str:
    """Drop the leading ``"<provider_id>/"`` segment from *model_id*.

    The runtime splits ``"ollama/llama3"`` into provider and model, so the
    model table must be keyed by ``"llama3"``. Repeated prefixes are all
    removed (``"ollama/ollama/x"`` -> ``"x"``), which keeps stripping
    idempotent.
    """
    prefix = f"{ProviderId(provider_id).value}/"
    while model_id.startswith(prefix):
        model_id = model_id[len(prefix):]
    return model_id


def _lookup_secret(secret_lookup: SecretLookup, key: str) -> Optional[str]:
    """Return the stored secret for *key*, or None when absent or blank."""
    value = secret_lookup(key)
    if value is None or not str(value).strip():
        return None
    return value


def _server_base_url(server_url: str) -> str:
    return f"{server_url.rstrip('/')}/v1"


class ProviderAdapter(ABC):
    """Compiles one provider family."""

    provider_id: ProviderId
    credential_type: str
    display_name: Optional[str] = None
    package_handle: Optional[str] = OPENAI_COMPATIBLE_PACKAGE
    limit: ModelLimit = GATEWAY_LIMIT
    tools_capable: bool = True
    # Adapters that derive their model table from elsewhere (a deployment
    # name, a fixed catalogue) do not need a stored selection.
    requires_selected_model: bool = True
    requires_proxy: bool = False

    async def compile(
        self,
        settings: ProviderSettings,
        secret_lookup: SecretLookup,
        proxy_lookup: Optional[ProxyLookup] = None,
    ) -> Optional[RuntimeConfig]:
        provider = self.gate(settings, proxy_lookup)
        if provider is None:
            return None
        return await self.build(provider, secret_lookup, proxy_lookup)

    def gate(
        self,
        settings: ProviderSettings,
        proxy_lookup: Optional[ProxyLookup] = None,
    ) -> Optional[ConnectedProvider]:
        """Return the connected provider if it may be compiled, else None."""
        pid = self.provider_id.value
        provider = settings.connected_providers.get(self.provider_id)
        if provider is None:
            return None
        if provider.connection_status != ConnectionStatus.CONNECTED:
            logger.debug(
                "Skipping %s: status is %s",
                pid,
                provider.connection_status.value,
            )
            return None
        if provider.credentials.type != self.credential_type:
            logger.warning(
                "Skipping %s: credentials of type %r, expected %r",
                pid,
                provider.credentials.type,
                self.credential_type,
            )
            return None
        if self.requires_selected_model and not provider.selected_model_id:
            logger.debug("Skipping %s: no model selected", pid)
            return None
        if self.requires_proxy and proxy_lookup is None:
            logger.info("Skipping %s: no proxy collaborator supplied", pid)
            return None
        return provider

    @abstractmethod
    async def build(
        self,
        provider: ConnectedProvider,
        secret_lookup: SecretLookup,
        proxy_lookup: Optional[ProxyLookup],
    ) -> Optional[RuntimeConfig]:
        ...

    def model_tools(self, provider: ConnectedProvider, model_id: str) -> bool:
        return self.tools_capable

    def model_table(self, provider: ConnectedProvider) -> Dict[str, RuntimeModel]:
        """Single-entry table for the selected model."""
        model_id = strip_model_prefix(
            provider.selected_model_id,
            self.provider_id,
        )
        return {
            model_id: RuntimeModel(
                name=model_id,
                tools_capable=self.model_tools(provider, model_id),
                limit=self.limit,
            ),
        }

    def runtime_config(
        self,
        provider: ConnectedProvider,
        options: ConnectionOptions,
    ) -> RuntimeConfig:
        return RuntimeConfig(
            package_handle=self.package_handle,
            display_name=self.display_name,
            connection_options=options,
            models=self.model_table(provider),
        )


# ---------------------------------------------------------------------------
# Direct base URL adapters
# ---------------------------------------------------------------------------


class DirectBaseUrlAdapter(ProviderAdapter):
    """Talks to the backend directly at a fixed or server-derived URL.

    The API key is only emitted when the secret lookup has a non-empty one;
    otherwise the runtime client uses its own default auth handling.
    """

    fixed_base_url: Optional[str] = None
    uses_api_key: bool = True

    def base_url(self, provider: ConnectedProvider) -> str:
        if self.fixed_base_url:
            return self.fixed_base_url
        return _server_base_url(provider.credentials.server_url)

    def api_key(
        self,
        provider: ConnectedProvider,
        secret_lookup: SecretLookup,
    ) -> Optional[str]:
        if not self.uses_api_key:
            return None
        return _lookup_secret(secret_lookup, self.provider_id.value)

    async def build(
        self,
        provider: ConnectedProvider,
        secret_lookup: SecretLookup,
        proxy_lookup: Optional[ProxyLookup],
    ) -> Optional[RuntimeConfig]:
        options = ConnectionOptions(
            base_url=self.base_url(provider),
            api_key=self.api_key(provider, secret_lookup),
        )
        logger.info(
            "%s configured at %s (%s)",
            self.provider_id.value,
            options.base_url,
            "with API key" if options.api_key else "no API key",
        )
        return self.runtime_config(provider, options)


class OllamaAdapter(DirectBaseUrlAdapter):
    provider_id = ProviderId.OLLAMA
    credential_type = "ollama"
    display_name = "Ollama (local)"
    limit = LOCAL_LIMIT
    uses_api_key = False


class LMStudioAdapter(DirectBaseUrlAdapter):
    """Tool capability comes from the server's per-model metadata."""

    provider_id = ProviderId.LMSTUDIO
    credential_type = "lmstudio"
    display_name = "LM Studio"
    limit = LOCAL_LIMIT
    uses_api_key = False

    def model_tools(self, provider: ConnectedProvider, model_id: str) -> bool:
        for info in provider.available_models:
            if info.id in (provider.selected_model_id, model_id):
                return info.tool_support == ToolSupport.SUPPORTED
        return False


class OpenRouterAdapter(DirectBaseUrlAdapter):
    provider_id = ProviderId.OPENROUTER
    credential_type = "openrouter"
    display_name = "OpenRouter"
    fixed_base_url = "https://openrouter.ai/api/v1"


class ZaiAdapter(DirectBaseUrlAdapter):
    """Ships the whole Z.AI catalogue; no stored selection needed."""

    provider_id = ProviderId.ZAI
    credential_type = "zai"
    display_name = "Z.AI Coding Plan"
    limit = ZAI_LIMIT
    requires_selected_model = False

    ENDPOINTS = {
        "international": "https://api.z.ai/api/coding/paas/v4",
        "china": "https://open.bigmodel.cn/api/paas/v4",
    }

    def base_url(self, provider: ConnectedProvider) -> str:
        creds: ZaiCredentials = provider.credentials
        return self.ENDPOINTS[creds.region]

    def model_table(self, provider: ConnectedProvider) -> Dict[str, RuntimeModel]:
        return {
            m.id: RuntimeModel(
                name=m.name,
                tools_capable=self.tools_capable,
                limit=self.limit,
            )
            for m in ZAI_MODELS
        }


class LiteLLMAdapter(DirectBaseUrlAdapter):
    """Self-hosted proxy; the key is used only if one was configured."""

    provider_id = ProviderId.LITELLM
    credential_type = "litellm"
    display_name = "LiteLLM"

    def api_key(
        self,
        provider: ConnectedProvider,
        secret_lookup: SecretLookup,
    ) -> Optional[str]:
        creds: LiteLLMCredentials = provider.credentials
        if not creds.has_api_key:
            return None
        return secret_lookup(self.provider_id.value)


class BedrockAdapter(ProviderAdapter):
    """Cloud-native auth: region and optional named profile, no base URL."""

    provider_id = ProviderId.BEDROCK
    credential_type = "bedrock"
    package_handle = None
    limit = BEDROCK_LIMIT

    DEFAULT_REGION = "us-east-1"

    async def build(
        self,
        provider: ConnectedProvider,
        secret_lookup: SecretLookup,
        proxy_lookup: Optional[ProxyLookup],
    ) -> Optional[RuntimeConfig]:
        creds: BedrockCredentials = provider.credentials
        options = ConnectionOptions(region=creds.region or self.DEFAULT_REGION)
        if creds.auth_method == "profile" and creds.profile_name:
            options.profile = creds.profile_name
        logger.info(
            "bedrock configured for region %s%s",
            options.region,
            f" (profile {options.profile})" if options.profile else "",
        )
        return self.runtime_config(provider, options)


# ---------------------------------------------------------------------------
# Proxy indirection adapters
# ---------------------------------------------------------------------------


class ProxyAdapter(ProviderAdapter):
    """Routes traffic through a local proxy the runtime talks to instead.

    The real endpoint is only ever handed to the proxy collaborator; the
    compiled entry points at the proxy's local base URL.
    """

    requires_proxy = True

    @abstractmethod
    def target_base_url(self, provider: ConnectedProvider) -> str:
        ...

    def auth_method(self, provider: ConnectedProvider) -> str:
        return "api-key"

    def auth_options(
        self,
        provider: ConnectedProvider,
        secret_lookup: SecretLookup,
    ) -> Optional[ConnectionOptions]:
        """Options carrying auth only, or None when auth is unusable."""
        if self.auth_method(provider) == "entra-id":
            token = _lookup_secret(secret_lookup, AZURE_FOUNDRY_TOKEN_KEY)
            if token is None:
                logger.warning(
                    "Skipping %s: token auth selected but no token available",
                    self.provider_id.value,
                )
                return None
            # The SDK refuses to start without an apiKey, even an empty one.
            return ConnectionOptions(
                api_key="",
                headers={"Authorization": f"Bearer {token}"},
            )
        return ConnectionOptions(
            api_key=_lookup_secret(secret_lookup, self.provider_id.value),
        )

    async def build(
        self,
        provider: ConnectedProvider,
        secret_lookup: SecretLookup,
        proxy_lookup: Optional[ProxyLookup],
    ) -> Optional[RuntimeConfig]:
        options = self.auth_options(provider, secret_lookup)
        if options is None:
            return None

        target = self.target_base_url(provider)
        try:
            proxy = await proxy_lookup(target)
            if not isinstance(proxy, ProxyInfo):
                proxy = ProxyInfo.model_validate(proxy)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning(
                "Skipping %s: proxy for %s unavailable: %s",
                self.provider_id.value,
                target,
                exc,
            )
            return None

        options.base_url = proxy.base_url
        logger.info(
            "%s configured through proxy %s -> %s",
            self.provider_id.value,
            proxy.base_url,
            target,
        )
        return self.runtime_config(provider, options)


class MoonshotAdapter(ProxyAdapter):
    provider_id = ProviderId.MOONSHOT
    credential_type = "api_key"
    display_name = "Moonshot AI"

    def target_base_url(self, provider: ConnectedProvider) -> str:
        return "https://api.moonshot.ai/v1"


class AzureFoundryAdapter(ProxyAdapter):
    """The deployment name doubles as the model id."""

    provider_id = ProviderId.AZURE_FOUNDRY
    credential_type = "azure-foundry"
    display_name = "Azure AI Foundry"
    limit = AZURE_FOUNDRY_LIMIT
    requires_selected_model = False

    def target_base_url(self, provider: ConnectedProvider) -> str:
        creds: AzureFoundryCredentials = provider.credentials
        return f"{creds.endpoint.rstrip('/')}/openai/v1"

    def auth_method(self, provider: ConnectedProvider) -> str:
        return provider.credentials.auth_method

    def model_table(self, provider: ConnectedProvider) -> Dict[str, RuntimeModel]:
        deployment = provider.credentials.deployment_name
        return {
            deployment: RuntimeModel(
                name=f"Azure Foundry ({deployment})",
                tools_capable=self.tools_capable,
                limit=self.limit,
            ),
        }


# Registry: provider_id -> adapter, in compile order
ADAPTERS: Dict[ProviderId, ProviderAdapter] = {
    adapter.provider_id: adapter
    for adapter in (
        OllamaAdapter(),
        OpenRouterAdapter(),
        MoonshotAdapter(),
        BedrockAdapter(),
        LiteLLMAdapter(),
        LMStudioAdapter(),
        AzureFoundryAdapter(),
        ZaiAdapter(),
    )
}
