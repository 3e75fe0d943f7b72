from __future__ import annotations

import pytest

from modelgate.providers import (
    ProviderId,
    ProviderSettings,
    ProxyInfo,
    StaticSecretLookup,
    compile_all,
    compile_provider,
    strip_model_prefix,
)
from modelgate.providers.models import (
    ApiKeyCredentials,
    AzureFoundryCredentials,
    BedrockCredentials,
    ConnectedProvider,
    ConnectionStatus,
    LiteLLMCredentials,
    LMStudioCredentials,
    ModelInfo,
    OllamaCredentials,
    OpenRouterCredentials,
    ZaiCredentials,
)


def connected(
    provider_id: ProviderId,
    credentials,
    model: str | None = "model-1",
    status: ConnectionStatus = ConnectionStatus.CONNECTED,
    available_models: list | None = None,
) -> ConnectedProvider:
    return ConnectedProvider(
        provider_id=provider_id,
        connection_status=status,
        selected_model_id=model,
        credentials=credentials,
        last_connected_at="2024-01-01T00:00:00Z",
        available_models=available_models or [],
    )


def settings_with(*providers: ConnectedProvider) -> ProviderSettings:
    return ProviderSettings(
        connected_providers={p.provider_id: p for p in providers},
    )


def no_secrets(key: str) -> None:
    return None


class FakeProxy:
    def __init__(self, base_url: str = "http://127.0.0.1:9228") -> None:
        self.base_url = base_url
        self.targets: list[str] = []

    async def __call__(self, target: str) -> ProxyInfo:
        self.targets.append(target)
        return ProxyInfo(base_url=self.base_url, target_base_url=target, port=9228)


def ollama(model: str | None = "llama3", **kwargs) -> ConnectedProvider:
    return connected(
        ProviderId.OLLAMA,
        OllamaCredentials(server_url="http://localhost:11434"),
        model,
        **kwargs,
    )


def azure(auth_method: str = "api-key") -> ConnectedProvider:
    return connected(
        ProviderId.AZURE_FOUNDRY,
        AzureFoundryCredentials(
            endpoint="https://res.openai.azure.com/",
            deployment_name="gpt-4o",
            auth_method=auth_method,
        ),
        model=None,
    )


def moonshot() -> ConnectedProvider:
    return connected(
        ProviderId.MOONSHOT,
        ApiKeyCredentials(key_prefix="sk-moon-***"),
        "moonshot/kimi-latest",
    )


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize("provider_id", ["unknown-provider", "anthropic", ""])
async def test_unregistered_provider_compiles_to_none(provider_id) -> None:
    result = await compile_provider(provider_id, settings_with(ollama()), no_secrets)
    assert result is None


@pytest.mark.asyncio
async def test_missing_provider_compiles_to_none() -> None:
    assert await compile_provider("ollama", ProviderSettings(), no_secrets) is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [
        ConnectionStatus.DISCONNECTED,
        ConnectionStatus.CONNECTING,
        ConnectionStatus.ERROR,
    ],
)
async def test_not_connected_provider_compiles_to_none(status) -> None:
    settings = settings_with(ollama(status=status))
    assert await compile_provider("ollama", settings, no_secrets) is None


@pytest.mark.asyncio
async def test_mismatched_credentials_type_compiles_to_none() -> None:
    settings = settings_with(
        connected(
            ProviderId.OLLAMA,
            ApiKeyCredentials(key_prefix="sk-***"),
            "llama3",
        ),
        connected(
            ProviderId.LITELLM,
            OllamaCredentials(server_url="http://localhost:11434"),
            "gpt-4",
        ),
    )
    assert await compile_provider("ollama", settings, no_secrets) is None
    assert await compile_provider("litellm", settings, no_secrets) is None


@pytest.mark.asyncio
async def test_missing_selected_model_compiles_to_none() -> None:
    settings = settings_with(ollama(model=None))
    assert await compile_provider("ollama", settings, no_secrets) is None


@pytest.mark.asyncio
async def test_azure_synthesizes_model_from_deployment_name() -> None:
    result = await compile_provider(
        "azure-foundry",
        settings_with(azure()),
        StaticSecretLookup({"azure-foundry": "azure-key"}),
        FakeProxy(),
    )
    assert result is not None
    assert list(result.models) == ["gpt-4o"]
    assert result.models["gpt-4o"].name == "Azure Foundry (gpt-4o)"
    assert result.models["gpt-4o"].limit.output == 16384


# ---------------------------------------------------------------------------
# Model id prefix stripping
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "model_id",
    [
        "llama3",
        "ollama/llama3:latest",
        "ollama/ollama/llama3",
        "other/ollama/llama3",
        "",
        "ollama/",
    ],
)
def test_strip_model_prefix_is_idempotent(model_id) -> None:
    once = strip_model_prefix(model_id, "ollama")
    assert strip_model_prefix(once, "ollama") == once
    assert not once.startswith("ollama/")


def test_strip_model_prefix_removes_repeated_prefixes() -> None:
    assert strip_model_prefix("ollama/ollama/llama3", "ollama") == "llama3"
    assert strip_model_prefix("ollama/llama3", ProviderId.OLLAMA) == "llama3"


def test_strip_model_prefix_only_touches_own_provider() -> None:
    assert strip_model_prefix("openrouter/anthropic/claude-3-opus", "openrouter") == (
        "anthropic/claude-3-opus"
    )
    assert strip_model_prefix("anthropic/claude-3-opus", "openrouter") == (
        "anthropic/claude-3-opus"
    )


# ---------------------------------------------------------------------------
# Direct base URL adapters
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_ollama_uses_server_url_and_strips_prefix() -> None:
    provider = connected(
        ProviderId.OLLAMA,
        OllamaCredentials(server_url="http://192.168.1.100:11434/"),
        "ollama/llama3:latest",
    )
    result = await compile_provider(
        "ollama",
        settings_with(provider),
        StaticSecretLookup({"ollama": "never-used"}),
    )
    assert result is not None
    assert result.connection_options.base_url == "http://192.168.1.100:11434/v1"
    assert list(result.models) == ["llama3:latest"]
    assert result.models["llama3:latest"].tools_capable is True

    out = result.to_runtime_dict()
    assert out["npm"] == "@ai-sdk/openai-compatible"
    assert out["name"] == "Ollama (local)"
    assert "apiKey" not in out["options"]
    assert out["models"]["llama3:latest"]["tools"] is True
    assert set(out["models"]["llama3:latest"]["limit"]) == {"context", "output"}


@pytest.mark.asyncio
async def test_openrouter_fixed_base_url_and_optional_key() -> None:
    provider = connected(
        ProviderId.OPENROUTER,
        OpenRouterCredentials(key_prefix="sk-or-***"),
        "openrouter/anthropic/claude-3-opus",
    )
    settings = settings_with(provider)

    without_key = await compile_provider(
        "openrouter",
        settings,
        StaticSecretLookup({"openrouter": ""}),
    )
    assert without_key is not None
    assert without_key.connection_options.base_url == "https://openrouter.ai/api/v1"
    assert "apiKey" not in without_key.to_runtime_dict()["options"]
    assert "anthropic/claude-3-opus" in without_key.models

    with_key = await compile_provider(
        "openrouter",
        settings,
        StaticSecretLookup({"openrouter": "sk-or-123"}),
    )
    assert with_key.connection_options.api_key == "sk-or-123"


@pytest.mark.asyncio
async def test_litellm_key_follows_stored_flag_not_secret_store() -> None:
    secrets = StaticSecretLookup({"litellm": "sk-litellm-key"})

    flag_off = connected(
        ProviderId.LITELLM,
        LiteLLMCredentials(server_url="http://localhost:4000", has_api_key=False),
        "gpt-4",
    )
    result = await compile_provider("litellm", settings_with(flag_off), secrets)
    assert result is not None
    assert result.connection_options.api_key is None
    assert "apiKey" not in result.to_runtime_dict()["options"]

    flag_on = connected(
        ProviderId.LITELLM,
        LiteLLMCredentials(
            server_url="http://my-litellm-server:4000",
            has_api_key=True,
            key_prefix="sk-***",
        ),
        "gpt-4",
    )
    result = await compile_provider("litellm", settings_with(flag_on), secrets)
    assert result.connection_options.api_key == "sk-litellm-key"
    assert result.connection_options.base_url == "http://my-litellm-server:4000/v1"


@pytest.mark.asyncio
async def test_lmstudio_tool_support_from_model_metadata() -> None:
    models = [
        ModelInfo(id="m1", name="M1", tool_support="supported"),
        ModelInfo(id="m2", name="M2", tool_support="unknown"),
        ModelInfo(id="lmstudio/m3", name="M3", tool_support="unsupported"),
    ]
    expected = {"m1": True, "m2": False, "lmstudio/m3": False, "m4": False}

    for selected, tools in expected.items():
        provider = connected(
            ProviderId.LMSTUDIO,
            LMStudioCredentials(server_url="http://localhost:1234"),
            selected,
            available_models=models,
        )
        result = await compile_provider("lmstudio", settings_with(provider), no_secrets)
        model_id = strip_model_prefix(selected, "lmstudio")
        assert result.models[model_id].tools_capable is tools


@pytest.mark.asyncio
async def test_zai_ships_catalogue_for_region() -> None:
    provider = connected(
        ProviderId.ZAI,
        ZaiCredentials(key_prefix="zai-***", region="china"),
        model=None,
    )
    result = await compile_provider("zai", settings_with(provider), no_secrets)
    assert result is not None
    assert result.connection_options.base_url == "https://open.bigmodel.cn/api/paas/v4"
    assert "glm-4.7" in result.models
    assert len(result.models) == 5


@pytest.mark.asyncio
async def test_bedrock_region_and_profile() -> None:
    provider = connected(
        ProviderId.BEDROCK,
        BedrockCredentials(auth_method="profile", region="", profile_name="work"),
        "anthropic.claude-3-5-sonnet",
    )
    result = await compile_provider("bedrock", settings_with(provider), no_secrets)
    out = result.to_runtime_dict()
    assert out["options"] == {"region": "us-east-1", "profile": "work"}
    assert "npm" not in out
    assert "anthropic.claude-3-5-sonnet" in out["models"]


# ---------------------------------------------------------------------------
# Proxy indirection adapters
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_token_auth_without_token_fails_closed() -> None:
    proxy = FakeProxy()
    settings = settings_with(azure("entra-id"))

    assert await compile_provider("azure-foundry", settings, no_secrets, proxy) is None
    assert (
        await compile_provider(
            "azure-foundry",
            settings,
            no_secrets,
            proxy,
            azure_token="   ",
        )
        is None
    )
    assert proxy.targets == []


@pytest.mark.asyncio
async def test_token_auth_sends_bearer_header_and_empty_key() -> None:
    proxy = FakeProxy()
    result = await compile_provider(
        "azure-foundry",
        settings_with(azure("entra-id")),
        StaticSecretLookup({"azure-foundry": "ignored"}),
        proxy,
        azure_token="abc",
    )
    assert result is not None
    assert result.connection_options.api_key == ""
    assert result.connection_options.headers == {"Authorization": "Bearer abc"}
    assert result.connection_options.base_url == "http://127.0.0.1:9228"
    assert proxy.targets == ["https://res.openai.azure.com/openai/v1"]

    options = result.to_runtime_dict()["options"]
    assert options["apiKey"] == ""
    assert options["headers"]["Authorization"] == "Bearer abc"


@pytest.mark.asyncio
async def test_api_key_auth_through_proxy_has_no_headers() -> None:
    result = await compile_provider(
        "azure-foundry",
        settings_with(azure("api-key")),
        StaticSecretLookup({"azure-foundry": "azure-key"}),
        FakeProxy(),
    )
    assert result.connection_options.api_key == "azure-key"
    assert result.connection_options.headers is None
    assert "headers" not in result.to_runtime_dict()["options"]


@pytest.mark.asyncio
async def test_moonshot_uses_local_proxy_url() -> None:
    proxy = FakeProxy("http://127.0.0.1:9229")
    result = await compile_provider(
        "moonshot",
        settings_with(moonshot()),
        StaticSecretLookup({"moonshot": "sk-moonshot-key"}),
        proxy,
    )
    assert result.connection_options.base_url == "http://127.0.0.1:9229"
    assert result.connection_options.api_key == "sk-moonshot-key"
    assert proxy.targets == ["https://api.moonshot.ai/v1"]
    assert list(result.models) == ["kimi-latest"]


@pytest.mark.asyncio
async def test_proxy_returning_plain_dict_is_accepted() -> None:
    async def proxy(target: str) -> dict:
        return {"baseURL": "http://127.0.0.1:9300", "targetBaseURL": target, "port": 9300}

    result = await compile_provider("moonshot", settings_with(moonshot()), no_secrets, proxy)
    assert result.connection_options.base_url == "http://127.0.0.1:9300"
    assert result.connection_options.api_key is None


@pytest.mark.asyncio
async def test_proxy_failure_compiles_to_none() -> None:
    async def broken_proxy(target: str) -> ProxyInfo:
        raise OSError("address already in use")

    result = await compile_provider(
        "moonshot",
        settings_with(moonshot()),
        no_secrets,
        broken_proxy,
    )
    assert result is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [None, {}, {"port": 9228}, "http://127.0.0.1:9228"],
)
async def test_unusable_proxy_result_compiles_to_none(reply) -> None:
    async def proxy(target: str):
        return reply

    result = await compile_provider("moonshot", settings_with(moonshot()), no_secrets, proxy)
    assert result is None


@pytest.mark.asyncio
async def test_secret_lookup_error_compiles_to_none() -> None:
    def locked(key: str):
        raise RuntimeError("keychain locked")

    provider = connected(
        ProviderId.OPENROUTER,
        OpenRouterCredentials(key_prefix="sk-or-***"),
        "openrouter/openai/gpt-4o",
    )
    assert await compile_provider("openrouter", settings_with(provider), locked) is None
    assert await compile_provider("moonshot", settings_with(moonshot()), locked, FakeProxy()) is None


# ---------------------------------------------------------------------------
# compile_all
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_compile_all_empty_settings() -> None:
    assert await compile_all(ProviderSettings(), no_secrets) == {}


@pytest.mark.asyncio
async def test_compile_all_skips_proxy_providers_without_collaborator() -> None:
    settings = settings_with(ollama(), moonshot(), azure())
    result = await compile_all(settings, StaticSecretLookup({"moonshot": "k"}))
    assert set(result) == {ProviderId.OLLAMA}


@pytest.mark.asyncio
async def test_compile_all_with_proxy_collaborator() -> None:
    settings = settings_with(ollama(), moonshot(), azure())
    result = await compile_all(
        settings,
        StaticSecretLookup({"moonshot": "k", "azure-foundry": "a"}),
        FakeProxy(),
    )
    assert set(result) == {
        ProviderId.OLLAMA,
        ProviderId.MOONSHOT,
        ProviderId.AZURE_FOUNDRY,
    }


@pytest.mark.asyncio
async def test_compile_all_isolates_failures() -> None:
    async def broken_proxy(target: str) -> ProxyInfo:
        raise RuntimeError("spawn failed")

    def flaky_secrets(key: str):
        if key == "openrouter":
            raise RuntimeError("keychain locked")
        return None

    settings = settings_with(
        ollama(),
        moonshot(),
        connected(
            ProviderId.OPENROUTER,
            OpenRouterCredentials(key_prefix="sk-or-***"),
            "openrouter/openai/gpt-4o",
        ),
        connected(
            ProviderId.LMSTUDIO,
            LMStudioCredentials(server_url="http://localhost:1234"),
            model=None,
        ),
    )
    result = await compile_all(settings, flaky_secrets, broken_proxy)
    assert set(result) == {ProviderId.OLLAMA}
