from __future__ import annotations

import json

import httpx
import pytest

from modelgate.providers import (
    EnvSecretLookup,
    ProviderId,
    StaticSecretLookup,
    load_provider_settings,
    parse_provider_settings,
)
from modelgate.providers.adapters import AZURE_FOUNDRY_TOKEN_KEY
from modelgate.providers.connection import (
    SECRET_PLACEHOLDER,
    connect_api_key_provider,
    disconnect_provider,
    select_model,
)
from modelgate.providers.models import (
    BedrockCredentials,
    ConnectedProvider,
    ConnectionStatus,
    LiteLLMCredentials,
    OpenRouterCredentials,
    key_prefix,
)

STORED_SETTINGS = {
    "activeProviderId": "ollama",
    "debugMode": True,
    "connectedProviders": {
        "ollama": {
            "providerId": "ollama",
            "connectionStatus": "connected",
            "selectedModelId": "ollama/llama3",
            "credentials": {"type": "ollama", "serverUrl": "http://localhost:11434"},
            "lastConnectedAt": "2024-01-01T00:00:00Z",
        },
        "litellm": {
            "providerId": "litellm",
            "connectionStatus": "connected",
            "selectedModelId": "gpt-4",
            "credentials": {
                "type": "litellm",
                "serverUrl": "http://localhost:4000",
                "hasApiKey": True,
                "keyPrefix": "sk-lite...",
            },
            "availableModels": [{"id": "gpt-4", "name": "GPT-4"}],
        },
        "bedrock": {
            "providerId": "bedrock",
            "connectionStatus": "connected",
            "credentials": {"type": "no-such-kind"},
        },
        "not-a-provider": {"providerId": "not-a-provider"},
    },
}


# ---------------------------------------------------------------------------
# Settings loader
# ---------------------------------------------------------------------------


def test_parse_camel_case_settings() -> None:
    settings = parse_provider_settings(STORED_SETTINGS)
    assert settings.active_provider_id == ProviderId.OLLAMA
    assert settings.debug_mode is True
    assert set(settings.connected_providers) == {ProviderId.OLLAMA, ProviderId.LITELLM}

    litellm = settings.connected_providers[ProviderId.LITELLM]
    assert isinstance(litellm.credentials, LiteLLMCredentials)
    assert litellm.credentials.has_api_key is True
    assert litellm.available_models[0].id == "gpt-4"


def test_parse_snake_case_settings() -> None:
    settings = parse_provider_settings(
        {
            "active_provider_id": "openrouter",
            "connected_providers": {
                "openrouter": {
                    "provider_id": "openrouter",
                    "connection_status": "connected",
                    "credentials": {"type": "openrouter", "key_prefix": "sk-or-v1..."},
                },
            },
        },
    )
    provider = settings.connected_providers[ProviderId.OPENROUTER]
    assert isinstance(provider.credentials, OpenRouterCredentials)
    assert provider.connection_status == ConnectionStatus.CONNECTED


def test_load_settings_from_file(tmp_path) -> None:
    path = tmp_path / "provider-settings.json"
    path.write_text(json.dumps(STORED_SETTINGS), encoding="utf-8")
    settings = load_provider_settings(path)
    assert ProviderId.OLLAMA in settings.connected_providers


@pytest.mark.parametrize("content", [None, "{not json", "[1, 2, 3]", ""])
def test_load_settings_tolerates_missing_or_corrupt_file(tmp_path, content) -> None:
    path = tmp_path / "provider-settings.json"
    if content is not None:
        path.write_text(content, encoding="utf-8")
    settings = load_provider_settings(path)
    assert settings.connected_providers == {}
    assert settings.active_provider_id is None
    if content is None:
        assert not path.exists()


# ---------------------------------------------------------------------------
# Secret lookups
# ---------------------------------------------------------------------------


def test_env_secret_lookup_uses_registered_variable() -> None:
    lookup = EnvSecretLookup(
        environ={
            "OPENROUTER_API_KEY": "sk-or-123",
            "AZURE_FOUNDRY_TOKEN": "tok",
            "OPENAI_API_KEY": "",
        },
    )
    assert lookup("openrouter") == "sk-or-123"
    assert lookup(AZURE_FOUNDRY_TOKEN_KEY) == "tok"
    assert lookup("openai") is None
    assert lookup("ollama") is None
    assert lookup("nope") is None


def test_env_secret_lookup_reads_dotenv(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("MOONSHOT_API_KEY", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("MOONSHOT_API_KEY=sk-moon-from-file\n", encoding="utf-8")
    lookup = EnvSecretLookup(dotenv_path=env_file)
    assert lookup("moonshot") == "sk-moon-from-file"
    monkeypatch.delenv("MOONSHOT_API_KEY", raising=False)


def test_static_secret_lookup_accepts_enum_keys() -> None:
    lookup = StaticSecretLookup({ProviderId.LITELLM: "sk-lite"})
    assert lookup("litellm") == "sk-lite"
    assert lookup(ProviderId.LITELLM) == "sk-lite"
    assert lookup("openai") is None


# ---------------------------------------------------------------------------
# Connect / disconnect
# ---------------------------------------------------------------------------


def test_key_prefix_never_reveals_whole_key() -> None:
    assert key_prefix("sk-ant-api03-secret") == "sk-ant-a..."
    assert key_prefix("short") == "*****"
    assert key_prefix("") == ""


@pytest.mark.asyncio
async def test_connect_valid_key_builds_connected_record() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))
    attempt = await connect_api_key_provider(
        "openrouter",
        "sk-or-v1-abcdef123456",
        transport=transport,
    )
    assert attempt.result.valid is True
    provider = attempt.provider
    assert provider.connection_status == ConnectionStatus.CONNECTED
    assert isinstance(provider.credentials, OpenRouterCredentials)
    assert provider.credentials.key_prefix == "sk-or-v1..."
    assert "abcdef123456" not in provider.model_dump_json()


@pytest.mark.asyncio
async def test_connect_selects_first_known_model() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))
    attempt = await connect_api_key_provider("moonshot", "sk-moonshot-key", transport=transport)
    assert attempt.provider.selected_model_id == "moonshot/kimi-latest"
    assert attempt.provider.credentials.type == "api_key"


@pytest.mark.asyncio
async def test_connect_invalid_key_has_no_record() -> None:
    transport = httpx.MockTransport(
        lambda request: httpx.Response(401, json={"error": {"message": "bad key"}}),
    )
    attempt = await connect_api_key_provider("openai", "sk-bad", transport=transport)
    assert attempt.result.valid is False
    assert attempt.result.error == "bad key"
    assert attempt.provider is None


@pytest.mark.asyncio
async def test_connect_unknown_provider() -> None:
    attempt = await connect_api_key_provider("nope", "k")
    assert attempt.result.valid is False
    assert attempt.provider is None


def test_select_and_disconnect() -> None:
    provider = ConnectedProvider(
        provider_id=ProviderId.BEDROCK,
        connection_status=ConnectionStatus.CONNECTED,
        selected_model_id="anthropic.claude-3-5-sonnet",
        credentials=BedrockCredentials(
            auth_method="accessKeys",
            region="eu-west-1",
            access_key_id_prefix="AKIAABCD...",
        ),
    )
    reselected = select_model(provider, "anthropic.claude-3-haiku")
    assert reselected.selected_model_id == "anthropic.claude-3-haiku"
    assert provider.selected_model_id == "anthropic.claude-3-5-sonnet"

    gone = disconnect_provider(reselected)
    assert gone.connection_status == ConnectionStatus.DISCONNECTED
    assert gone.selected_model_id is None
    assert gone.credentials.access_key_id_prefix == SECRET_PLACEHOLDER
    assert gone.credentials.region == "eu-west-1"
    assert provider.connection_status == ConnectionStatus.CONNECTED
