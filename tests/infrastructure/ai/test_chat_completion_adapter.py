"""Tests for the chat completion adapter."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
import pytest_asyncio

from lostfound_ai.domain.exceptions import ConfigurationAbsentError, ProviderTransientError
from lostfound_ai.infrastructure.ai.chat_completion_adapter import ChatCompletionAdapter, ChatCompletionConfig


def completion(content: str):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.test/chat/completions"))


@pytest_asyncio.fixture
async def adapter() -> ChatCompletionAdapter:
    """Adapter whose OpenAI client is replaced with a mock."""
    config = ChatCompletionConfig(
        api_key="test-key",
        model="primary-model",
        fallback_model="fallback-model",
        vision_model="vision-model",
    )
    chat_adapter = ChatCompletionAdapter(config=config)
    await chat_adapter.initialize()
    await chat_adapter._client.close()
    chat_adapter._client = MagicMock()
    chat_adapter._client.close = AsyncMock()
    chat_adapter._client.chat.completions.create = AsyncMock(return_value=completion('{"matches": []}'))
    yield chat_adapter
    await chat_adapter.shutdown()


@pytest.mark.asyncio
async def test_complete_json_requests_json_object(adapter):
    result = await adapter.complete_json("system", "user", temperature=0.3)

    assert result == '{"matches": []}'
    kwargs = adapter._client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "primary-model"
    assert kwargs["temperature"] == 0.3
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"][0] == {"role": "system", "content": "system"}


@pytest.mark.asyncio
async def test_falls_back_once(adapter):
    """The fallback model is tried after the primary fails."""
    create = adapter._client.chat.completions.create
    create.side_effect = [connection_error(), completion('{"ok": true}')]

    result = await adapter.complete_json("system", "user")

    assert result == '{"ok": true}'
    models = [call.kwargs["model"] for call in create.call_args_list]
    assert models == ["primary-model", "fallback-model"]


@pytest.mark.asyncio
async def test_raises_transient_after_fallback_fails(adapter):
    adapter._client.chat.completions.create.side_effect = connection_error()

    with pytest.raises(ProviderTransientError):
        await adapter.complete_json("system", "user")
    assert adapter._client.chat.completions.create.call_count == 2


@pytest.mark.asyncio
async def test_image_requests_use_vision_model(adapter):
    await adapter.complete_json("system", "look", image_url="https://img/1.jpg")

    kwargs = adapter._client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "vision-model"
    parts = kwargs["messages"][1]["content"]
    assert parts[1] == {"type": "image_url", "image_url": {"url": "https://img/1.jpg"}}


@pytest.mark.asyncio
async def test_complete_text_strips(adapter):
    adapter._client.chat.completions.create.return_value = completion("  Keys.\n")

    assert await adapter.complete_text("system", "user") == "Keys."
    assert "response_format" not in adapter._client.chat.completions.create.call_args.kwargs


@pytest.mark.asyncio
async def test_initialize_without_key():
    chat_adapter = ChatCompletionAdapter(config=ChatCompletionConfig(api_key=""))

    with pytest.raises(ConfigurationAbsentError):
        await chat_adapter.initialize()
    assert not chat_adapter.is_available


def test_config_from_env(monkeypatch):
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.setenv("GROQ_API_KEY", "groq-key")
    monkeypatch.setenv("LLM_MODEL", "custom-model")
    monkeypatch.setenv("LLM_FALLBACK_MODEL", "")

    config = ChatCompletionConfig.from_env()

    assert config.api_key == "groq-key"
    assert config.model == "custom-model"
    assert config.fallback_model is None
