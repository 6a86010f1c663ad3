# =============================================================================
# Unit Tests — LLM Providers
# =============================================================================
#
# SDK clients are patched out; no API keys or network calls are needed.
#
# Test groups:
#   1. OpenAICompatibleProvider (message layout, completion, streaming)
#   2. AnthropicProvider (system kwarg, completion, streaming)
#   3. get_llm_provider factory
# =============================================================================

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from lawchat.services.llm import (
    AnthropicProvider,
    OpenAICompatibleProvider,
    get_llm_provider,
)

MESSAGES = [
    {"role": "user", "content": "Vad säger 1 kap. 1 §?"},
    {"role": "assistant", "content": "Den anger lagens tillämpningsområde."},
    {"role": "user", "content": "Och 1 kap. 2 §?"},
]


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


async def _collect(stream):
    return [item async for item in stream]


# ---------------------------------------------------------------------------
# 1. OpenAI-compatible
# ---------------------------------------------------------------------------


def _openai_chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


async def _openai_stream():
    yield _openai_chunk("Hej")
    yield SimpleNamespace(choices=[])  # usage-only chunk
    yield _openai_chunk(None)
    yield _openai_chunk(" världen")


class TestOpenAICompatibleProvider:
    """Tests for the OpenAI-compatible provider."""

    def _provider(self) -> tuple[OpenAICompatibleProvider, MagicMock]:
        with patch("openai.AsyncOpenAI") as mock_cls:
            provider = OpenAICompatibleProvider(
                api_key="sk-test", model="gpt-4o-mini", base_url="https://llm.example/v1",
            )
        mock_cls.assert_called_once_with(api_key="sk-test", base_url="https://llm.example/v1")
        return provider, mock_cls.return_value

    def test_system_prompt_is_first_message(self):
        provider, client = self._provider()
        client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Svar"))],
            model="gpt-4o-mini-2024",
            usage=SimpleNamespace(prompt_tokens=12, completion_tokens=3),
        ))

        response = _run(provider.complete(MESSAGES, system="SYS", temperature=0.0))

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"][0] == {"role": "system", "content": "SYS"}
        assert kwargs["messages"][1:] == MESSAGES
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.0
        assert response.content == "Svar"
        assert response.model == "gpt-4o-mini-2024"
        assert response.input_tokens == 12
        assert response.output_tokens == 3

    def test_missing_usage_reports_zero_tokens(self):
        provider, client = self._provider()
        client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=None))],
            model=None,
            usage=None,
        ))

        response = _run(provider.complete(MESSAGES))

        assert response.content == ""
        assert response.model == "gpt-4o-mini"
        assert response.input_tokens == 0

    def test_stream_yields_non_empty_deltas(self):
        provider, client = self._provider()
        client.chat.completions.create = AsyncMock(return_value=_openai_stream())

        deltas = _run(_collect(provider.stream(MESSAGES, system="SYS")))

        assert deltas == ["Hej", " världen"]
        assert client.chat.completions.create.call_args.kwargs["stream"] is True

    def test_missing_key_raises(self):
        with patch("lawchat.services.llm.settings") as mock_settings:
            mock_settings.llm_api_key = ""
            mock_settings.openai_api_key = ""
            with pytest.raises(ValueError, match="No API key"):
                OpenAICompatibleProvider()


# ---------------------------------------------------------------------------
# 2. Anthropic
# ---------------------------------------------------------------------------


class FakeAnthropicStream:
    """Async context manager mimicking client.messages.stream(...)."""

    def __init__(self, texts):
        self._texts = texts

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    @property
    def text_stream(self):
        async def _gen():
            for text in self._texts:
                yield text
        return _gen()


class TestAnthropicProvider:
    """Tests for the Anthropic provider."""

    def _provider(self) -> tuple[AnthropicProvider, MagicMock]:
        with patch("anthropic.AsyncAnthropic") as mock_cls:
            provider = AnthropicProvider(api_key="sk-ant-test", model="claude-test")
        return provider, mock_cls.return_value

    def test_system_prompt_is_top_level_kwarg(self):
        provider, client = self._provider()
        client.messages.create = AsyncMock(return_value=SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Del 1. "),
                SimpleNamespace(type="tool_use", text=None),
                SimpleNamespace(type="text", text="Del 2."),
            ],
            model="claude-test",
            usage=SimpleNamespace(input_tokens=20, output_tokens=5),
        ))

        response = _run(provider.complete(MESSAGES, system="SYS", max_tokens=100))

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "SYS"
        assert kwargs["messages"] == MESSAGES
        assert kwargs["max_tokens"] == 100
        assert response.content == "Del 1. Del 2."
        assert response.output_tokens == 5

    def test_stream_yields_text(self):
        provider, client = self._provider()
        client.messages.stream = MagicMock(return_value=FakeAnthropicStream(["A", "B"]))

        deltas = _run(_collect(provider.stream(MESSAGES)))

        assert deltas == ["A", "B"]
        assert "system" not in client.messages.stream.call_args.kwargs


# ---------------------------------------------------------------------------
# 3. Factory
# ---------------------------------------------------------------------------


class TestGetLlmProvider:
    """Tests for the singleton factory."""

    def test_unknown_provider_raises(self):
        with (
            patch("lawchat.services.llm._provider", None),
            patch("lawchat.services.llm.settings") as mock_settings,
        ):
            mock_settings.llm_provider = "ollama"
            with pytest.raises(ValueError, match="Unknown LLM provider"):
                get_llm_provider()

    def test_anthropic_selected(self):
        with (
            patch("lawchat.services.llm._provider", None),
            patch("lawchat.services.llm.settings") as mock_settings,
            patch("lawchat.services.llm.AnthropicProvider") as mock_cls,
        ):
            mock_settings.llm_provider = "anthropic"
            first = get_llm_provider()
            second = get_llm_provider()

        assert first is second is mock_cls.return_value
        mock_cls.assert_called_once_with()
