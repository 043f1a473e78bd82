"""Unit tests for the OpenAI provider in app/features/ai/provider.py."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.features.ai.provider import (
    ChatTurn,
    LLMProviderBase,
    LLMResponse,
    OpenAIProvider,
    close_llm_providers,
    get_llm_provider,
)


def _make_mock_completion(content: str = "Fill the Friday gap with Ana", model: str = "gpt-4o-mini") -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    usage = MagicMock()
    usage.prompt_tokens = 120
    usage.completion_tokens = 30

    completion = MagicMock()
    completion.choices = [choice]
    completion.usage = usage
    completion.model = model
    return completion


@pytest.mark.unit
class TestOpenAIProvider:
    def test_base_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            LLMProviderBase()  # type: ignore[abstract]

    async def test_generate_returns_llm_response(self) -> None:
        with patch("app.features.ai.provider.AsyncOpenAI") as mock_openai:
            mock_client = MagicMock()
            mock_client.chat.completions.create = AsyncMock(return_value=_make_mock_completion())
            mock_openai.return_value = mock_client

            provider = OpenAIProvider(api_key="test-key")
            result = await provider.generate("Who works Friday?", system="You schedule shifts")

        assert isinstance(result, LLMResponse)
        assert result.content == "Fill the Friday gap with Ana"
        assert result.tokens_used == 150

    async def test_generate_sends_system_and_user_messages(self) -> None:
        with patch("app.features.ai.provider.AsyncOpenAI") as mock_openai:
            mock_client = MagicMock()
            mock_client.chat.completions.create = AsyncMock(return_value=_make_mock_completion())
            mock_openai.return_value = mock_client

            provider = OpenAIProvider(api_key="test-key", model="gpt-4o-mini")
            await provider.generate("prompt", system="system", max_tokens=1500)

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 1500
        assert kwargs["temperature"] == 0.7
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "prompt"},
        ]

    async def test_empty_choices_give_empty_content(self) -> None:
        completion = _make_mock_completion()
        completion.choices = []
        completion.usage = None
        with patch("app.features.ai.provider.AsyncOpenAI") as mock_openai:
            mock_client = MagicMock()
            mock_client.chat.completions.create = AsyncMock(return_value=completion)
            mock_openai.return_value = mock_client

            result = await OpenAIProvider(api_key="test-key").generate("prompt")

        assert result.content == ""
        assert result.tokens_used == 0

    def test_no_api_key_means_no_provider(self) -> None:
        with patch("app.features.ai.provider.config") as mock_config:
            mock_config.OPENAI_API_KEY = None
            assert get_llm_provider() is None

    async def test_history_goes_between_system_and_prompt(self) -> None:
        with patch("app.features.ai.provider.AsyncOpenAI") as mock_openai:
            mock_client = MagicMock()
            mock_client.chat.completions.create = AsyncMock(return_value=_make_mock_completion())
            mock_openai.return_value = mock_client

            await OpenAIProvider(api_key="test-key").generate(
                "And on Saturday?",
                system="system",
                history=[
                    ChatTurn(role="user", content="Who works Friday?"),
                    ChatTurn(role="assistant", content="Ana and Ben."),
                ],
            )

        assert mock_client.chat.completions.create.call_args.kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "Who works Friday?"},
            {"role": "assistant", "content": "Ana and Ben."},
            {"role": "user", "content": "And on Saturday?"},
        ]


@pytest.mark.unit
class TestSharedProvider:
    async def test_one_client_per_key_and_model(self) -> None:
        with patch("app.features.ai.provider.AsyncOpenAI") as mock_openai, \
                patch("app.features.ai.provider.config") as mock_config:
            mock_openai.return_value.close = AsyncMock()
            mock_config.OPENAI_API_KEY = "test-key"
            mock_config.OPENAI_MODEL = "gpt-4o-mini"

            first = get_llm_provider()
            second = get_llm_provider()
            await close_llm_providers()

        assert first is second
        assert mock_openai.call_count == 1
        mock_openai.return_value.close.assert_awaited_once()

    async def test_new_client_after_shutdown(self) -> None:
        with patch("app.features.ai.provider.AsyncOpenAI") as mock_openai, \
                patch("app.features.ai.provider.config") as mock_config:
            mock_openai.return_value.close = AsyncMock()
            mock_config.OPENAI_API_KEY = "test-key"
            mock_config.OPENAI_MODEL = "gpt-4o-mini"

            before = get_llm_provider()
            await close_llm_providers()
            after = get_llm_provider()
            await close_llm_providers()

        assert before is not after
