"""LLM provider interface and the OpenAI implementation."""

from abc import ABC, abstractmethod
from typing import Any

from openai import AsyncOpenAI
from pydantic import BaseModel

from app.core import config


class LLMResponse(BaseModel):
    content: str
    model: str
    tokens_used: int


class ChatTurn(BaseModel):
    """One earlier message of a conversation."""
    role: str
    content: str


class LLMProviderBase(ABC):
    """Abstract base for all LLM providers."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        max_tokens: int = 1500,
        history: list[ChatTurn] | None = None,
    ) -> LLMResponse:
        """Generate a text response from the LLM."""

    async def close(self) -> None:
        """Release network resources held by the provider."""


class OpenAIProvider(LLMProviderBase):
    """OpenAI chat completions provider."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", temperature: float = 0.7) -> None:
        self._client = AsyncOpenAI(api_key=api_key)
        self._model = model
        self._temperature = temperature

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        max_tokens: int = 1500,
        history: list[ChatTurn] | None = None,
    ) -> LLMResponse:
        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        for turn in history or []:
            messages.append({"role": turn.role, "content": turn.content})
        messages.append({"role": "user", "content": prompt})

        response = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=self._temperature,
        )
        choice = response.choices[0] if response.choices else None
        usage = response.usage
        return LLMResponse(
            content=(choice.message.content if choice else None) or "",
            model=response.model,
            tokens_used=(usage.prompt_tokens + usage.completion_tokens) if usage else 0,
        )

    async def close(self) -> None:
        await self._client.close()


# One client (and its connection pool) per key and model, shared by requests
_providers: dict[tuple[str, str], OpenAIProvider] = {}


def get_llm_provider() -> LLMProviderBase | None:
    """FastAPI dependency; None when no API key is configured."""
    if not config.OPENAI_API_KEY:
        return None
    key = (config.OPENAI_API_KEY, config.OPENAI_MODEL)
    if key not in _providers:
        _providers[key] = OpenAIProvider(api_key=config.OPENAI_API_KEY, model=config.OPENAI_MODEL)
    return _providers[key]


async def close_llm_providers() -> None:
    """Close every shared provider; called on application shutdown."""
    providers = list(_providers.values())
    _providers.clear()
    for provider in providers:
        await provider.close()
