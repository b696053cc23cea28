"""Chat-completion model backed by the OpenAI SDK (DeepSeek or OpenAI)."""

from __future__ import annotations

import openai

from .base import CompletionModel
from ..core.config import settings
from ..core.errors import UpstreamError


class OpenAIChatModel(CompletionModel):
    """DeepSeek exposes an OpenAI-compatible API, so one client serves both.

    Parameters
    ----------
    api_key: str | None
        Provider key. A missing key fails at call time, not construction,
        so the valuation route still answers with statistics only.
    model: str
        Chat model name, e.g. ``deepseek-chat``.
    base_url: str | None
        Provider endpoint; ``None`` means api.openai.com.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str,
        base_url: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 100,
        timeout: float = 30.0,
        provider: str = "deepseek",
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.provider = provider
        self._client: openai.AsyncOpenAI | None = None

    def _get_client(self) -> openai.AsyncOpenAI:
        if not self.api_key:
            raise UpstreamError(self.provider, "API key not configured")
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self.api_key, base_url=self.base_url, timeout=self.timeout
            )
        return self._client

    async def complete(self, prompt: str) -> str:
        client = self._get_client()
        try:
            completion = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.APIStatusError as exc:
            raise UpstreamError(self.provider, f"HTTP {exc.status_code}", exc.status_code) from exc
        except openai.OpenAIError as exc:
            raise UpstreamError(self.provider, str(exc) or type(exc).__name__) from exc

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise UpstreamError(self.provider, "empty completion")
        return content.strip()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


def deepseek_model() -> OpenAIChatModel:
    return OpenAIChatModel(
        settings.DEEPSEEK_API_KEY,
        settings.DEEPSEEK_MODEL,
        base_url=settings.DEEPSEEK_BASE_URL,
        temperature=settings.AI_TEMPERATURE,
        max_tokens=settings.AI_MAX_TOKENS,
        timeout=settings.AI_TIMEOUT_SECONDS,
        provider="deepseek",
    )


def openai_model() -> OpenAIChatModel:
    return OpenAIChatModel(
        settings.OPENAI_API_KEY,
        settings.OPENAI_MODEL,
        temperature=settings.AI_TEMPERATURE,
        max_tokens=settings.AI_MAX_TOKENS,
        timeout=settings.AI_TIMEOUT_SECONDS,
        provider="openai",
    )
