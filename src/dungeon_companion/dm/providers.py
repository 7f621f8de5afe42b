"""Narrator providers.

A narrator is anything that takes a system prompt and an ordered list of
``user``/``assistant`` messages and returns text, either complete or as an
async stream of fragments. Two variants exist, one per LLM vendor, and
``create_provider`` picks one from settings.

SDK errors are translated into NarratorError subclasses here so the
orchestrator only ever handles one exception family. Non-streaming calls
retry transient failures with tenacity; streams are not restartable and
are never retried.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from typing import Any, Literal, Protocol, runtime_checkable

import anthropic
import openai
from pydantic import BaseModel, ConfigDict
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from dungeon_companion.core.config import NarratorSettings, ProviderType
from dungeon_companion.core.exceptions import (
    ConfigurationError,
    NarratorConnectionError,
    NarratorError,
    NarratorNotConfiguredError,
    NarratorResponseError,
)
from dungeon_companion.core.logging import get_logger


logger = get_logger(__name__)

_RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504, 529})


class ConversationMessage(BaseModel):
    """One role-tagged message of the narrator conversation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    role: Literal["user", "assistant"]
    content: str


@runtime_checkable
class NarratorProvider(Protocol):
    """Capability interface shared by all narrator variants."""

    name: str

    def is_configured(self) -> bool:
        """Whether a credential is present."""
        ...

    async def send_message(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
        *,
        max_tokens: int | None = None,
    ) -> str:
        """Return the complete response text."""
        ...

    def stream_message(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
        *,
        max_tokens: int | None = None,
    ) -> AsyncIterator[str]:
        """Yield response fragments that concatenate to the full text."""
        ...


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, NarratorConnectionError):
        return True
    return (
        isinstance(exc, NarratorResponseError)
        and exc.details.get("status_code") in _RETRYABLE_STATUS_CODES
    )


class _BaseProvider(ABC):
    """Shared configuration, retry and error translation."""

    name = "narrator"

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        max_tokens: int = 2048,
        max_retries: int = 2,
        timeout: float = 90.0,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.max_retries = max_retries
        self.timeout = timeout
        self._client: Any = None

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _ensure_configured(self) -> None:
        if not self.is_configured():
            raise NarratorNotConfiguredError(
                f"{self.name} API key is not configured",
                provider=self.name,
            )

    async def send_message(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
        *,
        max_tokens: int | None = None,
    ) -> str:
        """Send a conversation and return the complete reply.

        Args:
            messages: Conversation so far.
            system_prompt: System prompt for this call.
            max_tokens: Overrides the configured token budget.

        Returns:
            The response text.

        Raises:
            NarratorNotConfiguredError: If no API key is set.
            NarratorConnectionError: If the service stays unreachable after retries.
            NarratorResponseError: If the service answers with an error status.
        """
        self._ensure_configured()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        ):
            with attempt:
                return await self._send_once(messages, system_prompt, max_tokens or self.max_tokens)
        raise NarratorError("Narrator returned no response", provider=self.name)

    async def stream_message(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
        *,
        max_tokens: int | None = None,
    ) -> AsyncIterator[str]:
        """Stream a reply fragment by fragment.

        Raises:
            NarratorNotConfiguredError: If no API key is set.
            NarratorConnectionError: If the service cannot be reached.
            NarratorResponseError: If the service answers with an error status.
        """
        self._ensure_configured()
        async for fragment in self._stream(messages, system_prompt, max_tokens or self.max_tokens):
            yield fragment

    @abstractmethod
    async def _send_once(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
        max_tokens: int,
    ) -> str:
        """Make one request without retries."""
        raise NotImplementedError("Subclasses must implement _send_once")

    @abstractmethod
    def _stream(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
        max_tokens: int,
    ) -> AsyncIterator[str]:
        """Stream one reply from the vendor SDK."""
        raise NotImplementedError("Subclasses must implement _stream")


class OpenAIProvider(_BaseProvider):
    """Narrator backed by the OpenAI chat completions API."""

    name = "openai"

    def _get_client(self) -> openai.AsyncOpenAI:
        """Get or create the async OpenAI client."""
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self._api_key,
                timeout=self.timeout,
                max_retries=0,
            )
            logger.debug("OpenAI client created", model=self.model)
        return self._client

    @staticmethod
    def _build_messages(
        messages: Sequence[ConversationMessage],
        system_prompt: str,
    ) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt},
            *({"role": m.role, "content": m.content} for m in messages),
        ]

    def _translate(self, exc: openai.OpenAIError) -> NarratorError:
        if isinstance(exc, openai.APIConnectionError):
            return NarratorConnectionError(
                f"Failed to connect to OpenAI: {exc}", provider=self.name, model=self.model
            )
        if isinstance(exc, openai.APIStatusError):
            return NarratorResponseError(
                f"OpenAI API error: {exc.status_code} - {exc.message}",
                status_code=exc.status_code,
                provider=self.name,
                model=self.model,
            )
        return NarratorError(f"OpenAI request failed: {exc}", provider=self.name, model=self.model)

    async def _send_once(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
        max_tokens: int,
    ) -> str:
        try:
            response = await self._get_client().chat.completions.create(
                model=self.model,
                messages=self._build_messages(messages, system_prompt),
                max_completion_tokens=max_tokens,
            )
        except openai.OpenAIError as exc:
            raise self._translate(exc) from exc

        if not response.choices:
            raise NarratorResponseError(
                "OpenAI returned no choices", provider=self.name, model=self.model
            )
        return response.choices[0].message.content or ""

    async def _stream(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
        max_tokens: int,
    ) -> AsyncIterator[str]:
        try:
            stream = await self._get_client().chat.completions.create(
                model=self.model,
                messages=self._build_messages(messages, system_prompt),
                max_completion_tokens=max_tokens,
                stream=True,
            )
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        except openai.OpenAIError as exc:
            raise self._translate(exc) from exc


class ClaudeProvider(_BaseProvider):
    """Narrator backed by the Anthropic messages API."""

    name = "claude"

    def _get_client(self) -> anthropic.AsyncAnthropic:
        """Get or create the async Anthropic client."""
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self._api_key,
                timeout=self.timeout,
                max_retries=0,
            )
            logger.debug("Anthropic client created", model=self.model)
        return self._client

    @staticmethod
    def _build_messages(messages: Sequence[ConversationMessage]) -> list[dict[str, str]]:
        return [{"role": m.role, "content": m.content} for m in messages]

    def _translate(self, exc: anthropic.AnthropicError) -> NarratorError:
        if isinstance(exc, anthropic.APIConnectionError):
            return NarratorConnectionError(
                f"Failed to connect to Claude: {exc}", provider=self.name, model=self.model
            )
        if isinstance(exc, anthropic.APIStatusError):
            return NarratorResponseError(
                f"Claude API error: {exc.status_code} - {exc.message}",
                status_code=exc.status_code,
                provider=self.name,
                model=self.model,
            )
        return NarratorError(f"Claude request failed: {exc}", provider=self.name, model=self.model)

    async def _send_once(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
        max_tokens: int,
    ) -> str:
        try:
            response = await self._get_client().messages.create(
                model=self.model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=self._build_messages(messages),
            )
        except anthropic.AnthropicError as exc:
            raise self._translate(exc) from exc

        return "".join(block.text for block in response.content if block.type == "text")

    async def _stream(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
        max_tokens: int,
    ) -> AsyncIterator[str]:
        try:
            async with self._get_client().messages.stream(
                model=self.model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=self._build_messages(messages),
            ) as stream:
                async for text in stream.text_stream:
                    yield text
        except anthropic.AnthropicError as exc:
            raise self._translate(exc) from exc


def create_provider(
    settings: NarratorSettings,
    provider: ProviderType | None = None,
) -> NarratorProvider:
    """Construct the narrator variant selected by settings.

    Args:
        settings: Narrator settings.
        provider: Overrides ``settings.provider``.

    Returns:
        An OpenAIProvider or ClaudeProvider. The provider may be
        unconfigured; callers check ``is_configured()`` before use.

    Raises:
        ConfigurationError: If the provider tag is unknown.
    """
    tag = provider or settings.provider
    options: dict[str, Any] = {
        "max_tokens": settings.max_tokens,
        "max_retries": settings.max_retries,
        "timeout": settings.timeout_seconds,
    }
    if tag == "claude":
        return ClaudeProvider(settings.api_key_for("claude"), settings.claude_model, **options)
    if tag == "openai":
        return OpenAIProvider(settings.api_key_for("openai"), settings.openai_model, **options)
    raise ConfigurationError(f"Unknown narrator provider: {tag!r}", config_key="provider")


__all__ = [
    "ConversationMessage",
    "NarratorProvider",
    "OpenAIProvider",
    "ClaudeProvider",
    "create_provider",
]
