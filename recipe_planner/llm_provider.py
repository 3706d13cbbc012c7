"""
LLM Provider Abstraction.

The recipe generator only needs "system prompt + one user message in, text
out". Providers:
- AnthropicProvider: Claude through the async Messages API
- NullLLMProvider: offline stand-in when no API key is configured
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Any, Dict
import os
import logging

logger = logging.getLogger(__name__)


class LLMProviderError(Exception):
    """SDK or network failure while asking the model."""
    pass


@dataclass
class TextBlock:
    text: str
    type: str = "text"


@dataclass
class TextResponse:
    """Messages API shaped answer built locally (offline provider, tests)."""
    content: List[TextBlock] = field(default_factory=list)
    stop_reason: str = "end_turn"
    model: str = "offline"

    @classmethod
    def of(cls, text: str, model: str = "offline") -> "TextResponse":
        return cls(content=[TextBlock(text=text)], model=model)


def response_text(response: Any) -> str:
    """Join the text blocks of a Messages API response, skipping other block types."""
    return "".join(
        block.text for block in response.content
        if getattr(block, "type", "text") == "text" and hasattr(block, "text")
    )


class LLMProvider(ABC):
    """Async chat-completion backend."""

    @abstractmethod
    async def create_message(
        self,
        model: str,
        max_tokens: int,
        messages: List[Dict[str, Any]],
        system: Optional[str] = None,
        **kwargs
    ) -> Any:
        """
        Send one Messages API request.

        Raises:
            LLMProviderError: the backend failed
        """
        pass

    @property
    @abstractmethod
    def is_null(self) -> bool:
        """True when no real model answers."""
        pass


class AnthropicProvider(LLMProvider):
    """Claude via anthropic.AsyncAnthropic."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: int = 2,
    ):
        """
        Args:
            api_key: Key (falls back to ANTHROPIC_API_KEY)
            timeout: Per-request timeout of the SDK client, in seconds
            max_retries: SDK retries on connection errors and 429/5xx
        """
        from anthropic import AsyncAnthropic

        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY required for AnthropicProvider")

        client_args: Dict[str, Any] = {"api_key": self.api_key, "max_retries": max_retries}
        if timeout:
            client_args["timeout"] = timeout
        self.client = AsyncAnthropic(**client_args)

    async def create_message(
        self,
        model: str,
        max_tokens: int,
        messages: List[Dict[str, Any]],
        system: Optional[str] = None,
        **kwargs
    ) -> Any:
        import anthropic

        request = dict(model=model, max_tokens=max_tokens, messages=messages, **kwargs)
        if system:
            request["system"] = system

        try:
            return await self.client.messages.create(**request)
        except anthropic.APIError as e:
            logger.error(f"Anthropic API call failed ({type(e).__name__}): {e}")
            raise LLMProviderError(str(e)) from e

    @property
    def is_null(self) -> bool:
        return False


class NullLLMProvider(LLMProvider):
    """
    Offline provider: answers every request with empty text.

    The app stays usable without a key. Preference extraction falls back to
    keyword analysis and recipe generation reports that no model is
    configured. Calls are counted so tests can assert nothing reached it.
    """

    def __init__(self):
        self.call_count = 0
        logger.info("No language model configured, recipe generation is unavailable")

    async def create_message(
        self,
        model: str,
        max_tokens: int,
        messages: List[Dict[str, Any]],
        system: Optional[str] = None,
        **kwargs
    ) -> TextResponse:
        self.call_count += 1
        logger.debug(f"Offline LLM call #{self.call_count} ({len(messages)} message(s))")
        return TextResponse.of("")

    @property
    def is_null(self) -> bool:
        return True


def get_llm_provider(
    api_key: Optional[str] = None,
    use_null: bool = False,
    timeout: Optional[float] = None,
) -> LLMProvider:
    """
    Pick the provider for this process.

    Args:
        api_key: Explicit key; ANTHROPIC_API_KEY is used when missing
        use_null: Run offline even if a key is available
        timeout: SDK request timeout in seconds

    Returns:
        AnthropicProvider, or NullLLMProvider when offline or keyless
    """
    if use_null:
        return NullLLMProvider()

    api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        logger.warning("ANTHROPIC_API_KEY is not set, running without a language model")
        return NullLLMProvider()

    return AnthropicProvider(api_key=api_key, timeout=timeout)
