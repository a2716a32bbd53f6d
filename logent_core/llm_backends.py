"""
LLM Backend Abstraction for Logent
==================================

Logent talks to any OpenAI-compatible chat completion endpoint (OpenAI,
vLLM, Ollama's /v1, LM Studio, ...). A backend offers two calls:

1. create()  - one request, one complete reply
2. stream()  - one request, reply delivered as StreamChunk fragments

Transport failures from the SDK are re-raised as TransportError so callers
never depend on the SDK's exception hierarchy.

Example:
    backend = create_completion_backend(get_config())
    text = await backend.create(messages, "gpt-4-turbo")
    async for chunk in backend.stream(messages, "gpt-4-turbo"):
        print(chunk.text, end="")

Author: Logent contributors | 2026-10-16
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, List, Optional

import openai

from .config import LogentConfig
from .exceptions import ConfigurationError, TransportError
from .logging_utils import mask_secrets
from .threads import Message, messages_to_dicts

logger = logging.getLogger(__name__)


@dataclass
class StreamChunk:
    """One fragment of a streamed reply."""
    text: str = ""
    finish_reason: Optional[str] = None
    malformed: bool = False  # Payload could not be read; text is empty


# =============================================================================
# Response parsing
# =============================================================================

def _first_choice(payload: Any) -> Any:
    choices = getattr(payload, "choices", None)
    if choices is None and isinstance(payload, dict):
        choices = payload.get("choices")
    if not choices:
        return None
    return choices[0]


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def get_message_content(response: Any) -> str:
    """Extract the reply text of a non-streamed completion ('' if absent)."""
    return _field(_field(_first_choice(response), "message"), "content") or ""


def get_delta_content(chunk: Any) -> str:
    """Extract the text fragment of a streamed chunk ('' if absent)."""
    return _field(_field(_first_choice(chunk), "delta"), "content") or ""


def to_stream_chunk(chunk: Any) -> StreamChunk:
    """Normalize an SDK chunk; chunks without choices are flagged malformed."""
    choice = _first_choice(chunk)
    if choice is None:
        return StreamChunk(malformed=True)
    return StreamChunk(
        text=get_delta_content(chunk),
        finish_reason=_field(choice, "finish_reason"),
    )


# =============================================================================
# Backends
# =============================================================================

class CompletionBackend(ABC):
    """Remote chat completion service."""

    @abstractmethod
    async def create(self, messages: List[Message], model: str) -> str:
        """Send messages and return the complete reply text."""
        pass

    @abstractmethod
    def stream(self, messages: List[Message], model: str) -> AsyncIterator[StreamChunk]:
        """Send messages and yield the reply as it arrives."""
        pass


class OpenAICompletionBackend(CompletionBackend):
    """
    Chat completions over the official openai SDK.

    Works against any server implementing /v1/chat/completions; point
    base_url at it.
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: float = 120,
        client: Optional[Any] = None,
    ):
        """
        Initialize OpenAI-compatible backend.

        Args:
            api_key: Bearer credential
            base_url: API root (None uses the SDK default)
            timeout: Request timeout in seconds
            client: Pre-built AsyncOpenAI client (tests)
        """
        self.base_url = base_url
        self._client = client or openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
        )
        logger.info(f"Initialized OpenAICompletionBackend at {base_url or 'default endpoint'}")

    async def create(self, messages: List[Message], model: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=messages_to_dicts(messages),
                stream=False,
            )
        except openai.OpenAIError as e:
            raise TransportError(f"Chat completion failed: {mask_secrets(str(e))}", e) from e
        return get_message_content(response)

    async def stream(self, messages: List[Message], model: str) -> AsyncIterator[StreamChunk]:
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=messages_to_dicts(messages),
                stream=True,
            )
            async for chunk in response:
                yield to_stream_chunk(chunk)
        except openai.OpenAIError as e:
            raise TransportError(f"Chat completion stream failed: {mask_secrets(str(e))}", e) from e


# =============================================================================
# Factory Function
# =============================================================================

def create_completion_backend(config: LogentConfig) -> CompletionBackend:
    """
    Create the completion backend described by config.

    Raises:
        ConfigurationError: base URL or API key missing; raised before any
            network traffic.
    """
    llm = config.llm
    if not llm.base_url:
        raise ConfigurationError(
            "No API URL configured. Set llm.base_url in logent.yaml or LOGENT_BASE_URL."
        )
    if not llm.api_key:
        raise ConfigurationError(
            "No API key configured. Set LOGENT_API_KEY (or OPENAI_API_KEY)."
        )
    return OpenAICompletionBackend(
        api_key=llm.api_key,
        base_url=llm.base_url,
        timeout=llm.timeout,
    )
