"""
Tests for completion backends

Author: Logent contributors | 2026-10-16
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import httpx
import openai
import pytest

from logent_core.config import LogentConfig
from logent_core.exceptions import ConfigurationError, TransportError
from logent_core.llm_backends import (
    OpenAICompletionBackend,
    create_completion_backend,
    get_delta_content,
    get_message_content,
    to_stream_chunk,
)
from logent_core.threads import Message, Role

MESSAGES = [Message(Role.SYSTEM, "sys"), Message(Role.USER, "hi")]


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _delta(content, finish=None):
    return SimpleNamespace(
        choices=[SimpleNamespace(delta=SimpleNamespace(content=content), finish_reason=finish)]
    )


class _AsyncChunks:
    def __init__(self, items):
        self._items = list(items)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._items:
            raise StopAsyncIteration
        item = self._items.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _client(create):
    client = Mock()
    client.chat.completions.create = create
    return client


def _connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "http://localhost/v1/chat/completions"))


class TestResponseParsing:
    """Tests for reading SDK payloads."""

    def test_message_content(self):
        """Test the reply text of a completion."""
        assert get_message_content(_completion("Four.")) == "Four."

    def test_missing_content(self):
        """Test absent content reads as empty."""
        assert get_message_content(_completion(None)) == ""
        assert get_message_content(SimpleNamespace(choices=[])) == ""

    def test_dict_payloads(self):
        """Test plain dict chunks are understood."""
        payload = {"choices": [{"delta": {"content": "x"}, "finish_reason": None}]}
        assert get_delta_content(payload) == "x"
        assert to_stream_chunk(payload).text == "x"

    def test_chunk_without_choices_is_malformed(self):
        """Test chunks with no choices are flagged."""
        assert to_stream_chunk(SimpleNamespace(choices=[])).malformed

    def test_finish_reason(self):
        """Test the finish marker is carried over."""
        result = to_stream_chunk(_delta(None, finish="stop"))
        assert result.text == ""
        assert result.finish_reason == "stop"
        assert not result.malformed


class TestOpenAICompletionBackend:
    """Tests for the openai SDK backend."""

    @pytest.mark.asyncio
    async def test_create(self):
        """Test messages are sent in wire format."""
        create = AsyncMock(return_value=_completion("Four."))
        backend = OpenAICompletionBackend(api_key="k", client=_client(create))

        reply = await backend.create(MESSAGES, "gpt-4")

        assert reply == "Four."
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4"
        assert kwargs["stream"] is False
        assert kwargs["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
        ]

    @pytest.mark.asyncio
    async def test_create_wraps_sdk_errors(self):
        """Test SDK failures surface as TransportError."""
        create = AsyncMock(side_effect=_connection_error())
        backend = OpenAICompletionBackend(api_key="k", client=_client(create))

        with pytest.raises(TransportError) as exc:
            await backend.create(MESSAGES, "gpt-4")
        assert isinstance(exc.value.cause, openai.OpenAIError)

    @pytest.mark.asyncio
    async def test_stream(self):
        """Test streamed chunks are normalized."""
        create = AsyncMock(return_value=_AsyncChunks([_delta("He"), _delta("y", finish="stop")]))
        backend = OpenAICompletionBackend(api_key="k", client=_client(create))

        chunks = [c async for c in backend.stream(MESSAGES, "gpt-4")]

        assert [c.text for c in chunks] == ["He", "y"]
        assert chunks[-1].finish_reason == "stop"
        assert create.call_args.kwargs["stream"] is True

    @pytest.mark.asyncio
    async def test_stream_wraps_sdk_errors(self):
        """Test a failure mid-stream surfaces as TransportError."""
        create = AsyncMock(return_value=_AsyncChunks([_delta("He"), _connection_error()]))
        backend = OpenAICompletionBackend(api_key="k", client=_client(create))

        received = []
        with pytest.raises(TransportError):
            async for c in backend.stream(MESSAGES, "gpt-4"):
                received.append(c.text)
        assert received == ["He"]


class TestCreateCompletionBackend:
    """Tests for the backend factory."""

    def test_missing_api_key(self):
        """Test a missing key is a configuration error."""
        config = LogentConfig()
        config.llm.api_key = None
        with pytest.raises(ConfigurationError):
            create_completion_backend(config)

    def test_missing_base_url(self):
        """Test a missing URL is a configuration error."""
        config = LogentConfig()
        config.llm.api_key = "k"
        config.llm.base_url = ""
        with pytest.raises(ConfigurationError):
            create_completion_backend(config)

    def test_builds_openai_backend(self):
        """Test a complete config yields the openai backend."""
        config = LogentConfig()
        config.llm.api_key = "k"
        config.llm.base_url = "http://localhost:8000/v1"

        backend = create_completion_backend(config)

        assert isinstance(backend, OpenAICompletionBackend)
        assert backend.base_url == "http://localhost:8000/v1"
