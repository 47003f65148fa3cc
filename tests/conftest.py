# tests/conftest.py
"""
Shared fixtures and payload builders for the genai-bridge test suite.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from genai_bridge.config import BridgeConfig
from genai_bridge.streaming import ToolCallAccumulator

# ---------------------------------------------------------------------------
# Flat-protocol payload builders
# ---------------------------------------------------------------------------


def text_chunk(content, finish_reason=None):
    """Streaming chunk carrying a content delta."""
    choice = {"index": 0, "delta": {"role": "assistant", "content": content}}
    if finish_reason:
        choice["finish_reason"] = finish_reason
    return {"choices": [choice]}


def tool_chunk(*fragments, finish_reason=None):
    """Streaming chunk carrying tool-call fragments."""
    choice = {
        "index": 0,
        "delta": {"role": "assistant", "content": "", "tool_calls": list(fragments)},
    }
    if finish_reason:
        choice["finish_reason"] = finish_reason
    return {"choices": [choice]}


def finish_chunk(reason="tool_calls"):
    """Terminal chunk with an empty delta."""
    return {"choices": [{"index": 0, "finish_reason": reason, "delta": {"role": "assistant", "content": ""}}]}


def fragment(index, id=None, name=None, arguments=None, type=None):
    """One tool-call delta fragment; only given fields are set."""
    frag = {"index": index}
    if id is not None:
        frag["id"] = id
    if type is not None:
        frag["type"] = type
    function = {}
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    if function:
        frag["function"] = function
    return frag


def completion(content=None, tool_calls=None, usage=None, finish_reason="stop"):
    """Non-streamed chat completion payload."""
    message = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    payload = {"choices": [{"index": 0, "message": message, "finish_reason": finish_reason}]}
    if usage is not None:
        payload["usage"] = usage
    return payload


class FakeStream:
    """
    Closable async iterator over prepared chunks, optionally failing part-way.

    Mirrors the context-manager and ``close`` surface of ``openai.AsyncStream``.
    """

    def __init__(self, chunks, error=None):
        self._chunks = list(chunks)
        self._error = error
        self.closed = False

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def accumulator():
    """Fresh per-stream accumulator."""
    return ToolCallAccumulator()


@pytest.fixture
def bridge_config():
    """Configuration with a model set, no network settings needed."""
    return BridgeConfig(
        api_key="test-key",
        base_url="http://localhost:8000/v1",
        model="test-model",
        temperature=0.2,
        max_tokens=1024,
        top_p=0.9,
    )


@pytest.fixture
def mock_openai_client():
    """Mock ``openai.AsyncOpenAI`` with an awaitable chat.completions.create."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    client.close = AsyncMock()
    return client
