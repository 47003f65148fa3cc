# tests/test_generator.py
"""
Tests for OpenAICompatibleContentGenerator with a mocked OpenAI client.
"""

import logging
from unittest.mock import AsyncMock, patch

import httpx
import openai
import pytest

from genai_bridge.config import BridgeConfig
from genai_bridge.core import (
    FunctionCall,
    LLMError,
    MissingModelConfigurationError,
    RateLimitError,
    UnsupportedCapabilityError,
)
from genai_bridge.generator import OpenAICompatibleContentGenerator
from tests.conftest import FakeStream, completion, finish_chunk, fragment, text_chunk, tool_chunk

TOOLS_CONFIG = {
    "tools": [
        {
            "functionDeclarations": [
                {
                    "name": "list_directory",
                    "description": "List a directory",
                    "parameters": {
                        "type": "OBJECT",
                        "properties": {"dir_path": {"type": "STRING", "minLength": 1}},
                    },
                }
            ]
        }
    ]
}


@pytest.fixture
def generator(bridge_config, mock_openai_client):
    return OpenAICompatibleContentGenerator(bridge_config, client=mock_openai_client)


def _rate_limit_error():
    request = httpx.Request("POST", "http://localhost:8000/v1/chat/completions")
    response = httpx.Response(429, request=request)
    return openai.RateLimitError("rate limited", response=response, body=None)


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------


class TestRequestParams:
    @pytest.mark.asyncio
    async def test_non_streaming_params(self, generator, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = completion("hi")

        await generator.generate_content({"model": "ignored", "contents": "hello"})

        kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"] == [{"role": "user", "content": "hello"}]
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 1024
        assert kwargs["top_p"] == 0.9
        assert kwargs["stream"] is False
        assert "tools" not in kwargs
        assert "stream_options" not in kwargs

    @pytest.mark.asyncio
    async def test_request_model_used_when_not_configured(self, mock_openai_client):
        generator = OpenAICompatibleContentGenerator(BridgeConfig(), client=mock_openai_client)
        mock_openai_client.chat.completions.create.return_value = completion("hi")

        await generator.generate_content({"model": "request-model", "contents": "hello"})

        assert mock_openai_client.chat.completions.create.call_args.kwargs["model"] == "request-model"

    @pytest.mark.asyncio
    async def test_missing_model_fails_before_network(self, mock_openai_client):
        generator = OpenAICompatibleContentGenerator(BridgeConfig(), client=mock_openai_client)

        with pytest.raises(MissingModelConfigurationError):
            await generator.generate_content({"contents": "hello"})
        with pytest.raises(MissingModelConfigurationError):
            await generator.generate_content_stream({"contents": "hello"})

        mock_openai_client.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_tools_are_normalized(self, generator, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = completion("hi")

        await generator.generate_content({"contents": "ls /tmp", "config": TOOLS_CONFIG})

        tools = mock_openai_client.chat.completions.create.call_args.kwargs["tools"]
        assert tools == [
            {
                "type": "function",
                "function": {
                    "name": "list_directory",
                    "description": "List a directory",
                    "parameters": {"type": "object", "properties": {"dir_path": {"type": "string"}}},
                },
            }
        ]

    @pytest.mark.asyncio
    async def test_streaming_params(self, generator, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = FakeStream([])

        await generator.generate_content_stream(
            {"contents": "hi", "config": {"systemInstruction": "sys", **TOOLS_CONFIG}}
        )

        kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["stream_options"] == {"include_usage": True}
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
        assert kwargs["tools"][0]["function"]["name"] == "list_directory"

    @pytest.mark.asyncio
    async def test_usage_option_can_be_disabled(self, mock_openai_client):
        generator = OpenAICompatibleContentGenerator(
            BridgeConfig(model="m", include_usage=False), client=mock_openai_client
        )
        mock_openai_client.chat.completions.create.return_value = FakeStream([])

        await generator.generate_content_stream({"contents": "hi"})

        assert "stream_options" not in mock_openai_client.chat.completions.create.call_args.kwargs


# ---------------------------------------------------------------------------
# generate_content
# ---------------------------------------------------------------------------


class TestGenerateContent:
    @pytest.mark.asyncio
    async def test_text_response(self, generator, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = completion(
            "Hello!", usage={"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}
        )

        response = await generator.generate_content({"contents": "hi"}, user_prompt_id="p-1")

        assert response.text == "Hello!"
        assert response.usage_metadata.total_token_count == 5

    @pytest.mark.asyncio
    async def test_tool_call_response(self, generator, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = completion(
            None,
            tool_calls=[
                {
                    "id": "c1",
                    "type": "function",
                    "function": {"name": "list_directory", "arguments": '{"dir_path": "/tmp"}'},
                }
            ],
            finish_reason="tool_calls",
        )

        response = await generator.generate_content({"contents": "ls", "config": TOOLS_CONFIG})

        assert response.function_calls == [
            FunctionCall(id="c1", name="list_directory", args={"dir_path": "/tmp"})
        ]

    @pytest.mark.asyncio
    async def test_transport_error_is_mapped(self, generator, mock_openai_client):
        mock_openai_client.chat.completions.create.side_effect = _rate_limit_error()

        with pytest.raises(RateLimitError) as exc_info:
            await generator.generate_content({"contents": "hi"})

        assert exc_info.value.provider == "openai_compatible"
        assert exc_info.value.model == "test-model"
        assert isinstance(exc_info.value.__cause__, openai.RateLimitError)


# ---------------------------------------------------------------------------
# generate_content_stream
# ---------------------------------------------------------------------------


async def _collect(generator, request):
    stream = await generator.generate_content_stream(request)
    return [response async for response in stream]


class TestGenerateContentStream:
    @pytest.mark.asyncio
    async def test_text_chunks(self, generator, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = FakeStream(
            [text_chunk("Hel"), text_chunk("lo"), finish_chunk("stop")]
        )

        responses = await _collect(generator, {"contents": "hi"})

        assert [r.text for r in responses] == ["Hel", "lo"]

    @pytest.mark.asyncio
    async def test_tool_call_scenario(self, generator, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = FakeStream(
            [
                tool_chunk(fragment(0, id="c1", type="function", name="list_directory", arguments="")),
                tool_chunk(fragment(0, arguments='{"dir_path":"/tmp"}')),
                finish_chunk("tool_calls"),
            ]
        )

        responses = await _collect(generator, {"contents": "ls", "config": TOOLS_CONFIG})

        assert len(responses) == 1
        assert responses[0].function_calls == [
            FunctionCall(id="c1", name="list_directory", args={"dir_path": "/tmp"})
        ]

    @pytest.mark.asyncio
    async def test_pending_calls_flushed_at_end_of_stream(self, generator, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = FakeStream(
            [
                tool_chunk(fragment(0, id="c1", name="now", arguments="{}")),
                {"choices": [], "usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2}},
            ]
        )

        responses = await _collect(generator, {"contents": "time?"})

        assert [call.name for r in responses for call in r.function_calls] == ["now"]

    @pytest.mark.asyncio
    async def test_concurrent_streams_do_not_share_state(self, generator, mock_openai_client):
        mock_openai_client.chat.completions.create.side_effect = [
            FakeStream([tool_chunk(fragment(0, id="a", name="first", arguments='{"x":'))]),
            FakeStream([tool_chunk(fragment(0, id="b", name="second", arguments="{}")), finish_chunk()]),
        ]

        first = await generator.generate_content_stream({"contents": "one"})
        second = await generator.generate_content_stream({"contents": "two"})
        second_responses = [r async for r in second]
        first_responses = [r async for r in first]

        assert [c.id for r in second_responses for c in r.function_calls] == ["b"]
        assert [c.id for r in first_responses for c in r.function_calls] == ["a"]
        assert first_responses[0].function_calls[0].args == {}

    @pytest.mark.asyncio
    async def test_finish_chunk_without_delta_flushes_at_end(self, generator, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = FakeStream(
            [
                tool_chunk(fragment(0, id="c1", type="function", name="list_directory", arguments="")),
                tool_chunk(fragment(0, arguments='{"dir_path":"/tmp"}')),
                {"choices": [{"index": 0, "finish_reason": "tool_calls"}]},
            ]
        )

        responses = await _collect(generator, {"contents": "ls", "config": TOOLS_CONFIG})

        assert len(responses) == 1
        assert responses[0].function_calls == [
            FunctionCall(id="c1", name="list_directory", args={"dir_path": "/tmp"})
        ]
        assert responses[0].candidates[0].finish_reason == "STOP"

    @pytest.mark.asyncio
    async def test_upstream_closed_after_full_read(self, generator, mock_openai_client):
        upstream = FakeStream([text_chunk("a"), finish_chunk("stop")])
        mock_openai_client.chat.completions.create.return_value = upstream

        await _collect(generator, {"contents": "hi"})

        assert upstream.closed

    @pytest.mark.asyncio
    async def test_upstream_closed_when_consumer_stops_early(self, generator, mock_openai_client):
        upstream = FakeStream([text_chunk("one"), text_chunk("two"), text_chunk("three")])
        mock_openai_client.chat.completions.create.return_value = upstream

        stream = await generator.generate_content_stream({"contents": "hi"})
        async for response in stream:
            assert response.text == "one"
            break
        await stream.aclose()

        assert upstream.closed

    @pytest.mark.asyncio
    async def test_upstream_closed_on_mid_stream_error(self, generator, mock_openai_client):
        request = httpx.Request("POST", "http://localhost:8000/v1/chat/completions")
        upstream = FakeStream([text_chunk("partial")], error=openai.APIConnectionError(request=request))
        mock_openai_client.chat.completions.create.return_value = upstream

        with pytest.raises(LLMError):
            await _collect(generator, {"contents": "hi"})

        assert upstream.closed

    @pytest.mark.asyncio
    async def test_open_error_is_mapped(self, generator, mock_openai_client):
        mock_openai_client.chat.completions.create.side_effect = _rate_limit_error()

        with pytest.raises(RateLimitError):
            await generator.generate_content_stream({"contents": "hi"})

    @pytest.mark.asyncio
    async def test_mid_stream_error_is_mapped(self, generator, mock_openai_client):
        request = httpx.Request("POST", "http://localhost:8000/v1/chat/completions")
        mock_openai_client.chat.completions.create.return_value = FakeStream(
            [text_chunk("partial"), tool_chunk(fragment(0, id="c", name="f", arguments="{"))],
            error=openai.APIConnectionError(request=request),
        )

        stream = await generator.generate_content_stream({"contents": "hi"})
        received = []
        with pytest.raises(LLMError):
            async for response in stream:
                received.append(response)

        assert [r.text for r in received] == ["partial"]


# ---------------------------------------------------------------------------
# count_tokens / embed_content / lifecycle
# ---------------------------------------------------------------------------


class TestOtherOperations:
    @pytest.mark.asyncio
    async def test_count_tokens_is_local(self, generator, mock_openai_client):
        result = await generator.count_tokens({"contents": "hello world"})

        assert result.total_tokens > 0
        mock_openai_client.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_embed_content_unsupported(self, generator):
        with pytest.raises(UnsupportedCapabilityError) as exc_info:
            await generator.embed_content({"model": "m", "contents": ["x"]})

        assert str(exc_info.value) == "Embedding is not supported for custom LLM providers."
        assert exc_info.value.capability == "embedding"


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self, generator, mock_openai_client):
        await generator.close()
        mock_openai_client.close.assert_not_called()

    @pytest.mark.asyncio
    async def test_owned_client_is_closed_once(self, bridge_config):
        with patch("genai_bridge.generator.openai.AsyncOpenAI") as mock_cls:
            mock_cls.return_value.close = AsyncMock()

            async with OpenAICompatibleContentGenerator(bridge_config, user_agent="bridge-test/1.0") as generator:
                pass
            await generator.close()

        kwargs = mock_cls.call_args.kwargs
        assert kwargs["api_key"] == "test-key"
        assert kwargs["base_url"] == "http://localhost:8000/v1"
        assert kwargs["default_headers"] == {"User-Agent": "bridge-test/1.0"}
        assert isinstance(kwargs["http_client"], httpx.AsyncClient)
        mock_cls.return_value.close.assert_awaited_once()

    def test_host_log_level_kept_when_unset(self, mock_openai_client):
        package_logger = logging.getLogger("genai_bridge")
        previous = package_logger.level
        package_logger.setLevel(logging.DEBUG)
        try:
            OpenAICompatibleContentGenerator(BridgeConfig(model="m"), client=mock_openai_client)

            assert package_logger.level == logging.DEBUG
        finally:
            package_logger.setLevel(previous)

    def test_configured_log_level_applied(self, mock_openai_client):
        package_logger = logging.getLogger("genai_bridge")
        previous = package_logger.level
        try:
            OpenAICompatibleContentGenerator(
                BridgeConfig(model="m", log_level="error"), client=mock_openai_client
            )

            assert package_logger.level == logging.ERROR
        finally:
            package_logger.setLevel(previous)

    def test_config_loaded_when_omitted(self, mock_openai_client):
        with patch("genai_bridge.generator.load_config", return_value=BridgeConfig(model="env-model")) as loader:
            generator = OpenAICompatibleContentGenerator(client=mock_openai_client)

        loader.assert_called_once_with()
        assert generator.config.model == "env-model"
