"""
OpenAI-Compatible Content Generator
===================================

Presents a flat chat-completion backend through the structured
content-generator contract: ``generate_content``,
``generate_content_stream``, ``count_tokens`` and ``embed_content``.

Transport is the official ``openai`` SDK over a pooled ``httpx`` client.
Retries are left to the SDK/transport; this layer only converts.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any

import httpx
import openai

from genai_bridge.config import BridgeConfig, load_config
from genai_bridge.converter import from_completion, to_openai_messages
from genai_bridge.core import (
    CountTokensResponse,
    EmbedContentRequest,
    GenerateContentRequest,
    GenerateContentResponse,
    LLMError,
    MissingModelConfigurationError,
    ProviderErrorMapper,
    UnsupportedCapabilityError,
)
from genai_bridge.normalizer import extract_tools
from genai_bridge.streaming import ToolCallAccumulator
from genai_bridge.tokens import count_tokens

logger = logging.getLogger(__name__)

PROVIDER_NAME = "openai_compatible"


class OpenAICompatibleContentGenerator:
    """
    Structured content generator backed by an OpenAI-compatible endpoint.

    Args:
        config: Backend settings; loaded from the environment when omitted
        user_agent: Optional ``User-Agent`` header, overrides the config value
        client: Pre-built ``openai.AsyncOpenAI`` client (not closed by us)
    """

    def __init__(
        self,
        config: BridgeConfig | None = None,
        *,
        user_agent: str | None = None,
        client: openai.AsyncOpenAI | None = None,
    ):
        self.config = config or load_config()
        if self.config.log_level:
            logging.getLogger("genai_bridge").setLevel(self.config.log_level)

        self._owns_client = client is None
        if client is None:
            user_agent = user_agent or self.config.user_agent
            http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                limits=httpx.Limits(
                    max_connections=self.config.max_connections,
                    max_keepalive_connections=self.config.max_keepalive,
                ),
            )
            client = openai.AsyncOpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                default_headers={"User-Agent": user_agent} if user_agent else None,
                http_client=http_client,
            )
        self.client = client
        self._closed = False

        logger.info(
            f"Initialized content generator: model={self.config.model or '<from request>'}, "
            f"base_url={self.config.base_url or '<default>'}"
        )

    # ------------------------------------------------------------------
    # request building
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce(request: GenerateContentRequest | Mapping[str, Any]) -> GenerateContentRequest:
        if isinstance(request, GenerateContentRequest):
            return request
        return GenerateContentRequest.model_validate(request)

    def _resolve_model(self, request: GenerateContentRequest) -> str:
        model = self.config.model or request.model
        if not model:
            raise MissingModelConfigurationError(
                "No model configured: set CUSTOM_LLM_MODEL_NAME or pass a model",
                provider=PROVIDER_NAME,
            )
        return model

    def _build_params(self, request: GenerateContentRequest, stream: bool) -> dict[str, Any]:
        model = self._resolve_model(request)
        params: dict[str, Any] = {
            "model": model,
            "messages": to_openai_messages(request),
            **self.config.sampling_params(),
        }

        tools = extract_tools(request.config)
        if tools is not None:
            params["tools"] = [tool.to_dict() for tool in tools]

        if stream:
            params["stream"] = True
            if self.config.include_usage:
                params["stream_options"] = {"include_usage": True}
        else:
            params["stream"] = False

        logger.debug(
            f"Prepared request: model={model}, messages={len(params['messages'])}, "
            f"tools={len(params.get('tools', []))}, stream={stream}"
        )
        return params

    def _map_error(self, error: Exception, model: str) -> LLMError:
        return ProviderErrorMapper.map_openai_error(error, PROVIDER_NAME, model)

    # ------------------------------------------------------------------
    # content generator contract
    # ------------------------------------------------------------------

    async def generate_content(
        self,
        request: GenerateContentRequest | Mapping[str, Any],
        user_prompt_id: str | None = None,
    ) -> GenerateContentResponse:
        """
        Create a single, non-streamed response.

        Raises:
            MissingModelConfigurationError: Before any network call
            LLMError: Mapped transport failures
        """
        request = self._coerce(request)
        params = self._build_params(request, stream=False)
        logger.debug(f"generate_content prompt_id={user_prompt_id}")

        try:
            completion = await self.client.chat.completions.create(**params)
        except openai.OpenAIError as e:
            raise self._map_error(e, params["model"]) from e

        return from_completion(completion)

    async def generate_content_stream(
        self,
        request: GenerateContentRequest | Mapping[str, Any],
        user_prompt_id: str | None = None,
    ) -> AsyncIterator[GenerateContentResponse]:
        """
        Open a streamed completion.

        Awaiting this opens the upstream stream (so request errors surface
        here); the returned iterator yields text responses as they arrive and
        tool calls once they are complete.
        """
        request = self._coerce(request)
        params = self._build_params(request, stream=True)
        logger.debug(f"generate_content_stream prompt_id={user_prompt_id}")

        try:
            stream = await self.client.chat.completions.create(**params)
        except openai.OpenAIError as e:
            raise self._map_error(e, params["model"]) from e

        return self._stream_responses(stream, params["model"])

    async def _stream_responses(
        self, stream: Any, model: str
    ) -> AsyncIterator[GenerateContentResponse]:
        # one accumulator per stream session
        accumulator = ToolCallAccumulator()
        try:
            async with stream:
                async for chunk in stream:
                    response = accumulator.step(chunk)
                    if response is not None:
                        yield response
        except openai.OpenAIError as e:
            accumulator.reset()
            raise self._map_error(e, model) from e

        tail = accumulator.finish()
        if tail is not None:
            yield tail

    async def count_tokens(
        self, request: GenerateContentRequest | Mapping[str, Any]
    ) -> CountTokensResponse:
        """Heuristic token estimate; never calls the backend."""
        request = self._coerce(request)
        return count_tokens(request.contents)

    async def embed_content(
        self, request: EmbedContentRequest | Mapping[str, Any]
    ) -> Any:
        """Embeddings are not available through this backend."""
        raise UnsupportedCapabilityError(
            "Embedding is not supported for custom LLM providers.",
            capability="embedding",
            provider=PROVIDER_NAME,
            model=self.config.model or None,
        )

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the underlying HTTP client if this generator created it."""
        if self._closed:
            return
        if self._owns_client:
            await self.client.close()
        self._closed = True
        logger.debug("Closed content generator")

    async def __aenter__(self) -> OpenAICompatibleContentGenerator:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
