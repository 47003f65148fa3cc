"""
Streaming Reconstruction
========================

Rebuilds structured responses from partial chat-completion chunks.

Text deltas are surfaced immediately, one response per chunk. Tool-call
deltas are stitched together per call index in a ``ToolCallAccumulator`` and
only surfaced on flush, which happens when a chunk reports
``finish_reason == "tool_calls"`` (or, via ``finish``, at the end of a stream
that never sent one).

One accumulator belongs to exactly one stream session. It is never shared
between concurrent streams and is cleared on every flush.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from genai_bridge.core import (
    ChatCompletionChunk,
    ContentType,
    FinishReason,
    FunctionCall,
    FunctionCallPart,
    GeminiFinishReason,
    GenerateContentResponse,
    PendingToolCall,
    TextPart,
    ToolType,
    as_payload,
    parse_args,
)
from genai_bridge.core.models import ChunkDelta, StreamToolCallDelta
from genai_bridge.converter import build_response

logger = logging.getLogger(__name__)


def _delta_text(delta: ChunkDelta) -> str | None:
    """
    Text carried by a delta, if any.

    String content takes priority. Array content is only consulted through
    its first element, which must be a non-empty ``text`` fragment.
    """
    content = delta.content
    if isinstance(content, str) and content:
        return content
    if isinstance(content, list) and content:
        first = content[0]
        if (
            isinstance(first, Mapping)
            and first.get("type") == ContentType.TEXT.value
            and isinstance(first.get("text"), str)
            and first["text"]
        ):
            return first["text"]
    return None


class ToolCallAccumulator:
    """
    Per-stream state: call index → partially received tool call.

    Usage::

        accumulator = ToolCallAccumulator()
        async for chunk in stream:
            response = accumulator.step(chunk)
            if response is not None:
                yield response
        tail = accumulator.finish()
    """

    def __init__(self) -> None:
        self._pending: dict[int, PendingToolCall] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __bool__(self) -> bool:
        return bool(self._pending)

    @property
    def pending(self) -> dict[int, PendingToolCall]:
        """Snapshot of the in-progress calls keyed by call index."""
        return {index: call.model_copy() for index, call in self._pending.items()}

    def step(self, chunk: Any) -> GenerateContentResponse | None:
        """
        Advance the session by one chunk.

        Args:
            chunk: Streaming chunk as a dict or an ``openai`` SDK object

        Returns:
            A text-only response for a text delta, the flushed tool calls when
            the chunk signals ``tool_calls`` completion, otherwise None
        """
        parsed = ChatCompletionChunk.model_validate(as_payload(chunk))
        if not parsed.choices:
            return None

        choice = parsed.choices[0]
        delta = choice.delta
        if delta is None:
            return None

        if delta.tool_calls:
            self._accumulate(delta.tool_calls)

        text = _delta_text(delta)
        if text is not None:
            # A finish signal on this same chunk waits for finish()
            return build_response([TextPart(text=text)])

        if choice.finish_reason == FinishReason.TOOL_CALLS.value and self._pending:
            return self.flush()

        return None

    def _accumulate(self, fragments: list[StreamToolCallDelta]) -> None:
        for fragment in fragments:
            if fragment.type and fragment.type != ToolType.FUNCTION.value:
                logger.debug(
                    f"Skipping tool call fragment of type {fragment.type!r} at index {fragment.index}"
                )
                continue

            current = self._pending.get(fragment.index)
            if current is None:
                current = self._pending[fragment.index] = PendingToolCall()

            if fragment.id:
                current.id = fragment.id
            if fragment.function is not None:
                if fragment.function.name:
                    current.name = fragment.function.name
                if fragment.function.arguments:
                    current.arguments_buffer += fragment.function.arguments

    def flush(self) -> GenerateContentResponse:
        """
        Emit every named pending call in ascending index order, then clear.

        Calls that never received a name are dropped. The accumulator is
        cleared even when nothing survives.
        """
        parts: list[TextPart | FunctionCallPart] = []
        for index in sorted(self._pending):
            pending = self._pending[index]
            if not pending.name:
                logger.debug(f"Dropping unnamed tool call at index {index} (id={pending.id!r})")
                continue
            parts.append(
                FunctionCallPart(
                    function_call=FunctionCall(
                        id=pending.id,
                        name=pending.name,
                        args=parse_args(pending.arguments_buffer),
                    )
                )
            )

        self._pending.clear()
        return build_response(parts, finish_reason=GeminiFinishReason.STOP.value)

    def finish(self) -> GenerateContentResponse | None:
        """End-of-stream flush: a response only if calls are still pending."""
        if not self._pending:
            return None
        logger.debug(f"Stream ended with {len(self._pending)} pending tool call(s); flushing")
        return self.flush()

    def reset(self) -> None:
        """Discard pending calls without emitting them."""
        self._pending.clear()


def process_stream_chunk(
    chunk: Any, accumulator: ToolCallAccumulator
) -> GenerateContentResponse | None:
    """Functional form of ``ToolCallAccumulator.step``."""
    return accumulator.step(chunk)
