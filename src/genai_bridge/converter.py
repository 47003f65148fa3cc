"""
Converters
==========

Structured turns → flat chat messages, and a single non-streamed chat
completion → structured response.

Each turn is split into three independent groups appended in a fixed order:
text, then tool results, then tool calls. A turn can therefore produce up to
three flat messages regardless of how its parts were interleaved.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from genai_bridge.core import (
    Candidate,
    ChatCompletion,
    Content,
    ContentType,
    ConversationTurn,
    FinishReason,
    FlatMessage,
    FunctionCall,
    FunctionCallPart,
    FunctionResponsePart,
    GeminiFinishReason,
    GeminiRole,
    GenerateContentRequest,
    GenerateContentResponse,
    MessageRole,
    TextPart,
    ToolCallSpec,
    ToolType,
    UsageMetadata,
    as_payload,
    dumps,
    parse_args,
)
from genai_bridge.core.constants import TOOL_ERROR_PREFIX
from genai_bridge.normalizer import normalize_contents

logger = logging.getLogger(__name__)

# Roles whose text parts become a flat message of the same role
_TEXT_ROLES = {
    MessageRole.USER.value: MessageRole.USER,
    MessageRole.SYSTEM.value: MessageRole.SYSTEM,
    MessageRole.ASSISTANT.value: MessageRole.ASSISTANT,
}

_FINISH_REASON_MAP = {
    FinishReason.STOP.value: GeminiFinishReason.STOP,
    FinishReason.LENGTH.value: GeminiFinishReason.MAX_TOKENS,
    FinishReason.TOOL_CALLS.value: GeminiFinishReason.STOP,
    FinishReason.CONTENT_FILTER.value: GeminiFinishReason.SAFETY,
}


# ================================================================
# Request conversion (structured → flat)
# ================================================================


def flat_role(role: str) -> str:
    """``model`` maps to ``assistant``; every other role passes through."""
    return MessageRole.ASSISTANT.value if role == GeminiRole.MODEL.value else role


def _text_message(turn: ConversationTurn, role: str) -> FlatMessage | None:
    texts = [part.text for part in turn.parts if isinstance(part, TextPart)]
    if not texts:
        return None
    message_role = _TEXT_ROLES.get(role)
    if message_role is None:
        logger.debug(f"Skipping text parts of a '{role}' turn")
        return None
    return FlatMessage(role=message_role, content="\n".join(texts))


def _tool_result_messages(turn: ConversationTurn) -> list[FlatMessage]:
    messages = []
    for part in turn.parts:
        if not isinstance(part, FunctionResponsePart):
            continue
        response = part.function_response
        if response.error:
            content = f"{TOOL_ERROR_PREFIX}{response.error}"
        else:
            content = response.output or ""
        messages.append(
            FlatMessage(role=MessageRole.TOOL, tool_call_id=response.id, content=content)
        )
    return messages


def _tool_call_message(turn: ConversationTurn) -> FlatMessage | None:
    calls = [part.function_call for part in turn.parts if isinstance(part, FunctionCallPart)]
    if not calls:
        return None
    return FlatMessage(
        role=MessageRole.ASSISTANT,
        content=None,
        tool_calls=tuple(
            ToolCallSpec(id=call.id or "", name=call.name, arguments_json=dumps(call.args))
            for call in calls
        ),
    )


def to_flat_messages(
    turns: Iterable[ConversationTurn], system_instruction: Any = None
) -> list[FlatMessage]:
    """
    Flatten conversation turns into chat messages.

    Args:
        turns: Normalized turns
        system_instruction: Emitted first as a system message when it is a
            non-empty string; any other value is ignored

    Returns:
        Ordered flat messages
    """
    messages: list[FlatMessage] = []
    if isinstance(system_instruction, str) and system_instruction:
        messages.append(FlatMessage(role=MessageRole.SYSTEM, content=system_instruction))
    elif system_instruction is not None:
        logger.debug(f"Ignoring non-string system instruction: {type(system_instruction).__name__}")

    for turn in turns:
        role = flat_role(turn.role)

        text_message = _text_message(turn, role)
        if text_message is not None:
            messages.append(text_message)

        messages.extend(_tool_result_messages(turn))

        call_message = _tool_call_message(turn)
        if call_message is not None:
            messages.append(call_message)

    return messages


def to_openai_messages(request: GenerateContentRequest | Mapping[str, Any]) -> list[dict[str, Any]]:
    """Normalize a generate request's contents and render wire-format messages."""
    if not isinstance(request, GenerateContentRequest):
        request = GenerateContentRequest.model_validate(request)
    system_instruction = request.config.system_instruction if request.config else None
    turns = normalize_contents(request.contents)
    return [message.to_dict() for message in to_flat_messages(turns, system_instruction)]


# ================================================================
# Response conversion (flat → structured), non-streamed
# ================================================================


def map_finish_reason(reason: str | None) -> str | None:
    if reason is None:
        return None
    return _FINISH_REASON_MAP.get(reason, GeminiFinishReason.OTHER).value


def _message_text(content: Any) -> str | None:
    if isinstance(content, str):
        return content
    # Array-form content: concatenate its text fragments
    if isinstance(content, list):
        texts = [
            item.get("text")
            for item in content
            if isinstance(item, Mapping)
            and item.get("type") == ContentType.TEXT.value
            and isinstance(item.get("text"), str)
        ]
        return "".join(texts) or None
    return None


def build_response(
    parts: list[TextPart | FunctionCallPart],
    finish_reason: str | None = None,
    usage: UsageMetadata | None = None,
) -> GenerateContentResponse:
    """Wrap parts in the single-candidate response shape."""
    return GenerateContentResponse(
        candidates=[
            Candidate(
                content=Content(role=GeminiRole.MODEL.value, parts=parts),
                index=0,
                finish_reason=finish_reason,
            )
        ],
        usage_metadata=usage,
    )


def from_completion(completion: Any) -> GenerateContentResponse:
    """
    Convert one chat completion into a structured response.

    Only the first choice is read. Text content wins over tool calls.
    ``function`` calls get fail-soft parsed arguments; ``custom`` calls carry
    their opaque input as ``{"input": ...}``; other call types are dropped.

    Args:
        completion: Completion as a dict or an ``openai`` SDK object

    Returns:
        Response with exactly one candidate and usage counts (0 when absent)
    """
    completion = ChatCompletion.model_validate(as_payload(completion))

    parts: list[TextPart | FunctionCallPart] = []
    finish_reason = None

    if completion.choices:
        choice = completion.choices[0]
        finish_reason = map_finish_reason(choice.finish_reason)
        message = choice.message
        text = _message_text(message.content)

        if text:
            parts.append(TextPart(text=text))
        elif message.tool_calls:
            for tool_call in message.tool_calls:
                call = _function_call_from_wire(tool_call)
                if call is not None:
                    parts.append(FunctionCallPart(function_call=call))

    usage = completion.usage
    usage_metadata = UsageMetadata(
        prompt_token_count=(usage.prompt_tokens if usage else None) or 0,
        candidates_token_count=(usage.completion_tokens if usage else None) or 0,
        total_token_count=(usage.total_tokens if usage else None) or 0,
    )

    return build_response(parts, finish_reason=finish_reason, usage=usage_metadata)


def _function_call_from_wire(tool_call: Any) -> FunctionCall | None:
    if tool_call.type in (None, ToolType.FUNCTION.value) and tool_call.function is not None:
        return FunctionCall(
            id=tool_call.id,
            name=tool_call.function.name or "",
            args=parse_args(tool_call.function.arguments),
        )
    if tool_call.type == ToolType.CUSTOM.value and tool_call.custom is not None:
        return FunctionCall(
            id=tool_call.id,
            name=tool_call.custom.name or "",
            args={"input": tool_call.custom.input or ""},
        )
    logger.debug(f"Dropping tool call {tool_call.id!r} of unrecognized type {tool_call.type!r}")
    return None
