"""
Core Models
===========

Pydantic V2 models for both sides of the bridge.

Structured side: ``Part`` (a discriminated union), ``ConversationTurn``,
``GenerateContentRequest`` and ``GenerateContentResponse``.

Flat side: ``FlatMessage``, ``ToolCallSpec``, ``ToolSchema`` and lenient wire
models for completions and streaming chunks, which accept plain dicts or SDK
objects alike.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .constants import ResponseKey
from .enums import GeminiRole, MessageRole, PartKind, ToolType

# ================================================================
# Structured parts
# ================================================================


class FunctionCall(BaseModel):
    """A fully-formed function invocation."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class FunctionResponse(BaseModel):
    """Result of a function invocation, fed back to the model."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    output: str | None = None
    error: str | None = None


class TextPart(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = PartKind.TEXT.value
    text: str


class FunctionCallPart(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["function_call"] = PartKind.FUNCTION_CALL.value
    function_call: FunctionCall


class FunctionResponsePart(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["function_response"] = PartKind.FUNCTION_RESPONSE.value
    function_response: FunctionResponse


class InlineDataPart(BaseModel):
    """Binary payload (base64 text). Only consulted by token counting."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["inline_data"] = PartKind.INLINE_DATA.value
    mime_type: str | None = None
    data: str = ""


Part = Annotated[
    Union[TextPart, FunctionCallPart, FunctionResponsePart, InlineDataPart],
    Field(discriminator="kind"),
]

# Parts a response candidate may carry
ResponsePart = Annotated[
    Union[TextPart, FunctionCallPart],
    Field(discriminator="kind"),
]


class ConversationTurn(BaseModel):
    """One role-attributed unit of conversation."""

    model_config = ConfigDict(frozen=True)

    role: str = GeminiRole.USER.value
    parts: tuple[Part, ...] = ()


# ================================================================
# Flat side
# ================================================================


class ToolCallSpec(BaseModel):
    """A tool call as sent to the flat protocol; arguments are JSON text."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    arguments_json: str

    def to_dict(self) -> dict[str, Any]:
        return {
            ResponseKey.ID.value: self.id,
            ResponseKey.TYPE.value: ToolType.FUNCTION.value,
            ResponseKey.FUNCTION.value: {
                ResponseKey.NAME.value: self.name,
                ResponseKey.ARGUMENTS.value: self.arguments_json,
            },
        }


class FlatMessage(BaseModel):
    """A role + content (+ tool metadata) chat message."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str | None = None
    tool_call_id: str | None = None
    tool_calls: tuple[ToolCallSpec, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render in the chat-completion wire format."""
        msg: dict[str, Any] = {
            ResponseKey.ROLE.value: self.role.value,
            ResponseKey.CONTENT.value: self.content,
        }
        if self.tool_call_id is not None:
            msg[ResponseKey.TOOL_CALL_ID.value] = self.tool_call_id
        if self.tool_calls is not None:
            msg[ResponseKey.TOOL_CALLS.value] = [tc.to_dict() for tc in self.tool_calls]
        return msg


class ToolFunction(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    parameters: dict[str, Any] | None = None


class ToolSchema(BaseModel):
    """Flat-protocol tool declaration."""

    model_config = ConfigDict(frozen=True)

    type: Literal["function"] = ToolType.FUNCTION.value
    function: ToolFunction

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class PendingToolCall(BaseModel):
    """
    Streaming accumulator entry for one call index.

    ``arguments_buffer`` only ever grows until flush; ``id`` and ``name`` are
    only overwritten with non-empty values.
    """

    id: str | None = None
    name: str = ""
    arguments_buffer: str = ""


# ================================================================
# Structured request / response
# ================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class GenerateContentConfig(_CamelModel):
    """Per-request options of a generate call."""

    system_instruction: Any = None
    tools: list[Any] | None = None


class GenerateContentRequest(_CamelModel):
    """Inbound generate request. ``contents`` is normalized lazily."""

    model: str | None = None
    contents: Any = None
    config: GenerateContentConfig | None = None


class EmbedContentRequest(_CamelModel):
    model: str | None = None
    contents: Any = None


class Content(BaseModel):
    role: str = GeminiRole.MODEL.value
    parts: list[ResponsePart] = Field(default_factory=list)


class Candidate(BaseModel):
    content: Content = Field(default_factory=Content)
    index: int = 0
    finish_reason: str | None = None
    safety_ratings: list[Any] = Field(default_factory=list)


class UsageMetadata(BaseModel):
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0


class GenerateContentResponse(BaseModel):
    """Structured response with a single candidate."""

    candidates: list[Candidate] = Field(default_factory=list)
    usage_metadata: UsageMetadata | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def function_calls(self) -> list[FunctionCall]:
        """Function calls of the first candidate, in part order."""
        if not self.candidates:
            return []
        return [
            part.function_call
            for part in self.candidates[0].content.parts
            if isinstance(part, FunctionCallPart)
        ]

    @property
    def text(self) -> str:
        """Concatenated text of the first candidate."""
        if not self.candidates:
            return ""
        return "".join(
            part.text
            for part in self.candidates[0].content.parts
            if isinstance(part, TextPart)
        )

    @property
    def parts(self) -> list[TextPart | FunctionCallPart]:
        if not self.candidates:
            return []
        return list(self.candidates[0].content.parts)


class CountTokensResponse(BaseModel):
    total_tokens: int = Field(ge=0)


# ================================================================
# Flat-protocol wire models (completion + streaming chunk)
# ================================================================


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class WireFunction(_WireModel):
    name: str | None = None
    arguments: str | None = None


class WireCustom(_WireModel):
    name: str | None = None
    input: str | None = None


class WireToolCall(_WireModel):
    id: str | None = None
    type: str | None = None
    function: WireFunction | None = None
    custom: WireCustom | None = None


class CompletionMessage(_WireModel):
    content: str | list[Any] | None = None
    tool_calls: list[WireToolCall] | None = None


class CompletionChoice(_WireModel):
    message: CompletionMessage = Field(default_factory=CompletionMessage)
    finish_reason: str | None = None


class WireUsage(_WireModel):
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class ChatCompletion(_WireModel):
    choices: list[CompletionChoice] = Field(default_factory=list)
    usage: WireUsage | None = None


class StreamToolCallDelta(_WireModel):
    index: int = 0
    id: str | None = None
    type: str | None = None
    function: WireFunction | None = None


class ChunkDelta(_WireModel):
    content: str | list[Any] | None = None
    tool_calls: list[StreamToolCallDelta] | None = None


class ChunkChoice(_WireModel):
    delta: ChunkDelta | None = None
    finish_reason: str | None = None


class ChatCompletionChunk(_WireModel):
    choices: list[ChunkChoice] = Field(default_factory=list)
    usage: WireUsage | None = None

    @field_validator("choices", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


def as_payload(obj: Any) -> Any:
    """SDK objects (any Pydantic model) become camelCase plain data; anything else is returned as is."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    return obj
