"""
Core Enumerations
=================

Type-safe enums for roles, finish reasons, tool types and part kinds.
"""

from enum import Enum


class MessageRole(str, Enum):
    """Flat chat message role."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class GeminiRole(str, Enum):
    """Role of a structured conversational turn."""

    USER = "user"
    MODEL = "model"


class FinishReason(str, Enum):
    """Completion finish reason (flat protocol)."""

    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"


class GeminiFinishReason(str, Enum):
    """Candidate finish reason (structured protocol)."""

    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    OTHER = "OTHER"


class ToolType(str, Enum):
    """Tool/function call types."""

    FUNCTION = "function"
    CUSTOM = "custom"


class ContentType(str, Enum):
    """Content fragment type for array-form message content."""

    TEXT = "text"


class PartKind(str, Enum):
    """Discriminator for structured turn parts."""

    TEXT = "text"
    FUNCTION_CALL = "function_call"
    FUNCTION_RESPONSE = "function_response"
    INLINE_DATA = "inline_data"
