"""
Constants
=========

Wire keys and tuning defaults shared by the converters.
"""

from enum import Enum


class ResponseKey(str, Enum):
    """Keys of the flat chat-completion wire format."""

    ROLE = "role"
    CONTENT = "content"
    TOOL_CALLS = "tool_calls"
    TOOL_CALL_ID = "tool_call_id"
    ID = "id"
    TYPE = "type"
    FUNCTION = "function"
    NAME = "name"
    ARGUMENTS = "arguments"
    DESCRIPTION = "description"
    PARAMETERS = "parameters"


class SchemaKey(str, Enum):
    """JSON-Schema keywords touched by tool-schema normalization."""

    TYPE = "type"
    MIN_LENGTH = "minLength"
    MIN_ITEMS = "minItems"


# Keywords some flat-protocol backends reject outright
UNSUPPORTED_SCHEMA_KEYWORDS = frozenset(
    {SchemaKey.MIN_LENGTH.value, SchemaKey.MIN_ITEMS.value}
)

TOOL_ERROR_PREFIX = "Error: "

# Think-block tags some reasoning backends wrap around their answer
THINK_TAGS = (("<think>", "</think>"), ("<thinking>", "</thinking>"))

JSON_FENCE_START = "```json"
JSON_FENCE_END = "```"


class Default:
    """Default request and transport settings."""

    TEMPERATURE = 0.0
    MAX_TOKENS = 8192
    TOP_P = 1.0
    TIMEOUT = 60.0
    MAX_CONNECTIONS = 100
    MAX_KEEPALIVE = 20
