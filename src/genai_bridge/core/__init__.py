"""
Core
====

Enums, models, errors and JSON helpers shared by the converters.
"""

from .constants import Default, ResponseKey, SchemaKey
from .enums import (
    ContentType,
    FinishReason,
    GeminiFinishReason,
    GeminiRole,
    MessageRole,
    PartKind,
    ToolType,
)
from .errors import (
    APIError,
    ConfigurationError,
    ErrorSeverity,
    LLMError,
    MissingModelConfigurationError,
    ModelNotFoundError,
    ProviderErrorMapper,
    RateLimitError,
    UnsupportedCapabilityError,
)
from .json_utils import (
    dumps,
    extract_answer,
    extract_json_from_llm_output,
    loads,
    parse_args,
)
from .models import (
    Candidate,
    ChatCompletion,
    ChatCompletionChunk,
    Content,
    ConversationTurn,
    CountTokensResponse,
    EmbedContentRequest,
    FlatMessage,
    FunctionCall,
    FunctionCallPart,
    FunctionResponse,
    FunctionResponsePart,
    GenerateContentConfig,
    GenerateContentRequest,
    GenerateContentResponse,
    InlineDataPart,
    Part,
    PendingToolCall,
    TextPart,
    ToolCallSpec,
    ToolFunction,
    ToolSchema,
    UsageMetadata,
    as_payload,
)

__all__ = [
    # Constants
    "Default",
    "ResponseKey",
    "SchemaKey",
    # Enums
    "ContentType",
    "FinishReason",
    "GeminiFinishReason",
    "GeminiRole",
    "MessageRole",
    "PartKind",
    "ToolType",
    # Errors
    "APIError",
    "ConfigurationError",
    "ErrorSeverity",
    "LLMError",
    "MissingModelConfigurationError",
    "ModelNotFoundError",
    "ProviderErrorMapper",
    "RateLimitError",
    "UnsupportedCapabilityError",
    # JSON
    "dumps",
    "extract_answer",
    "extract_json_from_llm_output",
    "loads",
    "parse_args",
    # Models
    "Candidate",
    "ChatCompletion",
    "ChatCompletionChunk",
    "Content",
    "ConversationTurn",
    "CountTokensResponse",
    "EmbedContentRequest",
    "FlatMessage",
    "FunctionCall",
    "FunctionCallPart",
    "FunctionResponse",
    "FunctionResponsePart",
    "GenerateContentConfig",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "InlineDataPart",
    "Part",
    "PendingToolCall",
    "TextPart",
    "ToolCallSpec",
    "ToolFunction",
    "ToolSchema",
    "UsageMetadata",
    "as_payload",
]
