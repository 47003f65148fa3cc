"""
Schema Normalizer
=================

Canonicalizes loosely-typed structured input at the system boundary:

- ``normalize_contents`` turns a bare string, a single part, a single turn or
  a sequence of any of those into an ordered tuple of ``ConversationTurn``.
- ``decode_part`` performs the one validation pass that produces the typed
  ``Part`` union; nothing downstream probes payload shape again.
- ``extract_tools`` flattens function declarations into ``ToolSchema`` list,
  cleaning each parameter schema with ``normalize_schema``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from genai_bridge.core import (
    ConversationTurn,
    FunctionCall,
    FunctionCallPart,
    FunctionResponse,
    FunctionResponsePart,
    GeminiRole,
    GenerateContentConfig,
    InlineDataPart,
    SchemaKey,
    TextPart,
    ToolFunction,
    ToolSchema,
    as_payload,
    dumps,
)
from genai_bridge.core.constants import UNSUPPORTED_SCHEMA_KEYWORDS

logger = logging.getLogger(__name__)

_DECODED_PARTS = (TextPart, FunctionCallPart, FunctionResponsePart, InlineDataPart)


def _field(payload: Mapping[str, Any], camel: str, snake: str) -> Any:
    value = payload.get(camel)
    if value is None:
        value = payload.get(snake)
    return as_payload(value)


# ================================================================
# Parts and turns
# ================================================================


def decode_part(raw: Any) -> TextPart | FunctionCallPart | FunctionResponsePart | InlineDataPart | None:
    """
    Decode one inbound part into the typed union.

    Returns None for unknown shapes and for function call/response parts
    missing their required fields; those are dropped, not sent malformed.
    """
    if isinstance(raw, _DECODED_PARTS):
        return raw
    if isinstance(raw, str):
        return TextPart(text=raw)

    payload = as_payload(raw)
    if not isinstance(payload, Mapping):
        logger.debug(f"Dropping non-object part: {type(raw).__name__}")
        return None

    text = payload.get("text")
    if isinstance(text, str):
        return TextPart(text=text)

    call = _field(payload, "functionCall", "function_call")
    if isinstance(call, Mapping):
        return _decode_function_call(call)

    response = _field(payload, "functionResponse", "function_response")
    if isinstance(response, Mapping):
        return _decode_function_response(response)

    inline = _field(payload, "inlineData", "inline_data")
    if isinstance(inline, Mapping):
        return InlineDataPart(
            mime_type=_field(inline, "mimeType", "mime_type"),
            data=str(inline.get("data") or ""),
        )

    logger.debug(f"Dropping unsupported part with keys {sorted(payload)}")
    return None


def _decode_function_call(call: Mapping[str, Any]) -> FunctionCallPart | None:
    name, call_id, args = call.get("name"), call.get("id"), call.get("args")
    if not isinstance(name, str) or not isinstance(call_id, str) or args is None:
        logger.debug(f"Dropping incomplete function call part: name={name!r} id={call_id!r}")
        return None
    if not isinstance(args, Mapping):
        logger.debug(f"Dropping function call {name!r}: args is {type(args).__name__}")
        return None
    return FunctionCallPart(function_call=FunctionCall(id=call_id, name=name, args=dict(args)))


def _decode_function_response(response: Mapping[str, Any]) -> FunctionResponsePart | None:
    resp_id, name = response.get("id"), response.get("name")
    body = as_payload(response.get("response"))
    if not isinstance(resp_id, str) or not isinstance(name, str):
        logger.debug(f"Dropping incomplete function response part: name={name!r} id={resp_id!r}")
        return None
    if not isinstance(body, Mapping):
        logger.debug(f"Dropping function response {name!r}: response is not an object")
        return None

    output = body.get("output")
    if output is not None and not isinstance(output, str):
        output = dumps(output)
    error = body.get("error")

    return FunctionResponsePart(
        function_response=FunctionResponse(
            id=resp_id,
            name=name,
            output=output,
            error=str(error) if error else None,
        )
    )


def _is_turn(item: Any) -> bool:
    if isinstance(item, ConversationTurn):
        return True
    if isinstance(item, BaseModel):
        return "parts" in type(item).model_fields
    return isinstance(item, Mapping) and "parts" in item


def _decode_turn(item: Any) -> ConversationTurn:
    if isinstance(item, ConversationTurn):
        return item
    payload = as_payload(item)
    raw_parts = payload.get("parts") or []
    if isinstance(raw_parts, (str, Mapping)):
        raw_parts = [raw_parts]
    parts = [part for part in map(decode_part, raw_parts) if part is not None]
    return ConversationTurn(role=payload.get("role") or GeminiRole.USER.value, parts=parts)


def _user_turn(raw_part: Any) -> ConversationTurn:
    part = decode_part(raw_part)
    return ConversationTurn(
        role=GeminiRole.USER.value,
        parts=[part] if part is not None else [],
    )


def _normalize_item(item: Any) -> ConversationTurn:
    if _is_turn(item):
        return _decode_turn(item)
    return _user_turn(item)


def normalize_contents(contents: Any) -> tuple[ConversationTurn, ...]:
    """
    Normalize heterogeneous contents into ordered conversation turns.

    - ``"hello"`` → one user turn with one text part
    - a part-like object (no ``parts``) → wrapped as a single user turn
    - a turn-like object (``role`` + ``parts``) → passed through
    - a sequence of the above → each element normalized, order preserved

    Args:
        contents: Any of the accepted shapes, or None

    Returns:
        Tuple of immutable turns
    """
    if contents is None:
        return ()
    if isinstance(contents, str):
        return (_user_turn(contents),)
    if isinstance(contents, Sequence):
        return tuple(_normalize_item(item) for item in contents)
    return (_normalize_item(contents),)


# ================================================================
# Tool schemas
# ================================================================


def normalize_schema(obj: Any) -> Any:
    """
    Clean a JSON-Schema tree for flat-protocol backends.

    Lower-cases every string ``type`` value, drops ``minLength`` and
    ``minItems`` everywhere, recurses into lists and nested objects and
    leaves every other key untouched. Returns a new tree.
    """
    if isinstance(obj, list):
        return [normalize_schema(item) for item in obj]
    if isinstance(obj, Mapping):
        cleaned: dict[str, Any] = {}
        for key, value in obj.items():
            if key in UNSUPPORTED_SCHEMA_KEYWORDS:
                continue
            if key == SchemaKey.TYPE.value and isinstance(value, str):
                cleaned[key] = value.lower()
            else:
                cleaned[key] = normalize_schema(value)
        return cleaned
    return obj


def extract_tools(config: GenerateContentConfig | Mapping[str, Any] | None) -> list[ToolSchema] | None:
    """
    Convert function declarations to flat tool schemas.

    Returns None (not an empty list) when there is nothing to declare, so
    callers can omit the ``tools`` parameter entirely.
    """
    if config is None:
        return None
    if isinstance(config, Mapping):
        config = GenerateContentConfig.model_validate(config)
    if not config.tools:
        return None

    schemas: list[ToolSchema] = []
    for tool in config.tools:
        tool = as_payload(tool)
        if not isinstance(tool, Mapping):
            continue
        declarations = _field(tool, "functionDeclarations", "function_declarations")
        for declaration in declarations or []:
            declaration = as_payload(declaration)
            parameters = as_payload(declaration.get("parameters"))
            if parameters is None:
                parameters = _field(declaration, "parametersJsonSchema", "parameters_json_schema")
            schemas.append(
                ToolSchema(
                    function=ToolFunction(
                        name=declaration.get("name") or "",
                        description=declaration.get("description") or "",
                        parameters=normalize_schema(parameters),
                    )
                )
            )

    return schemas or None
