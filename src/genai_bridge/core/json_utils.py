"""
Fast JSON Utilities
===================

orjson-backed serialization plus the fail-soft helpers used on
model-produced text (tool-call arguments, JSON answers).

orjson output is compact (no spaces after separators), which keeps
serialized tool-call arguments byte-stable across the two protocols.
"""

from __future__ import annotations

import logging
from typing import Any

import orjson

from .constants import JSON_FENCE_END, JSON_FENCE_START, THINK_TAGS

logger = logging.getLogger(__name__)


def dumps(obj: Any, **kwargs: Any) -> str:
    """
    Serialize object to a JSON string.

    Args:
        obj: Object to serialize
        **kwargs: ``indent`` and ``sort_keys`` are honoured

    Returns:
        JSON string
    """
    option = 0
    if kwargs.get("indent"):
        option |= orjson.OPT_INDENT_2
    if kwargs.get("sort_keys"):
        option |= orjson.OPT_SORT_KEYS
    # orjson returns bytes
    return orjson.dumps(obj, option=option).decode("utf-8")


def loads(s: str | bytes) -> Any:
    """
    Deserialize a JSON string or bytes.

    Raises:
        orjson.JSONDecodeError: On invalid JSON (a ``ValueError`` subclass)
    """
    return orjson.loads(s)


def parse_args(raw: str | bytes | None) -> dict[str, Any]:
    """
    Fail-soft parse of tool-call argument text.

    Backends routinely emit truncated or invalid JSON for arguments, so any
    parse failure yields an empty mapping instead of an exception. Valid JSON
    that is not an object also yields ``{}``.
    """
    if not raw:
        return {}
    try:
        parsed = orjson.loads(raw)
    except (orjson.JSONDecodeError, TypeError):
        logger.debug(f"Malformed tool-call arguments, using {{}}: {str(raw)[:200]!r}")
        return {}
    if not isinstance(parsed, dict):
        logger.debug(f"Tool-call arguments are not an object: {type(parsed).__name__}")
        return {}
    return parsed


def extract_answer(text: str) -> str:
    """Drop a ``<think>...</think>`` style block, keeping the surrounding answer."""
    for start, end in THINK_TAGS:
        if start in text and end in text:
            before, _, rest = text.partition(start)
            _, _, after = rest.partition(end)
            return f"{before.strip()} {after.strip()}".strip()
    return text


def extract_json_from_llm_output(output: str) -> Any:
    """
    Pull a JSON value out of free-form model output.

    Tries, in order: the whole text (after removing a leading think block),
    then the contents of a fenced ```json block.

    Returns:
        The parsed value, or None when nothing parses
    """
    if output.strip().startswith("<think"):
        output = extract_answer(output)

    try:
        return orjson.loads(output)
    except orjson.JSONDecodeError:
        pass

    fence_start = output.find(JSON_FENCE_START)
    fence_end = output.rfind(JSON_FENCE_END)
    if fence_start != -1 and fence_end > fence_start:
        fenced = output[fence_start + len(JSON_FENCE_START) : fence_end]
        try:
            return orjson.loads(fenced)
        except orjson.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON from fenced block: {e}; output: {output[:200]!r}")
    else:
        logger.error(f"LLM output not in expected JSON format: {output[:200]!r}")
    return None
