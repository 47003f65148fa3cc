"""
Token Estimation
================

Rough, tokenizer-free token count used when the backend offers no counting
endpoint. The weights are tuning constants, not a contract: the estimate is
non-negative and grows with the input, nothing more.
"""

from __future__ import annotations

import math
import re
from typing import Any

from genai_bridge.core import CountTokensResponse, InlineDataPart, TextPart
from genai_bridge.normalizer import normalize_contents

_WORD = re.compile(r"[a-zA-Z]+'?[a-zA-Z]*")
_CJK = re.compile(r"[\u4e00-\u9fff]")
_NUMBER = re.compile(r"\b\d+\b")
_PUNCTUATION = re.compile(r"""[.,!?;:"'(){}\[\]<>@#$%^&*\-_+=~`|\\/]""")
_WHITESPACE = re.compile(r"\s+")

WORD_WEIGHT = 1.2
CJK_WEIGHT = 1.0
NUMBER_WEIGHT = 0.8
PUNCTUATION_WEIGHT = 0.5
WHITESPACE_RUNS_PER_TOKEN = 5


def estimate_tokens(text: str) -> int:
    """Estimate the token count of a piece of text."""
    words = len(_WORD.findall(text))
    cjk = len(_CJK.findall(text))
    numbers = len(_NUMBER.findall(text))
    punctuation = len(_PUNCTUATION.findall(text))
    spaces = math.ceil(len(_WHITESPACE.findall(text)) / WHITESPACE_RUNS_PER_TOKEN)

    return math.ceil(
        words * WORD_WEIGHT
        + cjk * CJK_WEIGHT
        + numbers * NUMBER_WEIGHT
        + punctuation * PUNCTUATION_WEIGHT
        + spaces
    )


def count_tokens(contents: Any) -> CountTokensResponse:
    """
    Estimate tokens for structured contents.

    Text parts and inline-data payloads are joined with spaces and estimated
    as one text; function call and response parts are not counted.
    """
    pieces: list[str] = []
    for turn in normalize_contents(contents):
        for part in turn.parts:
            if isinstance(part, TextPart) and part.text:
                pieces.append(part.text)
            elif isinstance(part, InlineDataPart) and part.data:
                pieces.append(part.data)

    return CountTokensResponse(total_tokens=estimate_tokens(" ".join(pieces)))
