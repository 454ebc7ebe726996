"""Lenient JSON recovery for model replies.

Three stages: direct parse, fenced code block, raw fallback. The result is
tagged so callers can tell structured fields from free text.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Union

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedObject:
    value: Dict[str, Any]


@dataclass(frozen=True)
class RawFallback:
    raw: str


ParseResult = Union[ParsedObject, RawFallback]


def _load_object(text: str) -> Dict[str, Any] | None:
    """json.loads, but only a JSON object counts as a hit."""
    try:
        value = json.loads(text)
    except (ValueError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def parse_model_json(text: str) -> ParseResult:
    """
    Parse a model reply into a JSON object.
    Accepts:
      - pure JSON
      - JSON inside ``` or ```json fences
    Anything else comes back as RawFallback with the trimmed text.
    """
    text = text or ""

    value = _load_object(text)
    if value is not None:
        return ParsedObject(value)

    fenced = _FENCE_RE.search(text)
    if fenced:
        value = _load_object(fenced.group(1))
        if value is not None:
            return ParsedObject(value)

    return RawFallback(text.strip())


def to_dict(result: ParseResult) -> Dict[str, Any]:
    if isinstance(result, ParsedObject):
        return result.value
    return {"raw": result.raw}
