"""Field extraction: one model call turning document text into the fixed loan fields."""

import logging
from typing import Any, Dict

import config
from pipeline.json_parser import ParsedObject, RawFallback, parse_model_json, to_dict
from pipeline.llm import LanguageModel
from prompts.extraction_prompts import FIELD_NAMES, get_field_extraction_prompt

SCHEMA_MODES = ("passthrough", "coerce")


def coerce_fields(value: Dict[str, Any]) -> Dict[str, str]:
    """Exactly the fixed keys, in order; missing → "", None → "", everything else str()."""
    return {name: "" if value.get(name) is None else str(value[name]) for name in FIELD_NAMES}


def apply_schema(result: ParsedObject | RawFallback, schema_mode: str) -> Dict[str, Any]:
    if schema_mode not in SCHEMA_MODES:
        raise ValueError(f"Unknown field schema mode: {schema_mode!r}")
    if isinstance(result, ParsedObject) and schema_mode == "coerce":
        return coerce_fields(result.value)
    return to_dict(result)


async def extract_fields(document_text: str, model: LanguageModel, schema_mode: str | None = None) -> Dict[str, Any]:
    """Ask the model for the loan fields. Never fails on a malformed reply: it comes back as {"raw": ...}."""
    reply = await model.generate_text(get_field_extraction_prompt(document_text))
    result = parse_model_json(reply)
    if isinstance(result, RawFallback):
        logging.warning(f"Field extraction reply was not JSON; keeping raw text ({len(result.raw)} chars)")
    return apply_schema(result, schema_mode or config.FIELD_SCHEMA_MODE)
