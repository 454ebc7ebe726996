"""Ingestion nodes: text extraction, field extraction, and the terminal node.

The model is not part of the state; it travels in config["configurable"]["model"]
so tests and callers can inject their own.
"""

import logging
from typing import Any, Dict

from langchain_core.runnables import RunnableConfig

from pipeline.field_extractor import extract_fields
from pipeline.llm import LanguageModel, get_model
from pipeline.state import IngestState
from pipeline.text_extractor import extract_text


def _model_from(config: RunnableConfig) -> LanguageModel:
    return (config or {}).get("configurable", {}).get("model") or get_model()


async def extract_text_node(state: IngestState, config: RunnableConfig) -> Dict[str, Any]:
    """Step 1: bytes → plain text via the tiered extractor."""
    text = await extract_text(state["content"], state["media_type"], _model_from(config))
    return {"text": text, "readable": bool(text and text.strip())}


async def extract_fields_node(state: IngestState, config: RunnableConfig) -> Dict[str, Any]:
    """Step 2: plain text → fixed loan fields."""
    extracted = await extract_fields(state["text"], _model_from(config))
    return {"extracted": extracted}


def finish_node(state: IngestState) -> Dict[str, Any]:
    """Terminal node for unreadable uploads."""
    logging.info(f"Upload {state['filename']!r} ({state['media_type']}) is empty or unreadable")
    return {"readable": False, "extracted": {}}
