"""Deterministic router - NO LLM calls, pure rule-based branching."""

from typing import Literal
from pipeline.state import IngestState


# All valid destinations for add_conditional_edges
RouterDest = Literal["extract_fields", "finish"]


def router(state: IngestState) -> RouterDest:
    """
    Called after text extraction. Unreadable uploads never reach the model
    for field extraction.
    """
    if not state["readable"]:
        return "finish"
    return "extract_fields"
