"""Conversational Q&A over the uploaded document, with a bounded history window."""

from typing import Sequence

import config
from pipeline.llm import LanguageModel
from prompts.extraction_prompts import get_answer_prompt
from sessions.document_store import ConversationTurn


def format_history(turns: Sequence[ConversationTurn], max_turns: int | None = None) -> str:
    """Render the most recent turns (oldest first) as numbered Q/A blocks."""
    limit = config.MAX_HISTORY_TURNS if max_turns is None else max_turns
    window = list(turns)[-limit:] if limit > 0 else []
    if not window:
        return ""
    lines = "\n\n".join(
        f"Turn {idx}:\nQ: {turn.question}\nA: {turn.answer}"
        for idx, turn in enumerate(window, start=1)
    )
    return f"Previous Q&A (most recent last):\n{lines}\n\n"


def build_answer_prompt(document_text: str, question: str, history: Sequence[ConversationTurn]) -> str:
    return get_answer_prompt(document_text, question, format_history(history))


async def answer_question(document_text: str, question: str,
                          history: Sequence[ConversationTurn], model: LanguageModel) -> str:
    """Answer a question grounded in the document and prior turns. The reply is passed through as-is."""
    reply = await model.generate_text(build_answer_prompt(document_text, question, history))
    return (reply or "").strip()
