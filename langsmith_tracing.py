"""LangSmith tracing: one document conversation = one trace across requests."""

import logging
import os
import time
from contextlib import contextmanager

import langsmith as ls
from langsmith.run_trees import RunTree

from config import LANGSMITH_TRACING, LANGSMITH_PROJECT, SESSION_MAX_AGE_S

# In-memory store: session_id -> parent RunTree (requests are stateless, the trace is not)
_session_trace_store: dict[str, RunTree] = {}
_last_used: dict[str, float] = {}   # session_id -> monotonic seconds; idle roots expire with the session

_TAGS = ["loan-doc-assistant"]


def _ensure_env():
    """Ensure LangSmith env vars are set when tracing is enabled."""
    if LANGSMITH_TRACING:
        os.environ.setdefault("LANGCHAIN_TRACING_V2", "true")
        os.environ.setdefault("LANGCHAIN_PROJECT", LANGSMITH_PROJECT)


def _clock() -> float:
    return time.monotonic()


def prune_expired_traces() -> None:
    """Close roots idle for longer than the session lifetime."""
    cutoff = _clock() - SESSION_MAX_AGE_S
    for session_id in [sid for sid, used in _last_used.items() if used < cutoff]:
        clear_document_trace(session_id)


@contextmanager
def document_trace(session_id: str, filename: str = ""):
    """
    Start a new parent trace for a freshly uploaded document. Any trace left
    over from the session's previous document is closed first; every ask on
    this document continues the new one.
    """
    if not LANGSMITH_TRACING:
        yield
        return

    _ensure_env()
    prune_expired_traces()
    clear_document_trace(session_id)

    root = RunTree(name="loan_document_session", run_type="chain")
    root.add_metadata({"session_id": session_id, "filename": filename})
    root.add_tags(_TAGS + ["upload"])
    root.post()
    _session_trace_store[session_id] = root
    _last_used[session_id] = _clock()

    with ls.tracing_context(
        project_name=LANGSMITH_PROJECT,
        enabled=True,
        parent=root,
        metadata={"session_id": session_id, "filename": filename},
        tags=_TAGS + ["upload"],
    ):
        yield str(root.id)


@contextmanager
def continue_document_trace(session_id: str):
    """Continue the session's document trace (for asks). No-op without one."""
    if not LANGSMITH_TRACING:
        yield
        return

    _ensure_env()
    prune_expired_traces()
    root = _session_trace_store.get(session_id)
    if not root:
        yield
        return
    _last_used[session_id] = _clock()

    with ls.tracing_context(
        project_name=LANGSMITH_PROJECT,
        enabled=True,
        parent=root,
        metadata={"session_id": session_id},
        tags=_TAGS + ["ask"],
    ):
        yield


def clear_document_trace(session_id: str) -> None:
    """End the root run and remove it from the store."""
    root = _session_trace_store.pop(session_id, None)
    _last_used.pop(session_id, None)
    if root:
        try:
            root.end()
            root.patch()
        except Exception as e:
            logging.warning(f"Could not close LangSmith trace for session {session_id}: {e}")
