"""Thread-safe per-session store for the uploaded document and Q&A history.

Every session owns its own record, so concurrent uploads from different
browsers never overwrite each other. Reads return snapshots. A record idle
for longer than SESSION_MAX_AGE_S (the session cookie lifetime) is dropped.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any

import config


@dataclass(frozen=True)
class ConversationTurn:
    question: str
    answer: str
    timestamp: int  # epoch milliseconds

    def to_dict(self) -> dict[str, Any]:
        return {"q": self.question, "a": self.answer, "ts": self.timestamp}


@dataclass
class _SessionRecord:
    document_text: str = ""
    extracted: dict[str, Any] | None = None
    history: list[ConversationTurn] = field(default_factory=list)
    last_access: float = 0.0  # monotonic seconds


_lock = threading.Lock()
_sessions: dict[str, _SessionRecord] = {}   # session_id → record


def _now_ms() -> int:
    return int(time.time() * 1000)


def _clock() -> float:
    return time.monotonic()


def _prune_locked(now: float) -> None:
    """Drop idle records. Caller holds _lock."""
    cutoff = now - config.SESSION_MAX_AGE_S
    for sid in [sid for sid, record in _sessions.items() if record.last_access < cutoff]:
        del _sessions[sid]


def _live_locked(session_id: str) -> _SessionRecord | None:
    """The session's record if it has not expired, touched. Caller holds _lock."""
    now = _clock()
    _prune_locked(now)
    record = _sessions.get(session_id)
    if record:
        record.last_access = now
    return record


def record_upload(session_id: str, text: str, extracted: dict[str, Any]) -> None:
    """Replace the session's document + fields and reset its history in one step."""
    with _lock:
        now = _clock()
        _prune_locked(now)
        _sessions[session_id] = _SessionRecord(document_text=text, extracted=dict(extracted), last_access=now)


def append_turn(session_id: str, question: str, answer: str) -> ConversationTurn:
    """Append a Q&A turn. Timestamps never go backwards within a session."""
    with _lock:
        record = _live_locked(session_id)
        if record is None:
            record = _sessions[session_id] = _SessionRecord(last_access=_clock())
        ts = _now_ms()
        if record.history:
            ts = max(ts, record.history[-1].timestamp)
        turn = ConversationTurn(question=question, answer=answer, timestamp=ts)
        record.history.append(turn)
    return turn


def clear_history(session_id: str) -> None:
    """Empty the session's history; the document stays."""
    with _lock:
        record = _live_locked(session_id)
        if record:
            record.history.clear()


def get_history(session_id: str) -> list[ConversationTurn]:
    with _lock:
        record = _live_locked(session_id)
        return list(record.history) if record else []


def get_document_text(session_id: str) -> str:
    with _lock:
        record = _live_locked(session_id)
        return record.document_text if record else ""


def get_extracted(session_id: str) -> dict[str, Any] | None:
    with _lock:
        record = _live_locked(session_id)
        if record is None or record.extracted is None:
            return None
        return dict(record.extracted)


def reset() -> None:
    """Clear all state. Used for testing."""
    with _lock:
        _sessions.clear()
