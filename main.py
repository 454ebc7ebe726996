"""FastAPI entrypoint: document upload, field extraction and Q&A via REST."""

import asyncio
import logging
import uuid

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from config import (
    HOST, PORT, LOG_LEVEL, MAX_UPLOAD_BYTES, SESSION_SECRET, SESSION_MAX_AGE_S,
    REQUEST_TIMEOUT_MS, KEEPALIVE_TIMEOUT_MS,
)
from pipeline.builder import build_graph
from pipeline.llm import LanguageModel, clear_llm_instance, get_model
from pipeline.qa import answer_question
from pipeline.state import initial_state
from pipeline.text_extractor import is_image
from sessions import document_store
from langsmith_tracing import document_trace, continue_document_trace, clear_document_trace

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# ── App + graph ─────────────────────────────────────────────────────────
app = FastAPI(title="Loan Document Assistant", version="1.0.0")
graph = build_graph()

SUPPORTED_TYPES = ("text/plain", "application/pdf")


@app.on_event("shutdown")
def on_shutdown():
    # Cached Gemini clients hold HTTP sessions bound to the serving event loop
    clear_llm_instance()


@app.middleware("http")
async def request_timeout(request: Request, call_next):
    """Blanket per-request timeout; in-flight model calls are not cancelled provider-side."""
    try:
        return await asyncio.wait_for(call_next(request), timeout=REQUEST_TIMEOUT_MS / 1000)
    except asyncio.TimeoutError:
        logging.error(f"{request.method} {request.url.path} timed out after {REQUEST_TIMEOUT_MS}ms")
        return JSONResponse(status_code=504, content={"error": "Request timed out"})


# Outermost middleware (added last): request.session must exist before any handler runs
app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET,
    max_age=SESSION_MAX_AGE_S,
)


# ── Error shape: {"error": "..."} everywhere ───────────────────────────
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


# ── Request models ──────────────────────────────────────────────────────
class AskRequest(BaseModel):
    question: str = ""


# ── Helpers ─────────────────────────────────────────────────────────────
def session_id(request: Request) -> str:
    """Stable id for the browser session, minted on first use."""
    sid = request.session.get("sid")
    if not sid:
        sid = uuid.uuid4().hex
        request.session["sid"] = sid
    return sid


def _is_supported(media_type: str) -> bool:
    return media_type in SUPPORTED_TYPES or is_image(media_type)


# ── Endpoints ───────────────────────────────────────────────────────────

@app.post("/api/upload")
async def upload(
    file: UploadFile | None = File(None),
    sid: str = Depends(session_id),
    model: LanguageModel = Depends(get_model),
):
    """Extract text + loan fields from an uploaded document. Resets the session's Q&A history."""
    if file is None or not file.filename:
        raise HTTPException(400, "No file uploaded")
    media_type = (file.content_type or "").split(";")[0].strip().lower()  # drop charset etc.
    if not _is_supported(media_type):
        raise HTTPException(400, "Unsupported file type")

    content = await file.read(MAX_UPLOAD_BYTES + 1)  # never buffer more than one byte past the limit
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(413, "File too large")

    try:
        with document_trace(sid, file.filename):
            result = await graph.ainvoke(
                initial_state(file.filename, media_type, content),
                {"configurable": {"model": model}},
            )
    except Exception:
        logging.exception("/api/upload error")
        return JSONResponse(status_code=500, content={"error": "Failed to process upload"})

    if not result["readable"]:
        raise HTTPException(400, "Uploaded file is empty or unreadable")

    document_store.record_upload(sid, result["text"], result["extracted"])
    return {"extracted": result["extracted"]}


@app.post("/api/ask")
async def ask(
    req: AskRequest,
    sid: str = Depends(session_id),
    model: LanguageModel = Depends(get_model),
):
    """Answer a question about the session's document; the turn is appended to history."""
    question = req.question or ""
    if not question.strip():
        raise HTTPException(400, "Missing question")
    document_text = document_store.get_document_text(sid)
    if not document_text:
        raise HTTPException(400, "No document uploaded yet")

    try:
        with continue_document_trace(sid):
            answer = await answer_question(document_text, question, document_store.get_history(sid), model)
    except Exception:
        logging.exception("/api/ask error")
        return JSONResponse(status_code=500, content={"error": "Failed to answer question"})

    document_store.append_turn(sid, question, answer)
    return {"answer": answer}


@app.get("/api/history")
def history(sid: str = Depends(session_id)):
    return {"history": [turn.to_dict() for turn in document_store.get_history(sid)]}


@app.post("/api/history/clear")
def clear_history(sid: str = Depends(session_id)):
    """Clear this session's Q&A history only; the document stays."""
    document_store.clear_history(sid)
    clear_document_trace(sid)
    return {"ok": True}


@app.get("/api/extracted")
def extracted(sid: str = Depends(session_id)):
    return {"extracted": document_store.get_extracted(sid)}


@app.get("/health")
def health():
    return {"ok": True}


# ── Run ─────────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=HOST, port=PORT, timeout_keep_alive=KEEPALIVE_TIMEOUT_MS // 1000)
