"""FastAPI backend exposing a single interview session over HTTP."""

from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from typing import Any, Callable

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from interview_engine.logging_config import setup_logging
from interview_engine.models.session import Candidate
from interview_engine.session.engine import SessionEngine
from interview_engine.session.records import JsonCompletionLog, JsonSessionStore
from interview_engine.settings import TOTAL_QUESTIONS

load_dotenv()
setup_logging()

# Env values pasted into deployment dashboards sometimes carry trailing whitespace.
for key in ("OPENAI_API_KEY", "OPENAI_CHAT_MODEL"):
    value = os.environ.get(key)
    if value:
        os.environ[key] = value.strip()

logger = logging.getLogger(__name__)

app = FastAPI(title="Interview Session Engine", version="0.1.0")
MAX_ANSWER_CHARS = 4000


def build_engine() -> SessionEngine:
    return SessionEngine(store=JsonSessionStore(), registry=JsonCompletionLog())


# One engine serves one session; /api/start replaces it.
engine_factory: Callable[[], SessionEngine] = build_engine
engine: SessionEngine | None = None
_engine_lock = threading.Lock()


# ── Request logging middleware ────────────────────────────────────────────

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with method, path, and response time."""
    request_id = uuid.uuid4().hex[:8]
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s -> %s (%.0fms) [rid=%s]",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        request_id,
    )
    response.headers["X-Request-ID"] = request_id
    return response


# ── Health check ──────────────────────────────────────────────────────────

@app.get("/health")
def health_check() -> JSONResponse:
    """Lightweight health probe for deployment platforms."""
    return JSONResponse({"status": "ok"})


class StartRequest(BaseModel):
    name: str = Field(default="", max_length=200)
    email: str = Field(default="", max_length=200)
    phone: str = Field(default="", max_length=50)
    candidate_id: str | None = Field(
        default=None,
        min_length=1,
        max_length=64,
        pattern=r"^[A-Za-z0-9_-]+$",
    )


class AnswerRequest(BaseModel):
    answer: str
    question_index: int | None = Field(default=None, ge=0, lt=TOTAL_QUESTIONS)


class SessionResponse(BaseModel):
    session_id: str
    status: str
    current_index: int
    total_questions: int = TOTAL_QUESTIONS
    question: dict[str, Any] | None = None
    remaining_seconds: float | None = None
    answers_submitted: int = 0
    accepted: bool | None = None
    final_score: int | None = None
    summary: str | None = None
    results: dict[str, Any] | None = None
    warnings: list[str] = Field(default_factory=list)


def _current_engine() -> SessionEngine:
    if engine is None:
        raise HTTPException(status_code=400, detail="No interview in progress. Start one first.")
    return engine


def _session_response(current: SessionEngine, accepted: bool | None = None) -> SessionResponse:
    session = current.snapshot()
    question = session.current_question
    record = current.completion_record
    return SessionResponse(
        session_id=session.session_id,
        status=session.status,
        current_index=session.current_index,
        question=question.model_dump(mode="json") if question else None,
        remaining_seconds=session.timer.remaining_seconds if question else None,
        answers_submitted=len(session.answers),
        accepted=accepted,
        final_score=session.final_score,
        summary=session.summary,
        results=record.model_dump(mode="json") if record else None,
        warnings=list(current.warnings),
    )


@app.post("/api/start", response_model=SessionResponse)
def start_session(req: StartRequest) -> SessionResponse:
    """Start a new interview for the given candidate."""
    global engine

    candidate = Candidate(
        candidate_id=req.candidate_id or f"candidate_{uuid.uuid4().hex[:8]}",
        name=req.name,
        email=req.email,
        phone=req.phone,
    )
    missing = candidate.missing_fields()
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Missing required fields: {', '.join(missing)}",
        )

    with _engine_lock:
        if engine is not None:
            engine.close()
        engine = engine_factory()
        engine.initialize(candidate)
        engine.start()
        current = engine
    return _session_response(current)


@app.post("/api/answer", response_model=SessionResponse)
def submit_answer(req: AnswerRequest) -> SessionResponse:
    """Submit an answer for the active question."""
    answer = req.answer.strip()
    if not answer:
        raise HTTPException(status_code=400, detail="Answer cannot be empty.")
    if len(answer) > MAX_ANSWER_CHARS:
        raise HTTPException(
            status_code=400,
            detail=f"Answer too long. Maximum length is {MAX_ANSWER_CHARS} characters.",
        )

    current = _current_engine()
    accepted = current.submit_answer(answer, expected_index=req.question_index)
    if not accepted:
        raise HTTPException(
            status_code=409,
            detail="Answer not accepted: the question was already resolved or the interview is not running.",
        )
    return _session_response(current, accepted=True)


@app.post("/api/pause", response_model=SessionResponse)
def pause_session() -> SessionResponse:
    current = _current_engine()
    if not current.pause():
        raise HTTPException(status_code=409, detail="Only a running interview can be paused.")
    return _session_response(current)


@app.post("/api/resume", response_model=SessionResponse)
def resume_session() -> SessionResponse:
    current = _current_engine()
    if not current.resume():
        raise HTTPException(status_code=409, detail="Only a paused interview can be resumed.")
    return _session_response(current)


@app.get("/api/session", response_model=SessionResponse)
def get_session() -> SessionResponse:
    """Current session state, including results once the interview is complete."""
    return _session_response(_current_engine())


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    print(f"Starting interview API on http://localhost:{port}")
    uvicorn.run(app, host="0.0.0.0", port=port)
