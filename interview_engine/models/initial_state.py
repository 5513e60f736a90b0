"""Factory helpers for creating fresh session payloads."""

from __future__ import annotations

import uuid

from interview_engine.models.session import Session


def new_session_id() -> str:
    return f"session_{uuid.uuid4().hex[:12]}"


def new_session(session_id: str | None = None, candidate_id: str | None = None) -> Session:
    """Return a fresh ``idle`` session used by CLI and web entrypoints."""
    return Session(
        session_id=session_id or new_session_id(),
        candidate_id=candidate_id,
        status="idle",
        current_index=-1,
    )
