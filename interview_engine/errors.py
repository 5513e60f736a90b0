"""Exception hierarchy for the interview engine.

Only failures that callers are expected to handle live here.  Scoring and
question-generation problems never surface as exceptions: those paths
fall back locally and log a warning instead.
"""

from __future__ import annotations


class InterviewEngineError(Exception):
    """Base class for all engine errors."""


class InvalidTransitionError(InterviewEngineError):
    """An event was applied to a session in a state that does not accept it."""

    def __init__(self, event: str, status: str, detail: str = "") -> None:
        self.event = event
        self.status = status
        message = f"Cannot apply {event} while session is {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SessionRestoreError(InterviewEngineError):
    """A persisted session record is corrupted or incompatible."""


class PersistenceError(InterviewEngineError):
    """The storage collaborator failed to write or read a record."""
