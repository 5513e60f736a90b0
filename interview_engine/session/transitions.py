"""Pure session reducer: ``apply(session, event) -> new session``.

Every state change of an interview goes through ``apply``.  Handlers never
mutate their input (sessions are frozen pydantic models) and raise
``InvalidTransitionError`` for events the current state does not accept,
which keeps the lifecycle rules in one place and testable without clocks,
threads or storage.

    idle --Initialize--> ready --ActivateQuestion--> in-progress
    in-progress --Pause--> paused --Resume--> in-progress
    in-progress --AnswerAccepted (6th)--> completed
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Union

from interview_engine.errors import InvalidTransitionError
from interview_engine.models.session import (
    Answer,
    Evaluation,
    ProgressionNote,
    Question,
    Session,
    TimerState,
)
from interview_engine.settings import TOTAL_QUESTIONS


@dataclass(frozen=True)
class Initialize:
    candidate_id: str


@dataclass(frozen=True)
class ActivateQuestion:
    question: Question
    timer: TimerState
    at: datetime


@dataclass(frozen=True)
class Pause:
    timer: TimerState


@dataclass(frozen=True)
class Resume:
    timer: TimerState


@dataclass(frozen=True)
class AnswerAccepted:
    answer: Answer
    timer: TimerState


@dataclass(frozen=True)
class EvaluationAttached:
    index: int
    evaluation: Evaluation


@dataclass(frozen=True)
class Finalized:
    final_score: int
    summary: str


@dataclass(frozen=True)
class TimerSynced:
    timer: TimerState


@dataclass(frozen=True)
class ProgressionNoted:
    note: ProgressionNote


Event = Union[
    Initialize,
    ActivateQuestion,
    Pause,
    Resume,
    AnswerAccepted,
    EvaluationAttached,
    Finalized,
    TimerSynced,
    ProgressionNoted,
]


def _reject(event: object, session: Session, detail: str = "") -> InvalidTransitionError:
    return InvalidTransitionError(type(event).__name__, session.status, detail)


# ── Handlers ──────────────────────────────────────────────────────────────


def _initialize(session: Session, event: Initialize) -> Session:
    if session.status != "idle":
        raise _reject(event, session)
    return session.model_copy(update={"status": "ready", "candidate_id": event.candidate_id})


def _activate(session: Session, event: ActivateQuestion) -> Session:
    next_index = session.current_index + 1
    if session.status == "ready":
        update: dict = {"started_at": event.at}
    elif session.status == "in-progress":
        if len(session.answers) != next_index:
            raise _reject(event, session, f"question {session.current_index} is unresolved")
        update = {}
    else:
        raise _reject(event, session)
    if next_index >= TOTAL_QUESTIONS:
        raise _reject(event, session, "no questions remain")
    if event.question.index != next_index:
        raise _reject(event, session, f"expected question {next_index}, got {event.question.index}")
    update.update(
        status="in-progress",
        current_index=next_index,
        questions=[*session.questions, event.question],
        timer=event.timer,
    )
    return session.model_copy(update=update)


def _pause(session: Session, event: Pause) -> Session:
    if session.status != "in-progress":
        raise _reject(event, session)
    return session.model_copy(update={"status": "paused", "timer": event.timer})


def _resume(session: Session, event: Resume) -> Session:
    if session.status != "paused":
        raise _reject(event, session)
    return session.model_copy(update={"status": "in-progress", "timer": event.timer})


def _accept_answer(session: Session, event: AnswerAccepted) -> Session:
    if session.status != "in-progress":
        raise _reject(event, session)
    answer = event.answer
    if answer.index != session.current_index:
        raise _reject(event, session, f"answer for {answer.index}, active is {session.current_index}")
    if len(session.answers) != session.current_index:
        raise _reject(event, session, f"question {answer.index} already answered")
    answers = [*session.answers, answer]
    update: dict = {"answers": answers, "timer": event.timer}
    if len(answers) == TOTAL_QUESTIONS:
        update.update(status="completed", completed_at=answer.submitted_at)
    return session.model_copy(update=update)


def _attach_evaluation(session: Session, event: EvaluationAttached) -> Session:
    if not 0 <= event.index < len(session.answers):
        raise _reject(event, session, f"no answer at index {event.index}")
    current = session.answers[event.index]
    if current.is_scored:
        raise _reject(event, session, f"answer {event.index} is already scored")
    evaluation = event.evaluation
    scored = current.model_copy(
        update={
            "score": evaluation.score,
            "feedback": evaluation.feedback,
            "strengths": list(evaluation.strengths),
            "improvements": list(evaluation.improvements),
            "evaluation_method": evaluation.method,
        }
    )
    answers = list(session.answers)
    answers[event.index] = scored
    return session.model_copy(update={"answers": answers})


def _finalize(session: Session, event: Finalized) -> Session:
    if session.status != "completed":
        raise _reject(event, session)
    if session.final_score is not None:
        raise _reject(event, session, "already finalized")
    if not all(a.is_scored for a in session.answers):
        raise _reject(event, session, "evaluations still pending")
    return session.model_copy(
        update={"final_score": event.final_score, "summary": event.summary}
    )


def _sync_timer(session: Session, event: TimerSynced) -> Session:
    return session.model_copy(update={"timer": event.timer})


def _note_progression(session: Session, event: ProgressionNoted) -> Session:
    if any(n.at_index == event.note.at_index for n in session.progression_notes):
        raise _reject(event, session, f"progression after {event.note.at_index} already noted")
    return session.model_copy(
        update={"progression_notes": [*session.progression_notes, event.note]}
    )


_HANDLERS: dict[type, Callable[[Session, Event], Session]] = {
    Initialize: _initialize,
    ActivateQuestion: _activate,
    Pause: _pause,
    Resume: _resume,
    AnswerAccepted: _accept_answer,
    EvaluationAttached: _attach_evaluation,
    Finalized: _finalize,
    TimerSynced: _sync_timer,
    ProgressionNoted: _note_progression,
}


def apply(session: Session, event: Event) -> Session:
    """Return the session that results from applying ``event``."""
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"unknown session event {type(event).__name__}")
    return handler(session, event)
