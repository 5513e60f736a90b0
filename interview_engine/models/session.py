"""Shared data model for a timed interview session.

The session is a tree of immutable pydantic models.  Every change produces
a new ``Session`` through the reducer in ``interview_engine.session.transitions``;
nothing in this module mutates state in place.

Ordering rules the rest of the engine relies on:
  - ``questions[i].index == i`` and ``answers[i].index == i``
  - an Answer is appended once per index; the only later change is the
    evaluation result being attached (score + feedback)
  - ``status == "completed"`` exactly when six answers exist
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from interview_engine.settings import MAX_SCORE, MIN_SCORE, TOTAL_QUESTIONS

Difficulty = Literal["easy", "medium", "hard"]
SessionStatus = Literal["idle", "ready", "in-progress", "paused", "completed"]

DIFFICULTY_SEQUENCE: tuple[Difficulty, ...] = ("easy", "easy", "medium", "medium", "hard", "hard")
TIME_LIMITS: dict[str, int] = {"easy": 20, "medium": 60, "hard": 120}

_FROZEN = ConfigDict(frozen=True, extra="forbid")


class Candidate(BaseModel):
    """Prerequisite candidate data collected before an interview can begin."""

    model_config = _FROZEN

    candidate_id: str = Field(..., min_length=1)
    name: str = ""
    email: str = ""
    phone: str = ""

    def missing_fields(self) -> list[str]:
        """Return the required contact fields that are still empty."""
        return [
            field
            for field in ("name", "email", "phone")
            if not getattr(self, field).strip()
        ]


class Question(BaseModel):
    """A single interview question. Immutable once created."""

    model_config = _FROZEN

    id: str
    index: int = Field(..., ge=0, lt=TOTAL_QUESTIONS)
    difficulty: Difficulty
    time_limit_seconds: int = Field(..., gt=0)
    category: str = "general"
    prompt_text: str = Field(..., min_length=1)
    question_type: str = "technical"


class Evaluation(BaseModel):
    """Result of scoring one answer, remote or heuristic."""

    model_config = _FROZEN

    score: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    feedback: str = ""
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    method: str = "heuristic"


class Answer(BaseModel):
    """A candidate's answer to the question at ``index``.

    ``score`` is ``None`` while the evaluation is still in flight.
    """

    model_config = _FROZEN

    question_id: str
    index: int = Field(..., ge=0, lt=TOTAL_QUESTIONS)
    text: str
    submitted_at: datetime
    auto_submitted: bool = False
    score: int | None = Field(default=None, ge=MIN_SCORE, le=MAX_SCORE)
    feedback: str = ""
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    time_spent_seconds: float = Field(default=0.0, ge=0.0)
    evaluation_method: str | None = None

    @property
    def is_scored(self) -> bool:
        return self.score is not None


class TimerState(BaseModel):
    """Snapshot of the per-question countdown."""

    model_config = _FROZEN

    remaining_seconds: float = Field(default=0.0, ge=0.0)
    total_seconds: float = Field(default=0.0, ge=0.0)
    running: bool = False
    reference_start: float | None = None


class ProgressionNote(BaseModel):
    """Advisory record of a difficulty-tier transition decision."""

    model_config = _FROZEN

    from_difficulty: Difficulty
    to_difficulty: Difficulty
    at_index: int
    required_score: float
    average_score: float
    met: bool


class Session(BaseModel):
    """Full state of one interview session."""

    model_config = _FROZEN

    session_id: str = Field(..., min_length=1)
    candidate_id: str | None = None
    status: SessionStatus = "idle"
    current_index: int = Field(default=-1, ge=-1, lt=TOTAL_QUESTIONS)
    questions: list[Question] = Field(default_factory=list)
    answers: list[Answer] = Field(default_factory=list, max_length=TOTAL_QUESTIONS)
    timer: TimerState = Field(default_factory=TimerState)
    final_score: int | None = Field(default=None, ge=MIN_SCORE, le=MAX_SCORE)
    summary: str | None = None
    progression_notes: list[ProgressionNote] = Field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def current_question(self) -> Question | None:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def is_complete(self) -> bool:
        return self.status == "completed"

    def scores(self) -> list[int | None]:
        """Scores in question order (``None`` for pending evaluations)."""
        return [a.score for a in self.answers]


class CompletionRecord(BaseModel):
    """Finished-interview record handed to the candidate registry."""

    model_config = _FROZEN

    candidate_id: str | None
    session_id: str
    final_score: int
    summary: str
    answers: list[Answer]
    completed_at: datetime
    breakdown: dict[str, dict[str, float]] = Field(default_factory=dict)


def check_invariants(session: Session) -> list[str]:
    """Return a list of violated session invariants (empty when consistent)."""
    problems: list[str] = []
    answers = session.answers

    for i, answer in enumerate(answers):
        if answer.index != i:
            problems.append(f"answers[{i}].index is {answer.index}")
    for i, question in enumerate(session.questions):
        if question.index != i:
            problems.append(f"questions[{i}].index is {question.index}")
        if question.difficulty != DIFFICULTY_SEQUENCE[i]:
            problems.append(f"questions[{i}] has difficulty {question.difficulty}")

    if len(answers) > TOTAL_QUESTIONS:
        problems.append(f"{len(answers)} answers exceed {TOTAL_QUESTIONS}")
    if len(answers) > len(session.questions):
        problems.append("more answers than questions")
    if session.current_index >= 0 and len(session.questions) != session.current_index + 1:
        problems.append(
            f"current_index {session.current_index} but {len(session.questions)} questions"
        )
    if len(answers) not in (session.current_index, session.current_index + 1):
        problems.append(
            f"{len(answers)} answers for current_index {session.current_index}"
        )

    completed = session.status == "completed"
    if completed != (len(answers) == TOTAL_QUESTIONS):
        problems.append(f"status {session.status} with {len(answers)} answers")
    if session.status in ("in-progress", "paused") and session.current_question is None:
        problems.append(f"status {session.status} without an active question")
    if session.status in ("idle", "ready") and (session.questions or answers):
        problems.append(f"status {session.status} with questions or answers")

    timer = session.timer
    if timer.remaining_seconds > timer.total_seconds:
        problems.append("timer remaining exceeds total")

    if session.final_score is not None:
        if not completed:
            problems.append("final_score set before completion")
        elif any(a.score is None for a in answers):
            problems.append("final_score set with pending evaluations")
        else:
            mean = sum(a.score for a in answers) / len(answers)
            if session.final_score != math.floor(mean + 0.5):
                problems.append(f"final_score {session.final_score} != mean {mean:.2f}")

    return problems
