"""Difficulty schedule for the fixed six-question interview.

The schedule is a pure function of the question index:

    index      0     1     2       3       4     5
    tier       easy  easy  medium  medium  hard  hard
    seconds    20    20    60      60      120   120

Tier transitions (index 1 → 2 and 3 → 4) carry a required mean score for
the tier just finished.  The check is **advisory**: the interview always
moves on, and the decision is only recorded for reporting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from interview_engine import settings
from interview_engine.models.session import DIFFICULTY_SEQUENCE, TIME_LIMITS, Difficulty
from interview_engine.settings import TOTAL_QUESTIONS


@dataclass(frozen=True)
class TierTransition:
    """Required score for leaving one difficulty tier for the next."""

    from_difficulty: Difficulty
    to_difficulty: Difficulty
    boundary_index: int  # last question index of the outgoing tier
    required_score: float


def _check_index(index: int) -> None:
    if not 0 <= index < TOTAL_QUESTIONS:
        raise IndexError(f"question index {index} outside 0..{TOTAL_QUESTIONS - 1}")


def difficulty_for(index: int) -> Difficulty:
    """Return the difficulty tier for a question index."""
    _check_index(index)
    return DIFFICULTY_SEQUENCE[index]


def time_limit_for(index: int) -> int:
    """Return the time budget in seconds for a question index."""
    return TIME_LIMITS[difficulty_for(index)]


def stage_label_for(index: int) -> str:
    """Human-readable stage label, e.g. ``question_3_medium``."""
    return f"question_{index + 1}_{difficulty_for(index)}"


def schedule_for(index: int) -> dict[str, Any]:
    """Everything the engine needs to activate question ``index``."""
    return {
        "index": index,
        "difficulty": difficulty_for(index),
        "time_limit_seconds": time_limit_for(index),
        "stage": stage_label_for(index),
    }


def transitions() -> list[TierTransition]:
    """Tier transitions with thresholds read from settings."""
    return [
        TierTransition("easy", "medium", 1, settings.EASY_TO_MEDIUM_THRESHOLD),
        TierTransition("medium", "hard", 3, settings.MEDIUM_TO_HARD_THRESHOLD),
    ]


def transition_at(index: int) -> TierTransition | None:
    """Return the transition that follows question ``index``, if any."""
    for transition in transitions():
        if transition.boundary_index == index:
            return transition
    return None


def _tier_scores(difficulty: str, scores: Sequence[float | None]) -> list[float]:
    return [
        float(score or 0)
        for i, score in enumerate(scores[:TOTAL_QUESTIONS])
        if DIFFICULTY_SEQUENCE[i] == difficulty
    ]


def can_advance(index: int, scores: Sequence[float | None]) -> bool:
    """Whether the candidate has earned the next tier after question ``index``.

    ``scores`` is indexed by question index (missing scores count as 0).
    Within a tier the answer is always True; after the last question it is
    False because there is nothing to advance to.
    """
    _check_index(index)
    if index >= TOTAL_QUESTIONS - 1:
        return False
    transition = transition_at(index)
    if transition is None:
        return True
    tier = _tier_scores(transition.from_difficulty, scores)
    if not tier:
        return True
    return sum(tier) / len(tier) >= transition.required_score


def progression_decision(index: int, scores: Sequence[float | None]) -> dict[str, Any] | None:
    """Describe the tier-transition check after question ``index``.

    Returns None when ``index`` is not a tier boundary.
    """
    transition = transition_at(index)
    if transition is None:
        return None
    tier = _tier_scores(transition.from_difficulty, scores)
    average = sum(tier) / len(tier) if tier else 0.0
    return {
        "from_difficulty": transition.from_difficulty,
        "to_difficulty": transition.to_difficulty,
        "at_index": index,
        "required_score": transition.required_score,
        "average_score": round(average, 2),
        "met": can_advance(index, scores),
    }
