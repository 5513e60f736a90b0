"""Score aggregation — final score, summary and per-difficulty breakdown.

The final score is the arithmetic mean of the six per-answer scores,
rounded half-up to an integer (so 64.5 becomes 65, never banker's 64).
"""

from __future__ import annotations

import math
from typing import Any, Callable, Sequence

import numpy as np

from interview_engine.models.session import Answer, CompletionRecord, DIFFICULTY_SEQUENCE
from interview_engine.settings import classify_score

STRONG_AREA_SCORE = 70
WEAK_AREA_SCORE = 60


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 always going up."""
    return int(math.floor(value + 0.5))


def _scores(answers: Sequence[Answer]) -> np.ndarray:
    pending = [a.index for a in answers if a.score is None]
    if pending:
        raise ValueError(f"answers {pending} have no score yet")
    return np.array([a.score for a in answers], dtype=float)


def final_score(answers: Sequence[Answer]) -> int:
    """Mean of all answer scores, rounded half-up.  Empty input scores 0."""
    scores = _scores(answers)
    if scores.size == 0:
        return 0
    return round_half_up(float(np.mean(scores)))


def build_summary(answers: Sequence[Answer], score: int) -> str:
    """Template summary for the interviewer, keyed on the final score band."""
    scores = _scores(answers)
    strong = int(np.sum(scores >= STRONG_AREA_SCORE))
    weak = int(np.sum(scores < WEAK_AREA_SCORE))
    total = len(answers)

    if score >= 80:
        return (
            f"Candidate demonstrated excellent technical skills, with {strong} out of "
            f"{total} questions scored as strong areas. Shows deep understanding of "
            f"full-stack development concepts, particularly in React and system "
            f"architecture. Would be a strong addition to any development team."
        )
    if score >= 60:
        return (
            f"Candidate showed good technical competency with solid understanding of "
            f"core concepts. Performed well in {strong} areas while showing some gaps "
            f"in {weak} topics. Has a good foundation and learning potential for "
            f"further development."
        )
    return (
        f"Candidate displayed basic understanding of technical concepts but requires "
        f"significant improvement in {weak} key areas, with {strong} strong "
        f"{'area' if strong == 1 else 'areas'} out of {total} questions. Recommended "
        f"to focus on fundamental programming concepts and gain more hands-on "
        f"experience with React and Node.js development."
    )


def performance_breakdown(answers: Sequence[Answer]) -> dict[str, dict[str, float]]:
    """Per-difficulty statistics: count, average, best, worst, auto-submitted."""
    breakdown: dict[str, dict[str, float]] = {}
    for difficulty in dict.fromkeys(DIFFICULTY_SEQUENCE):
        tier = [a for a in answers if DIFFICULTY_SEQUENCE[a.index] == difficulty]
        if not tier:
            continue
        scores = _scores(tier)
        breakdown[difficulty] = {
            "count": float(len(tier)),
            "average": round(float(np.mean(scores)), 2),
            "best": float(np.max(scores)),
            "worst": float(np.min(scores)),
            "auto_submitted": float(sum(1 for a in tier if a.auto_submitted)),
        }
    return breakdown


def finalize(
    answers: Sequence[Answer],
    summarize: Callable[[Sequence[Answer], int], str] | None = None,
) -> dict[str, Any]:
    """Compute everything the completion record needs.

    ``summarize(answers, final_score)`` replaces the template summary when
    given.  Raises ValueError while any answer is still awaiting its score.
    """
    score = final_score(answers)
    return {
        "final_score": score,
        "summary": (summarize or build_summary)(answers, score),
        "breakdown": performance_breakdown(answers),
    }


def format_results(record: CompletionRecord) -> str:
    """Pretty-print a completion record for the terminal."""
    lines = [
        "",
        "═" * 60,
        "  INTERVIEW RESULTS",
        "═" * 60,
        f"  Final Score    : {record.final_score}/100 ({classify_score(record.final_score)})",
        f"  Candidate      : {record.candidate_id or 'unknown'}",
        "",
        "  Per-question scores:",
    ]
    for answer in record.answers:
        flag = "  (time expired)" if answer.auto_submitted else ""
        score = "pending" if answer.score is None else f"{answer.score:3d}"
        lines.append(
            f"    Q{answer.index + 1} {DIFFICULTY_SEQUENCE[answer.index]:6s} {score}{flag}"
        )

    if record.breakdown:
        lines.append("")
        lines.append("  By difficulty:")
        for difficulty, stats in record.breakdown.items():
            lines.append(
                f"    {difficulty:6s} avg {stats['average']:5.1f}  "
                f"best {stats['best']:3.0f}  worst {stats['worst']:3.0f}"
            )

    lines.append("")
    lines.append(f"  {record.summary}")
    lines.append("═" * 60)
    return "\n".join(lines)
