"""Heuristic scorer — rule-based scoring of a technical answer.

Combines five independently scored criteria (each 0–100) into a weighted
sum, then adjusts for difficulty and applies length / structure /
relevance multipliers.

This scorer requires NO API calls — it runs entirely locally and is
fully deterministic, which makes it the fallback whenever the remote
scorer is disabled, slow, or returns something unusable.

The score formula is:
    raw     = Σ (weight * criterion_score)
    score   = raw * difficulty_multiplier
    score  *= 0.6  if fewer than 15 words
    score  *= 1.1  if structure_score > 0.8
    score  *= 0.7  if relevance < 0.3
    score   = clip(round_half_up(score), 0, 100)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from interview_engine.extraction.answer_features import AnswerFeatures, extract_answer_features
from interview_engine.scoring.aggregator import round_half_up
from interview_engine.settings import MAX_SCORE, MIN_SCORE, classify_score


def _clip(value: float) -> float:
    return max(float(MIN_SCORE), min(float(MAX_SCORE), value))


def _to_score(value: float) -> int:
    """Round half-up, the same way the final score is rounded, then clip."""
    return int(_clip(round_half_up(value)))


# ── Criteria ──────────────────────────────────────────────────────────────


def technical_accuracy(f: AnswerFeatures, difficulty: str) -> float:
    score = 50.0
    score += min(f.keyword_matches * 5, 20)
    score += f.technical_depth * 10
    if f.word_count < 20:
        score -= 20
    if difficulty == "hard":
        score *= 0.9
    return _clip(score)


def completeness(f: AnswerFeatures, difficulty: str) -> float:
    score = min(f.length_ratio * 60, 60)
    score += f.structure_score * 20
    if f.sentence_count >= 3:
        score += 20
    return _clip(score)


def clarity(f: AnswerFeatures, difficulty: str) -> float:
    score = 50.0
    score += f.structure_score * 20
    if 30 <= f.word_count <= 300:
        score += 20
    if f.structure_score < 0.3:
        score -= 20
    return _clip(score)


def examples(f: AnswerFeatures, difficulty: str) -> float:
    score = 0.0
    if f.contains_examples:
        score += 60
    if f.contains_code:
        score += 30
    if difficulty == "hard" and not f.contains_examples:
        score = max(score, 30)
    return _clip(score)


def technical_depth(f: AnswerFeatures, difficulty: str) -> float:
    score = f.technical_depth * 70
    if f.word_count > 100:
        score += 20
    if f.keyword_matches >= 3:
        score += 10
    if difficulty == "hard" and f.technical_depth < 0.7:
        score *= 0.7
    return _clip(score)


@dataclass
class CriterionWeight:
    """A single criterion's scoring parameters."""

    name: str
    weight: float
    scorer: Callable[[AnswerFeatures, str], float]


WEIGHTS: list[CriterionWeight] = [
    CriterionWeight("technical_accuracy", 0.35, technical_accuracy),
    CriterionWeight("completeness", 0.25, completeness),
    CriterionWeight("clarity", 0.15, clarity),
    CriterionWeight("examples", 0.15, examples),
    CriterionWeight("depth", 0.10, technical_depth),
]

DIFFICULTY_MULTIPLIERS: dict[str, float] = {"easy": 1.1, "medium": 1.0, "hard": 0.9}

SHORT_ANSWER_WORDS = 15
SHORT_ANSWER_PENALTY = 0.6
STRUCTURE_BONUS_THRESHOLD = 0.8
STRUCTURE_BONUS = 1.1
RELEVANCE_THRESHOLD = 0.3
RELEVANCE_PENALTY = 0.7


def _feedback(score: int, f: AnswerFeatures, difficulty: str) -> dict[str, Any]:
    strengths: list[str] = []
    improvements: list[str] = []

    if f.technical_depth > 0.7:
        strengths.append("Strong technical understanding")
    if f.contains_examples:
        strengths.append("Good use of practical examples")
    if f.contains_code:
        strengths.append("Illustrated the answer with code")
    if f.structure_score > 0.7:
        strengths.append("Well-structured answer")
    if f.keyword_matches >= 3:
        strengths.append("Comprehensive coverage of key concepts")

    if f.word_count < 50:
        improvements.append("Provide more detailed explanations")
    if not f.contains_examples and difficulty != "easy":
        improvements.append("Include practical examples or use cases")
    if f.structure_score < 0.5:
        improvements.append("Improve answer structure with clear introduction and conclusion")
    if f.relevance < 0.6:
        improvements.append("Focus more directly on the question asked")

    band = classify_score(score)
    overall = {
        "excellent": "Excellent answer! Demonstrates strong understanding and clear communication.",
        "good": "Good answer with solid understanding. Consider adding more depth and examples.",
        "fair": "Basic understanding shown. Focus on providing more detailed explanations and examples.",
        "poor": "Needs significant improvement. Review the fundamental concepts and practice explaining them clearly.",
    }[band]
    return {"feedback": overall, "strengths": strengths, "improvements": improvements}


def score_with_heuristics(
    answer_text: str,
    *,
    question_text: str = "",
    category: str = "general",
    difficulty: str = "easy",
) -> dict[str, Any]:
    """Score an answer with the local weighted heuristic.

    Returns
    -------
    dict
        {
            "method": "heuristic",
            "score": int (0–100),
            "feedback": str,
            "strengths": [str, ...],
            "improvements": [str, ...],
            "criteria": {criterion_name: score, ...},
            "features_used": {feature_name: value, ...},
        }
    """
    features = extract_answer_features(
        answer_text,
        question_text=question_text,
        category=category,
        difficulty=difficulty,
    )

    if features.word_count == 0:
        return {
            "method": "heuristic",
            "score": MIN_SCORE,
            "feedback": "No answer was provided.",
            "strengths": [],
            "improvements": ["Attempt an answer, even a partial one"],
            "criteria": {},
            "features_used": features.to_dict(),
            "warning": "Empty answer, scored as zero.",
        }

    criteria: dict[str, float] = {}
    raw = 0.0
    for w in WEIGHTS:
        value = w.scorer(features, difficulty)
        criteria[w.name] = round(value, 2)
        raw += w.weight * value

    adjusted = raw * DIFFICULTY_MULTIPLIERS.get(difficulty, 1.0)
    if features.word_count < SHORT_ANSWER_WORDS:
        adjusted *= SHORT_ANSWER_PENALTY
    if features.structure_score > STRUCTURE_BONUS_THRESHOLD:
        adjusted *= STRUCTURE_BONUS
    if features.relevance < RELEVANCE_THRESHOLD:
        adjusted *= RELEVANCE_PENALTY

    score = _to_score(adjusted)

    return {
        "method": "heuristic",
        "score": score,
        **_feedback(score, features, difficulty),
        "criteria": criteria,
        "features_used": features.to_dict(),
        "raw_weighted_score": round(raw, 2),
    }


def explain_score(result: dict[str, Any]) -> str:
    """Generate a human-readable explanation of a heuristic score."""
    lines = [
        f"Heuristic Score: {result['score']}/100 → {classify_score(result['score'])}",
        "",
        "Criteria (weighted):",
    ]
    criteria = result.get("criteria", {})
    for w in WEIGHTS:
        if w.name in criteria:
            lines.append(f"  {w.name:20s} {criteria[w.name]:6.1f}  x{w.weight:.2f}")
    for label, key in (("Strengths", "strengths"), ("Improvements", "improvements")):
        items = result.get(key) or []
        if items:
            lines.append("")
            lines.append(f"{label}:")
            lines.extend(f"  - {item}" for item in items)
    return "\n".join(lines)
