"""Tests for final score aggregation and reporting."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from interview_engine.models.session import Answer, CompletionRecord
from interview_engine.scoring.aggregator import (
    final_score,
    finalize,
    format_results,
    performance_breakdown,
    round_half_up,
)

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _answers(scores, auto=()):
    return [
        Answer(
            question_id=f"q{i}",
            index=i,
            text="[time expired]" if i in auto else f"answer {i}",
            submitted_at=NOW,
            auto_submitted=i in auto,
            score=score,
        )
        for i, score in enumerate(scores)
    ]


class TestRounding:
    @pytest.mark.parametrize(
        "value, expected",
        [(64.5, 65), (64.49, 64), (65.5, 66), (0.5, 1), (100.0, 100)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestFinalScore:
    def test_reference_example(self):
        assert final_score(_answers([80, 60, 90, 50, 70, 40])) == 65

    def test_half_rounds_up(self):
        # mean 64.5
        assert final_score(_answers([65, 64, 65, 64, 65, 64])) == 65

    def test_pending_scores_rejected(self):
        with pytest.raises(ValueError, match="no score"):
            final_score(_answers([80, None, 90, 50, 70, 40]))

    def test_empty(self):
        assert final_score([]) == 0


class TestSummary:
    def test_excellent_band(self):
        result = finalize(_answers([90, 85, 80, 95, 65, 85]))
        assert result["final_score"] == 83
        assert "excellent technical skills" in result["summary"]
        assert "5 out of 6 questions scored as strong areas" in result["summary"]

    def test_good_band_mentions_strong_and_weak_areas(self):
        result = finalize(_answers([80, 60, 90, 50, 70, 40]))
        assert "good technical competency" in result["summary"]
        assert "Performed well in 3 areas" in result["summary"]
        assert "gaps in 2 topics" in result["summary"]

    def test_needs_improvement_band(self):
        result = finalize(_answers([30, 40, 20, 50, 0, 10]))
        assert "requires significant improvement in 6 key areas" in result["summary"]
        assert "0 strong areas out of 6 questions" in result["summary"]

    def test_needs_improvement_band_counts_strong_answers(self):
        result = finalize(_answers([30, 40, 20, 50, 75, 10]))
        assert result["final_score"] == 38
        assert "improvement in 5 key areas, with 1 strong area out of 6" in result["summary"]

    def test_custom_summarizer_replaces_template(self):
        calls = []

        def summarize(answers, score):
            calls.append((len(answers), score))
            return "Remote summary."

        result = finalize(_answers([80, 60, 90, 50, 70, 40]), summarize)
        assert result["summary"] == "Remote summary."
        assert calls == [(6, 65)]


class TestBreakdown:
    def test_per_difficulty_stats(self):
        breakdown = performance_breakdown(_answers([80, 60, 90, 50, 0, 40], auto={4}))
        assert list(breakdown) == ["easy", "medium", "hard"]
        assert breakdown["easy"]["average"] == 70.0
        assert breakdown["medium"]["best"] == 90.0
        assert breakdown["hard"]["worst"] == 0.0
        assert breakdown["hard"]["auto_submitted"] == 1.0

    def test_partial_answers(self):
        assert list(performance_breakdown(_answers([80, 60]))) == ["easy"]


def test_format_results():
    answers = _answers([80, 60, 90, 50, 0, 40], auto={4})
    result = finalize(answers)
    record = CompletionRecord(
        candidate_id="cand_1",
        session_id="session_x",
        final_score=result["final_score"],
        summary=result["summary"],
        answers=answers,
        completed_at=NOW,
        breakdown=result["breakdown"],
    )
    text = format_results(record)
    assert "INTERVIEW RESULTS" in text
    assert "Final Score    : 53/100" in text
    assert "(time expired)" in text
    assert "By difficulty:" in text
