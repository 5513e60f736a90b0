"""Tests for the difficulty schedule and advisory tier transitions."""

from __future__ import annotations

import pytest

from interview_engine import settings
from interview_engine.scheduling.difficulty import (
    can_advance,
    difficulty_for,
    progression_decision,
    schedule_for,
    stage_label_for,
    time_limit_for,
    transition_at,
)


class TestSchedule:
    def test_difficulty_sequence(self):
        assert [difficulty_for(i) for i in range(6)] == [
            "easy", "easy", "medium", "medium", "hard", "hard",
        ]

    def test_time_limits(self):
        assert [time_limit_for(i) for i in range(6)] == [20, 20, 60, 60, 120, 120]

    def test_stage_labels(self):
        assert stage_label_for(0) == "question_1_easy"
        assert stage_label_for(2) == "question_3_medium"
        assert stage_label_for(5) == "question_6_hard"

    def test_schedule_for_bundles_everything(self):
        assert schedule_for(4) == {
            "index": 4,
            "difficulty": "hard",
            "time_limit_seconds": 120,
            "stage": "question_5_hard",
        }

    @pytest.mark.parametrize("index", [-1, 6])
    def test_out_of_range_index(self, index):
        with pytest.raises(IndexError):
            difficulty_for(index)


class TestCanAdvance:
    def test_within_tier_always_true(self):
        assert can_advance(0, [0]) is True
        assert can_advance(2, [0, 0, 0]) is True

    def test_last_question_cannot_advance(self):
        assert can_advance(5, [100] * 6) is False

    def test_easy_to_medium_threshold(self):
        assert can_advance(1, [80, 40]) is True   # mean 60
        assert can_advance(1, [70, 40]) is False  # mean 55

    def test_medium_to_hard_threshold(self):
        assert can_advance(3, [0, 0, 90, 50]) is True   # mean 70
        assert can_advance(3, [100, 100, 60, 60]) is False  # mean 60 < 65

    def test_missing_scores_count_as_zero(self):
        assert can_advance(1, [100, None]) is False

    def test_thresholds_follow_settings(self, monkeypatch):
        monkeypatch.setenv("EASY_TO_MEDIUM_THRESHOLD", "50")
        settings.reset()
        assert can_advance(1, [60, 40]) is True
        assert transition_at(1).required_score == 50.0

    def test_out_of_range(self):
        with pytest.raises(IndexError):
            can_advance(6, [])


class TestProgressionDecision:
    def test_boundary_decision(self):
        decision = progression_decision(1, [80, 60])
        assert decision == {
            "from_difficulty": "easy",
            "to_difficulty": "medium",
            "at_index": 1,
            "required_score": 60.0,
            "average_score": 70.0,
            "met": True,
        }

    def test_not_a_boundary(self):
        assert progression_decision(0, [50]) is None
        assert progression_decision(4, [50] * 5) is None
