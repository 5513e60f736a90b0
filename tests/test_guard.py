"""Tests for first-writer-wins submission arbitration."""

from __future__ import annotations

import threading

from interview_engine.submission.guard import SubmissionGuard


class TestSubmissionGuard:
    def test_first_submission_wins(self):
        guard = SubmissionGuard()
        assert guard.try_submit(0, "manual") is True
        assert guard.try_submit(0, "timeout") is False
        assert guard.winner(0) == "manual"

    def test_indices_are_independent(self):
        guard = SubmissionGuard()
        assert guard.try_submit(0, "timeout") is True
        assert guard.try_submit(1, "manual") is True
        assert guard.is_resolved(1)
        assert not guard.is_resolved(2)
        assert guard.winner(2) is None

    def test_exactly_one_winner_under_contention(self):
        guard = SubmissionGuard()
        barrier = threading.Barrier(8)
        results: list[bool] = []
        lock = threading.Lock()

        def attempt(source):
            barrier.wait()
            won = guard.try_submit(3, source)
            with lock:
                results.append(won)

        threads = [
            threading.Thread(target=attempt, args=("manual" if i % 2 else "timeout",))
            for i in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert guard.winner(3) in ("manual", "timeout")

    def test_mark_resolved_and_reset(self):
        guard = SubmissionGuard()
        guard.mark_resolved(range(3))
        assert guard.try_submit(2) is False
        assert guard.try_submit(3) is True
        guard.reset()
        assert guard.try_submit(0) is True
