"""Shared fixtures: deterministic clock, executors and collaborator fakes.

No test in this suite touches the network or the real wall clock.
"""

from __future__ import annotations

from concurrent.futures import Executor, Future
from typing import Any, Callable

import pytest

from interview_engine import settings
from interview_engine.models.session import Candidate, CompletionRecord, Evaluation, Question
from interview_engine.questions.question_source import QuestionSource
from interview_engine.session.engine import SessionEngine
from interview_engine.timing.clock import ManualClock


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class DeferredExecutor(Executor):
    """Queues submitted work until ``run_all`` is called."""

    def __init__(self) -> None:
        self.queued: list[tuple[Future, Callable[..., Any], tuple, dict]] = []

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        self.queued.append((future, fn, args, kwargs))
        return future

    def run_all(self) -> None:
        while self.queued:
            future, fn, args, kwargs = self.queued.pop(0)
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as e:
                future.set_exception(e)


class FakeEvaluator:
    """Returns preset scores by question index (default 50)."""

    def __init__(self, scores: dict[int, int] | None = None) -> None:
        self.scores = scores or {}
        self.calls: list[tuple[int, str]] = []

    def evaluate(self, question: Question, answer_text: str) -> Evaluation:
        self.calls.append((question.index, answer_text))
        return Evaluation(
            score=self.scores.get(question.index, 50),
            feedback=f"feedback for {question.index}",
            method="fake",
        )


class RaisingEvaluator:
    """Evaluator whose every call fails, as a crashed scoring backend would."""

    def __init__(self) -> None:
        self.calls = 0

    def evaluate(self, question: Question, answer_text: str) -> Evaluation:
        self.calls += 1
        raise RuntimeError("scoring backend down")


class RecordingStore:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.records: list[dict[str, Any]] = []

    def save(self, record: dict[str, Any]) -> None:
        if self.fail:
            raise OSError("disk full")
        self.records.append(record)

    def load(self, session_id: str) -> dict[str, Any] | None:
        for record in reversed(self.records):
            if record["session"]["session_id"] == session_id:
                return record
        return None


class RecordingRegistry:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.completions: list[CompletionRecord] = []

    def record_completion(self, record: CompletionRecord) -> None:
        if self.fail:
            raise OSError("registry offline")
        self.completions.append(record)


@pytest.fixture(autouse=True)
def _no_remote_calls(monkeypatch):
    """Keep every test offline regardless of the developer's environment."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    settings.reset()
    yield
    settings.reset()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def candidate() -> Candidate:
    return Candidate(
        candidate_id="cand_1",
        name="Ada Lovelace",
        email="ada@example.com",
        phone="+44 20 7946 0000",
    )


@pytest.fixture
def make_engine(clock):
    """Factory for engines wired to fakes; keyword arguments override defaults."""
    created: list[SessionEngine] = []

    def _make(**overrides: Any) -> SessionEngine:
        kwargs: dict[str, Any] = {
            "clock": clock,
            "evaluator": FakeEvaluator(),
            "question_source": QuestionSource(remote_enabled=False, seed=7),
            "store": RecordingStore(),
            "registry": RecordingRegistry(),
            "executor": InlineExecutor(),
            "grace_seconds": 0.0,
        }
        kwargs.update(overrides)
        engine = SessionEngine(**kwargs)
        created.append(engine)
        return engine

    yield _make
    for engine in created:
        engine.close()
