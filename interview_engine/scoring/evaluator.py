"""Answer evaluator — remote scoring with a bounded wait and local fallback.

The remote scorer is tried first when it is enabled.  Whatever goes wrong
with it (disabled, slow, transport failure, malformed JSON, out-of-range
data) the evaluator answers with the local heuristic instead, so
``evaluate`` always returns a valid ``Evaluation`` and never raises.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Callable

from pydantic import ValidationError

from interview_engine import settings
from interview_engine.models.session import Evaluation, Question
from interview_engine.scoring.heuristic_scorer import score_with_heuristics
from interview_engine.scoring.llm_scorer import score_answer
from interview_engine.settings import classify_score

logger = logging.getLogger(__name__)

RemoteScorer = Callable[[str, str, str], dict[str, Any]]


class AnswerEvaluator:
    """Score answers, preferring the remote scorer within a time bound.

    Usage:
        evaluator = AnswerEvaluator()
        evaluation = evaluator.evaluate(question, "A closure is ...")
        evaluation.score   # 0–100
        evaluation.method  # "llm" or "heuristic"
    """

    def __init__(
        self,
        remote_scorer: RemoteScorer | None = None,
        *,
        timeout: float | None = None,
        remote_enabled: bool | None = None,
    ) -> None:
        self._remote_scorer = remote_scorer or score_answer
        self._timeout = timeout
        self._remote_enabled = remote_enabled
        self._pool: ThreadPoolExecutor | None = None

    @property
    def timeout(self) -> float:
        if self._timeout is not None:
            return self._timeout
        return float(settings.EVALUATOR_TIMEOUT_SECONDS)

    @property
    def remote_enabled(self) -> bool:
        if self._remote_enabled is not None:
            return self._remote_enabled
        return bool(settings.REMOTE_SCORING_ENABLED)

    def evaluate(self, question: Question, answer_text: str) -> Evaluation:
        """Return an Evaluation for ``answer_text``; never raises."""
        if self.remote_enabled and answer_text.strip():
            evaluation = self._evaluate_remote(question, answer_text)
            if evaluation is not None:
                return evaluation
        return self._evaluate_locally(question, answer_text)

    def close(self) -> None:
        """Release the worker thread used for remote calls."""
        if self._pool is not None:
            self._pool.shutdown(wait=False, cancel_futures=True)
            self._pool = None

    # ── Internals ─────────────────────────────────────────────────────

    def _evaluate_remote(self, question: Question, answer_text: str) -> Evaluation | None:
        if self._pool is None:
            self._pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="remote-scorer")
        future = self._pool.submit(
            self._remote_scorer, question.prompt_text, answer_text, question.difficulty
        )
        try:
            result = future.result(timeout=self.timeout)
        except FutureTimeout:
            future.cancel()
            logger.warning(
                "Remote scoring for question %d exceeded %.1fs; using heuristic",
                question.index,
                self.timeout,
            )
            return None
        except Exception as e:
            logger.warning("Remote scoring for question %d failed: %s", question.index, e)
            return None

        if not isinstance(result, dict) or "error" in result or "score" not in result:
            error = result.get("error") if isinstance(result, dict) else repr(result)
            logger.warning(
                "Remote scoring for question %d unusable (%s); using heuristic",
                question.index,
                error,
            )
            return None

        try:
            return Evaluation(
                score=result["score"],
                feedback=result.get("feedback", ""),
                strengths=result.get("strengths", []),
                improvements=result.get("improvements", []),
                method="llm",
            )
        except ValidationError as e:
            logger.warning("Remote scoring for question %d invalid: %s", question.index, e)
            return None

    def _evaluate_locally(self, question: Question, answer_text: str) -> Evaluation:
        result = score_with_heuristics(
            answer_text,
            question_text=question.prompt_text,
            category=question.category,
            difficulty=question.difficulty,
        )
        return Evaluation(
            score=result["score"],
            feedback=result["feedback"],
            strengths=result["strengths"],
            improvements=result["improvements"],
            method="heuristic",
        )


def explain_evaluation(evaluation: Evaluation) -> str:
    """Generate a human-readable explanation of an evaluation."""
    lines = [
        f"Score: {evaluation.score}/100 ({classify_score(evaluation.score)}, {evaluation.method})",
    ]
    if evaluation.feedback:
        lines.append(evaluation.feedback)
    if evaluation.strengths:
        lines.append("")
        lines.append("Strengths:")
        lines.extend(f"  + {s}" for s in evaluation.strengths)
    if evaluation.improvements:
        lines.append("")
        lines.append("To improve:")
        lines.extend(f"  - {s}" for s in evaluation.improvements)
    return "\n".join(lines)
