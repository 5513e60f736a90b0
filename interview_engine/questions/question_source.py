"""Question source — remote generation with a static fallback pool.

One cache per ``QuestionSource`` instance: asking again for an index that
was already produced returns the same Question, so a paused-and-resumed
session (or a retried activation) never sees its question change.
``prefetch`` produces the next question on a worker thread so the engine
finds it cached when it activates that question.
"""

from __future__ import annotations

import json
import logging
import random
import threading
import uuid
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Any

from langchain_core.messages import HumanMessage

from interview_engine import settings
from interview_engine.llm import get_chat_llm
from interview_engine.models.session import Question
from interview_engine.questions.question_bank import QUESTION_POOL, TOPIC_FOCUS, category_for
from interview_engine.scheduling.difficulty import difficulty_for, time_limit_for
from interview_engine.settings import TOTAL_QUESTIONS

logger = logging.getLogger(__name__)

QUESTION_PROMPT = """\
Generate a technical interview question for a Full-Stack Developer position
(React/Node.js).

Requirements:
- Difficulty: {difficulty}
- Question {number} of {total}
- Focus on: {focus}
- Practical and relevant to real-world development
- Specific and answerable within {seconds} seconds

Return valid JSON only:
{{
  "text": "The question text",
  "difficulty": "{difficulty}",
  "category": "short-topic-label",
  "type": "technical"
}}
"""


def _parse_json(raw: str) -> dict[str, Any]:
    """Parse JSON from model output, stripping markdown fences if needed."""
    text = raw.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1].rsplit("```", 1)[0]
    return json.loads(text)


class QuestionSource:
    """Produce the Question for each index of the six-question sequence.

    Parameters
    ----------
    remote_enabled : bool, optional
        Force remote generation on or off; defaults to the
        ``REMOTE_QUESTIONS_ENABLED`` setting.
    seed : int, optional
        Seed for picking from the static pool (tests pass one for
        deterministic questions).
    """

    def __init__(self, *, remote_enabled: bool | None = None, seed: int | None = None) -> None:
        self._remote_enabled = remote_enabled
        self._rng = random.Random(seed)
        self._offsets: dict[str, int] = {}
        self._cache: dict[int, Question] = {}
        self._pending: dict[int, Future] = {}
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()

    @property
    def remote_enabled(self) -> bool:
        if self._remote_enabled is not None:
            return self._remote_enabled
        return bool(settings.REMOTE_QUESTIONS_ENABLED)

    def question_for(self, index: int, difficulty: str | None = None) -> Question:
        """Return the (cached) question for ``index``.

        Waits for a prefetch of the same index instead of generating twice.
        """
        expected = difficulty_for(index)
        if difficulty is not None and difficulty != expected:
            raise ValueError(f"question {index} must be {expected}, not {difficulty}")

        with self._lock:
            cached = self._cache.get(index)
            pending = self._pending.get(index)
        if cached is not None:
            return cached
        if pending is not None:
            try:
                return pending.result()
            except CancelledError:
                logger.debug("Prefetch of question %d was cancelled", index)
        return self._produce(index)

    def prefetch(self, index: int) -> None:
        """Start producing ``index`` in the background.

        Only remote generation is worth prefetching; the static pool is
        instant, so this is a no-op when remote questions are disabled.
        """
        if not self.remote_enabled or not 0 <= index < TOTAL_QUESTIONS:
            return
        with self._lock:
            if index in self._cache or index in self._pending:
                return
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="question-prefetch"
                )
            self._pending[index] = self._executor.submit(self._produce, index)
        logger.debug("Prefetching question %d", index)

    def close(self) -> None:
        """Drop queued prefetches and release the worker thread."""
        with self._lock:
            executor, self._executor = self._executor, None
            self._pending.clear()
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    # ── Internals ─────────────────────────────────────────────────────

    def _produce(self, index: int) -> Question:
        question = None
        if self.remote_enabled:
            question = self._generate_remote(index)
        if question is None:
            question = self._from_pool(index)
        with self._lock:
            return self._cache.setdefault(index, question)

    def _from_pool(self, index: int) -> Question:
        difficulty = difficulty_for(index)
        pool = QUESTION_POOL[difficulty]
        with self._lock:
            offset = self._offsets.setdefault(difficulty, self._rng.randrange(len(pool)))
        return Question(
            id=f"question_{index}_{uuid.uuid4().hex[:8]}",
            index=index,
            difficulty=difficulty,
            time_limit_seconds=time_limit_for(index),
            category=category_for(index, difficulty),
            prompt_text=pool[(index + offset) % len(pool)],
        )

    def _generate_remote(self, index: int) -> Question | None:
        difficulty = difficulty_for(index)
        prompt = QUESTION_PROMPT.format(
            difficulty=difficulty,
            number=index + 1,
            total=TOTAL_QUESTIONS,
            focus=TOPIC_FOCUS[difficulty],
            seconds=time_limit_for(index),
        )
        try:
            llm = get_chat_llm(
                temperature=0.7,
                request_timeout=float(settings.QUESTION_TIMEOUT_SECONDS),
            )
            response = llm.invoke([HumanMessage(content=prompt)])
            content = response.content
            parsed = _parse_json(content if isinstance(content, str) else json.dumps(content))
            text = str(parsed["text"]).strip()
            if not text:
                raise ValueError("empty question text")
            if parsed.get("difficulty", difficulty) != difficulty:
                logger.info(
                    "Generated question %d reported difficulty %s; keeping %s",
                    index,
                    parsed.get("difficulty"),
                    difficulty,
                )
            return Question(
                id=f"ai_question_{index}_{uuid.uuid4().hex[:8]}",
                index=index,
                difficulty=difficulty,
                time_limit_seconds=time_limit_for(index),
                category=str(parsed.get("category") or category_for(index, difficulty)),
                prompt_text=text,
                question_type=str(parsed.get("type") or "technical"),
            )
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, IndexError) as e:
            logger.warning("Question generation parse error for index %d: %s", index, e)
            return None
        except Exception as e:
            logger.warning("Question generation failed for index %d: %s", index, e)
            return None
