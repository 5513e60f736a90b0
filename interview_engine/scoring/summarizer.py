"""Interviewer-facing session summary: remote model first, template fallback.

``generate_summary`` asks the chat model for a short hiring-manager summary
and, like the answer scorer, reports failures as an ``"error"`` key instead
of raising.  ``SessionSummarizer`` bounds that call in time and falls back
to ``aggregator.build_summary`` whenever the remote text is unusable.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Callable, Sequence

from langchain_core.messages import HumanMessage

from interview_engine import settings
from interview_engine.llm import get_chat_llm
from interview_engine.models.session import DIFFICULTY_SEQUENCE, Answer
from interview_engine.scoring.aggregator import build_summary

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = """\
Generate a professional summary for a candidate based on their technical
interview performance for a full-stack (React / Node.js) developer position.

FINAL SCORE: {final_score}/100

QUESTION ANSWERS:
{answers}

Requirements:
- Be objective and professional
- Highlight strengths and areas for improvement
- Focus on technical capabilities
- Keep it concise (2-3 sentences)
- Suitable for hiring managers

Return only the summary text, no JSON.
"""

ANSWER_PREVIEW_CHARS = 100
MAX_SUMMARY_CHARS = 1200

RemoteSummarizer = Callable[[Sequence[Answer], int], dict[str, Any]]


def _answer_lines(answers: Sequence[Answer]) -> str:
    lines = []
    for answer in answers:
        preview = answer.text[:ANSWER_PREVIEW_CHARS]
        if len(answer.text) > ANSWER_PREVIEW_CHARS:
            preview += "..."
        lines.append(
            f"Q{answer.index + 1} ({DIFFICULTY_SEQUENCE[answer.index]}): "
            f"Score {answer.score}/100 - {preview}"
        )
    return "\n".join(lines)


def generate_summary(
    answers: Sequence[Answer],
    final_score: int,
    *,
    request_timeout: float = 30.0,
) -> dict[str, Any]:
    """Ask the remote model for a summary of the whole session.

    Returns ``{"method": "llm", "summary": ...}`` on success, or a dict with
    an ``"error"`` key on any failure.
    """
    prompt = SUMMARY_PROMPT.format(final_score=final_score, answers=_answer_lines(answers))
    try:
        llm = get_chat_llm(temperature=0.3, request_timeout=request_timeout)
        response = llm.invoke([HumanMessage(content=prompt)])
        content = response.content
        if not isinstance(content, str):
            raise TypeError(f"expected text content, got {type(content).__name__}")
        text = content.strip().strip('"').strip()
        if not text:
            raise ValueError("empty summary")
        return {"method": "llm", "summary": text[:MAX_SUMMARY_CHARS]}
    except (TypeError, ValueError) as e:
        logger.warning("LLM summary parse error: %s", e)
        return {"method": "llm", "error": f"LLM parse error: {e}"}
    except Exception as e:
        logger.warning("LLM summary failed: %s", e)
        return {"method": "llm", "error": f"LLM summary failed: {str(e)}"}


class SessionSummarizer:
    """Summarize a finished session within a time bound.

    Usage:
        summarizer = SessionSummarizer()
        text = summarizer.summarize(session.answers, final_score=65)
    """

    def __init__(
        self,
        remote_summarizer: RemoteSummarizer | None = None,
        *,
        timeout: float | None = None,
        remote_enabled: bool | None = None,
    ) -> None:
        self._remote_summarizer = remote_summarizer or generate_summary
        self._timeout = timeout
        self._remote_enabled = remote_enabled
        self._pool: ThreadPoolExecutor | None = None

    @property
    def timeout(self) -> float:
        if self._timeout is not None:
            return self._timeout
        return float(settings.SUMMARY_TIMEOUT_SECONDS)

    @property
    def remote_enabled(self) -> bool:
        if self._remote_enabled is not None:
            return self._remote_enabled
        return bool(settings.REMOTE_SUMMARY_ENABLED)

    def summarize(self, answers: Sequence[Answer], final_score: int) -> str:
        """Return the summary text; never raises for remote problems."""
        if self.remote_enabled and answers:
            text = self._summarize_remote(answers, final_score)
            if text is not None:
                return text
        return build_summary(answers, final_score)

    def close(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=False, cancel_futures=True)
            self._pool = None

    def _summarize_remote(self, answers: Sequence[Answer], final_score: int) -> str | None:
        if self._pool is None:
            self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="remote-summary")
        future = self._pool.submit(self._remote_summarizer, answers, final_score)
        try:
            result = future.result(timeout=self.timeout)
        except FutureTimeout:
            future.cancel()
            logger.warning("Remote summary exceeded %.1fs; using template", self.timeout)
            return None
        except Exception as e:
            logger.warning("Remote summary failed: %s", e)
            return None

        if not isinstance(result, dict) or "error" in result or not result.get("summary"):
            error = result.get("error") if isinstance(result, dict) else repr(result)
            logger.warning("Remote summary unusable (%s); using template", error)
            return None
        return str(result["summary"])
