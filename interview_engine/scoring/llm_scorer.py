"""LLM-based scorer for a single technical interview answer."""

from __future__ import annotations

import json
import logging
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage

from interview_engine.llm import get_chat_llm
from interview_engine.settings import MAX_SCORE, MIN_SCORE

logger = logging.getLogger(__name__)

EVALUATION_PROMPT = """\
You are an expert technical interviewer evaluating a candidate's answer
for a full-stack (React / Node.js) developer position.

Evaluate on:
1. Technical accuracy (40%)
2. Completeness (25%)
3. Clarity of explanation (20%)
4. Practical examples or experience (15%)

Adjust for difficulty:
- easy: basic understanding is enough
- medium: expect some depth and practical knowledge
- hard: expect expert-level understanding and system thinking

Return valid JSON only:
{
  "score": 75,
  "feedback": "Two or three sentences of overall feedback.",
  "strengths": ["strength 1", "strength 2"],
  "improvements": ["improvement 1", "improvement 2"]
}

Rules:
- score is an integer in [0, 100]
- base the evaluation only on the answer text
"""


def _parse_json(raw: str) -> dict[str, Any]:
    """Parse JSON from model output, stripping markdown fences if needed."""
    text = raw.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1].rsplit("```", 1)[0]
    return json.loads(text)


def _response_text(content: Any) -> str:
    """Normalize LangChain message content into a text string."""
    if isinstance(content, str):
        return content
    return json.dumps(content)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if str(item).strip()]


def score_answer(
    question_text: str,
    answer_text: str,
    difficulty: str,
    *,
    request_timeout: float = 30.0,
) -> dict[str, Any]:
    """Score one answer with the remote model.

    Returns a dict with ``method == "llm"`` on success.  On any failure the
    dict carries an ``"error"`` key and no ``"score"``; the caller decides
    what to fall back to.
    """
    try:
        llm = get_chat_llm(temperature=0.0, request_timeout=request_timeout)
        response = llm.invoke(
            [
                SystemMessage(content=EVALUATION_PROMPT),
                HumanMessage(
                    content=(
                        f"QUESTION ({difficulty}): {question_text}\n\n"
                        f"CANDIDATE ANSWER:\n{answer_text}"
                    )
                ),
            ]
        )

        parsed = _parse_json(_response_text(response.content))
        if not isinstance(parsed, dict):
            raise TypeError(f"expected a JSON object, got {type(parsed).__name__}")
        score = round(float(parsed["score"]))
        score = max(MIN_SCORE, min(MAX_SCORE, score))

        return {
            "method": "llm",
            "score": score,
            "feedback": str(parsed.get("feedback", "")),
            "strengths": _string_list(parsed.get("strengths")),
            "improvements": _string_list(parsed.get("improvements")),
        }

    except (json.JSONDecodeError, KeyError, TypeError, ValueError, IndexError) as e:
        logger.warning("LLM answer scorer parse error: %s", e)
        return {"method": "llm", "error": f"LLM parse error: {e}"}

    except Exception as e:
        logger.warning("LLM answer scorer failed: %s", e)
        return {"method": "llm", "error": f"LLM scorer failed: {str(e)}"}
