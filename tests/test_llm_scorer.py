"""Tests for the LLM-based answer scorer.

All OpenAI calls are mocked — no API key required.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
from langchain_core.messages import AIMessage

from interview_engine.scoring.llm_scorer import _parse_json, _response_text, score_answer

# ── Helpers ───────────────────────────────────────────────────────────────

VALID_JSON = json.dumps({
    "score": 78,
    "feedback": "Solid explanation with a concrete example.",
    "strengths": ["Clear definition", "Practical example"],
    "improvements": ["Mention memory implications"],
})


def _mock_llm_response(content: str) -> MagicMock:
    """Build a mock ChatOpenAI that returns a single AIMessage."""
    mock_llm = MagicMock()
    mock_llm.invoke.return_value = AIMessage(content=content)
    return mock_llm


# ── _parse_json ───────────────────────────────────────────────────────────


class TestParseJson:
    def test_plain_json(self):
        assert _parse_json('{"score": 70}')["score"] == 70

    def test_markdown_fenced_json(self):
        raw = '```json\n{"score": 70}\n```'
        assert _parse_json(raw)["score"] == 70

    def test_raises_on_invalid_json(self):
        with pytest.raises(json.JSONDecodeError):
            _parse_json("not json at all")


class TestResponseText:
    def test_string_passthrough(self):
        assert _response_text("hello") == "hello"

    def test_list_serialized(self):
        assert '"text"' in _response_text([{"type": "text", "text": "hi"}])


# ── score_answer ──────────────────────────────────────────────────────────


class TestScoreAnswer:
    @patch("interview_engine.scoring.llm_scorer.get_chat_llm")
    def test_valid_response(self, mock_get_llm):
        mock_get_llm.return_value = _mock_llm_response(VALID_JSON)

        result = score_answer("What is a closure?", "A closure is ...", "easy")

        assert result["method"] == "llm"
        assert result["score"] == 78
        assert result["strengths"] == ["Clear definition", "Practical example"]
        assert "error" not in result

    @patch("interview_engine.scoring.llm_scorer.get_chat_llm")
    def test_prompt_carries_question_answer_and_difficulty(self, mock_get_llm):
        mock_llm = _mock_llm_response(VALID_JSON)
        mock_get_llm.return_value = mock_llm

        score_answer("What is a closure?", "A closure is ...", "hard")

        messages = mock_llm.invoke.call_args[0][0]
        assert "QUESTION (hard): What is a closure?" in messages[1].content
        assert "A closure is ..." in messages[1].content
        assert mock_get_llm.call_args.kwargs["temperature"] == 0.0

    @patch("interview_engine.scoring.llm_scorer.get_chat_llm")
    def test_score_is_clamped(self, mock_get_llm):
        mock_get_llm.return_value = _mock_llm_response(json.dumps({"score": 140}))
        assert score_answer("q", "a", "easy")["score"] == 100

        mock_get_llm.return_value = _mock_llm_response(json.dumps({"score": -5}))
        assert score_answer("q", "a", "easy")["score"] == 0

    @patch("interview_engine.scoring.llm_scorer.get_chat_llm")
    def test_fenced_response(self, mock_get_llm):
        mock_get_llm.return_value = _mock_llm_response(f"```json\n{VALID_JSON}\n```")
        assert score_answer("q", "a", "medium")["score"] == 78

    @patch("interview_engine.scoring.llm_scorer.get_chat_llm")
    def test_malformed_json_returns_error(self, mock_get_llm):
        mock_get_llm.return_value = _mock_llm_response("I'd give it a 7/10")
        result = score_answer("q", "a", "easy")
        assert "error" in result
        assert "score" not in result

    @patch("interview_engine.scoring.llm_scorer.get_chat_llm")
    def test_missing_score_returns_error(self, mock_get_llm):
        mock_get_llm.return_value = _mock_llm_response(json.dumps({"feedback": "ok"}))
        assert "parse error" in score_answer("q", "a", "easy")["error"]

    @patch("interview_engine.scoring.llm_scorer.get_chat_llm")
    def test_transport_error_returns_error(self, mock_get_llm):
        mock_llm = MagicMock()
        mock_llm.invoke.side_effect = RuntimeError("connection reset")
        mock_get_llm.return_value = mock_llm

        result = score_answer("q", "a", "easy")
        assert "connection reset" in result["error"]
