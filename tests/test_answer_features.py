"""Tests for answer signal extraction."""

from __future__ import annotations

from interview_engine.extraction.answer_features import (
    extract_answer_features,
    question_keywords,
)
from interview_engine.extraction.keyword_lists import CATEGORY_KEYWORDS, keywords_for

QUESTION = "What are closures in JavaScript?"

STRONG_ANSWER = (
    "A closure is a function that keeps access to variables from its lexical scope "
    "even after the outer function has returned. This works because JavaScript "
    "functions carry a reference to the scope in which they were created. For "
    "example, a counter factory can return an increment function that updates a "
    "private count variable. In practice closures are used for data privacy, "
    "callbacks and memoization, which is why they matter for async code."
)


class TestExtractAnswerFeatures:
    def test_empty_text(self):
        f = extract_answer_features("   ", difficulty="medium")
        assert f.word_count == 0
        assert f.sentence_count == 0
        assert f.expected_words == 100
        assert f.structure_score == 0.0

    def test_counts_and_structure(self):
        f = extract_answer_features(
            STRONG_ANSWER, question_text=QUESTION, category="javascript"
        )
        assert f.word_count == 72
        assert f.sentence_count == 4
        assert f.structure_score == 1.0
        assert f.expected_words == 50

    def test_code_and_example_signals(self):
        f = extract_answer_features(STRONG_ANSWER, category="javascript")
        assert f.contains_code is True
        assert f.contains_examples is True

    def test_keyword_matches_use_category(self):
        f = extract_answer_features(STRONG_ANSWER, category="javascript")
        assert f.keyword_matches >= 3
        assert "closure" in f.matched_keywords

    def test_depth_indicators_per_difficulty(self):
        easy = extract_answer_features(STRONG_ANSWER, difficulty="easy")
        hard = extract_answer_features(STRONG_ANSWER, difficulty="hard")
        assert easy.technical_depth == 0.5  # "because", "why"
        assert hard.technical_depth == 0.0

    def test_relevance_against_question(self):
        on_topic = extract_answer_features(STRONG_ANSWER, question_text=QUESTION)
        off_topic = extract_answer_features(
            "I enjoy baking bread on weekends.", question_text=QUESTION
        )
        assert on_topic.relevance == 1.0
        assert off_topic.relevance == 0.0

    def test_relevance_defaults_to_one_without_question(self):
        f = extract_answer_features("Some answer text here.")
        assert f.relevance == 1.0

    def test_to_dict_includes_length_ratio(self):
        d = extract_answer_features(STRONG_ANSWER, difficulty="hard").to_dict()
        assert d["word_count"] == 72
        assert d["length_ratio"] == round(72 / 150, 3)


class TestKeywordHelpers:
    def test_question_keywords_drop_stop_words(self):
        assert question_keywords(QUESTION) == ["closures", "javascript"]

    def test_category_prefix_match(self):
        assert keywords_for("react-basics") == CATEGORY_KEYWORDS["react"]
        assert keywords_for("state-management") == CATEGORY_KEYWORDS["state"]

    def test_unknown_category_falls_back_to_general(self):
        assert keywords_for("cooking") == CATEGORY_KEYWORDS["general"]
