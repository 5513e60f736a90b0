"""Signal extraction from a candidate's technical answer.

Extracts the coarse signals the heuristic scorer combines: length,
sentence structure, code-like tokens, example phrases, category keyword
hits, difficulty-appropriate depth words and overlap with the question.

Usage:
    from interview_engine.extraction.answer_features import extract_answer_features

    features = extract_answer_features(
        "A closure captures variables from its lexical scope...",
        question_text="What are closures in JavaScript?",
        category="js-closures",
        difficulty="easy",
    )
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any

from interview_engine.extraction.keyword_lists import (
    CODE_INDICATORS,
    DEPTH_INDICATORS,
    EXAMPLE_PHRASES,
    STOP_WORDS,
    keywords_for,
)

# Expected answer length (words) per difficulty tier.
EXPECTED_WORDS: dict[str, int] = {"easy": 50, "medium": 100, "hard": 150}
_DEFAULT_EXPECTED_WORDS = 80


def _split_sentences(text: str) -> list[str]:
    """Split on sentence-ending punctuation, dropping empty fragments."""
    return [s.strip() for s in re.split(r"[.!?]+", text) if s.strip()]


def _structure_score(sentences: list[str]) -> float:
    """Intro / body / conclusion heuristic in [0.0, 1.0]."""
    if not sentences:
        return 0.0
    score = 0.0
    if len(sentences[0]) > 10:
        score += 0.3  # introductory sentence
    if len(sentences) >= 2:
        score += 0.4  # body
    if len(sentences) >= 3 and len(sentences[-1]) > 10:
        score += 0.3  # conclusion
    return round(score, 2)


def question_keywords(question_text: str, limit: int = 10) -> list[str]:
    """Content words from the question, used to measure relevance."""
    words = re.findall(r"[a-z]+", question_text.lower())
    keywords: list[str] = []
    for word in words:
        if len(word) > 3 and word not in STOP_WORDS and word not in keywords:
            keywords.append(word)
    return keywords[:limit]


@dataclass
class AnswerFeatures:
    """Container for the signals extracted from one answer."""

    word_count: int = 0
    sentence_count: int = 0
    expected_words: int = _DEFAULT_EXPECTED_WORDS

    contains_code: bool = False
    contains_examples: bool = False
    keyword_matches: int = 0
    matched_keywords: list[str] = field(default_factory=list)

    structure_score: float = 0.0  # 0.0 – 1.0
    technical_depth: float = 0.0  # share of depth indicators present
    relevance: float = 0.0  # share of question keywords echoed

    @property
    def length_ratio(self) -> float:
        return self.word_count / self.expected_words if self.expected_words else 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain dict for JSON serialization."""
        data = asdict(self)
        data["length_ratio"] = round(self.length_ratio, 3)
        return data


def extract_answer_features(
    text: str,
    *,
    question_text: str = "",
    category: str = "general",
    difficulty: str = "easy",
) -> AnswerFeatures:
    """Extract all scoring signals from an answer.

    Parameters
    ----------
    text : str
        The raw answer text.
    question_text : str
        The question prompt, used for the relevance signal.
    category : str
        Question category selecting the domain keyword list.
    difficulty : str
        Tier selecting the expected length and depth indicators.
    """
    expected = EXPECTED_WORDS.get(difficulty, _DEFAULT_EXPECTED_WORDS)
    lower = (text or "").lower().strip()
    if not lower:
        return AnswerFeatures(expected_words=expected)

    words = lower.split()
    sentences = _split_sentences(lower)

    keywords = keywords_for(category)
    matched = [kw for kw in keywords if kw in lower]

    indicators = DEPTH_INDICATORS.get(difficulty, DEPTH_INDICATORS["easy"])
    depth_hits = sum(1 for word in indicators if word in lower)

    q_keywords = question_keywords(question_text)
    if q_keywords:
        relevance = sum(1 for kw in q_keywords if kw in lower) / len(q_keywords)
    else:
        relevance = 1.0

    return AnswerFeatures(
        word_count=len(words),
        sentence_count=len(sentences),
        expected_words=expected,
        contains_code=any(token in lower for token in CODE_INDICATORS),
        contains_examples=any(phrase in lower for phrase in EXAMPLE_PHRASES),
        keyword_matches=len(matched),
        matched_keywords=matched,
        structure_score=_structure_score(sentences),
        technical_depth=round(min(depth_hits / len(indicators), 1.0), 3),
        relevance=round(relevance, 3),
    )
