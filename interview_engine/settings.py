"""Project-wide settings and shared interview constants.

All environment-dependent values are read **lazily** on first access
(not at import time) and cached via ``functools.lru_cache``.  Call
``reset()`` in tests to clear the cache after changing env vars —
no ``importlib.reload`` required.
"""

from __future__ import annotations

import functools
import os
from typing import TYPE_CHECKING, Final


def _float_env(name: str, default: float) -> float:
    """Parse float environment values with a safe fallback."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _flag_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off", "")


# ── Constants (never change at runtime) ──────────────────────────────────
TOTAL_QUESTIONS: Final[int] = 6
TIME_EXPIRED_SENTINEL: Final[str] = "[time expired]"
MIN_SCORE: Final[int] = 0
MAX_SCORE: Final[int] = 100


# ── Lazy settings cache ──────────────────────────────────────────────────

@functools.lru_cache(maxsize=1)
def _load_settings() -> dict[str, object]:
    """Read env-dependent settings once and cache the result."""
    has_api_key = bool(os.getenv("OPENAI_API_KEY", "").strip())
    return {
        "LLM_MODEL_NAME": os.getenv("OPENAI_CHAT_MODEL", "gpt-4.1-mini"),
        "EVALUATOR_TIMEOUT_SECONDS": _float_env("EVALUATOR_TIMEOUT_SECONDS", 10.0),
        "QUESTION_TIMEOUT_SECONDS": _float_env("QUESTION_TIMEOUT_SECONDS", 10.0),
        "SUMMARY_TIMEOUT_SECONDS": _float_env("SUMMARY_TIMEOUT_SECONDS", 10.0),
        "AUTO_SUBMIT_GRACE_SECONDS": _float_env("AUTO_SUBMIT_GRACE_SECONDS", 2.0),
        "TIMER_PERSIST_INTERVAL_SECONDS": _float_env("TIMER_PERSIST_INTERVAL_SECONDS", 5.0),
        "EASY_TO_MEDIUM_THRESHOLD": _float_env("EASY_TO_MEDIUM_THRESHOLD", 60.0),
        "MEDIUM_TO_HARD_THRESHOLD": _float_env("MEDIUM_TO_HARD_THRESHOLD", 65.0),
        "REMOTE_SCORING_ENABLED": has_api_key and _flag_env("REMOTE_SCORING", True),
        "REMOTE_QUESTIONS_ENABLED": has_api_key and _flag_env("REMOTE_QUESTIONS", True),
        "REMOTE_SUMMARY_ENABLED": has_api_key and _flag_env("REMOTE_SUMMARY", True),
    }


def reset() -> None:
    """Clear the cached settings — call from tests after monkeypatching env vars."""
    _load_settings.cache_clear()


# Type declarations for static analysis (not set at runtime so
# ``__getattr__`` is invoked on attribute access).
if TYPE_CHECKING:
    LLM_MODEL_NAME: str
    EVALUATOR_TIMEOUT_SECONDS: float
    QUESTION_TIMEOUT_SECONDS: float
    SUMMARY_TIMEOUT_SECONDS: float
    AUTO_SUBMIT_GRACE_SECONDS: float
    TIMER_PERSIST_INTERVAL_SECONDS: float
    EASY_TO_MEDIUM_THRESHOLD: float
    MEDIUM_TO_HARD_THRESHOLD: float
    REMOTE_SCORING_ENABLED: bool
    REMOTE_QUESTIONS_ENABLED: bool
    REMOTE_SUMMARY_ENABLED: bool


def __getattr__(name: str) -> object:
    """PEP 562 module-level ``__getattr__`` — provides lazy env reads."""
    settings = _load_settings()
    if name in settings:
        return settings[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


# ── Public helpers ────────────────────────────────────────────────────────


def classify_score(score: float) -> str:
    """Map a 0–100 score to the excellent / good / fair / poor band."""
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"
