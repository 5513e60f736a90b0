"""Shared chat-model client factory.

Every module that talks to the remote model (answer scoring, question
generation) should import from here instead of constructing its own
client, ensuring consistent model selection, temperature, and timeout
configuration.
"""

from __future__ import annotations

from langchain_openai import ChatOpenAI

from interview_engine import settings

# Default network timeout (seconds) for all OpenAI requests.
_REQUEST_TIMEOUT: float = 30.0


def get_chat_llm(
    *,
    temperature: float = 0.7,
    request_timeout: float = _REQUEST_TIMEOUT,
    max_retries: int = 0,
) -> ChatOpenAI:
    """Return a configured ChatOpenAI instance."""
    return ChatOpenAI(
        model=settings.LLM_MODEL_NAME,
        temperature=temperature,
        request_timeout=request_timeout,
        max_retries=max_retries,
    )
