"""Logging setup for the CLI and the web app.

Call ``setup_logging()`` once from each entry-point before the engine is
built.  Engine modules log through ``logging.getLogger(__name__)`` under
the ``interview_engine`` namespace, whose level can be tuned on its own
with ``ENGINE_LOG_LEVEL`` (for example DEBUG for timer and submission
traces while third-party libraries stay at INFO).
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

ENGINE_LOGGER = "interview_engine"
TEXT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line, safe for any message text."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).strftime(DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def _level(name: str, default: str) -> int:
    return getattr(logging, os.getenv(name, default).upper(), logging.INFO)


def setup_logging() -> None:
    """Configure the root logger and the engine's logger.

    ``LOG_FORMAT=json`` switches to :class:`JsonFormatter` for log
    collectors; ``LOG_LEVEL`` sets the root level.
    """
    handler = logging.StreamHandler(sys.stderr)
    if os.getenv("LOG_FORMAT", "text").lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT))

    logging.basicConfig(level=_level("LOG_LEVEL", "INFO"), handlers=[handler], force=True)

    engine_level = os.getenv("ENGINE_LOG_LEVEL")
    engine_logger = logging.getLogger(ENGINE_LOGGER)
    engine_logger.setLevel(_level("ENGINE_LOG_LEVEL", "INFO") if engine_level else logging.NOTSET)

    # Quieten noisy third-party loggers
    for name in ("httpx", "httpcore", "openai", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)
