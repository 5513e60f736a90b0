"""First-writer-wins arbitration between manual and timeout submissions."""

from __future__ import annotations

import logging
import threading
from typing import Literal

logger = logging.getLogger(__name__)

SubmissionSource = Literal["manual", "timeout"]


class SubmissionGuard:
    """Records, per question index, which submission source got there first.

    ``try_submit`` is atomic: of any number of concurrent calls for the same
    index exactly one returns True.  Every later call returns False and
    changes nothing.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._winners: dict[int, SubmissionSource] = {}

    def try_submit(self, index: int, source: SubmissionSource = "manual") -> bool:
        with self._lock:
            if index in self._winners:
                logger.debug(
                    "Rejected %s submission for question %d (already %s)",
                    source,
                    index,
                    self._winners[index],
                )
                return False
            self._winners[index] = source
            return True

    def is_resolved(self, index: int) -> bool:
        with self._lock:
            return index in self._winners

    def winner(self, index: int) -> SubmissionSource | None:
        with self._lock:
            return self._winners.get(index)

    def mark_resolved(self, indices: range | list[int], source: SubmissionSource = "manual") -> None:
        """Pre-resolve indices that already have answers (used on restore)."""
        with self._lock:
            for index in indices:
                self._winners.setdefault(index, source)

    def reset(self) -> None:
        with self._lock:
            self._winners.clear()
