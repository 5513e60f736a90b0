"""Persisted session records, the JSON session store and the completion log.

A persisted record is a versioned envelope around the session:

    {"schema_version": 2, "saved_at": "...", "session": {...}}

Older records are migrated forward one version at a time by the functions
in ``MIGRATIONS``; records from a newer (or unknown) schema are rejected
with ``SessionRestoreError``.

Output directory: data/sessions/
File format: {session_id}.json (one file per session, rewritten on save)
Completion log: data/completions.jsonl (one CompletionRecord per line)
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Protocol

from interview_engine.errors import PersistenceError, SessionRestoreError
from interview_engine.models.session import CompletionRecord, Session
from interview_engine.paths import COMPLETIONS_PATH, SESSIONS_DIR

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2


class SessionStore(Protocol):
    def save(self, record: dict[str, Any]) -> None: ...

    def load(self, session_id: str) -> dict[str, Any] | None: ...


class CandidateRegistry(Protocol):
    def record_completion(self, record: CompletionRecord) -> None: ...


# ── Record envelope and migrations ───────────────────────────────────────


def to_record(session: Session) -> dict[str, Any]:
    """Wrap a session in the current persisted-record envelope."""
    return {
        "schema_version": SCHEMA_VERSION,
        "saved_at": datetime.now(timezone.utc).isoformat(),
        "session": session.model_dump(mode="json"),
    }


def _migrate_v1(record: dict[str, Any]) -> dict[str, Any]:
    """v1 → v2: ``current_question_index`` renamed, progression notes added."""
    session = dict(record.get("session") or {})
    if "current_question_index" in session:
        session["current_index"] = session.pop("current_question_index")
    session.setdefault("progression_notes", [])
    return {**record, "schema_version": 2, "session": session}


MIGRATIONS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {
    1: _migrate_v1,
}


def migrate_record(record: Any) -> dict[str, Any]:
    """Bring a persisted record up to ``SCHEMA_VERSION``.

    Records without a version are treated as version 1.
    """
    if not isinstance(record, dict):
        raise SessionRestoreError(f"record must be an object, got {type(record).__name__}")
    version = record.get("schema_version", 1)
    if not isinstance(version, int) or isinstance(version, bool):
        raise SessionRestoreError(f"unreadable schema_version {version!r}")
    if version > SCHEMA_VERSION:
        raise SessionRestoreError(
            f"record schema_version {version} is newer than supported {SCHEMA_VERSION}"
        )
    migrated = dict(record)
    while version < SCHEMA_VERSION:
        migration = MIGRATIONS.get(version)
        if migration is None:
            raise SessionRestoreError(f"no migration from schema_version {version}")
        logger.info("Migrating session record from schema_version %d", version)
        migrated = migration(migrated)
        version = migrated["schema_version"]
    if not isinstance(migrated.get("session"), dict):
        raise SessionRestoreError("record has no session payload")
    return migrated


# ── JSON file store ───────────────────────────────────────────────────────


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class JsonSessionStore:
    """One JSON file per session under ``directory``.

    Usage:
        store = JsonSessionStore()
        store.save(to_record(session))
        raw = store.load(session.session_id)
    """

    def __init__(self, directory: Path | str = SESSIONS_DIR) -> None:
        self.directory = Path(directory)

    def _path(self, session_id: str) -> Path:
        return self.directory / f"{session_id}.json"

    def save(self, record: dict[str, Any]) -> None:
        try:
            session_id = record["session"]["session_id"]
            _atomic_write(self._path(session_id), json.dumps(record, indent=2))
        except (OSError, KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"could not save session record: {e}") from e

    def load(self, session_id: str) -> dict[str, Any] | None:
        """Return the raw record, or None when nothing was saved."""
        path = self._path(session_id)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise SessionRestoreError(f"session record {path.name} is corrupted: {e}") from e
        except OSError as e:
            raise PersistenceError(f"could not read {path.name}: {e}") from e

    def latest(self) -> dict[str, Any] | None:
        """The most recently written record, if any."""
        if not self.directory.exists():
            return None
        files = sorted(self.directory.glob("*.json"), key=lambda p: p.stat().st_mtime)
        if not files:
            return None
        return self.load(files[-1].stem)


class JsonCompletionLog:
    """Candidate-registry hand-off: appends each CompletionRecord as a JSON line."""

    def __init__(self, path: Path | str = COMPLETIONS_PATH) -> None:
        self.path = Path(path)

    def record_completion(self, record: CompletionRecord) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(record.model_dump_json() + "\n")
        except OSError as e:
            raise PersistenceError(f"could not append completion record: {e}") from e
        logger.info(
            "Completion recorded for session %s (score %d)", record.session_id, record.final_score
        )

    def read_all(self) -> list[CompletionRecord]:
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            return [CompletionRecord.model_validate_json(line) for line in f if line.strip()]
