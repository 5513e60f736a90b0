"""Tests for persisted records, the JSON session store and the completion log."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from interview_engine.errors import SessionRestoreError
from interview_engine.models.initial_state import new_session
from interview_engine.models.session import Answer, CompletionRecord
from interview_engine.session.records import (
    SCHEMA_VERSION,
    JsonCompletionLog,
    JsonSessionStore,
    migrate_record,
    to_record,
)

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestMigrateRecord:
    def test_current_version_passes_through(self):
        record = to_record(new_session("s1"))
        assert migrate_record(record)["schema_version"] == SCHEMA_VERSION

    def test_v1_renames_index_and_adds_notes(self):
        legacy = {"schema_version": 1, "session": {"session_id": "s1", "current_question_index": -1}}
        migrated = migrate_record(legacy)
        assert migrated["schema_version"] == 2
        assert migrated["session"]["current_index"] == -1
        assert migrated["session"]["progression_notes"] == []
        assert "current_question_index" not in migrated["session"]

    def test_missing_version_treated_as_v1(self):
        migrated = migrate_record({"session": {"session_id": "s1"}})
        assert migrated["schema_version"] == 2

    @pytest.mark.parametrize(
        "record",
        [
            "not a dict",
            {"schema_version": 99, "session": {}},
            {"schema_version": "two", "session": {}},
            {"schema_version": 0, "session": {}},
            {"schema_version": 2},
        ],
    )
    def test_rejects_unusable_records(self, record):
        with pytest.raises(SessionRestoreError):
            migrate_record(record)


class TestJsonSessionStore:
    def test_save_and_load(self, tmp_path):
        store = JsonSessionStore(tmp_path)
        record = to_record(new_session("session_abc"))
        store.save(record)

        assert (tmp_path / "session_abc.json").exists()
        assert store.load("session_abc") == record
        assert list(tmp_path.glob("*.tmp")) == []

    def test_load_missing_returns_none(self, tmp_path):
        assert JsonSessionStore(tmp_path).load("nope") is None

    def test_corrupted_file_raises_restore_error(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(SessionRestoreError, match="corrupted"):
            JsonSessionStore(tmp_path).load("broken")

    def test_latest(self, tmp_path):
        store = JsonSessionStore(tmp_path)
        assert store.latest() is None
        store.save(to_record(new_session("only_one")))
        assert store.latest()["session"]["session_id"] == "only_one"


class TestJsonCompletionLog:
    def test_appends_one_line_per_completion(self, tmp_path):
        log = JsonCompletionLog(tmp_path / "completions.jsonl")
        answer = Answer(question_id="q0", index=0, text="a", submitted_at=NOW, score=70)
        for session_id in ("s1", "s2"):
            log.record_completion(
                CompletionRecord(
                    candidate_id="c1",
                    session_id=session_id,
                    final_score=70,
                    summary="ok",
                    answers=[answer],
                    completed_at=NOW,
                )
            )

        records = log.read_all()
        assert [r.session_id for r in records] == ["s1", "s2"]
        assert records[0].answers[0].score == 70
