"""CLI entry-point — run the timed technical interview in the terminal.

Usage:
    python -m interview_engine.main
    # or via pyproject entry-point:  interview

Commands while a question is active:
    /pause   pause the countdown        /resume  continue
    /quit    save and leave (the session can be resumed on the next run)
"""

from __future__ import annotations

import logging
import threading
import uuid

from dotenv import load_dotenv

from interview_engine.errors import InterviewEngineError
from interview_engine.logging_config import setup_logging
from interview_engine.models.session import Candidate
from interview_engine.scoring.aggregator import format_results
from interview_engine.session.engine import SessionEngine, restore_or_fresh
from interview_engine.session.records import JsonCompletionLog, JsonSessionStore
from interview_engine.settings import TOTAL_QUESTIONS

logger = logging.getLogger(__name__)

BANNER = """
╔══════════════════════════════════════════════════════════════╗
║          Technical Interview — Full-Stack (React/Node)       ║
║                                                              ║
║  Six questions: 2 easy (20s), 2 medium (60s), 2 hard (120s). ║
║  Answers are submitted automatically when time runs out.     ║
║  Type /pause, /resume or /quit at any time.                  ║
╚══════════════════════════════════════════════════════════════╝
"""


def _ask_candidate() -> Candidate:
    print("Before we begin, please enter your details.\n")
    fields = {}
    for field in ("name", "email", "phone"):
        value = ""
        while not value:
            value = input(f"  {field.capitalize()}: ").strip()
        fields[field] = value
    return Candidate(candidate_id=f"candidate_{uuid.uuid4().hex[:8]}", **fields)


def _print_event(name: str, payload: dict) -> None:
    if name == "question_activated":
        q = payload["question"]
        print(
            f"\nQuestion {q['index'] + 1}/{TOTAL_QUESTIONS} "
            f"[{q['difficulty']}, {q['time_limit_seconds']}s]\n{q['prompt_text']}\n"
        )
    elif name == "answer_accepted" and payload["auto_submitted"]:
        print("\n⏰  Time expired, moving on…")
    elif name == "evaluation_attached":
        print(f"   (answer {payload['index'] + 1} scored {payload['score']}/100)")
    elif name == "warning":
        print(f"⚠️  {payload['message']}")


def _resume_or_start(store: JsonSessionStore) -> SessionEngine:
    kwargs = {"store": store, "registry": JsonCompletionLog()}
    try:
        latest = store.latest()
    except InterviewEngineError as e:
        logger.warning("Could not read saved sessions: %s", e)
        latest = None

    saved_status = (latest or {}).get("session", {}).get("status")
    if latest is not None and saved_status not in ("completed", "idle", None):
        answer = input("An unfinished interview was found. Resume it? [Y/n] ").strip().lower()
        if answer in ("", "y", "yes"):
            engine, warning = restore_or_fresh(latest, **kwargs)
            if warning:
                print(f"⚠️  {warning}")
            return engine
    return SessionEngine(**kwargs)


def main() -> None:
    load_dotenv()
    setup_logging()
    print(BANNER)

    store = JsonSessionStore()
    engine = _resume_or_start(store)
    done = threading.Event()
    engine.subscribe(_print_event)
    engine.subscribe(lambda name, _payload: done.set() if name == "session_completed" else None)

    try:
        status = engine.snapshot().status
        if status == "idle":
            while not engine.initialize(_ask_candidate()):
                print("All fields are required.")
            engine.start()
        elif status == "ready":
            engine.start()
        elif status == "paused":
            print("Session restored and paused. Type /resume to continue.")

        while engine.snapshot().status != "completed":
            index = engine.snapshot().current_index
            try:
                text = input("You: ").strip()
            except (EOFError, KeyboardInterrupt):
                text = "/quit"

            if text == "/quit":
                engine.pause()
                print("\nSession saved. Run again to resume.")
                return
            if text == "/pause":
                if engine.pause():
                    print("Paused. Type /resume to continue.")
                continue
            if text == "/resume":
                engine.resume()
                continue
            if engine.snapshot().status == "paused":
                print("The interview is paused. Type /resume to continue.")
                continue
            if not engine.submit_answer(text, expected_index=index):
                print("That answer arrived too late for this question and was not recorded.")

        print("\nInterview complete, finishing evaluation…")
        engine.wait_for_evaluations()
        done.wait(timeout=5)
        if engine.completion_record is not None:
            print(format_results(engine.completion_record))
    finally:
        engine.close()


if __name__ == "__main__":
    main()
