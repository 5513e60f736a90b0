"""Session engine — drives one interview from initialization to completion.

The engine owns the session and its collaborators:

  - CountdownTimer      per-question countdown on an injected Clock
  - SubmissionGuard     first-writer-wins between manual and timeout submits
  - AnswerEvaluator     scoring, run on a single-worker executor
  - QuestionSource      question per index (remote or static pool)
  - SessionSummarizer   interviewer summary once every answer is scored
  - store / registry    persistence and the completion hand-off

All state changes are expressed as events for the pure reducer in
``interview_engine.session.transitions``.  Operations that the current
state does not allow (wrong status, stale index, completed session)
return ``False`` and leave the session untouched.

Usage:
    engine = SessionEngine(store=JsonSessionStore(), registry=JsonCompletionLog())
    engine.subscribe(lambda name, payload: print(name, payload))
    engine.initialize(candidate)
    engine.start()
    engine.submit_answer("A closure is ...")
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable

from pydantic import ValidationError

from interview_engine import settings
from interview_engine.errors import SessionRestoreError
from interview_engine.models.initial_state import new_session
from interview_engine.models.session import (
    DIFFICULTY_SEQUENCE,
    Answer,
    Candidate,
    CompletionRecord,
    Evaluation,
    ProgressionNote,
    Question,
    Session,
    TimerState,
    check_invariants,
)
from interview_engine.questions.question_source import QuestionSource
from interview_engine.scheduling.difficulty import progression_decision, transitions
from interview_engine.scoring import aggregator
from interview_engine.scoring.evaluator import AnswerEvaluator
from interview_engine.scoring.summarizer import SessionSummarizer
from interview_engine.session import records
from interview_engine.session.records import CandidateRegistry, SessionStore, migrate_record
from interview_engine.session.transitions import (
    ActivateQuestion,
    AnswerAccepted,
    EvaluationAttached,
    Event,
    Finalized,
    Initialize,
    Pause,
    ProgressionNoted,
    Resume,
    TimerSynced,
    apply,
)
from interview_engine.settings import TIME_EXPIRED_SENTINEL
from interview_engine.submission.guard import SubmissionGuard, SubmissionSource
from interview_engine.timing.clock import Clock, ScheduledCall, SystemClock
from interview_engine.timing.countdown import CountdownTimer

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict[str, Any]], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionEngine:
    """State machine for a single timed, six-question interview."""

    def __init__(
        self,
        *,
        session: Session | None = None,
        clock: Clock | None = None,
        evaluator: AnswerEvaluator | None = None,
        question_source: QuestionSource | None = None,
        store: SessionStore | None = None,
        registry: CandidateRegistry | None = None,
        summarizer: SessionSummarizer | None = None,
        executor: Executor | None = None,
        grace_seconds: float | None = None,
        persist_interval: float | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._evaluator = evaluator or AnswerEvaluator()
        self._questions = question_source or QuestionSource()
        self._store = store
        self._registry = registry
        self._summarizer = summarizer or SessionSummarizer()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="answer-evaluator"
        )
        self._grace_seconds = (
            float(settings.AUTO_SUBMIT_GRACE_SECONDS) if grace_seconds is None else grace_seconds
        )
        if persist_interval is None:
            persist_interval = float(settings.TIMER_PERSIST_INTERVAL_SECONDS)

        self._lock = threading.RLock()
        self._session = session or new_session()
        self._guard = SubmissionGuard()
        self._timer = CountdownTimer(
            self._clock,
            on_tick=self._on_timer_tick,
            on_persist=self._on_timer_persist,
            persist_interval=persist_interval,
        )
        self._listeners: list[Listener] = []
        self._outbox: list[tuple[str, dict[str, Any]]] = []
        self._evaluations: list[Future] = []
        self._grace_handle: ScheduledCall | None = None
        self._completion: CompletionRecord | None = None
        self._finalizing = False
        self.warnings: list[str] = []

        if session is not None:
            self._adopt_restored_session()

    # ── Read access ───────────────────────────────────────────────────

    @property
    def session(self) -> Session:
        return self.snapshot()

    @property
    def completion_record(self) -> CompletionRecord | None:
        return self._completion

    def snapshot(self) -> Session:
        """The current session with the live timer state folded in."""
        with self._lock:
            session = self._session
            if session.status in ("in-progress", "paused"):
                return session.model_copy(update={"timer": self._timer.state()})
            return session

    def to_record(self) -> dict[str, Any]:
        """The persisted-record form of the current session."""
        return records.to_record(self.snapshot())

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(event_name, payload)``; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def wait_for_evaluations(self, timeout: float | None = None) -> bool:
        """Block until all submitted evaluations finished; False on timeout."""
        with self._lock:
            futures = list(self._evaluations)
        _, not_done = wait(futures, timeout=timeout)
        return not not_done

    # ── Operations ────────────────────────────────────────────────────

    def initialize(self, candidate: Candidate) -> bool:
        """idle → ready, once the candidate's required fields are present."""
        with self._lock:
            if self._session.status != "idle":
                return False
            missing = candidate.missing_fields()
            if missing:
                self._warn(f"Candidate is missing required fields: {', '.join(missing)}")
                accepted = False
            else:
                self._apply(Initialize(candidate.candidate_id))
                self._persist("initialize")
                accepted = True
        self._flush()
        return accepted

    def start(self) -> bool:
        """ready → in-progress with question 0 active."""
        with self._lock:
            if self._session.status != "ready":
                return False
        # A remote question may take seconds; fetch it before taking the lock.
        self._questions.question_for(0, DIFFICULTY_SEQUENCE[0])
        with self._lock:
            if self._session.status != "ready":
                return False
            self._activate_next_locked()
        self._flush()
        return True

    def submit_answer(self, text: str, expected_index: int | None = None) -> bool:
        """Manually submit ``text`` for the active question.

        ``expected_index`` lets a caller name the question it is answering;
        a submission for any other index is rejected as stale.
        """
        with self._lock:
            session = self._session
            index = session.current_index
            if session.status != "in-progress":
                return False
            if expected_index is not None and expected_index != index:
                logger.debug("Stale submission for %d (active %d)", expected_index, index)
                return False
            if len(session.answers) != index or not self._guard.try_submit(index, "manual"):
                return False
            self._accept_locked(index, text, source="manual")
        self._flush()
        return True

    def pause(self) -> bool:
        """in-progress → paused; the countdown keeps its elapsed time."""
        with self._lock:
            if self._session.status != "in-progress":
                return False
            if self._grace_handle is not None:
                self._grace_handle.cancel()
                self._grace_handle = None
            self._timer.pause()
            self._apply(Pause(self._timer.state()))
            self._queue("session_paused", {"index": self._session.current_index})
            self._persist("pause")
        self._flush()
        return True

    def resume(self) -> bool:
        """paused → in-progress.

        If the active question was already resolved when the session was
        paused (auto-submit grace window), the next question is activated.
        If its deadline passed while the pause was being applied, the
        question is resolved as a timeout.
        """
        with self._lock:
            session = self._session
            if session.status != "paused":
                return False
            index = session.current_index
            self._apply(Resume(self._timer.state()))
            self._queue("session_resumed", {"index": index})
            if len(session.answers) > index:
                self._activate_next_locked()
            elif self._timer.expired or self._timer.remaining <= 0:
                logger.info("Question %d expired while pausing; resolving as timeout", index + 1)
                if self._guard.try_submit(index, "timeout"):
                    self._accept_locked(index, TIME_EXPIRED_SENTINEL, source="timeout")
            else:
                self._timer.resume(on_expire=partial(self._on_timer_expired, index))
                self._apply(TimerSynced(self._timer.state()))
                self._persist("resume")
        self._flush()
        self._finalize_if_ready()
        return True

    def close(self) -> None:
        """Stop the timer and release worker threads."""
        with self._lock:
            self._timer.stop()
            if self._grace_handle is not None:
                self._grace_handle.cancel()
                self._grace_handle = None
        if self._owns_executor:
            self._executor.shutdown(wait=False)
        self._questions.close()
        self._summarizer.close()
        close_evaluator = getattr(self._evaluator, "close", None)
        if close_evaluator is not None:
            close_evaluator()

    # ── Timer callbacks ───────────────────────────────────────────────

    def _on_timer_expired(self, index: int) -> None:
        with self._lock:
            session = self._session
            if session.status != "in-progress" or session.current_index != index:
                logger.debug("Ignoring expiry for question %d", index)
                return
            if len(session.answers) != index or not self._guard.try_submit(index, "timeout"):
                return
            self._accept_locked(index, TIME_EXPIRED_SENTINEL, source="timeout")
        self._flush()
        self._finalize_if_ready()

    def _on_timer_tick(self, remaining: float) -> None:
        with self._lock:
            self._queue(
                "timer_tick",
                {"index": self._session.current_index, "remaining_seconds": round(remaining, 3)},
            )
        self._flush()

    def _on_timer_persist(self, state: TimerState) -> None:
        with self._lock:
            if self._session.status != "in-progress":
                return
            self._apply(TimerSynced(state))
            self._persist("timer")
        self._flush()

    def _on_grace_elapsed(self, index: int) -> None:
        with self._lock:
            self._grace_handle = None
            session = self._session
            if (
                session.status != "in-progress"
                or session.current_index != index
                or len(session.answers) != index + 1
            ):
                return
            self._activate_next_locked()
        self._flush()

    # ── Internals ─────────────────────────────────────────────────────

    def _apply(self, event: Event) -> None:
        self._session = apply(self._session, event)

    def _activate_next_locked(self) -> None:
        index = self._session.current_index + 1
        question = self._questions.question_for(index, DIFFICULTY_SEQUENCE[index])
        self._timer.start(
            question.time_limit_seconds, on_expire=partial(self._on_timer_expired, index)
        )
        self._apply(ActivateQuestion(question, self._timer.state(), _utcnow()))
        logger.info(
            "Question %d/%d activated (%s, %ds)",
            index + 1,
            len(DIFFICULTY_SEQUENCE),
            question.difficulty,
            question.time_limit_seconds,
        )
        self._queue("question_activated", {"question": question.model_dump(mode="json")})
        self._persist("activate")
        self._questions.prefetch(index + 1)

    def _accept_locked(self, index: int, text: str, *, source: SubmissionSource) -> None:
        question = self._session.questions[index]
        self._timer.pause()
        timer_state = self._timer.state()
        time_spent = self._timer.elapsed
        self._timer.stop()

        auto = source == "timeout"
        if auto:
            answer = Answer(
                question_id=question.id,
                index=index,
                text=text,
                submitted_at=_utcnow(),
                auto_submitted=True,
                score=0,
                feedback="Time expired before an answer was submitted.",
                improvements=["Manage time so an answer is submitted before the limit"],
                time_spent_seconds=round(time_spent, 3),
                evaluation_method="timeout",
            )
        else:
            answer = Answer(
                question_id=question.id,
                index=index,
                text=text,
                submitted_at=_utcnow(),
                time_spent_seconds=round(time_spent, 3),
            )

        self._apply(AnswerAccepted(answer, timer_state))
        logger.info("Answer %d accepted (%s)", index + 1, source)
        self._queue("answer_accepted", {"index": index, "source": source, "auto_submitted": auto})
        self._persist("answer")

        if auto:
            self._after_score_locked()
        else:
            self._evaluations.append(
                self._executor.submit(self._run_evaluation, index, question, text)
            )

        if self._session.status == "completed":
            return
        if auto and self._grace_seconds > 0:
            self._grace_handle = self._clock.after(
                self._grace_seconds, partial(self._on_grace_elapsed, index)
            )
        else:
            self._activate_next_locked()

    def _run_evaluation(self, index: int, question: Question, text: str) -> None:
        try:
            evaluation = self._evaluator.evaluate(question, text)
        except Exception:
            logger.exception("Evaluator failed for question %d; using heuristic", index)
            evaluation = AnswerEvaluator(remote_enabled=False).evaluate(question, text)
        self._attach(index, evaluation)

    def _attach(self, index: int, evaluation: Evaluation) -> None:
        with self._lock:
            self._apply(EvaluationAttached(index, evaluation))
            logger.info(
                "Answer %d scored %d (%s)", index + 1, evaluation.score, evaluation.method
            )
            self._queue(
                "evaluation_attached",
                {"index": index, "score": evaluation.score, "method": evaluation.method},
            )
            self._after_score_locked()
            self._persist("evaluation")
        self._flush()
        self._finalize_if_ready()

    def _after_score_locked(self) -> None:
        """Record tier decisions whose scores are all known."""
        answers = self._session.answers
        noted = {n.at_index for n in self._session.progression_notes}
        scores = self._session.scores()
        for transition in transitions():
            boundary = transition.boundary_index
            if boundary in noted or boundary >= len(answers):
                continue
            tier = [a for a in answers if DIFFICULTY_SEQUENCE[a.index] == transition.from_difficulty]
            if not all(a.is_scored for a in tier):
                continue
            decision = progression_decision(boundary, scores)
            note = ProgressionNote(**decision)
            self._apply(ProgressionNoted(note))
            log = logger.info if note.met else logger.warning
            log(
                "Tier %s → %s: average %.1f vs required %.0f (%s)",
                note.from_difficulty,
                note.to_difficulty,
                note.average_score,
                note.required_score,
                "met" if note.met else "not met, advancing anyway",
            )

    def _finalize_if_ready(self) -> None:
        """Finalize once the session is completed and every answer is scored.

        The summary may come from the remote model, so it is built outside
        the engine lock; ``_finalizing`` keeps a second caller out meanwhile.
        """
        with self._lock:
            session = self._session
            if self._finalizing or not session.is_complete or session.final_score is not None:
                return
            if not all(a.is_scored for a in session.answers):
                return
            self._finalizing = True
            answers = list(session.answers)

        result = aggregator.finalize(answers, self._summarizer.summarize)

        with self._lock:
            self._apply(Finalized(result["final_score"], result["summary"]))
            session = self._session
            self._completion = CompletionRecord(
                candidate_id=session.candidate_id,
                session_id=session.session_id,
                final_score=result["final_score"],
                summary=result["summary"],
                answers=session.answers,
                completed_at=session.completed_at or _utcnow(),
                breakdown=result["breakdown"],
            )
            logger.info("Session %s completed: %d/100", session.session_id, result["final_score"])
            self._queue(
                "session_completed",
                {"final_score": result["final_score"], "summary": result["summary"]},
            )
            if self._registry is not None:
                try:
                    self._registry.record_completion(self._completion)
                except Exception as e:
                    self._warn(f"Could not hand off completion record: {e}")
            self._persist("complete")
        self._flush()

    def _persist(self, reason: str) -> None:
        if self._store is None:
            return
        try:
            self._store.save(records.to_record(self.snapshot()))
        except Exception as e:
            self._warn(f"Could not persist session ({reason}): {e}")

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)
        self._queue("warning", {"message": message})

    def _queue(self, name: str, payload: dict[str, Any]) -> None:
        self._outbox.append((name, payload))

    def _flush(self) -> None:
        with self._lock:
            pending, self._outbox = self._outbox, []
            listeners = list(self._listeners)
        for name, payload in pending:
            for listener in listeners:
                try:
                    listener(name, payload)
                except Exception:
                    logger.exception("Session listener failed on %s", name)

    def _adopt_restored_session(self) -> None:
        session = self._session
        self._guard.mark_resolved(range(len(session.answers)))
        if session.status == "paused" and len(session.answers) == session.current_index:
            self._timer.load(session.timer.total_seconds, session.timer.remaining_seconds)
        for answer in session.answers:
            if not answer.is_scored:
                self._evaluations.append(
                    self._executor.submit(
                        self._run_evaluation,
                        answer.index,
                        session.questions[answer.index],
                        answer.text,
                    )
                )
        with self._lock:
            self._after_score_locked()
        self._finalize_if_ready()


# ── Restore ───────────────────────────────────────────────────────────────


def rehydrate(record: Any, **engine_kwargs: Any) -> SessionEngine:
    """Rebuild an engine from a persisted record.

    An in-progress session comes back ``paused`` with its timer at the
    persisted remaining time.  Raises ``SessionRestoreError`` when the
    record is corrupted, from an unsupported schema, or inconsistent.
    """
    migrated = migrate_record(record)
    try:
        session = Session.model_validate(migrated["session"])
    except ValidationError as e:
        raise SessionRestoreError(f"session record failed validation: {e}") from e

    problems = check_invariants(session)
    if problems:
        raise SessionRestoreError("session record is inconsistent: " + "; ".join(problems))

    if session.status == "in-progress":
        timer = session.timer.model_copy(update={"running": False, "reference_start": None})
        session = session.model_copy(update={"status": "paused", "timer": timer})
    logger.info(
        "Restored session %s (%s, question %d)",
        session.session_id,
        session.status,
        session.current_index + 1,
    )
    return SessionEngine(session=session, **engine_kwargs)


def restore_or_fresh(
    record: Any,
    candidate: Candidate | None = None,
    **engine_kwargs: Any,
) -> tuple[SessionEngine, str | None]:
    """Restore from ``record`` or fall back to a fresh session.

    Returns ``(engine, warning)``; ``warning`` is None unless a record was
    present but could not be restored.
    """
    if record is not None:
        try:
            return rehydrate(record, **engine_kwargs), None
        except SessionRestoreError as e:
            warning = f"Saved interview could not be restored ({e}); starting a new session."
            logger.warning(warning)
        engine = SessionEngine(**engine_kwargs)
        engine.warnings.append(warning)
    else:
        warning = None
        engine = SessionEngine(**engine_kwargs)
    if candidate is not None:
        engine.initialize(candidate)
    return engine, warning
