from __future__ import annotations

from enum import Enum
from typing import Any, Callable, List, Optional

from assessment_engine.assessment.answers import AnswerStore
from assessment_engine.assessment.errors import (
    AttemptNotPermitted,
    IncompleteSubmission,
    InvalidStateTransition,
    PersistenceFailure,
)
from assessment_engine.assessment.grading import score_attempt
from assessment_engine.assessment.models import (
    AssessmentConfig,
    AssessmentResult,
    Attempt,
    GradeReport,
)
from assessment_engine.assessment.policy import (
    PolicyDecision,
    can_view_answers,
    evaluate_attempt_policy,
    gate_feedback,
)
from assessment_engine.assessment.timer import (
    AsyncioScheduler,
    Clock,
    CountdownScheduler,
    Scheduler,
    utc_now,
)
from assessment_engine.storage.base import AssessmentBackend
from assessment_engine.utils.logging import get_logger

logger = get_logger(__name__)


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"


_FINISHED = (SessionState.SUBMITTED, SessionState.REVIEWED)


class AssessmentSession:
    """
    Run one learner's attempts at one quiz or assignment.

    The session owns the answer store and the optional countdown, grades on
    submission, saves the completed attempt through the backend and filters
    the result through the visibility gate before handing it back.

    Lifecycle
    ---------
    ``NOT_STARTED -> start() -> IN_PROGRESS -> submit() / timer expiry ->
    SUBMITTED -> review() -> REVIEWED``, and ``retake()`` from either
    finished state returns to ``NOT_STARTED``.

    Calling an operation from the wrong state raises
    :class:`InvalidStateTransition`; policy refusals raise
    :class:`AttemptNotPermitted`. A manual ``submit()`` racing timer expiry is
    resolved by the completed-attempt guard: whichever runs second is a no-op.

    Parameters
    ----------
    backend : AssessmentBackend
        Source of the question set and prior attempts, and sink for completed ones.
    subject_id, user_id : str
        The question set and the learner.
    scheduler : Scheduler, optional
        Timer facility for time-limited subjects. Defaults to the running
        asyncio loop; tests pass a :class:`ManualScheduler`.
    clock : callable, optional
        Returns the current aware datetime. Defaults to UTC wall time.
    tick_seconds : int
        Countdown granularity.
    on_tick, on_auto_submit : callable, optional
        Notified with the remaining seconds after each tick, and with the
        attempt plus whether it was saved after a timer-driven submission.
        When the save failed, call :meth:`retry_persist`.
    """

    def __init__(
        self,
        backend: AssessmentBackend,
        subject_id: str,
        user_id: str,
        *,
        scheduler: Optional[Scheduler] = None,
        clock: Clock = utc_now,
        tick_seconds: int = 1,
        on_tick: Optional[Callable[[int], None]] = None,
        on_auto_submit: Optional[Callable[[Attempt, bool], None]] = None,
    ):
        self.backend = backend
        self.subject_id = subject_id
        self.user_id = user_id
        self.scheduler = scheduler or AsyncioScheduler()
        self.clock = clock
        self.tick_seconds = tick_seconds
        self.on_tick = on_tick
        self.on_auto_submit = on_auto_submit

        self.config: AssessmentConfig = backend.load_question_set(subject_id)
        self.answers = AnswerStore(self.config)
        self.state = SessionState.NOT_STARTED
        self.attempt: Optional[Attempt] = None
        self._report: Optional[GradeReport] = None
        self._countdown: Optional[CountdownScheduler] = None
        self._persisted = False

    # ------------------------------------------------------------------ queries

    @property
    def time_remaining(self) -> Optional[int]:
        """Seconds left on the countdown, or None for untimed or idle sessions."""
        if self._countdown is None or self.state is not SessionState.IN_PROGRESS:
            return None
        return self._countdown.remaining_seconds

    @property
    def timer_running(self) -> bool:
        return self._countdown is not None and self._countdown.running

    @property
    def persisted(self) -> bool:
        return self._persisted

    def prior_attempts(self) -> List[Attempt]:
        """Stored attempts plus the current completed one if it has not been saved yet."""
        prior = self.backend.load_prior_attempts(self.user_id, self.subject_id)
        current = self.attempt
        if current is not None and current.is_completed:
            if all(attempt.id != current.id for attempt in prior):
                prior.append(current)
        return prior

    def check_eligibility(self) -> PolicyDecision:
        prerequisite_ok = True
        if self.config.requires_prerequisite:
            prerequisite_ok = self.backend.is_prerequisite_satisfied(
                self.user_id, self.subject_id
            )
        return evaluate_attempt_policy(
            self.config, self.prior_attempts(), self.clock(), prerequisite_ok
        )

    # -------------------------------------------------------------- transitions

    def start(self) -> Attempt:
        """
        Begin a fresh attempt if the policy allows it.

        The countdown is armed before the session commits to the new attempt;
        if the scheduler refuses (e.g. no running event loop) the error
        propagates and the session stays ``NOT_STARTED``.
        """
        self._require("start", SessionState.NOT_STARTED)
        self._ensure_permitted()
        self._cancel_countdown()

        started_at = self.clock()
        time_limit = self.config.time_limit
        countdown: Optional[CountdownScheduler] = None
        if not time_limit.is_unlimited:
            countdown = CountdownScheduler(
                self.scheduler,
                time_limit.seconds,
                on_expired=self._on_expired,
                on_tick=self._on_tick,
                tick_seconds=self.tick_seconds,
            )
            countdown.start()

        self.answers.clear()
        self._report = None
        self._persisted = False
        self._countdown = countdown
        self.attempt = Attempt(
            subject_id=self.subject_id,
            user_id=self.user_id,
            started_at=started_at,
        )
        self.state = SessionState.IN_PROGRESS

        logger.info(
            "attempt_started",
            attempt_id=self.attempt.id,
            subject_id=self.subject_id,
            user_id=self.user_id,
            time_limit_seconds=time_limit.seconds,
        )
        return self.attempt

    def answer(self, question_id: str, value: Any) -> None:
        self._require("answer", SessionState.IN_PROGRESS)
        self.answers.set_answer(question_id, value)
        self.attempt.answers = self.answers.snapshot()

    def submit(self) -> Attempt:
        """
        Manually submit the in-progress attempt.

        Raises :class:`IncompleteSubmission` while required questions are
        unanswered, leaving the attempt in progress. Once the attempt is
        graded, a failed save raises :class:`PersistenceFailure` but the
        session stays ``SUBMITTED``; call :meth:`retry_persist`.
        Submitting an already-submitted attempt returns it unchanged.
        """
        if self.state in _FINISHED:
            return self.attempt
        self._require("submit", SessionState.IN_PROGRESS)
        missing = self.answers.missing_required()
        if missing:
            raise IncompleteSubmission(missing)
        self._complete(auto=False)
        self._persist()
        return self.attempt

    def retry_persist(self) -> Attempt:
        """Save the graded attempt again after a :class:`PersistenceFailure`."""
        self._require("persist", *_FINISHED)
        self._persist()
        return self.attempt

    def review(self) -> AssessmentResult:
        """Build the learner-facing result; repeated calls give the same answer."""
        self._require("review", *_FINISHED)
        if not self._persisted:
            raise PersistenceFailure(self.attempt.id)
        visible = can_view_answers(self.config, self.clock())
        self.state = SessionState.REVIEWED
        return AssessmentResult(
            attempt=self.attempt.model_copy(deep=True),
            feedback=gate_feedback(self._report.feedback, visible),
            can_view_answers=visible,
        )

    def retake(self) -> None:
        """Return to ``NOT_STARTED`` for another attempt, if the policy allows one."""
        self._require("retake", *_FINISHED)
        if not self._persisted:
            raise PersistenceFailure(self.attempt.id)
        self._ensure_permitted()
        self._cancel_countdown()
        logger.info("attempt_retake", previous_attempt_id=self.attempt.id, user_id=self.user_id)
        self._reset()

    def leave(self) -> None:
        """Tear down the session; an unfinished attempt is discarded."""
        self._cancel_countdown()
        if self.state is SessionState.IN_PROGRESS:
            logger.info("attempt_abandoned", attempt_id=self.attempt.id, user_id=self.user_id)
            self._reset()

    def __enter__(self) -> "AssessmentSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.leave()

    # ---------------------------------------------------------------- internals

    def _require(self, action: str, *states: SessionState) -> None:
        if self.state not in states:
            raise InvalidStateTransition(action, self.state.value)

    def _ensure_permitted(self) -> None:
        decision = self.check_eligibility()
        if not decision.allowed:
            logger.info(
                "attempt_denied",
                subject_id=self.subject_id,
                user_id=self.user_id,
                reason=decision.reason.value,
            )
            raise AttemptNotPermitted(decision.reason)

    def _reset(self) -> None:
        self.answers.clear()
        self.attempt = None
        self._report = None
        self._countdown = None
        self._persisted = False
        self.state = SessionState.NOT_STARTED

    def _cancel_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()

    def _on_tick(self, remaining: int) -> None:
        if self.on_tick is not None:
            self.on_tick(remaining)

    def _on_expired(self) -> None:
        if self.state is not SessionState.IN_PROGRESS:
            return
        self._complete(auto=True)
        try:
            self._persist()
        except PersistenceFailure:
            # stays SUBMITTED; on_auto_submit is told the save failed
            pass
        if self.on_auto_submit is not None:
            self.on_auto_submit(self.attempt, self._persisted)

    def _complete(self, auto: bool) -> None:
        if self.attempt is None or self.attempt.is_completed:
            return
        self._cancel_countdown()
        started_at = self.attempt.started_at
        completed_at = max(self.clock(), started_at)
        completed = self.attempt.model_copy(
            update={
                "answers": self.answers.snapshot(),
                "completed_at": completed_at,
                "time_spent_seconds": int((completed_at - started_at).total_seconds()),
                "auto_submitted": auto,
            }
        )
        self.attempt, self._report = score_attempt(completed, self.config)
        self.state = SessionState.SUBMITTED
        logger.info(
            "attempt_auto_submitted" if auto else "attempt_submitted",
            attempt_id=self.attempt.id,
            raw_score_percent=self.attempt.raw_score_percent,
            final_score_percent=self.attempt.final_score_percent,
            passed=self.attempt.passed,
            is_late=self.attempt.is_late,
        )

    def _persist(self) -> None:
        if self._persisted:
            return
        try:
            self.backend.persist_attempt(self.attempt)
        except Exception as exc:
            logger.warning(
                "attempt_persist_failed", attempt_id=self.attempt.id, error=str(exc)
            )
            raise PersistenceFailure(self.attempt.id) from exc
        self._persisted = True
