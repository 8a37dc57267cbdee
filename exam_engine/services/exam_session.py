# exam_engine/services/exam_session.py
"""
The exam session aggregate.

Owns the question sequence, the session-wide timer, the answer store and the
current metrics/adaptive-settings snapshots. Every mutation happens through a
method on this class; callers are expected to serialize calls (the session
manager does this with one lock per session).
"""
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from exam_engine.errors import (
    EmptyExamError,
    InvalidResponseError,
    InvalidSessionStateError,
    SessionAlreadyCompletedError,
    SessionNotCompletedError,
)
from exam_engine.models.attempt import AnswerAttempt, RawResponse
from exam_engine.models.enums import SessionStatus
from exam_engine.models.question import Question
from exam_engine.models.session import (
    AdaptiveSettings,
    FinalResult,
    GradingResult,
    PerformanceMetrics,
    SessionSnapshot,
)
from exam_engine.services import difficulty
from exam_engine.services.answer_store import AnswerStore, normalize
from exam_engine.services.performance import performance_tracker
from exam_engine.services.timer import SessionTimer
from exam_engine.utils.config import settings
from exam_engine.utils.logger import logger


class ExamSession:
    def __init__(
        self,
        questions: List[Question],
        time_allowed_minutes: float = settings.default_time_allowed_minutes,
        initial_difficulty: float = settings.default_initial_difficulty,
        session_id: Optional[str] = None,
        exam_id: Optional[str] = None,
        test_taker_id: Optional[str] = None,
        passing_score_percent: Optional[float] = None,
        accommodations: Iterable[str] = (),
        clock: Callable[[], float] = time.monotonic,
        tick_interval: float = settings.timer_tick_seconds,
    ):
        if not questions:
            raise EmptyExamError()
        self.session_id = session_id or str(uuid.uuid4())
        self.exam_id = exam_id
        self.test_taker_id = test_taker_id
        self.questions = list(questions)
        self.time_allowed_minutes = time_allowed_minutes
        self.passing_score_percent = passing_score_percent

        self.status = SessionStatus.NOT_STARTED
        self.current_index = 0
        self.metrics = PerformanceMetrics(confidence_level=settings.initial_confidence_level)
        self.adaptive_settings = AdaptiveSettings(
            difficulty_level=difficulty.clamp_difficulty(initial_difficulty)
        ).with_accommodations(accommodations)
        self.answers = AnswerStore(self.questions)
        self.timer = SessionTimer.from_minutes(
            time_allowed_minutes, on_expire=self._on_timer_expired, tick_interval=tick_interval
        )

        self.started_at: Optional[datetime] = None
        self.completed_at: Optional[datetime] = None
        self.grading_result: Optional[GradingResult] = None

        self._clock = clock
        self._question_started_at: Optional[float] = None
        self._paused_at: Optional[float] = None

    @classmethod
    def start(cls, questions: List[Question], time_allowed_minutes: float,
              initial_difficulty: float, **kwargs) -> "ExamSession":
        """Creates a fresh session and puts it in progress with the timer running."""
        session = cls(questions, time_allowed_minutes, initial_difficulty, **kwargs)
        session.begin()
        return session

    # --- State helpers ---
    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    @property
    def acknowledged(self) -> bool:
        return self.grading_result is not None

    @property
    def time_remaining(self) -> int:
        return self.timer.remaining

    @property
    def current_question(self) -> Optional[Question]:
        if self.status not in (SessionStatus.IN_PROGRESS, SessionStatus.PAUSED):
            return None
        return self.questions[self.current_index]

    def _require(self, operation: str, *allowed: SessionStatus):
        if self.status == SessionStatus.COMPLETED:
            raise SessionAlreadyCompletedError(self.session_id)
        if self.status not in allowed:
            raise InvalidSessionStateError(self.session_id, self.status.value, operation)

    def _elapsed_on_question(self) -> float:
        if self._question_started_at is None:
            return 0.0
        return max(0.0, self._clock() - self._question_started_at)

    # --- Lifecycle ---
    def begin(self):
        self._require("start", SessionStatus.NOT_STARTED)
        self.status = SessionStatus.IN_PROGRESS
        self.started_at = datetime.now(timezone.utc)
        self._question_started_at = self._clock()
        self.timer.start()
        logger.info(
            f"Session {self.session_id} started: {len(self.questions)} questions, "
            f"{self.time_allowed_minutes} minutes, difficulty {self.adaptive_settings.difficulty_level}"
        )

    def pause(self):
        self._require("pause", SessionStatus.IN_PROGRESS)
        self.status = SessionStatus.PAUSED
        self.timer.pause()
        self._paused_at = self._clock()
        logger.info(f"Session {self.session_id} paused with {self.time_remaining}s remaining.")

    def resume(self):
        self._require("resume", SessionStatus.PAUSED)
        if self._paused_at is not None and self._question_started_at is not None:
            # Time spent paused does not count towards the current question.
            self._question_started_at += self._clock() - self._paused_at
        self._paused_at = None
        self.status = SessionStatus.IN_PROGRESS
        self.timer.start()
        logger.info(f"Session {self.session_id} resumed.")

    def _complete(self, reason: str):
        self.status = SessionStatus.COMPLETED
        self.completed_at = datetime.now(timezone.utc)
        self.timer.cancel()
        logger.info(
            f"Session {self.session_id} completed ({reason}): answered {self.answers.answered_count}/"
            f"{len(self.questions)}, accuracy {self.metrics.accuracy_rate:.1f}%"
        )

    def _close_unanswered(self):
        for index in range(len(self.questions)):
            if not self.answers.is_closed(index):
                self.answers.mark_unanswered(index)

    # --- Operations ---
    def submit_answer(self, response: RawResponse) -> Optional[AnswerAttempt]:
        """Grades the response for the current question and advances. Returns None when it was skipped."""
        self._require("submit an answer to", SessionStatus.IN_PROGRESS)
        index = self.current_index
        if response.question_index != index:
            raise InvalidResponseError(
                f"Response is for question {response.question_index} but the current question is {index}"
            )

        question = self.questions[index]
        time_spent = response.time_spent_seconds
        if time_spent is None:
            time_spent = self._elapsed_on_question()

        attempt = normalize(question, index, response, time_spent)
        if attempt is None:
            self.answers.mark_unanswered(index)
            logger.debug(f"Session {self.session_id}: question {question.id} skipped.")
        else:
            self.answers.record(attempt)
            self.metrics = performance_tracker.record_attempt(attempt, self.metrics)
            self.adaptive_settings = difficulty.adjust(self.metrics, self.adaptive_settings, attempt)

        self.current_index = index + 1
        if self.current_index >= len(self.questions):
            self._complete("all questions answered")
        else:
            self._question_started_at = self._clock()
        return attempt

    def request_help(self) -> AdaptiveSettings:
        self._require("request help for", SessionStatus.IN_PROGRESS)
        self.adaptive_settings = self.adaptive_settings.with_accommodations(
            settings.help_accommodations
        ).model_copy(update={"requires_additional_support": True})
        logger.info(f"Help requested in session {self.session_id}.")
        return self.adaptive_settings

    def expire_by_timeout(self):
        """Closes every unanswered question and completes the session, whatever the current index."""
        self._require("expire", SessionStatus.IN_PROGRESS, SessionStatus.PAUSED)
        self._close_unanswered()
        self._complete("time expired")

    def finish(self):
        """Ends the session early, e.g. when the test-taker hands in before the last question."""
        self._require("finish", SessionStatus.IN_PROGRESS, SessionStatus.PAUSED)
        self._close_unanswered()
        self._complete("handed in")

    def _on_timer_expired(self):
        try:
            self.expire_by_timeout()
        except SessionAlreadyCompletedError:
            logger.info(f"Timer expired for session {self.session_id} after it was already completed.")

    def mark_acknowledged(self, result: GradingResult):
        if not self.is_completed:
            raise SessionNotCompletedError(self.session_id)
        self.grading_result = result

    # --- Read side ---
    def finalize(self) -> FinalResult:
        if not self.is_completed:
            raise SessionNotCompletedError(self.session_id)
        score = self.metrics.accuracy_rate
        passed = None
        if self.passing_score_percent is not None:
            passed = score >= self.passing_score_percent
        return FinalResult(
            session_id=self.session_id,
            score_percent=score,
            total_time_seconds=self.metrics.completion_time,
            answered=self.answers.answered_count,
            total_questions=len(self.questions),
            passed=passed,
        )

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            exam_id=self.exam_id,
            test_taker_id=self.test_taker_id,
            status=self.status,
            current_question_index=self.current_index,
            total_questions=len(self.questions),
            answered_count=self.answers.answered_count,
            time_allowed_minutes=self.time_allowed_minutes,
            time_remaining_seconds=self.time_remaining,
            adaptive_settings=self.adaptive_settings,
            performance=self.metrics,
        )
