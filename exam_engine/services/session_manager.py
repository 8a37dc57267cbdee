# exam_engine/services/session_manager.py
# Registry of live exam sessions. One active session per test-taker; mutations are serialized per session.
import asyncio
from typing import Dict, Iterable, Optional, Set, Tuple, Union

from exam_engine.errors import ActiveSessionExistsError, SessionNotFoundError
from exam_engine.models.attempt import AnswerAttempt, RawResponse
from exam_engine.models.question import ExamDefinition
from exam_engine.models.session import AdaptiveSettings, FinalResult, GradingResult, SessionSnapshot
from exam_engine.services.exam_session import ExamSession
from exam_engine.services.grading_client import GradingClient
from exam_engine.state_manager import save_session_result
from exam_engine.utils.config import settings
from exam_engine.utils.db import AsyncSessionLocal
from exam_engine.utils.logger import logger


class SessionManager:
    def __init__(self, grading_client: Optional[GradingClient] = None,
                 persist_results: bool = settings.persist_results,
                 db_session_factory=AsyncSessionLocal):
        self.sessions: Dict[str, ExamSession] = {}
        self.active_by_test_taker: Dict[str, str] = {}
        self.grading_client = grading_client or GradingClient()
        self.persist_results = persist_results
        self.db_session_factory = db_session_factory
        self._locks: Dict[str, asyncio.Lock] = {}
        self._persisted: Set[str] = set()

    def get(self, session_id: Optional[str]) -> ExamSession:
        session = self.sessions.get(session_id) if session_id else None
        if session is None:
            raise SessionNotFoundError(str(session_id))
        return session

    def _lock(self, session_id: str) -> asyncio.Lock:
        return self._locks.setdefault(session_id, asyncio.Lock())

    async def start_session(self, exam: ExamDefinition, test_taker_id: str,
                            initial_difficulty: Optional[float] = None,
                            accommodations: Iterable[str] = ()) -> ExamSession:
        existing_id = self.active_by_test_taker.get(test_taker_id)
        if existing_id and existing_id in self.sessions and not self.sessions[existing_id].is_completed:
            raise ActiveSessionExistsError(test_taker_id, existing_id)
        self._evict_finished(test_taker_id)

        session = ExamSession.start(
            exam.questions,
            exam.duration_minutes,
            initial_difficulty if initial_difficulty is not None else settings.default_initial_difficulty,
            exam_id=exam.id,
            test_taker_id=test_taker_id,
            passing_score_percent=exam.passing_score_percent,
            accommodations=accommodations,
        )
        self.sessions[session.session_id] = session
        self.active_by_test_taker[test_taker_id] = session.session_id
        logger.info(f"Test-taker '{test_taker_id}' started session {session.session_id} for exam {exam.id}.")
        return session

    def snapshot(self, session_id: str) -> SessionSnapshot:
        return self.get(session_id).snapshot()

    async def submit_answer(self, session_id: str, response: RawResponse) -> Tuple[Optional[AnswerAttempt], SessionSnapshot]:
        session = self.get(session_id)
        async with self._lock(session_id):
            attempt = session.submit_answer(response)
            return attempt, session.snapshot()

    async def request_help(self, session_id: str) -> AdaptiveSettings:
        session = self.get(session_id)
        async with self._lock(session_id):
            return session.request_help()

    async def pause(self, session_id: str) -> SessionSnapshot:
        session = self.get(session_id)
        async with self._lock(session_id):
            session.pause()
            return session.snapshot()

    async def resume(self, session_id: str) -> SessionSnapshot:
        session = self.get(session_id)
        async with self._lock(session_id):
            session.resume()
            return session.snapshot()

    async def expire(self, session_id: str) -> SessionSnapshot:
        session = self.get(session_id)
        async with self._lock(session_id):
            session.expire_by_timeout()
            return session.snapshot()

    def finalize(self, session_id: str) -> FinalResult:
        return self.get(session_id).finalize()

    async def submit_results(self, session_id: str, attempt_ref: Union[int, str, None] = None) -> GradingResult:
        """
        Sends the answered questions to the grading endpoint.
        The payload is validated before any network call; a failed post leaves the
        session as it is so the same call can be retried.
        """
        session = self.get(session_id)
        async with self._lock(session_id):
            if not session.acknowledged:
                payload = session.answers.build_payload()
                if not session.is_completed:
                    session.finish()
                result = await self.grading_client.submit(attempt_ref or session.session_id, payload)
                session.mark_acknowledged(result)
                logger.info(f"Session {session_id} acknowledged by grading endpoint: score {result.score}.")

            if self.persist_results and session_id not in self._persisted:
                async with self.db_session_factory() as db:
                    await save_session_result(db, session)
                self._persisted.add(session_id)

        if self.active_by_test_taker.get(session.test_taker_id) == session_id:
            del self.active_by_test_taker[session.test_taker_id]
        return session.grading_result

    def _busy(self, session_id: str) -> bool:
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()

    def _evict_finished(self, test_taker_id: str):
        """Drops completed sessions of a test-taker that no call is still working on."""
        finished = [
            sid for sid, s in self.sessions.items()
            if s.test_taker_id == test_taker_id and s.is_completed and not self._busy(sid)
        ]
        for sid in finished:
            self.discard(sid)

    def discard(self, session_id: str):
        session = self.get(session_id)
        if not session.is_completed:
            session.timer.cancel()
        self.sessions.pop(session_id, None)
        self._locks.pop(session_id, None)
        self._persisted.discard(session_id)
        if self.active_by_test_taker.get(session.test_taker_id) == session_id:
            del self.active_by_test_taker[session.test_taker_id]
        logger.info(f"Session {session_id} discarded.")

    def clear(self):
        for session in self.sessions.values():
            session.timer.cancel()
        self.sessions.clear()
        self.active_by_test_taker.clear()
        self._locks.clear()
        self._persisted.clear()


session_manager = SessionManager()
