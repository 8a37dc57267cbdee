# exam_engine/state_manager.py
from typing import List

from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from exam_engine.models.records import ExamResultRecord, AttemptLogRecord
from exam_engine.services.exam_session import ExamSession
from exam_engine.utils.logger import logger


async def save_session_result(session: AsyncSession, exam_session: ExamSession) -> ExamResultRecord:
    """
    Stores a completed session and its full attempt history.
    Superseded attempts are kept alongside the ones that were graded.
    """
    final = exam_session.finalize()
    grading = exam_session.grading_result

    result = await session.execute(
        select(ExamResultRecord).filter_by(session_id=exam_session.session_id)
    )
    record = result.scalars().first()
    if record:
        logger.info(f"Result for session {exam_session.session_id} already stored; skipping.")
        return record

    record = ExamResultRecord(
        session_id=exam_session.session_id,
        exam_id=exam_session.exam_id,
        test_taker_id=exam_session.test_taker_id,
        completed_at=exam_session.completed_at,
        score_percent=final.score_percent,
        total_time_seconds=final.total_time_seconds,
        answered=final.answered,
        total_questions=final.total_questions,
        final_difficulty=exam_session.adaptive_settings.difficulty_level,
        accommodations=[a.type.value for a in exam_session.adaptive_settings.accommodations if a.enabled],
        graded_score=grading.score if grading else None,
        passing_score=grading.passing_score if grading else None,
        grading_attempt_id=str(grading.attempt_id) if grading else None,
    )
    for attempt in exam_session.answers.history:
        record.attempts.append(AttemptLogRecord(
            timestamp=attempt.timestamp,
            question_id=attempt.question_id,
            question_index=attempt.question_index,
            answer_text=attempt.answer_text,
            is_correct=attempt.is_correct,
            time_spent=attempt.time_spent,
            confidence=attempt.confidence,
            hint_used=attempt.hint_used,
        ))
    session.add(record)
    await session.commit()
    logger.info(f"Stored result for session {exam_session.session_id} ({len(record.attempts)} attempts).")
    return record


async def get_results_for_test_taker(session: AsyncSession, test_taker_id: str) -> List[dict]:
    """Returns the stored results of a test-taker, newest first."""
    result = await session.execute(
        select(ExamResultRecord)
        .where(ExamResultRecord.test_taker_id == test_taker_id)
        .options(selectinload(ExamResultRecord.attempts))
        .order_by(ExamResultRecord.completed_at.desc(), ExamResultRecord.id.desc())
    )
    records = result.scalars().all()

    return [
        {
            "session_id": r.session_id,
            "exam_id": r.exam_id,
            "completed_at": r.completed_at.isoformat() if r.completed_at else None,
            "score_percent": r.score_percent,
            "total_time_seconds": r.total_time_seconds,
            "answered": r.answered,
            "total_questions": r.total_questions,
            "final_difficulty": r.final_difficulty,
            "accommodations": r.accommodations,
            "graded_score": r.graded_score,
            "grading_attempt_id": r.grading_attempt_id,
            "attempts": [
                {
                    "question_id": a.question_id,
                    "answer_text": a.answer_text,
                    "is_correct": a.is_correct,
                    "time_spent": a.time_spent,
                    "confidence": a.confidence,
                    "hint_used": a.hint_used,
                }
                for a in sorted(r.attempts, key=lambda x: x.id)
            ],
        }
        for r in records
    ]
