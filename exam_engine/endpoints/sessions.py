# Endpoints driving a timed exam session: start, answer, help, pause/resume, expiry and final submission
from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from exam_engine.models.attempt import RawResponse
from exam_engine.models.enums import AccommodationType
from exam_engine.models.question import QuestionView
from exam_engine.models.session import (
    AdaptiveFeedback,
    AdaptiveSettings,
    FinalResult,
    GradingResult,
    SessionSnapshot,
)
from exam_engine.services.exam_catalog import exam_catalog
from exam_engine.services.feedback import feedback_for, help_feedback
from exam_engine.services.session_manager import session_manager
from exam_engine.utils.logger import logger

router = APIRouter()

class StartSessionRequest(BaseModel):
    test_taker_id: str
    exam_id: str
    initial_difficulty: Optional[float] = Field(default=None, ge=1, le=5)
    accommodations: List[AccommodationType] = Field(default_factory=list)

class CurrentQuestionResponse(BaseModel):
    question_index: int
    total_questions: int
    time_remaining_seconds: int
    question: QuestionView

class AnswerResponse(BaseModel):
    answered: bool
    correct: Optional[bool] = None
    feedback: Optional[AdaptiveFeedback] = None
    session: SessionSnapshot

class HelpResponse(BaseModel):
    adaptive_settings: AdaptiveSettings
    feedback: AdaptiveFeedback

class SubmitRequest(BaseModel):
    attempt_id: Optional[Union[int, str]] = None

@router.post("/", response_model=SessionSnapshot, status_code=201)
async def start_session(request: StartSessionRequest):
    exam = exam_catalog.get_exam(request.exam_id)
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    session = await session_manager.start_session(
        exam,
        request.test_taker_id,
        initial_difficulty=request.initial_difficulty,
        accommodations=request.accommodations,
    )
    return session.snapshot()

@router.get("/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str):
    return session_manager.snapshot(session_id)

@router.get("/{session_id}/question", response_model=CurrentQuestionResponse)
async def get_current_question(session_id: str):
    session = session_manager.get(session_id)
    question = session.current_question
    if question is None:
        raise HTTPException(status_code=409, detail=f"Session is {session.status.value}; no current question")
    return CurrentQuestionResponse(
        question_index=session.current_index,
        total_questions=len(session.questions),
        time_remaining_seconds=session.time_remaining,
        question=QuestionView.from_question(question),
    )

@router.post("/{session_id}/answer", response_model=AnswerResponse)
async def submit_answer(session_id: str, response: RawResponse):
    attempt, snapshot = await session_manager.submit_answer(session_id, response)
    if attempt is None:
        return AnswerResponse(answered=False, session=snapshot)
    return AnswerResponse(
        answered=True,
        correct=attempt.is_correct,
        feedback=feedback_for(attempt),
        session=snapshot,
    )

@router.post("/{session_id}/help", response_model=HelpResponse)
async def request_help(session_id: str):
    adaptive_settings = await session_manager.request_help(session_id)
    return HelpResponse(adaptive_settings=adaptive_settings, feedback=help_feedback())

@router.post("/{session_id}/pause", response_model=SessionSnapshot)
async def pause_session(session_id: str):
    return await session_manager.pause(session_id)

@router.post("/{session_id}/resume", response_model=SessionSnapshot)
async def resume_session(session_id: str):
    return await session_manager.resume(session_id)

@router.post("/{session_id}/expire", response_model=SessionSnapshot)
async def expire_session(session_id: str):
    """Forces expiry, e.g. when the presenter's own clock ran out first."""
    return await session_manager.expire(session_id)

@router.post("/{session_id}/submit", response_model=GradingResult)
async def submit_results(session_id: str, request: Optional[SubmitRequest] = None):
    attempt_ref = request.attempt_id if request else None
    logger.info(f"Final submission requested for session {session_id}")
    return await session_manager.submit_results(session_id, attempt_ref)

@router.get("/{session_id}/result", response_model=FinalResult)
async def get_result(session_id: str):
    return session_manager.finalize(session_id)
