# Endpoints for browsing the exam catalog (canonical answers are never exposed)
from typing import List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from exam_engine.models.question import QuestionView
from exam_engine.services.exam_catalog import exam_catalog

router = APIRouter()

class ExamSummary(BaseModel):
    id: str
    title: str
    duration_minutes: int
    passing_score_percent: float
    total_questions: int

class ExamDetail(ExamSummary):
    questions: List[QuestionView]

@router.get("/", response_model=List[ExamSummary])
async def list_exams():
    exams = exam_catalog.list_exams()
    if not exams:
        raise HTTPException(status_code=404, detail="No exams found or loaded.")
    return [
        ExamSummary(
            id=e.id,
            title=e.title,
            duration_minutes=e.duration_minutes,
            passing_score_percent=e.passing_score_percent,
            total_questions=len(e.questions),
        )
        for e in exams
    ]

@router.get("/{exam_id}", response_model=ExamDetail)
async def get_exam(exam_id: str):
    exam = exam_catalog.get_exam(exam_id)
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    return ExamDetail(
        id=exam.id,
        title=exam.title,
        duration_minutes=exam.duration_minutes,
        passing_score_percent=exam.passing_score_percent,
        total_questions=len(exam.questions),
        questions=[QuestionView.from_question(q) for q in exam.questions],
    )
