from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    ForeignKey,
    JSON,
    Text,
    Boolean,
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime


Base = declarative_base()


class ExamResultRecord(Base):
    __tablename__ = "exam_results"
    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String, unique=True, index=True)
    exam_id = Column(String, index=True, nullable=True)
    test_taker_id = Column(String, index=True, nullable=True)
    completed_at = Column(DateTime, default=datetime.utcnow)

    # Local metrics at completion
    score_percent = Column(Float)
    total_time_seconds = Column(Float)
    answered = Column(Integer)
    total_questions = Column(Integer)
    final_difficulty = Column(Float)
    accommodations = Column(JSON, default=lambda: [])

    # Acknowledgement returned by the grading endpoint
    graded_score = Column(Float, nullable=True)
    passing_score = Column(Float, nullable=True)
    grading_attempt_id = Column(String, nullable=True)

    attempts = relationship("AttemptLogRecord", back_populates="result")


class AttemptLogRecord(Base):
    __tablename__ = "attempt_logs"
    id = Column(Integer, primary_key=True, index=True)
    result_id = Column(Integer, ForeignKey("exam_results.id"))
    timestamp = Column(DateTime)
    question_id = Column(String)
    question_index = Column(Integer)

    answer_text = Column(Text)
    is_correct = Column(Boolean)
    time_spent = Column(Float)
    confidence = Column(Integer)
    hint_used = Column(Boolean, default=False)

    result = relationship("ExamResultRecord", back_populates="attempts")
