# Data models for the session aggregate: metrics, adaptive settings and read-only projections
from typing import Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from exam_engine.models.enums import AccommodationType, FeedbackType, PacePreference, SessionStatus


class PerformanceMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    comprehension_rate: float = Field(default=0.0, ge=0, le=100)
    accuracy_rate: float = Field(default=0.0, ge=0, le=100)
    attempts_count: int = Field(default=0, ge=0)
    confidence_level: int = Field(default=3, ge=1, le=5)
    completion_time: float = Field(default=0.0, ge=0)


class Accommodation(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: AccommodationType
    enabled: bool = True


class AdaptiveSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    difficulty_level: float = Field(default=2.0, ge=1, le=5)
    pace_preference: PacePreference = PacePreference.MEDIUM
    requires_additional_support: bool = False
    accommodations: Tuple[Accommodation, ...] = ()

    def with_accommodations(self, types) -> "AdaptiveSettings":
        """Returns settings with the given accommodations enabled; existing entries are kept."""
        current = {a.type: a for a in self.accommodations}
        for acc_type in types:
            current[AccommodationType(acc_type)] = Accommodation(type=acc_type, enabled=True)
        return self.model_copy(update={"accommodations": tuple(current.values())})


class SessionSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    exam_id: Optional[str] = None
    test_taker_id: Optional[str] = None
    status: SessionStatus
    current_question_index: int
    total_questions: int
    answered_count: int
    time_allowed_minutes: float
    time_remaining_seconds: int
    adaptive_settings: AdaptiveSettings
    performance: PerformanceMetrics


class FinalResult(BaseModel):
    session_id: str
    score_percent: float
    total_time_seconds: float
    answered: int
    total_questions: int
    passed: Optional[bool] = None


class SubmissionItem(BaseModel):
    question_id: str
    answer_text: str


class GradingResult(BaseModel):
    """Acknowledgement from the grading endpoint; accepts snake_case or camelCase keys."""
    model_config = ConfigDict(populate_by_name=True)

    score: float
    total_questions: int = Field(validation_alias=AliasChoices("total_questions", "totalQuestions"))
    passing_score: float = Field(validation_alias=AliasChoices("passing_score", "passingScore"))
    attempt_id: Union[int, str] = Field(validation_alias=AliasChoices("attempt_id", "attemptId"))


class AdaptiveFeedback(BaseModel):
    type: FeedbackType
    message: str
