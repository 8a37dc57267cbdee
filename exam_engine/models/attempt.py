# Data models for raw responses coming from the presenter and graded attempts
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChoiceValue(BaseModel):
    """Selection of one option, or several for questions with multiple correct answers."""
    kind: Literal["single-choice"] = "single-choice"
    option_index: Optional[int] = Field(default=None, ge=0)
    option_indices: Optional[List[int]] = None

    @model_validator(mode="after")
    def check_exactly_one_selection_field(self):
        if (self.option_index is None) == (self.option_indices is None):
            raise ValueError("Provide either option_index or option_indices")
        if self.option_indices is not None and not self.option_indices:
            raise ValueError("option_indices must not be empty")
        return self

    @property
    def indices(self) -> List[int]:
        if self.option_indices is not None:
            return list(self.option_indices)
        return [self.option_index]


class TrueFalseValue(BaseModel):
    kind: Literal["true-false"] = "true-false"
    label: str


class FreeTextValue(BaseModel):
    kind: Literal["free-text"] = "free-text"
    text: str


class NoAnswer(BaseModel):
    """Sentinel for a question left unanswered."""
    kind: Literal["no-answer"] = "no-answer"


ResponseValue = Annotated[
    Union[ChoiceValue, TrueFalseValue, FreeTextValue, NoAnswer],
    Field(discriminator="kind"),
]


class RawResponse(BaseModel):
    question_index: int = Field(ge=0)
    value: ResponseValue
    confidence: int = Field(default=3, ge=1, le=5)
    hint_used: bool = False
    time_spent_seconds: Optional[float] = Field(default=None, ge=0)


class AnswerAttempt(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_id: str
    question_index: int
    timestamp: datetime
    answer: Union[str, Tuple[str, ...]]
    is_correct: bool
    time_spent: float
    confidence: int = Field(ge=1, le=5)
    hint_used: bool = False

    @property
    def answer_text(self) -> str:
        if isinstance(self.answer, tuple):
            return ", ".join(self.answer)
        return self.answer
