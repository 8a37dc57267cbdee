# Data model for questions and exam definitions
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from exam_engine.models.enums import QuestionKind, SkillLevel

TRUE_FALSE_LABELS = ["True", "False"]


class SupportMaterial(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str  # 'video', 'audio', 'image' or 'text'
    url: Optional[str] = None
    description: str


class QuestionContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    options: List[str] = Field(default_factory=list)
    correct_answer: Union[str, List[str]]
    hints: List[str] = Field(default_factory=list)
    explanation: str = ""
    support_material: List[SupportMaterial] = Field(default_factory=list)

    @property
    def canonical_answers(self) -> List[str]:
        if isinstance(self.correct_answer, list):
            return list(self.correct_answer)
        return [self.correct_answer]


class QuestionMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic: str = ""
    subtopic: str = ""
    objective: str = ""
    skill_level: SkillLevel = SkillLevel.BASIC


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    kind: QuestionKind
    difficulty: float = 1.0
    content: QuestionContent
    metadata: QuestionMetadata = Field(default_factory=QuestionMetadata)

    @model_validator(mode="before")
    @classmethod
    def default_true_false_options(cls, data):
        if isinstance(data, dict) and data.get("kind") in (QuestionKind.TRUE_FALSE, QuestionKind.TRUE_FALSE.value):
            content = data.get("content")
            if isinstance(content, dict) and not content.get("options"):
                data = {**data, "content": {**content, "options": list(TRUE_FALSE_LABELS)}}
        return data

    @model_validator(mode="after")
    def check_answer_matches_options(self):
        if self.kind == QuestionKind.FREE_TEXT:
            return self
        options = self.content.options
        if self.kind == QuestionKind.SINGLE_CHOICE and len(options) < 2:
            raise ValueError(f"Question {self.id}: single-choice questions need at least two options")
        missing = [a for a in self.content.canonical_answers if a not in options]
        if missing:
            raise ValueError(f"Question {self.id}: correct answer {missing} is not one of the options")
        return self


class ExamDefinition(BaseModel):
    id: str
    title: str
    duration_minutes: int = Field(gt=0)
    passing_score_percent: float = Field(default=50.0, ge=0, le=100)
    questions: List[Question]

    @model_validator(mode="after")
    def check_unique_question_ids(self):
        ids = [q.id for q in self.questions]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Exam {self.id}: question ids must be unique")
        return self


class QuestionView(BaseModel):
    """What the presenter may show for a question: no canonical answer."""
    id: str
    kind: QuestionKind
    difficulty: float
    prompt: str
    options: List[str]
    hints: List[str]
    metadata: QuestionMetadata

    @classmethod
    def from_question(cls, question: Question) -> "QuestionView":
        return cls(
            id=question.id,
            kind=question.kind,
            difficulty=question.difficulty,
            prompt=question.content.prompt,
            options=list(question.content.options),
            hints=list(question.content.hints),
            metadata=question.metadata,
        )
