# exam_engine/services/answer_store.py
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from exam_engine.errors import InvalidResponseError, NoAnswersError
from exam_engine.models.attempt import (
    AnswerAttempt,
    ChoiceValue,
    FreeTextValue,
    NoAnswer,
    RawResponse,
    TrueFalseValue,
)
from exam_engine.models.enums import QuestionKind
from exam_engine.models.question import Question
from exam_engine.models.session import SubmissionItem
from exam_engine.utils.logger import logger

# Marker kept in the store for a question that was closed without an answer.
NO_ANSWER = NoAnswer()


def grade(question: Question, answer: Union[str, tuple]) -> bool:
    """Exact, case-sensitive comparison against the canonical answer(s)."""
    canonical = question.content.canonical_answers
    if isinstance(answer, tuple):
        # Selections must equal the canonical set; extra options make it wrong.
        return len(answer) == len(set(answer)) and set(answer) == set(canonical)
    if len(canonical) > 1:
        return False
    return answer == canonical[0]


def normalize(question: Question, question_index: int, response: RawResponse,
              time_spent: float, timestamp: Optional[datetime] = None) -> Optional[AnswerAttempt]:
    """Turns a raw presenter response into a graded attempt. Returns None for the no-answer sentinel."""
    value = response.value
    if isinstance(value, NoAnswer):
        return None
    if value.kind != question.kind.value:
        raise InvalidResponseError(
            f"Question {question.id} is {question.kind.value} but the response is {value.kind}"
        )

    options = question.content.options
    if isinstance(value, ChoiceValue):
        for idx in value.indices:
            if not (0 <= idx < len(options)):
                raise InvalidResponseError(f"Option {idx} is out of range for question {question.id}")
        labels = [options[idx] for idx in value.indices]
        answer = labels[0] if value.option_index is not None else tuple(labels)
    elif isinstance(value, TrueFalseValue):
        if value.label not in options:
            raise InvalidResponseError(f"'{value.label}' is not a valid label for question {question.id}")
        answer = value.label
    elif isinstance(value, FreeTextValue):
        answer = value.text
    else:
        raise InvalidResponseError(f"Unsupported response kind: {value.kind}")

    return AnswerAttempt(
        question_id=question.id,
        question_index=question_index,
        timestamp=timestamp or datetime.now(timezone.utc),
        answer=answer,
        is_correct=grade(question, answer),
        time_spent=time_spent,
        confidence=response.confidence,
        hint_used=response.hint_used,
    )


class AnswerStore:
    """Sparse, ordered record of responses keyed by question position."""

    def __init__(self, questions: List[Question]):
        self.questions = list(questions)
        self._latest: Dict[int, Union[AnswerAttempt, NoAnswer]] = {}
        self._history: List[AnswerAttempt] = []

    def _check_index(self, index: int):
        if not (0 <= index < len(self.questions)):
            raise InvalidResponseError(f"Question index {index} is out of range")

    def record(self, attempt: AnswerAttempt):
        """Stores an attempt; a later attempt for the same index supersedes it but history keeps both."""
        self._check_index(attempt.question_index)
        if isinstance(self._latest.get(attempt.question_index), AnswerAttempt):
            logger.debug(f"Attempt for question {attempt.question_id} supersedes an earlier one.")
        self._latest[attempt.question_index] = attempt
        self._history.append(attempt)

    def mark_unanswered(self, index: int):
        self._check_index(index)
        if index not in self._latest:
            self._latest[index] = NO_ANSWER

    def latest(self, index: int) -> Optional[AnswerAttempt]:
        entry = self._latest.get(index)
        return entry if isinstance(entry, AnswerAttempt) else None

    def is_closed(self, index: int) -> bool:
        """True once the question was answered or closed with the no-answer sentinel."""
        return index in self._latest

    @property
    def history(self) -> List[AnswerAttempt]:
        return list(self._history)

    @property
    def answered_count(self) -> int:
        return len(self.graded_attempts())

    def graded_attempts(self) -> List[AnswerAttempt]:
        """Latest attempt per answered question, in question order; unanswered ones are left out."""
        return [self._latest[i] for i in sorted(self._latest) if isinstance(self._latest[i], AnswerAttempt)]

    def build_payload(self) -> List[SubmissionItem]:
        payload = [
            SubmissionItem(question_id=attempt.question_id, answer_text=attempt.answer_text)
            for attempt in self.graded_attempts()
        ]
        if not payload:
            raise NoAnswersError()
        return payload
