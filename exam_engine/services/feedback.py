# exam_engine/services/feedback.py
from typing import Optional

from exam_engine.models.attempt import AnswerAttempt
from exam_engine.models.enums import FeedbackType
from exam_engine.models.session import AdaptiveFeedback

HELP_MESSAGE = "I'll provide more detailed explanations and visual aids to help you understand better."


def feedback_for(attempt: AnswerAttempt) -> Optional[AdaptiveFeedback]:
    """Picks the message shown to the test-taker after an answer, if any."""
    if not attempt.is_correct and attempt.hint_used:
        return AdaptiveFeedback(
            type=FeedbackType.ENCOURAGEMENT,
            message="Don't worry! Take your time and use the available hints if needed.",
        )
    if attempt.is_correct and attempt.confidence > 4:
        return AdaptiveFeedback(
            type=FeedbackType.ENCOURAGEMENT,
            message="Excellent work! You're showing great understanding of the topic.",
        )
    if attempt.is_correct:
        return AdaptiveFeedback(type=FeedbackType.ENCOURAGEMENT, message="Good job! Keep building your confidence.")
    return None


def help_feedback() -> AdaptiveFeedback:
    return AdaptiveFeedback(type=FeedbackType.SUGGESTION, message=HELP_MESSAGE)
