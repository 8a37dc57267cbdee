# exam_engine/services/performance.py
from exam_engine.models.attempt import AnswerAttempt
from exam_engine.models.session import PerformanceMetrics
from exam_engine.utils.config import settings
from exam_engine.utils.logger import logger


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class PerformanceTracker:
    def __init__(self, comprehension_gain: float = settings.comprehension_gain,
                 comprehension_loss: float = settings.comprehension_loss):
        self.comprehension_gain = comprehension_gain
        self.comprehension_loss = comprehension_loss

    def record_attempt(self, attempt: AnswerAttempt, prior: PerformanceMetrics) -> PerformanceMetrics:
        """Folds one attempt into the metrics and returns a new snapshot; `prior` is left untouched."""
        attempts = prior.attempts_count + 1
        # Running mean weighted by the pre-increment count
        accuracy = (prior.accuracy_rate * prior.attempts_count + (100.0 if attempt.is_correct else 0.0)) / attempts

        delta = self.comprehension_gain if attempt.is_correct else -self.comprehension_loss
        comprehension = clamp(prior.comprehension_rate + delta, 0.0, 100.0)

        new_metrics = PerformanceMetrics(
            comprehension_rate=comprehension,
            accuracy_rate=clamp(accuracy, 0.0, 100.0),
            attempts_count=attempts,
            confidence_level=attempt.confidence,
            completion_time=prior.completion_time + attempt.time_spent,
        )
        logger.debug(
            f"Metrics update: Question={attempt.question_id}, Correct={attempt.is_correct}, "
            f"Accuracy={prior.accuracy_rate:.2f}->{new_metrics.accuracy_rate:.2f}, "
            f"Comprehension={prior.comprehension_rate:.1f}->{new_metrics.comprehension_rate:.1f}"
        )
        return new_metrics


def record_attempt(attempt: AnswerAttempt, prior: PerformanceMetrics) -> PerformanceMetrics:
    return performance_tracker.record_attempt(attempt, prior)


performance_tracker = PerformanceTracker()
