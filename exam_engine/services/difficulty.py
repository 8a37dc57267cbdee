# exam_engine/services/difficulty.py
# Maps performance metrics to the next difficulty level, pace and support flag.
from exam_engine.models.attempt import AnswerAttempt
from exam_engine.models.enums import PacePreference
from exam_engine.models.session import AdaptiveSettings, PerformanceMetrics
from exam_engine.utils.config import settings
from exam_engine.utils.logger import logger

MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 5.0


def clamp_difficulty(level: float) -> float:
    return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, level))


def normalized_attempts(attempts_count: int) -> float:
    """1.0 for the first attempt, reduced by the penalty for each further one, floored at 0."""
    return max(0.0, 1.0 - (attempts_count - 1) * settings.attempt_penalty)


def performance_score(metrics: PerformanceMetrics) -> float:
    return (
        metrics.comprehension_rate * settings.weight_comprehension
        + metrics.accuracy_rate * settings.weight_accuracy
        + (metrics.confidence_level / 5 * 100) * settings.weight_confidence
        + (normalized_attempts(metrics.attempts_count) * 100) * settings.weight_attempts
    )


def next_difficulty(score: float, current: float) -> float:
    """Tiered decision, first match wins. The only place a difficulty level is produced."""
    if score >= settings.tier_increase_threshold:
        level = current + settings.difficulty_step_up
    elif score >= settings.tier_hold_threshold:
        level = current
    elif score >= settings.tier_small_drop_threshold:
        level = current - settings.difficulty_small_step_down
    else:
        level = current - settings.difficulty_step_down
    return clamp_difficulty(round(level, 6))


def pace_for(time_spent: float) -> PacePreference:
    if time_spent > settings.slow_pace_seconds:
        return PacePreference.SLOW
    if time_spent < settings.fast_pace_seconds:
        return PacePreference.FAST
    return PacePreference.MEDIUM


def adjust(metrics: PerformanceMetrics, current: AdaptiveSettings, attempt: AnswerAttempt) -> AdaptiveSettings:
    score = performance_score(metrics)
    level = next_difficulty(score, current.difficulty_level)
    requires_support = attempt.hint_used or level < settings.support_difficulty_threshold

    logger.debug(
        f"Difficulty adjustment: Score={score:.2f}, Level={current.difficulty_level:.2f}->{level:.2f}, "
        f"Support={requires_support}"
    )
    return current.model_copy(update={
        "difficulty_level": level,
        "pace_preference": pace_for(attempt.time_spent),
        "requires_additional_support": requires_support,
    })
