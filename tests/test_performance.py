import itertools
from datetime import datetime, timezone

import pytest

from exam_engine.models.attempt import AnswerAttempt
from exam_engine.models.session import PerformanceMetrics
from exam_engine.services.performance import record_attempt


def make_attempt(correct: bool, confidence: int = 3, time_spent: float = 30.0, hint_used: bool = False):
    return AnswerAttempt(
        question_id="q",
        question_index=0,
        timestamp=datetime.now(timezone.utc),
        answer="B" if correct else "A",
        is_correct=correct,
        time_spent=time_spent,
        confidence=confidence,
        hint_used=hint_used,
    )


def fold(results, **kwargs):
    metrics = PerformanceMetrics()
    for correct in results:
        metrics = record_attempt(make_attempt(correct, **kwargs), metrics)
    return metrics


@pytest.mark.engine
class TestPerformanceTracker:

    def test_first_correct_attempt(self):
        metrics = record_attempt(make_attempt(True), PerformanceMetrics())
        assert metrics.accuracy_rate == 100
        assert metrics.comprehension_rate == 10
        assert metrics.attempts_count == 1

    def test_prior_metrics_are_not_mutated(self):
        prior = PerformanceMetrics()
        record_attempt(make_attempt(True), prior)
        assert prior.attempts_count == 0
        assert prior.accuracy_rate == 0

    @pytest.mark.parametrize("results", [
        [True, False, True, True, False],
        [False, False, True],
        [True] * 4 + [False] * 3,
    ])
    def test_accuracy_is_order_independent_running_mean(self, results):
        expected = 100 * sum(results) / len(results)
        for order in set(itertools.permutations(results)):
            assert fold(order).accuracy_rate == pytest.approx(expected)

    def test_comprehension_stays_within_bounds(self):
        metrics = fold([False] * 5)
        assert metrics.comprehension_rate == 0
        metrics = fold([True] * 15)
        assert metrics.comprehension_rate == 100
        metrics = fold([True] * 12 + [False])
        assert metrics.comprehension_rate == 95

    def test_confidence_is_overwritten_not_averaged(self):
        metrics = record_attempt(make_attempt(True, confidence=5), PerformanceMetrics())
        metrics = record_attempt(make_attempt(True, confidence=1), metrics)
        assert metrics.confidence_level == 1

    def test_completion_time_accumulates(self):
        metrics = fold([True, False, True], time_spent=42.5)
        assert metrics.completion_time == pytest.approx(127.5)
