import pytest
from pydantic import ValidationError

from exam_engine.errors import InvalidResponseError, NoAnswersError
from exam_engine.models.attempt import RawResponse
from exam_engine.services.answer_store import AnswerStore, normalize


def response(value, index=0, **kwargs):
    return RawResponse.model_validate({"question_index": index, "value": value, **kwargs})


@pytest.mark.engine
class TestNormalization:

    def test_single_choice_index_becomes_label(self, questions):
        attempt = normalize(questions[0], 0, response({"kind": "single-choice", "option_index": 1}), 12.0)
        assert attempt.answer == "B"
        assert attempt.is_correct is True
        assert attempt.time_spent == 12.0

    def test_single_choice_wrong_option(self, questions):
        attempt = normalize(questions[0], 0, response({"kind": "single-choice", "option_index": 0}), 5.0)
        assert attempt.answer == "A"
        assert attempt.is_correct is False

    def test_option_out_of_range_is_rejected(self, questions):
        with pytest.raises(InvalidResponseError):
            normalize(questions[0], 0, response({"kind": "single-choice", "option_index": 9}), 5.0)

    def test_multi_correct_needs_every_canonical_value(self, multi_answer_question):
        all_selected = response({"kind": "single-choice", "option_indices": [0, 3]})
        partial = response({"kind": "single-choice", "option_indices": [0, 1]})
        assert normalize(multi_answer_question, 0, all_selected, 1.0).is_correct is True
        assert normalize(multi_answer_question, 0, partial, 1.0).is_correct is False

    def test_selecting_every_option_is_not_correct(self, questions, multi_answer_question):
        every_option = response({"kind": "single-choice", "option_indices": [0, 1, 2, 3]})
        attempt = normalize(questions[0], 0, every_option, 1.0)
        assert attempt.answer == ("A", "B", "C", "D")
        assert attempt.is_correct is False
        assert normalize(multi_answer_question, 0, every_option, 1.0).is_correct is False

    def test_single_selection_through_indices_matches_single_answer(self, questions):
        attempt = normalize(questions[0], 0, response({"kind": "single-choice", "option_indices": [1]}), 1.0)
        assert attempt.is_correct is True

    def test_true_false_exact_label(self, questions):
        assert normalize(questions[1], 1, response({"kind": "true-false", "label": "False"}, 1), 1.0).is_correct
        assert not normalize(questions[1], 1, response({"kind": "true-false", "label": "True"}, 1), 1.0).is_correct
        with pytest.raises(InvalidResponseError):
            normalize(questions[1], 1, response({"kind": "true-false", "label": "false"}, 1), 1.0)

    def test_free_text_is_exact_and_case_sensitive(self, questions):
        text = questions[2]
        assert normalize(text, 2, response({"kind": "free-text", "text": "Paris"}, 2), 1.0).is_correct
        assert not normalize(text, 2, response({"kind": "free-text", "text": "Paris "}, 2), 1.0).is_correct
        assert not normalize(text, 2, response({"kind": "free-text", "text": "paris"}, 2), 1.0).is_correct

    def test_kind_mismatch_is_rejected(self, questions):
        with pytest.raises(InvalidResponseError):
            normalize(questions[0], 0, response({"kind": "free-text", "text": "B"}), 1.0)

    def test_no_answer_sentinel_yields_nothing(self, questions):
        assert normalize(questions[0], 0, response({"kind": "no-answer"}), 1.0) is None

    def test_unknown_kind_fails_validation(self):
        with pytest.raises(ValidationError):
            response({"kind": "matching", "pairs": []})

    def test_confidence_must_be_one_to_five(self):
        with pytest.raises(ValidationError):
            response({"kind": "free-text", "text": "x"}, confidence=6)


@pytest.mark.engine
class TestAnswerStore:

    def _attempt(self, questions, index, value):
        return normalize(questions[index], index, response(value, index), 3.0)

    def test_payload_drops_unanswered_and_keeps_order(self, questions):
        store = AnswerStore(questions)
        store.record(self._attempt(questions, 2, {"kind": "free-text", "text": "Paris"}))
        store.mark_unanswered(1)
        store.record(self._attempt(questions, 0, {"kind": "single-choice", "option_index": 3}))

        payload = store.build_payload()
        assert [(p.question_id, p.answer_text) for p in payload] == [("q-choice", "D"), ("q-text", "Paris")]
        assert store.answered_count == 2

    def test_empty_payload_is_a_validation_error(self, questions):
        store = AnswerStore(questions)
        for index in range(len(questions)):
            store.mark_unanswered(index)
        with pytest.raises(NoAnswersError):
            store.build_payload()

    def test_new_attempt_supersedes_but_history_is_kept(self, questions):
        store = AnswerStore(questions)
        first = self._attempt(questions, 0, {"kind": "single-choice", "option_index": 0})
        second = self._attempt(questions, 0, {"kind": "single-choice", "option_index": 1})
        store.record(first)
        store.record(second)

        assert store.latest(0) is second
        assert store.history == [first, second]
        assert [a.is_correct for a in store.graded_attempts()] == [True]

    def test_multi_value_answer_text(self, multi_answer_question):
        store = AnswerStore([multi_answer_question])
        store.record(normalize(multi_answer_question, 0,
                               response({"kind": "single-choice", "option_indices": [0, 3]}), 1.0))
        assert store.build_payload()[0].answer_text == "A, E"

    def test_mark_unanswered_does_not_override_an_answer(self, questions):
        store = AnswerStore(questions)
        store.record(self._attempt(questions, 0, {"kind": "single-choice", "option_index": 1}))
        store.mark_unanswered(0)
        assert store.latest(0) is not None
