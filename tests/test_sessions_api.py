import pytest
from fastapi.testclient import TestClient

from exam_engine.services.session_manager import session_manager

EXAM_ID = "science-basics"


def start(client: TestClient, test_taker_id: str, **extra) -> dict:
    response = client.post("/sessions/", json={"test_taker_id": test_taker_id, "exam_id": EXAM_ID, **extra})
    assert response.status_code == 201, response.text
    return response.json()


def answer(client: TestClient, session_id: str, index: int, value: dict, **extra):
    return client.post(f"/sessions/{session_id}/answer",
                       json={"question_index": index, "value": value, **extra})


@pytest.mark.api
class TestSessionFlow:

    def test_start_session(self, client: TestClient):
        snapshot = start(client, "flow-start", initial_difficulty=3)
        assert snapshot["status"] == "in-progress"
        assert snapshot["current_question_index"] == 0
        assert snapshot["total_questions"] == 4
        assert snapshot["time_remaining_seconds"] == 2700
        assert snapshot["adaptive_settings"]["difficulty_level"] == 3

    def test_current_question_and_answer(self, client: TestClient):
        session_id = start(client, "flow-answer")["session_id"]

        question = client.get(f"/sessions/{session_id}/question").json()
        assert question["question"]["id"] == "q1"
        assert question["question_index"] == 0

        response = answer(client, session_id, 0, {"kind": "single-choice", "option_index": 1},
                          confidence=5, time_spent_seconds=30)
        assert response.status_code == 200
        data = response.json()
        assert data["correct"] is True
        assert data["feedback"]["message"].startswith("Excellent work")
        assert data["session"]["current_question_index"] == 1
        assert data["session"]["performance"]["accuracy_rate"] == 100
        assert data["session"]["adaptive_settings"]["pace_preference"] == "fast"

    def test_help_request(self, client: TestClient):
        session_id = start(client, "flow-help")["session_id"]
        client.post(f"/sessions/{session_id}/help")
        response = client.post(f"/sessions/{session_id}/help")
        assert response.status_code == 200
        settings = response.json()["adaptive_settings"]
        types = [a["type"] for a in settings["accommodations"]]
        assert sorted(types) == ["stepByStep", "visualAids"]
        assert settings["requires_additional_support"] is True

    def test_pause_and_resume(self, client: TestClient):
        session_id = start(client, "flow-pause")["session_id"]
        assert client.post(f"/sessions/{session_id}/pause").json()["status"] == "paused"
        response = answer(client, session_id, 0, {"kind": "single-choice", "option_index": 1})
        assert response.status_code == 409
        assert client.post(f"/sessions/{session_id}/resume").json()["status"] == "in-progress"

    def test_full_exam_submission_and_stored_result(self, client: TestClient, fake_grading):
        session_id = start(client, "flow-submit")["session_id"]
        answer(client, session_id, 0, {"kind": "single-choice", "option_index": 1}, time_spent_seconds=40)
        answer(client, session_id, 1, {"kind": "no-answer"})
        answer(client, session_id, 2, {"kind": "true-false", "label": "False"}, time_spent_seconds=20)
        last = answer(client, session_id, 3, {"kind": "free-text", "text": "Paris "}, time_spent_seconds=15)
        assert last.json()["correct"] is False
        assert last.json()["session"]["status"] == "completed"

        result = client.get(f"/sessions/{session_id}/result").json()
        assert result["score_percent"] == pytest.approx(200 / 3)
        assert result["total_time_seconds"] == pytest.approx(75)
        assert result["answered"] == 3
        assert result["passed"] is True

        graded = client.post(f"/sessions/{session_id}/submit", json={"attempt_id": 42})
        assert graded.status_code == 200, graded.text
        assert graded.json()["attempt_id"] == 42
        _, payload = fake_grading.calls[0]
        assert [p.question_id for p in payload] == ["q1", "q3", "q4"]

        stored = client.get("/users/flow-submit/results").json()
        assert len(stored) == 1
        assert stored[0]["session_id"] == session_id
        assert stored[0]["grading_attempt_id"] == "42"
        assert len(stored[0]["attempts"]) == 3


@pytest.mark.api
class TestSessionErrors:

    def test_unknown_session(self, client: TestClient):
        response = client.get("/sessions/nope")
        assert response.status_code == 404
        assert response.json()["error"] == "SessionNotFoundError"

    def test_unknown_exam(self, client: TestClient):
        response = client.post("/sessions/", json={"test_taker_id": "x", "exam_id": "missing"})
        assert response.status_code == 404

    def test_second_active_session_rejected(self, client: TestClient):
        start(client, "err-double")
        response = client.post("/sessions/", json={"test_taker_id": "err-double", "exam_id": EXAM_ID})
        assert response.status_code == 409

    def test_invalid_response_kind(self, client: TestClient):
        session_id = start(client, "err-kind")["session_id"]
        response = answer(client, session_id, 0, {"kind": "free-text", "text": "B"})
        assert response.status_code == 422
        response = answer(client, session_id, 0, {"kind": "matching"})
        assert response.status_code == 422

    def test_answer_after_expiry_is_already_completed(self, client: TestClient):
        session_id = start(client, "err-expired")["session_id"]
        answer(client, session_id, 0, {"kind": "single-choice", "option_index": 1})
        assert client.post(f"/sessions/{session_id}/expire").json()["status"] == "completed"

        response = answer(client, session_id, 1, {"kind": "single-choice", "option_index": 1})
        assert response.status_code == 409
        assert response.json()["error"] == "SessionAlreadyCompletedError"
        assert client.post(f"/sessions/{session_id}/expire").status_code == 409

    def test_result_before_completion(self, client: TestClient):
        session_id = start(client, "err-result")["session_id"]
        response = client.get(f"/sessions/{session_id}/result")
        assert response.status_code == 409
        assert response.json()["error"] == "SessionNotCompletedError"

    def test_submit_without_answers(self, client: TestClient, fake_grading):
        session_id = start(client, "err-empty")["session_id"]
        response = client.post(f"/sessions/{session_id}/submit")
        assert response.status_code == 422
        assert "at least one question" in response.json()["detail"]
        assert fake_grading.calls == []
        assert client.get(f"/sessions/{session_id}").json()["status"] == "in-progress"

    def test_grading_failure_then_retry(self, client: TestClient, failing_grading, fake_grading):
        session_manager.grading_client = failing_grading
        session_id = start(client, "err-grading")["session_id"]
        answer(client, session_id, 0, {"kind": "single-choice", "option_index": 1})

        response = client.post(f"/sessions/{session_id}/submit")
        assert response.status_code == 502
        snapshot = client.get(f"/sessions/{session_id}").json()
        assert snapshot["status"] == "completed"
        assert snapshot["answered_count"] == 1

        session_manager.grading_client = fake_grading
        response = client.post(f"/sessions/{session_id}/submit")
        assert response.status_code == 200
