import os
import sys
import tempfile
import logging

import pytest
from fastapi.testclient import TestClient

# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

# The database engine is built at import time, so point it at a scratch file first.
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), "exam_engine_test.db")
if os.path.exists(TEST_DB_PATH):
    os.remove(TEST_DB_PATH)
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["EXAMS_FILE_PATH"] = os.path.join(project_root, "data", "exams.json")

from exam_engine.errors import SubmissionFailedError
from exam_engine.models.question import Question
from exam_engine.models.session import GradingResult
from exam_engine.services.exam_session import ExamSession
from exam_engine.services.session_manager import session_manager


class FakeClock:
    """Monotonic clock the tests move by hand."""
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeGradingClient:
    """Stands in for the external grading endpoint."""
    def __init__(self):
        self.calls = []
        self.fail_with = None

    async def submit(self, attempt_ref, payload):
        self.calls.append((attempt_ref, list(payload)))
        if self.fail_with is not None:
            raise self.fail_with
        return GradingResult(
            score=75.0,
            total_questions=len(payload),
            passing_score=60.0,
            attempt_id=attempt_ref,
        )


@pytest.fixture
def questions():
    return [
        Question.model_validate({
            "id": "q-choice",
            "kind": "single-choice",
            "difficulty": 2,
            "content": {
                "prompt": "Pick B.",
                "options": ["A", "B", "C", "D"],
                "correct_answer": "B",
                "hints": ["It is the second letter"],
            },
        }),
        Question.model_validate({
            "id": "q-tf",
            "kind": "true-false",
            "difficulty": 1,
            "content": {"prompt": "The Earth rotates from East to West.", "correct_answer": "False"},
        }),
        Question.model_validate({
            "id": "q-text",
            "kind": "free-text",
            "difficulty": 3,
            "content": {"prompt": "Capital of France?", "correct_answer": "Paris"},
        }),
    ]


@pytest.fixture
def multi_answer_question():
    return Question.model_validate({
        "id": "q-multi",
        "kind": "single-choice",
        "content": {
            "prompt": "Pick the vowels.",
            "options": ["A", "B", "C", "E"],
            "correct_answer": ["A", "E"],
        },
    })


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_session(questions, clock):
    def _make(qs=None, minutes=45, difficulty=2.0, **kwargs):
        return ExamSession.start(qs if qs is not None else questions, minutes, difficulty, clock=clock, **kwargs)
    return _make


@pytest.fixture
def fake_grading():
    return FakeGradingClient()


@pytest.fixture
def failing_grading():
    client = FakeGradingClient()
    client.fail_with = SubmissionFailedError("Grading endpoint returned 503", status_code=503)
    return client


# --- State Reset Fixture ---
@pytest.fixture(autouse=True)
def reset_sessions(fake_grading):
    session_manager.clear()
    original_client = session_manager.grading_client
    session_manager.grading_client = fake_grading
    yield
    session_manager.clear()
    session_manager.grading_client = original_client


# --- TestClient Fixture ---
@pytest.fixture(scope="session")
def client():
    """One app instance (and event loop) for the whole run; session state is reset per test."""
    from exam_engine.main import app
    with TestClient(app) as c:
        yield c
