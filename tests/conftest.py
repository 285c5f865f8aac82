from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from exam_app.core.exam_manager import ExamManager
from exam_app.core.services.admin_auth import AdminAuthenticator
from exam_app.core.services.question_registry import QuestionRegistry
from exam_app.core.services.score_store import ScoreStore
from exam_app.server.api_server import create_api_app

ADMIN_PASSWORD = "admin123"
JWT_SECRET = "test-secret"


@pytest.fixture
def question_data():
    return {
        "choiceQuestions": [
            {"question": "Choice 1", "options": ["A. one", "B. two", "C. three"], "answer": "A"},
            {"question": "Choice 2", "options": ["A. x", "B. y"], "answer": "B"},
        ],
        "judgeQuestions": [
            {"question": "Judge 1", "answer": True},
            {"question": "Judge 2", "answer": False},
        ],
    }


@pytest.fixture
def registry(question_data):
    reg = QuestionRegistry()
    reg.load(question_data)
    return reg


@pytest.fixture
def store(tmp_path):
    return ScoreStore(tmp_path / "scores.json", tmp_path / "scores_backup.json")


@pytest.fixture
def make_submission():
    def factory(student_number="S1", **overrides):
        data = {
            "name": "Alice",
            "className": "Class 1",
            "studentNumber": student_number,
            "score": 80,
            "correctCount": 8,
            "wrongCount": 2,
            "unansweredCount": 0,
        }
        data.update(overrides)
        return data

    return factory


@pytest.fixture
def manager(tmp_path, question_data):
    exam_manager = ExamManager(
        questions_file=tmp_path / "questions.json",
        scores_file=tmp_path / "scores.json",
        backup_file=tmp_path / "scores_backup.json",
    )
    exam_manager.load_questions(question_data)
    return exam_manager


@pytest.fixture
def authenticator():
    return AdminAuthenticator(password=ADMIN_PASSWORD, secret=JWT_SECRET, token_ttl=timedelta(hours=12))


@pytest.fixture
def client(manager, authenticator):
    with TestClient(create_api_app(manager, authenticator)) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(authenticator):
    return {"Authorization": f"Bearer {authenticator.create_token()}"}
