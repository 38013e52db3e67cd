"""Pytest configuration and shared fixtures."""

import json
import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from main import app
from ydsprep.application.assessment.models import AssessmentDefinition, QuestionDefinition
from ydsprep.application.assessment.session_service import SessionRegistry
from ydsprep.infrastructure.catalog.content_loader import JsonCatalogLoader
from ydsprep.infrastructure.db.session import Base, SessionLocal, engine
from ydsprep.presentation.dependencies import get_catalog_loader, get_session_registry

STUDENT = {"X-User-Id": "student-1"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}

TEST_CATALOG = {
    "three-q": {
        "title": "Three Questions",
        "description": "Correct answers at 1, 0, 2",
        "timeLimitSeconds": 60,
        "passingScore": 8,
        "questions": [
            {"id": 1, "text": "Q1", "options": ["a", "b", "c"], "correctAnswer": 1, "explanation": "b"},
            {"id": 2, "question": "Q2", "options": ["a", "b", "c"], "correct_answer": 0},
            {"id": 3, "text": "Q3", "options": ["a", "b", "c"], "correctAnswer": 2},
        ],
    },
    "broken": {
        "title": "No questions",
        "timeLimitSeconds": 60,
        "questions": [],
    },
}


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_assessment(correct=(1, 0, 2), time_limit=60, passing_score=8) -> AssessmentDefinition:
    return AssessmentDefinition(
        id="three-q",
        title="Three Questions",
        description="",
        time_limit_seconds=time_limit,
        passing_score=passing_score,
        questions=tuple(
            QuestionDefinition(
                id=i + 1,
                text=f"Q{i + 1}",
                options=("a", "b", "c"),
                correct_answer_index=c,
                explanation=f"explanation {i + 1}",
            )
            for i, c in enumerate(correct)
        ),
    )


@pytest.fixture
def assessment() -> AssessmentDefinition:
    return make_assessment()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="function")
def db():
    """Fresh in-memory schema per test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def catalog_path(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(TEST_CATALOG), encoding="utf-8")
    return path


@pytest.fixture
def catalog_loader(catalog_path) -> JsonCatalogLoader:
    return JsonCatalogLoader(catalog_path)


@pytest.fixture
def registry(fake_clock) -> SessionRegistry:
    return SessionRegistry(clock=fake_clock)


@pytest.fixture
def client(db, registry, catalog_loader):
    app.dependency_overrides[get_session_registry] = lambda: registry
    app.dependency_overrides[get_catalog_loader] = lambda: catalog_loader
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
