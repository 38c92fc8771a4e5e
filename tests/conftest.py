"""Shared pytest fixtures."""

import uuid
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from barprep.db import models  # noqa: F401  (registers tables on Base.metadata)
from barprep.db.models import User
from barprep.db.session import Base, get_db
from barprep.main import app
from barprep.providers import AIService, get_ai_service
from barprep.schemas import AIGrading, AIQuestion

# Use an in-memory SQLite database for testing with static pool
SQLALCHEMY_TEST_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # Use StaticPool to keep connection alive
    echo=False,
)
TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

# Create all tables once at startup
Base.metadata.create_all(bind=engine)


@pytest.fixture(scope="function")
def db():
    """Get a fresh DB session for each test."""
    session = TestingSession()
    try:
        yield session
    finally:
        session.rollback()  # Rollback changes after each test
        session.close()


@pytest.fixture
def session_factory() -> sessionmaker:
    """Opens further sessions on the test database, as a concurrent request would."""
    return TestingSession


@pytest.fixture
def user(db: Session) -> User:
    """A learner with a unique username (rows outlive a test once committed)."""
    u = User(username=f"learner-{uuid.uuid4().hex[:8]}", email="learner@example.com")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def fake_ai() -> MagicMock:
    """Stands in for every provider; tests set return values per call."""
    ai = MagicMock(spec=AIService)
    ai.generate_question.return_value = AIQuestion(
        type="multiple-choice",
        subject="constitutional-law",
        question_text="Which clause limits state regulation of interstate commerce?",
        options=["A) Dormant Commerce", "B) Supremacy", "C) Contracts", "D) Takings"],
        correct_answer="A",
        explanation="The dormant Commerce Clause.",
    )
    ai.grade_response.return_value = AIGrading(score=95, feedback="Well reasoned.")
    ai.get_chat_response.return_value = "Negligence has four elements."
    return ai


@pytest.fixture(scope="function")
def client(db: Session, fake_ai: MagicMock):
    """FastAPI test client with overridden DB and AI dependencies."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_service] = lambda: fake_ai

    # Remove TrustedHostMiddleware for tests to allow 'testserver' host
    app.user_middleware = [m for m in app.user_middleware if "TrustedHost" not in str(m)]

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

