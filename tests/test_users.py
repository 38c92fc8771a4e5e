"""API tests for users, analytics, chat history and study recommendations."""

import uuid
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from barprep.core.exceptions import ProviderUnavailableError
from barprep.db.models import User
from barprep.services.analytics import record_outcome

MISSING = "00000000-0000-0000-0000-000000000000"


# ── users ─────────────────────────────────────────────────────────────────────


def test_create_user(client: TestClient):
    username = f"u-{uuid.uuid4().hex[:8]}"
    response = client.post("/api/users", json={"username": username, "email": "u1@ex.com"})
    assert response.status_code == 201
    data = response.json()
    assert data["username"] == username
    assert data["email"] == "u1@ex.com"

    fetched = client.get(f"/api/users/{data['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["username"] == username


def test_create_duplicate_username(client: TestClient):
    username = f"u-{uuid.uuid4().hex[:8]}"
    client.post("/api/users", json={"username": username})
    response = client.post("/api/users", json={"username": username})
    assert response.status_code == 409
    assert "already taken" in response.json()["detail"].lower()


def test_create_user_invalid_email(client: TestClient):
    response = client.post("/api/users", json={"username": "x", "email": "not-an-email"})
    assert response.status_code == 422


def test_get_missing_user(client: TestClient):
    response = client.get(f"/api/users/{MISSING}")
    assert response.status_code == 404


# ── analytics ─────────────────────────────────────────────────────────────────


def test_analytics_for_new_user(client: TestClient, user: User):
    data = client.get(f"/api/users/{user.id}/analytics").json()
    assert data == {
        "subjectAnalytics": [],
        "passProbability": 0.0,
        "totalQuestions": 0,
        "averageScore": 0.0,
        "testSessions": [],
    }


def test_analytics_summary(client: TestClient, db: Session, user: User):
    for is_correct in (True, True, True, False):
        record_outcome(db, user.id, "contracts", is_correct)
    record_outcome(db, user.id, "evidence", False)

    data = client.get(f"/api/users/{user.id}/analytics").json()
    assert [a["subject"] for a in data["subjectAnalytics"]] == ["contracts", "evidence"]
    assert data["totalQuestions"] == 5
    assert data["averageScore"] == pytest.approx(60.0)
    # (75 * 0.15 + 0 * 0.10) / 0.25 = 45 → below the 50 floor
    assert data["passProbability"] == 0.0


def test_analytics_lists_ten_most_recent_sessions(client: TestClient, user: User):
    for _ in range(12):
        client.post(
            "/api/test-sessions",
            json={"userId": str(user.id), "testType": "practice", "llmProvider": "openai"},
        )
    data = client.get(f"/api/users/{user.id}/analytics").json()
    assert len(data["testSessions"]) == 10


# ── chat ──────────────────────────────────────────────────────────────────────


def test_chat_turn_is_persisted(client: TestClient, user: User, fake_ai: MagicMock):
    response = client.post(
        "/api/chat",
        json={"userId": str(user.id), "message": "What is negligence?", "provider": "anthropic"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["response"] == "Negligence has four elements."
    assert data["respondedBy"] == "anthropic"
    assert data["context"] == "bar-prep"
    fake_ai.get_chat_response.assert_called_once_with(
        "anthropic", "What is negligence?", "bar-prep"
    )

    history = client.get(f"/api/users/{user.id}/chat-history").json()
    assert [m["message"] for m in history] == ["What is negligence?"]


def test_chat_history_newest_first_and_limited(client: TestClient, user: User):
    for i in range(3):
        client.post(
            "/api/chat",
            json={"userId": str(user.id), "message": f"q{i}", "provider": "openai"},
        )
    history = client.get(f"/api/users/{user.id}/chat-history", params={"limit": 2}).json()
    assert [m["message"] for m in history] == ["q2", "q1"]


def test_clear_chat_history(client: TestClient, user: User):
    client.post("/api/chat", json={"userId": str(user.id), "message": "hi", "provider": "openai"})
    response = client.delete(f"/api/users/{user.id}/chat-history")
    assert response.status_code == 204
    assert client.get(f"/api/users/{user.id}/chat-history").json() == []


def test_chat_provider_failure_is_not_persisted(client: TestClient, user: User, fake_ai: MagicMock):
    fake_ai.get_chat_response.side_effect = ProviderUnavailableError("openai", "down")
    response = client.post(
        "/api/chat", json={"userId": str(user.id), "message": "hi", "provider": "openai"}
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to get chat response"
    assert client.get(f"/api/users/{user.id}/chat-history").json() == []


def test_chat_unknown_user(client: TestClient, fake_ai: MagicMock):
    response = client.post(
        "/api/chat", json={"userId": MISSING, "message": "hi", "provider": "openai"}
    )
    assert response.status_code == 404
    fake_ai.get_chat_response.assert_not_called()


# ── recommendations ───────────────────────────────────────────────────────────


def _recommend(client: TestClient, user: User, priority: int, subject: str = "torts") -> dict:
    response = client.post(
        f"/api/users/{user.id}/recommendations",
        json={
            "type": "practice",
            "subject": subject,
            "priority": priority,
            "recommendation": f"Do {subject} drills",
        },
    )
    assert response.status_code == 201
    return response.json()


def test_recommendations_ordered_by_priority(client: TestClient, user: User):
    _recommend(client, user, 2, "evidence")
    _recommend(client, user, 5, "torts")
    _recommend(client, user, 3, "contracts")

    data = client.get(f"/api/users/{user.id}/recommendations").json()
    assert [r["priority"] for r in data] == [5, 3, 2]


def test_recommendation_priority_is_bounded(client: TestClient, user: User):
    response = client.post(
        f"/api/users/{user.id}/recommendations",
        json={"type": "review", "subject": "torts", "priority": 6, "recommendation": "x"},
    )
    assert response.status_code == 422


def test_complete_recommendation(client: TestClient, user: User):
    rec = _recommend(client, user, 4)
    response = client.patch(f"/api/recommendations/{rec['id']}", json={"completed": True})
    assert response.status_code == 200
    assert response.json()["completed"] is True
    assert client.get(f"/api/users/{user.id}/recommendations").json() == []


def test_complete_missing_recommendation(client: TestClient):
    response = client.patch(f"/api/recommendations/{MISSING}", json={})
    assert response.status_code == 404


def test_generate_weak_area_recommendations(client: TestClient, db: Session, user: User):
    record_outcome(db, user.id, "torts", False)  # mastery 0
    record_outcome(db, user.id, "contracts", True)  # mastery 100
    for is_correct in (True, False):  # mastery 50
        record_outcome(db, user.id, "family-law", is_correct)

    response = client.post(f"/api/users/{user.id}/recommendations/generate")
    assert response.status_code == 201
    created = {r["subject"]: r for r in response.json()}
    assert set(created) == {"torts", "family-law"}
    assert all(r["type"] == "weak-area" for r in created.values())
    assert created["torts"]["priority"] == 5
    assert created["torts"]["priority"] > created["family-law"]["priority"]

    # already open → not duplicated
    again = client.post(f"/api/users/{user.id}/recommendations/generate")
    assert again.json() == []
