"""
Tests for the FAFSA assistant API.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from fafsa_assistant.api.app import create_app
from fafsa_assistant.entities import ChatMessage, ChatTurn, Sender
from fafsa_assistant.exceptions import BackendError

from fakes import FakeGenerationBackend


@pytest.fixture
def service(make_service, backend):
    return make_service(backend)


@pytest.fixture
def client(service):
    """Create a test client around an injected chat service."""
    app = create_app()
    app.state.chat_service = service
    with TestClient(app) as test_client:
        yield test_client


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "FAFSA Assistant API"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["generation_model"] == "fake-model"
    assert data["conversation_store_healthy"] is True


def test_send_message(client):
    response = client.post("/chat/message", json={"content": "What is dependency status?", "user_id": "user-1"})

    assert response.status_code == 200
    data = response.json()
    assert data["message"]["sender"] == "assistant"
    assert data["message"]["content"].startswith("FAFSA is the federal student aid form.")
    assert data["sources"] == ["https://studentaid.gov/apply-for-aid/fafsa/filling-out/dependency"]
    assert data["conversation_id"]


def test_send_empty_message_is_rejected(client):
    response = client.post("/chat/message", json={"content": "   "})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["kind"] == "Validation"
    assert detail["user_message"] == "Please enter a FAFSA question or topic you'd like help with."


def test_generation_failure_returns_error_bubble(make_service):
    app = create_app()
    app.state.chat_service = make_service(FakeGenerationBackend(failures=[BackendError(503)] * 3))

    with TestClient(app) as client:
        response = client.post("/chat/message", json={"content": "What is FAFSA?"})

    assert response.status_code == 200
    metadata = response.json()["message"]["metadata"]
    assert metadata["is_error"] is True
    assert metadata["error_type"] == "ServiceUnavailable"


def test_welcome_message(client):
    member = client.get("/chat/welcome", params={"user_id": "user-1", "display_name": "Sam"})
    assert member.status_code == 200
    assert member.json()["content"].startswith("Hi Sam!")

    guest = client.get("/chat/welcome")
    assert guest.json()["content"].startswith("Welcome to EducateFirstAI!")
    assert guest.json()["sender"] == "assistant"


def test_validate_message(client):
    response = client.post("/chat/validate", json={"content": "x" * 5001})

    assert response.status_code == 200
    assert response.json()["is_valid"] is False


def test_history(client, conversation_store):
    turn = ChatTurn(
        ChatMessage(content="What is FAFSA?", sender=Sender.USER),
        ChatMessage(content="A form.", sender=Sender.ASSISTANT),
        "conv-1",
    )
    asyncio.run(conversation_store.append("conv-1", "user-1", turn))

    response = client.get("/chat/history/user-1")

    assert response.status_code == 200
    data = response.json()
    assert [m["content"] for m in data["messages"]] == ["What is FAFSA?", "A form."]
    assert data["has_more"] is False


def test_history_limit_out_of_range(client):
    response = client.get("/chat/history/user-1", params={"limit": 0})

    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "Validation"


def test_cache_endpoints(client):
    client.post("/chat/message", json={"content": "What is a Pell Grant?"})

    stats = client.get("/cache/stats").json()
    assert stats["entries"] == 1
    assert stats["misses"] == 1
    assert stats["performance"]["total_requests"] == 1

    assert client.post("/cache/cleanup").json() == {"removed": 0}

    cleared = client.delete("/cache").json()
    assert cleared["deleted_count"] == 1
    assert client.get("/cache/stats").json()["entries"] == 0
