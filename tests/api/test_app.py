"""Tests for the FastAPI application."""

import asyncio
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from lostfound_ai.api.app import app
from lostfound_ai.domain.exceptions import ProviderTransientError
from lostfound_ai.domain.models.item import ItemStatus
from lostfound_ai.domain.prompts import CategoryPrompts, MatchingPrompts, QuestionPrompts
from lostfound_ai.domain.services.matching_service import MatchingConfig
from lostfound_ai.domain.services.question_generation_service import DEFAULT_QUESTIONS
from lostfound_ai.infrastructure.dependencies import ServiceContainer
from lostfound_ai.infrastructure.storage.memory_store import MemoryStore

from tests.fakes import FakeAIProvider, FakeEmbedder, make_item


def responder(system, user, image_url):
    """Answer each prompt family with a plausible canned response."""
    if system == MatchingPrompts.SYSTEM:
        return {"matches": []}
    if system == CategoryPrompts.SYSTEM:
        return "Keys"
    if system == QuestionPrompts.SYSTEM:
        return {"questions": ["What is on the keyring?", "How many keys are there?"]}
    if image_url:
        return {"is_likely_original": True, "confidence": 80, "analysis": "Phone photo", "red_flags": []}
    return {"confidence_percentage": 65, "analysis": "[VERDICT] Plausible [ELABORATION] Details match"}


@pytest.fixture
def store() -> MemoryStore:
    memory_store = MemoryStore()
    asyncio.run(memory_store.insert_item(make_item(id="found-1", user_id="finder", status=ItemStatus.FOUND)))
    return memory_store


def client_for(container: ServiceContainer):
    with patch("lostfound_ai.infrastructure.dependencies.get_service_container", return_value=container):
        with TestClient(app) as client:
            yield client


@pytest.fixture
def test_client(store) -> TestClient:
    """Create a test client backed by fake providers."""
    container = ServiceContainer(
        store=store,
        ai_provider=FakeAIProvider(responder),
        embedder=FakeEmbedder(),
        matching_config=MatchingConfig(),
    )
    yield from client_for(container)


@pytest.fixture
def offline_client(store, monkeypatch) -> TestClient:
    """Create a test client with no chat provider configured."""
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    container = ServiceContainer(store=store, embedder=FakeEmbedder(), matching_config=MatchingConfig())
    yield from client_for(container)


@pytest.fixture
def failing_client(store) -> TestClient:
    """Create a test client whose chat provider always fails."""
    container = ServiceContainer(
        store=store,
        ai_provider=FakeAIProvider(ProviderTransientError("both models failed")),
        embedder=FakeEmbedder(),
        matching_config=MatchingConfig(),
    )
    yield from client_for(container)


def test_health_check(test_client: TestClient):
    """Test health check endpoint."""
    response = test_client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["ai_provider"] is True
    assert data["embedding_provider"] is True
    assert data["store"] == "memory"


def test_health_check_offline(offline_client: TestClient):
    data = offline_client.get("/health").json()
    assert data["ai_provider"] is False


def test_trigger_matching(test_client: TestClient):
    response = test_client.post("/items/found-1/matching")

    assert response.status_code == 202
    data = response.json()
    assert data["item_id"] == "found-1"
    assert data["status"] == "pending"
    assert data["job_id"]


def test_trigger_matching_unknown_item(test_client: TestClient):
    response = test_client.post("/items/missing/matching")
    assert response.status_code == 404


def test_get_matches(test_client: TestClient, store: MemoryStore):
    asyncio.run(store.upsert_match("found-1", "lost-1", 55, "colour"))
    asyncio.run(store.upsert_match("found-1", "lost-2", 90, "brand"))

    response = test_client.get("/items/found-1/matches")

    assert response.status_code == 200
    assert [row["confidence_score"] for row in response.json()] == [90, 55]


def test_dismiss_match(test_client: TestClient, store: MemoryStore):
    match = asyncio.run(store.upsert_match("found-1", "lost-1", 70, None))

    response = test_client.post(f"/matches/{match.id}/dismiss")

    assert response.status_code == 200
    assert response.json()["is_dismissed"] is True
    assert test_client.get("/items/found-1/matches").json() == []


def test_dismiss_unknown_match(test_client: TestClient):
    response = test_client.post("/matches/missing/dismiss")
    assert response.status_code == 404


def test_submit_and_get_claim(test_client: TestClient):
    response = test_client.post("/claims", json={
        "item_id": "found-1",
        "claimant_id": "claimant",
        "answers": {"q1": "red"},
    })
    assert response.status_code == 201
    claim_id = response.json()["claim_id"]

    response = test_client.get(f"/claims/{claim_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["claim"]["id"] == claim_id
    assert set(data["display"]) == {"verdict", "elaboration"}


def test_submit_claim_unknown_item(test_client: TestClient):
    response = test_client.post("/claims", json={"item_id": "missing", "claimant_id": "claimant"})
    assert response.status_code == 404


def test_get_unknown_claim(test_client: TestClient):
    assert test_client.get("/claims/missing").status_code == 404


def test_generate_questions(test_client: TestClient, store: MemoryStore):
    response = test_client.post("/items/found-1/questions/generate", params={"persist": True})

    assert response.status_code == 200
    assert response.json()["questions"] == ["What is on the keyring?", "How many keys are there?"]
    assert len(asyncio.run(store.get_questions("found-1"))) == 2


def test_generate_questions_unknown_item(test_client: TestClient):
    response = test_client.post("/items/missing/questions/generate")
    assert response.status_code == 404


def test_categorize(test_client: TestClient):
    response = test_client.post("/items/categorize", json={"title": "Keyring with 3 keys"})

    assert response.status_code == 200
    assert response.json() == {"category": "Keys", "confidence": 0.85, "available": True}


def test_categorize_offline(offline_client: TestClient):
    response = offline_client.post("/items/categorize", json={"title": "Keyring"})

    assert response.status_code == 200
    assert response.json()["available"] is False


def test_resume_jobs(test_client: TestClient):
    response = test_client.post("/jobs/resume")

    assert response.status_code == 200
    assert response.json() == {"resumed": 0, "job_ids": []}


def test_generate_questions_provider_down(failing_client: TestClient):
    response = failing_client.post("/items/found-1/questions/generate")

    assert response.status_code == 200
    assert response.json()["questions"] == DEFAULT_QUESTIONS
