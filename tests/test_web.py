"""
Tests for the FastAPI app: health, mounted consultation routes and /api/generate.
"""

import pytest
from fastapi.testclient import TestClient

from moxmuse.generation.errors import GenerationError, TransientGenerationError
from moxmuse.web.app import app, get_deck_service


class StubService:
    """Deck service returning a fixed response or raising a fixed error."""

    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = 0

    async def generate_deck(self, request):
        self.calls += 1
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


@pytest.fixture
def use_service():
    def install(service):
        async def override():
            yield service

        app.dependency_overrides[get_deck_service] = override
        return service

    yield install
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


class TestApp:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "0.3.0"}

    def test_consultation_routes_are_mounted(self, client):
        response = client.get("/api/consultation/steps")
        assert response.status_code == 200
        assert response.json()["steps"][0]["key"] == "commander"


class TestGenerate:
    def test_generates_deck(self, client, use_service, complete_answers, sample_response):
        use_service(StubService(sample_response))

        response = client.post("/api/generate", json={"consultation_data": complete_answers})

        assert response.status_code == 200
        body = response.json()
        assert body["deck"]["commander"] == complete_answers["commander"]
        assert body["deck"]["statistics"]["landCount"] == 3
        assert body["retry_count"] == 0
        assert [p["progress"] for p in body["progress"]] == [10, 30, 60, 80, 100]

    def test_commander_override(self, client, use_service, complete_answers, sample_response):
        use_service(StubService(sample_response))
        response = client.post(
            "/api/generate",
            json={"consultation_data": complete_answers, "commander": "Kenrith, the Returned King"},
        )
        assert response.json()["deck"]["commander"] == "Kenrith, the Returned King"

    def test_incomplete_consultation(self, client, use_service):
        service = use_service(StubService({}))
        response = client.post("/api/generate", json={"consultation_data": {"strategy": "combo"}})
        assert response.status_code == 400
        assert service.calls == 0

    def test_invalid_consultation(self, client, use_service, complete_answers):
        use_service(StubService({}))
        response = client.post("/api/generate", json={"consultation_data": {**complete_answers, "powerLevel": 9}})
        assert response.status_code == 400

    def test_transient_failure_after_retries(self, client, use_service, complete_answers):
        service = use_service(StubService(TransientGenerationError("AI service unavailable: HTTP 503", 503)))
        response = client.post("/api/generate", json={"consultation_data": complete_answers})
        assert response.status_code == 503
        assert service.calls == 3

    def test_fatal_failure(self, client, use_service, complete_answers):
        service = use_service(StubService(GenerationError("Deck service rejected the request: HTTP 400")))
        response = client.post("/api/generate", json={"consultation_data": complete_answers})
        assert response.status_code == 502
        assert service.calls == 1
