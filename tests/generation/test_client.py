"""
Tests for the deck service HTTP client, using httpx.MockTransport.
"""

import asyncio
import json

import httpx
import pytest

from consultation.record import ConsultationRecord
from moxmuse.generation.client import DeckServiceClient, GenerationConstraints, GenerationRequest
from moxmuse.generation.errors import GenerationError, TransientGenerationError


def _run(coro):
    return asyncio.run(coro)


def _request():
    record = ConsultationRecord(commander="Atraxa", budget=150, power_level=2)
    return GenerationRequest(
        session_id="generation-1-abc",
        consultation_data=record.to_wire(),
        commander="Atraxa",
        constraints=GenerationConstraints.from_record(record),
    )


def _call(handler, api_key=None):
    async def go():
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with DeckServiceClient("http://deck.test/", api_key=api_key, http_client=http_client) as client:
            try:
                return await client.generate_deck(_request())
            finally:
                await http_client.aclose()

    return _run(go())


class TestRequest:
    def test_posts_camel_case_body(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"deckId": "d1", "cardCount": 0, "cards": []})

        payload = _call(handler, api_key="secret")

        assert payload["deckId"] == "d1"
        assert seen["url"] == "http://deck.test/generate-full-deck"
        assert seen["auth"] == "Bearer secret"
        body = seen["body"]
        assert body["sessionId"] == "generation-1-abc"
        assert body["consultationData"]["powerLevel"] == 2
        assert body["constraints"] == {"budget": 150, "powerLevel": 2, "useCollection": False}

    def test_constraints_omit_unanswered(self):
        constraints = GenerationConstraints.from_record(ConsultationRecord())
        assert constraints.model_dump(by_alias=True, exclude_none=True) == {"useCollection": False}


class TestErrorMapping:
    @pytest.mark.parametrize("status", [502, 503, 504])
    def test_gateway_errors_are_transient(self, status):
        with pytest.raises(TransientGenerationError) as exc_info:
            _call(lambda request: httpx.Response(status))
        assert exc_info.value.status_code == status

    def test_client_errors_are_not_transient(self):
        with pytest.raises(GenerationError) as exc_info:
            _call(lambda request: httpx.Response(400, json={"detail": "bad"}))
        assert not isinstance(exc_info.value, TransientGenerationError)

    def test_connect_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransientGenerationError, match="Network Error"):
            _call(handler)

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(TransientGenerationError, match="timeout"):
            _call(handler)

    def test_invalid_json(self):
        with pytest.raises(GenerationError, match="invalid JSON"):
            _call(lambda request: httpx.Response(200, content=b"<html>"))


class TestLifecycle:
    def test_owned_client_is_closed(self):
        async def go():
            client = DeckServiceClient("http://deck.test")
            await client.aclose()
            return client._client.is_closed

        assert _run(go()) is True

    def test_injected_client_is_left_open(self):
        async def go():
            http_client = httpx.AsyncClient()
            await DeckServiceClient("http://deck.test", http_client=http_client).aclose()
            closed = http_client.is_closed
            await http_client.aclose()
            return closed

        assert _run(go()) is False
