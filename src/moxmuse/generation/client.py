"""
Remote deck generation service client.

One POST per generation attempt:
    POST {base_url}/generate-full-deck
    {sessionId, consultationData, commander, constraints{budget?, powerLevel?, useCollection}}
    -> {deckId, cardCount, cards?}

Transport failures and gateway errors are raised as TransientGenerationError
so the orchestrator can retry them; everything else is a GenerationError.
"""

import logging
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from consultation.record import ConsultationRecord

from .errors import TRANSIENT_STATUS_CODES, GenerationError, TransientGenerationError

logger = logging.getLogger(__name__)

GENERATE_PATH = "/generate-full-deck"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerationConstraints(_WireModel):
    budget: float | None = None
    power_level: int | None = None
    use_collection: bool = False

    @classmethod
    def from_record(cls, record: ConsultationRecord) -> "GenerationConstraints":
        return cls(
            budget=record.budget,
            power_level=record.power_level,
            use_collection=bool(record.use_collection),
        )


class GenerationRequest(_WireModel):
    session_id: str
    consultation_data: dict[str, Any] = Field(default_factory=dict)
    commander: str
    constraints: GenerationConstraints = Field(default_factory=GenerationConstraints)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class DeckService(Protocol):
    """Anything that can run one generation request."""

    async def generate_deck(self, request: GenerationRequest) -> dict[str, Any]:
        ...


class DeckServiceClient:
    """
    httpx-backed DeckService.

    Usage:
        async with DeckServiceClient.from_settings() as client:
            raw = await client.generate_deck(request)
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls) -> "DeckServiceClient":
        from moxmuse.config import settings

        return cls(
            settings.generation_service_url,
            api_key=settings.generation_api_key,
            timeout=settings.generation_timeout_seconds,
        )

    async def __aenter__(self) -> "DeckServiceClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def generate_deck(self, request: GenerationRequest) -> dict[str, Any]:
        url = f"{self.base_url}{GENERATE_PATH}"
        logger.info(f"Requesting deck for {request.commander} (session {request.session_id})")

        try:
            response = await self._client.post(url, json=request.to_wire(), headers=self._headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise TransientGenerationError(f"Deck service timeout: {e}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in TRANSIENT_STATUS_CODES:
                raise TransientGenerationError(
                    f"AI service unavailable: HTTP {status}", status_code=status
                ) from e
            raise GenerationError(f"Deck service rejected the request: HTTP {status}") from e
        except httpx.TransportError as e:
            raise TransientGenerationError(f"Network Error: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise GenerationError(f"Deck service returned invalid JSON: {e}") from e

        logger.debug(f"Deck service returned {payload.get('cardCount', '?') if isinstance(payload, dict) else '?'} cards")
        return payload
