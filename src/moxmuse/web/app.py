"""
MoxMuse Web - FastAPI application.

Mounts the consultation wizard router and a one-shot /generate endpoint
that runs the orchestrator against the configured deck service.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from consultation.api import router as consultation_router
from consultation.record import ConsultationRecord
from consultation.steps import SUMMARY_STEP
from consultation.validation import validate_step
from moxmuse import __version__
from moxmuse.generation import (
    ClassifiedError,
    DeckServiceClient,
    ErrorKind,
    GenerationOrchestrator,
    GenerationProgress,
)
from moxmuse.generation.client import DeckService

logger = logging.getLogger(__name__)

app = FastAPI(title="MoxMuse", version=__version__)


@app.on_event("startup")
async def startup_event():
    """Log configuration on startup."""
    from moxmuse.config import settings

    logger.info("MoxMuse starting up...")
    logger.info(f"  Deck service: {settings.generation_service_url}")
    logger.info(f"  Wizard storage: {settings.wizard_storage_backend}")


app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(consultation_router, prefix="/api")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": __version__}


# =============================================================================
# Models
# =============================================================================


class GenerateRequest(BaseModel):
    consultation_data: dict[str, Any]
    commander: str | None = None  # defaults to the record's commander
    session_id: str | None = None


class GenerateResponse(BaseModel):
    deck: dict
    retry_count: int
    progress: list[dict] = Field(default_factory=list)


# =============================================================================
# Generation
# =============================================================================


async def get_deck_service() -> AsyncIterator[DeckService]:
    async with DeckServiceClient.from_settings() as client:
        yield client


def _status_for(error: ClassifiedError) -> int:
    if error.kind == ErrorKind.TRANSIENT:
        return 503
    return 502


@app.post("/api/generate", response_model=GenerateResponse)
async def generate_deck(
    request: GenerateRequest,
    service: DeckService = Depends(get_deck_service),
) -> GenerateResponse:
    """Validate a finished consultation and generate its deck."""
    try:
        record = ConsultationRecord.model_validate(request.consultation_data)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid consultation data: {e}")

    verdict = validate_step(SUMMARY_STEP, record)
    if not verdict.is_valid:
        raise HTTPException(status_code=400, detail="; ".join(verdict.errors))

    commander = request.commander or record.commander
    if not commander:
        raise HTTPException(status_code=400, detail="A commander is required to generate a deck")

    progress: list[GenerationProgress] = []
    errors: list[ClassifiedError] = []
    orchestrator = GenerationOrchestrator.from_settings(
        service,
        on_progress=progress.append,
        on_error=errors.append,
    )

    deck = await orchestrator.generate(record, commander, session_id=request.session_id)
    if deck is None:
        error = errors[-1] if errors else None
        detail = error.message if error else "Deck generation did not complete"
        raise HTTPException(status_code=_status_for(error) if error else 500, detail=detail)

    return GenerateResponse(
        deck=deck.to_wire(),
        retry_count=orchestrator.retry_count,
        progress=[p.to_dict() for p in progress],
    )
