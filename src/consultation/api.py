"""
Consultation API Endpoints.

Separate router from the generation endpoints. Each request rebuilds the
wizard from its persisted snapshot, applies one action, and the wizard
writes the snapshot back. The X-Client-Id header picks which snapshot.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, Field

from .persistence import DEFAULT_STORAGE_KEY, SessionStorage, create_storage
from .record import get_form_options
from .steps import STEP_DEFINITIONS, SUMMARY_STEP
from .wizard import WizardStateMachine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/consultation", tags=["consultation"])

# Shared backing for the "memory" backend so snapshots survive across requests
_memory_sessions: dict[str, str] = {}


# =============================================================================
# Request/Response Models
# =============================================================================


class UpdateDataRequest(BaseModel):
    """Partial answers. camelCase or snake_case keys; null removes an answer."""
    data: dict[str, Any] = Field(default_factory=dict)


class ValidationResponse(BaseModel):
    is_valid: bool
    errors: list[str]
    warnings: list[str]


class StateResponse(BaseModel):
    """Current wizard state."""
    session_id: str
    current_step_index: int
    current_step: dict
    total_steps: int
    is_complete: bool
    data: dict
    version: int
    validation: ValidationResponse
    visible_steps: list[int]
    persistence_warnings: list[dict] = []


class ActionResponse(BaseModel):
    """Response after a wizard action."""
    success: bool
    state: StateResponse
    rejected: list[str] = []
    message: str = ""


class CompleteResponse(BaseModel):
    """Final record handed to generation."""
    session_id: str
    consultation_data: dict


# =============================================================================
# Dependencies
# =============================================================================


def storage_key_for(client_id: str | None, base_key: str = DEFAULT_STORAGE_KEY) -> str:
    """One snapshot per client; anonymous callers share the base key."""
    if not client_id:
        return base_key
    return f"{base_key}:{client_id}"


def get_storage(x_client_id: str | None = Header(None)) -> SessionStorage:
    """Build the configured storage adapter for this caller."""
    from moxmuse.config import settings

    key = storage_key_for(x_client_id, settings.wizard_storage_key)
    backend = settings.wizard_storage_backend

    if backend == "supabase":
        from moxmuse.db import get_service_client

        return create_storage(key, "supabase", client=get_service_client())
    if backend == "file":
        return create_storage(key, "file", directory=settings.wizard_storage_dir)
    return create_storage(key, "memory", backing=_memory_sessions)


def get_wizard(storage: SessionStorage = Depends(get_storage)) -> WizardStateMachine:
    return WizardStateMachine(storage=storage)


def _state(wizard: WizardStateMachine) -> StateResponse:
    return StateResponse(**wizard.to_dict())


# =============================================================================
# Endpoints: Read
# =============================================================================


@router.get("/steps")
async def get_steps():
    """The ordered step list."""
    return {"steps": [step.to_dict() for step in STEP_DEFINITIONS]}


@router.get("/options")
async def get_options():
    """Selectable options for rendering each step."""
    return get_form_options()


@router.get("/state", response_model=StateResponse)
async def get_state(wizard: WizardStateMachine = Depends(get_wizard)) -> StateResponse:
    """Current consultation progress (resumes a saved session if one exists)."""
    return _state(wizard)


@router.get("/validation", response_model=ValidationResponse)
async def get_validation(
    step: int | None = None,
    wizard: WizardStateMachine = Depends(get_wizard),
) -> ValidationResponse:
    """Verdict for one step (default: current step)."""
    return ValidationResponse(**wizard.validation(step).to_dict())


@router.get("/validation/all", response_model=ValidationResponse)
async def get_validation_all(
    upto: int | None = None,
    wizard: WizardStateMachine = Depends(get_wizard),
) -> ValidationResponse:
    """Aggregate verdict for steps 0..upto (default: every step)."""
    return ValidationResponse(**wizard.validate_all(upto).to_dict())


# =============================================================================
# Endpoints: Actions
# =============================================================================


@router.patch("/data", response_model=ActionResponse)
async def update_data(
    request: UpdateDataRequest,
    wizard: WizardStateMachine = Depends(get_wizard),
) -> ActionResponse:
    """Merge partial answers into the record."""
    rejected = wizard.update_data(request.data)
    return ActionResponse(
        success=not rejected,
        state=_state(wizard),
        rejected=rejected,
        message=f"Ignored fields: {', '.join(rejected)}" if rejected else "Saved",
    )


@router.post("/next", response_model=ActionResponse)
async def next_step(wizard: WizardStateMachine = Depends(get_wizard)) -> ActionResponse:
    """Advance if the current step validates."""
    advanced = wizard.next_step()
    message = "" if advanced else (wizard.validation().errors or ["Cannot advance"])[0]
    return ActionResponse(success=advanced, state=_state(wizard), message=message)


@router.post("/previous", response_model=ActionResponse)
async def previous_step(wizard: WizardStateMachine = Depends(get_wizard)) -> ActionResponse:
    """Go back one step."""
    moved = wizard.previous_step()
    return ActionResponse(success=moved, state=_state(wizard))


@router.post("/step/{index}", response_model=ActionResponse)
async def set_step(index: int, wizard: WizardStateMachine = Depends(get_wizard)) -> ActionResponse:
    """Edit jump to any step, no validation."""
    if not 0 <= index < wizard.total_steps:
        raise HTTPException(status_code=400, detail=f"Step must be 0-{wizard.total_steps - 1}")
    wizard.set_step(index)
    return ActionResponse(success=True, state=_state(wizard))


@router.post("/reset", response_model=ActionResponse)
async def reset(wizard: WizardStateMachine = Depends(get_wizard)) -> ActionResponse:
    """Discard all answers and start a new session."""
    wizard.reset_wizard()
    return ActionResponse(success=True, state=_state(wizard), message="Consultation reset")


@router.post("/complete", response_model=CompleteResponse)
async def complete(wizard: WizardStateMachine = Depends(get_wizard)) -> CompleteResponse:
    """
    Finish the consultation.

    The summary validator is the gate: an incomplete record is refused
    no matter which steps were visited.
    """
    verdict = wizard.validation(SUMMARY_STEP)
    if not verdict.is_valid:
        raise HTTPException(status_code=400, detail="; ".join(verdict.errors))

    session_id = wizard.session_id
    record = wizard.complete_wizard()
    return CompleteResponse(session_id=session_id, consultation_data=record.to_wire())
