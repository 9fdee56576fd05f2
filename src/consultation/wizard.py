"""
Consultation Wizard State Machine.

Sequences the consultation steps over a ConsultationStore.

States are step indices 0..N-1 plus a terminal "complete" state:
- Forward moves (next_step) are gated by the current step's validator
- Backward moves (previous_step) and edit jumps (set_step) are ungated
- After a forward move, steps whose skip predicate holds are chain-skipped,
  in a loop bounded by N

Every mutation writes a versioned snapshot through the injected
SessionStorage. Completion and reset delete it. Storage failures never
stop the wizard: they're logged and collected in `persistence_warnings`.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from .persistence import InMemorySessionStorage, PersistenceWarning, SessionStorage
from .record import ConsultationRecord
from .state import SnapshotError, WizardSession
from .steps import STEP_DEFINITIONS, StepDefinition
from .validation import ValidationResult

logger = logging.getLogger(__name__)


class WizardStateMachine:
    """
    One consultation, owned by one caller.

    Usage:
        wizard = WizardStateMachine(storage=FileSessionStorage("deck-wizard-state"))
        wizard.update_data({"commander": "Atraxa, Praetors' Voice"})
        if wizard.next_step():
            ...
    """

    def __init__(
        self,
        storage: SessionStorage | None = None,
        steps: Sequence[StepDefinition] = STEP_DEFINITIONS,
    ):
        if not steps:
            raise ValueError("A wizard needs at least one step")
        self.steps: tuple[StepDefinition, ...] = tuple(steps)
        self.storage = storage if storage is not None else InMemorySessionStorage()
        self.persistence_warnings: list[PersistenceWarning] = []
        self.session = self._restore() or WizardSession()

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def current_step_index(self) -> int:
        return self.session.current_step_index

    @property
    def current_step(self) -> StepDefinition:
        return self.steps[self.session.current_step_index]

    @property
    def record(self) -> ConsultationRecord:
        return self.session.record

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def is_complete(self) -> bool:
        return self.session.is_complete

    def validation(self, step_index: int | None = None) -> ValidationResult:
        """Verdict for a step (default: the current one)."""
        index = self.current_step_index if step_index is None else step_index
        if not 0 <= index < self.total_steps:
            return ValidationResult(is_valid=True)
        return self.steps[index].validator(self.record)

    def can_proceed(self, step_index: int | None = None) -> bool:
        return self.validation(step_index).is_valid

    def validate_all(self, upto_index: int | None = None) -> ValidationResult:
        """Aggregate verdict for steps 0..upto_index (default: all steps)."""
        index = self.total_steps - 1 if upto_index is None else upto_index
        errors: list[str] = []
        warnings: list[str] = []
        for step in self.steps[: index + 1]:
            result = step.validator(self.record)
            errors.extend(result.errors)
            warnings.extend(result.warnings)
        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def visible_steps(self) -> list[StepDefinition]:
        """Steps not skipped under the current record."""
        return [step for step in self.steps if not step.is_skipped(self.record)]

    # =========================================================================
    # Actions
    # =========================================================================

    def set_step(self, index: int) -> bool:
        """Jump to a step without validation. Out-of-range indices are ignored."""
        if self.session.is_complete:
            return False
        if not 0 <= index < self.total_steps:
            logger.debug(f"Ignoring out-of-range step jump: {index}")
            return False
        self.session.current_step_index = index
        self._persist()
        return True

    def update_data(self, partial: Mapping[str, Any]) -> list[str]:
        """
        Shallow-merge answers into the record.

        A None value removes that answer. Unknown fields and values the
        record can't hold are dropped; their names are returned. A completed
        session takes no more answers: every key comes back rejected.
        """
        if self.session.is_complete:
            logger.info("Ignoring update to a completed consultation")
            return list(partial)
        rejected = self.session.store.update(partial)
        if rejected:
            logger.info(f"Rejected consultation fields: {rejected}")
        self._persist()
        return rejected

    def next_step(self) -> bool:
        """
        Advance if the current step validates.

        Returns True when the wizard moved (or completed). On the last step
        a valid next_step() completes the wizard.
        """
        if self.session.is_complete:
            return False

        index = self.session.current_step_index
        if not self.can_proceed(index):
            return False

        last = self.total_steps - 1
        if index >= last:
            self.complete_wizard()
            return True

        target = index + 1
        hops = 0
        while target < last and hops < self.total_steps and self.steps[target].is_skipped(self.record):
            logger.debug(f"Skipping step {self.steps[target].key}")
            target += 1
            hops += 1

        self.session.current_step_index = target
        self._persist()
        return True

    def previous_step(self) -> bool:
        """Go back one step, floored at 0. Never validated."""
        index = self.session.current_step_index
        if self.session.is_complete or index == 0:
            return False
        self.session.current_step_index = index - 1
        self._persist()
        return True

    def reset_wizard(self) -> None:
        """Start over: default record, new session id, no snapshot."""
        self.session = WizardSession()
        self._clear()

    def complete_wizard(self) -> ConsultationRecord:
        """Mark the session complete, drop the snapshot and hand back the record."""
        self.session.is_complete = True
        self._clear()
        logger.info(f"Consultation {self.session.session_id} complete")
        return self.record

    def to_dict(self) -> dict:
        """Caller-facing view of the wizard."""
        return {
            "session_id": self.session_id,
            "current_step_index": self.current_step_index,
            "current_step": self.current_step.to_dict(),
            "total_steps": self.total_steps,
            "is_complete": self.is_complete,
            "data": self.record.to_wire(),
            "version": self.session.store.version,
            "validation": self.validation().to_dict(),
            "visible_steps": [step.index for step in self.visible_steps()],
            "persistence_warnings": [w.to_dict() for w in self.persistence_warnings],
        }

    # =========================================================================
    # Persistence
    # =========================================================================

    def _restore(self) -> WizardSession | None:
        try:
            raw = self.storage.load()
        except Exception as e:
            self._warn("load", e)
            return None

        if raw is None:
            return None

        try:
            session = WizardSession.from_json(raw)
        except SnapshotError as e:
            logger.debug(f"Discarding saved wizard session: {e}")
            return None

        if session.is_complete:
            logger.debug(f"Discarding completed wizard session {session.session_id}")
            return None

        if not 0 <= session.current_step_index < self.total_steps:
            logger.debug(f"Discarding saved wizard session at step {session.current_step_index}")
            return None

        return session

    def _persist(self) -> None:
        try:
            self.storage.save(self.session.to_json())
        except Exception as e:
            self._warn("save", e)

    def _clear(self) -> None:
        try:
            self.storage.clear()
        except Exception as e:
            self._warn("clear", e)

    def _warn(self, operation: str, error: Exception) -> None:
        logger.warning(f"Failed to {operation} wizard session: {error}")
        self.persistence_warnings.append(PersistenceWarning(operation=operation, message=str(error)))
