"""
MoxMuse Consultation Wizard.

Isolated module for collecting deck preferences. Walks the user through a
fixed sequence of steps and outputs a validated ConsultationRecord for
deck generation.

Steps:
0. Commander - name one, or ask for suggestions
1. Commander Selection - pick from suggestions (skipped when not needed)
2-8. Strategy, Budget, Power Level, Win Conditions, Interaction,
     Restrictions, Complexity
9. Summary - authoritative check before generation
"""

from .persistence import (
    FileSessionStorage,
    InMemorySessionStorage,
    PersistenceWarning,
    SessionStorage,
    SupabaseSessionStorage,
)
from .record import ConsultationRecord
from .state import WizardSession, generate_session_id
from .steps import STEP_DEFINITIONS, StepDefinition
from .validation import ValidationResult, validate_all_steps, validate_step
from .wizard import WizardStateMachine

__all__ = [
    "ConsultationRecord",
    "StepDefinition",
    "STEP_DEFINITIONS",
    "ValidationResult",
    "validate_step",
    "validate_all_steps",
    "WizardSession",
    "generate_session_id",
    "WizardStateMachine",
    "SessionStorage",
    "InMemorySessionStorage",
    "FileSessionStorage",
    "SupabaseSessionStorage",
    "PersistenceWarning",
]
