"""
Wizard Step Definitions.

The ordered, immutable list of consultation steps. Each step pairs a validator
with an optional skip predicate. Skip predicates are evaluated by the wizard
state machine, never by whatever renders the step.

A skip predicate must not be true for every record, otherwise the step could
never be shown. The tests check this for every step.
"""

from collections.abc import Callable
from dataclasses import dataclass

from .record import ConsultationRecord
from .validation import (
    StepValidator,
    validate_budget,
    validate_commander,
    validate_commander_selection,
    validate_complexity,
    validate_interaction,
    validate_power_level,
    validate_restrictions,
    validate_strategy,
    validate_summary,
    validate_win_conditions,
)

SkipPredicate = Callable[[ConsultationRecord], bool]


@dataclass(frozen=True)
class StepDefinition:
    """One wizard step."""
    index: int
    key: str
    title: str
    validator: StepValidator
    skip_predicate: SkipPredicate | None = None

    def is_skipped(self, record: ConsultationRecord) -> bool:
        return self.skip_predicate is not None and self.skip_predicate(record)

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "key": self.key,
            "title": self.title,
            "skippable": self.skip_predicate is not None,
        }


def _commander_already_known(record: ConsultationRecord) -> bool:
    # Suggestions are pointless once a commander is named, or when not requested
    return bool(record.commander) or not record.needs_commander_suggestions


STEP_DEFINITIONS: tuple[StepDefinition, ...] = (
    StepDefinition(0, "commander", "Commander", validate_commander),
    StepDefinition(
        1,
        "commander_selection",
        "Commander Selection",
        validate_commander_selection,
        skip_predicate=_commander_already_known,
    ),
    StepDefinition(2, "strategy", "Strategy", validate_strategy),
    StepDefinition(3, "budget", "Budget", validate_budget),
    StepDefinition(4, "power_level", "Power Level", validate_power_level),
    StepDefinition(5, "win_conditions", "Win Conditions", validate_win_conditions),
    StepDefinition(6, "interaction", "Interaction", validate_interaction),
    StepDefinition(7, "restrictions", "Restrictions", validate_restrictions),
    StepDefinition(8, "complexity", "Complexity", validate_complexity),
    StepDefinition(9, "summary", "Summary", validate_summary),
)

TOTAL_STEPS = len(STEP_DEFINITIONS)
SUMMARY_STEP = TOTAL_STEPS - 1


def get_step(index: int) -> StepDefinition:
    return STEP_DEFINITIONS[index]


def step_titles() -> list[str]:
    return [step.title for step in STEP_DEFINITIONS]
