"""
Step Validation Rules.

One validator per wizard step. Each takes a ConsultationRecord and returns a
ValidationResult. Validators are pure and total: any partial record (including
an empty one) gets a well-formed verdict, never an exception.

Errors block forward progression. Warnings are advisory only, including the
cross-field heuristics (power level vs. budget and similar); they never block.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from .record import ConsultationRecord


@dataclass
class ValidationResult:
    """Verdict for one step (or an aggregate of several)."""
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"is_valid": self.is_valid, "errors": self.errors, "warnings": self.warnings}


StepValidator = Callable[[ConsultationRecord], ValidationResult]


# Soft thresholds (warnings only)
MAX_THEMES = 3
MAX_SECONDARY_WIN_CONDITIONS = 3
MAX_AVOIDED_STRATEGIES = 5
MAX_AVOIDED_CARDS = 20
MAX_PET_CARDS = 10
LOW_BUDGET = 50
HIGH_BUDGET = 2000
COMPETITIVE_MIN_BUDGET = 500
CASUAL_MAX_BUDGET = 1000


def _result(errors: list[str], warnings: list[str]) -> ValidationResult:
    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


# =============================================================================
# Per-step validators
# =============================================================================


def validate_commander(data: ConsultationRecord) -> ValidationResult:
    errors, warnings = [], []

    if not data.commander and not data.needs_commander_suggestions:
        errors.append("Please select a commander or choose to get commander suggestions")

    if data.commander and data.needs_commander_suggestions:
        warnings.append(
            "You have both a commander selected and requested suggestions. "
            "The selected commander will be used."
        )

    return _result(errors, warnings)


def validate_commander_selection(data: ConsultationRecord) -> ValidationResult:
    """Only reached when suggestions were requested; a pick is required."""
    errors = []
    if not data.commander:
        errors.append("Please choose one of the suggested commanders")
    return _result(errors, [])


def validate_strategy(data: ConsultationRecord) -> ValidationResult:
    errors, warnings = [], []

    if not data.strategy:
        errors.append("Please select a deck strategy")

    if data.themes and len(data.themes) > MAX_THEMES:
        warnings.append("Having too many themes might make the deck unfocused")

    return _result(errors, warnings)


def validate_budget(data: ConsultationRecord) -> ValidationResult:
    errors, warnings = [], []

    if data.budget is None or data.budget < 0:
        errors.append("Please specify a valid budget")
    elif data.budget < LOW_BUDGET:
        warnings.append("Very low budgets may limit deck building options significantly")
    elif data.budget > HIGH_BUDGET:
        warnings.append("High budgets may result in very expensive card recommendations")

    return _result(errors, warnings)


def validate_power_level(data: ConsultationRecord) -> ValidationResult:
    errors, warnings = [], []
    level = data.power_level

    if not isinstance(level, int) or isinstance(level, bool) or not 1 <= level <= 4:
        errors.append("Please select a valid power level (1-4)")

    # Cross-field heuristics: advisory only
    if level == 4 and data.budget is not None and data.budget < COMPETITIVE_MIN_BUDGET:
        warnings.append("Competitive power level (4) typically requires a higher budget")

    if level == 1 and data.budget is not None and data.budget > CASUAL_MAX_BUDGET:
        warnings.append("Casual power level (1) may not need such a high budget")

    return _result(errors, warnings)


def validate_win_conditions(data: ConsultationRecord) -> ValidationResult:
    errors, warnings = [], []
    win = data.win_conditions

    if win is None or not win.primary:
        errors.append("Please select a primary win condition")
        return _result(errors, warnings)

    if win.primary == "combat" and not win.combat_style:
        warnings.append("Consider specifying a combat style for better deck focus")

    if win.primary == "combo" and not win.combo_type:
        warnings.append("Consider specifying a combo type for better deck focus")

    if win.secondary and len(win.secondary) > MAX_SECONDARY_WIN_CONDITIONS:
        warnings.append("Too many secondary win conditions might make the deck unfocused")

    return _result(errors, warnings)


def validate_interaction(data: ConsultationRecord) -> ValidationResult:
    errors, warnings = [], []
    interaction = data.interaction

    if interaction is None or not interaction.level:
        errors.append("Please select an interaction level")
        return _result(errors, warnings)

    types = interaction.types or []

    if interaction.level == "high" and not types:
        warnings.append("High interaction level should include specific interaction types")

    if interaction.level == "low" and len(types) > 2:
        warnings.append("Low interaction level with many interaction types may be contradictory")

    if interaction.timing == "reactive" and data.strategy == "aggro":
        warnings.append("Reactive timing may not align well with aggressive strategies")

    return _result(errors, warnings)


def validate_restrictions(data: ConsultationRecord) -> ValidationResult:
    """Restrictions are optional: always valid, may still warn."""
    warnings = []
    avoid_strategies = data.avoid_strategies or []

    if data.strategy and data.strategy in avoid_strategies:
        warnings.append("You are avoiding a strategy that matches your selected deck strategy")

    if len(avoid_strategies) > MAX_AVOIDED_STRATEGIES:
        warnings.append("Avoiding too many strategies may severely limit deck building options")

    if data.avoid_cards and len(data.avoid_cards) > MAX_AVOIDED_CARDS:
        warnings.append("Avoiding too many cards may limit deck building options")

    if data.pet_cards and len(data.pet_cards) > MAX_PET_CARDS:
        warnings.append("Too many pet cards may not all fit in the final deck")

    return ValidationResult(is_valid=True, errors=[], warnings=warnings)


def validate_complexity(data: ConsultationRecord) -> ValidationResult:
    errors, warnings = [], []

    if not data.complexity_level:
        errors.append("Please select a complexity level")

    if data.complexity_level == "simple" and data.strategy == "combo":
        warnings.append("Combo strategies are typically more complex to pilot")

    if data.complexity_level == "complex" and data.power_level == 1:
        warnings.append("Complex decks may not be suitable for casual power levels")

    if data.politics and data.politics.style == "chaotic" and data.complexity_level == "simple":
        warnings.append("Chaotic political style may add complexity to gameplay")

    return _result(errors, warnings)


def validate_summary(data: ConsultationRecord) -> ValidationResult:
    """
    Authoritative gate before generation.

    Re-checks every required answer regardless of which steps were visited,
    so edit-jumps from the summary can't smuggle an incomplete record through.
    """
    errors = []

    if not data.commander and not data.needs_commander_suggestions:
        errors.append("Commander information is required")
    if not data.strategy:
        errors.append("Deck strategy is required")
    if data.budget is None:
        errors.append("Budget is required")
    if data.power_level is None:
        errors.append("Power level is required")
    if data.win_conditions is None or not data.win_conditions.primary:
        errors.append("Primary win condition is required")
    if data.interaction is None or not data.interaction.level:
        errors.append("Interaction level is required")
    if not data.complexity_level:
        errors.append("Complexity level is required")

    return _result(errors, [])


# =============================================================================
# Step-indexed helpers
# =============================================================================


def _validator_for(step_index: int) -> StepValidator | None:
    from .steps import STEP_DEFINITIONS

    if 0 <= step_index < len(STEP_DEFINITIONS):
        return STEP_DEFINITIONS[step_index].validator
    return None


def validate_step(step_index: int, data: ConsultationRecord) -> ValidationResult:
    """Validate one step. Unknown indices have nothing to check and pass."""
    validator = _validator_for(step_index)
    if validator is None:
        return ValidationResult(is_valid=True)
    return validator(data)


def validate_all_steps(upto_index: int, data: ConsultationRecord) -> ValidationResult:
    """Aggregate errors and warnings for steps 0..upto_index inclusive."""
    errors: list[str] = []
    warnings: list[str] = []

    for i in range(upto_index + 1):
        result = validate_step(i, data)
        errors.extend(result.errors)
        warnings.extend(result.warnings)

    return _result(errors, warnings)


def can_proceed_from_step(step_index: int, data: ConsultationRecord) -> bool:
    return validate_step(step_index, data).is_valid


def get_step_error_message(step_index: int, data: ConsultationRecord) -> str | None:
    """First blocking error for a step, for inline display."""
    result = validate_step(step_index, data)
    return result.errors[0] if result.errors else None
