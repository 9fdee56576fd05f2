"""
Tests for the per-step validation rules.
"""

import pytest

from consultation.record import ConsultationRecord
from consultation.steps import STEP_DEFINITIONS, SUMMARY_STEP
from consultation.validation import (
    ValidationResult,
    can_proceed_from_step,
    get_step_error_message,
    validate_all_steps,
    validate_budget,
    validate_commander,
    validate_complexity,
    validate_interaction,
    validate_power_level,
    validate_restrictions,
    validate_step,
    validate_strategy,
    validate_summary,
    validate_win_conditions,
)


def _record(**fields) -> ConsultationRecord:
    return ConsultationRecord(**fields)


class TestTotality:
    """Every validator returns a well-formed verdict for any partial record."""

    @pytest.mark.parametrize("step", STEP_DEFINITIONS, ids=lambda s: s.key)
    def test_empty_record(self, step):
        result = step.validator(ConsultationRecord())
        assert isinstance(result, ValidationResult)
        assert result.is_valid == (not result.errors)

    @pytest.mark.parametrize("step", STEP_DEFINITIONS, ids=lambda s: s.key)
    def test_default_record(self, step):
        result = step.validator(ConsultationRecord.default())
        assert isinstance(result, ValidationResult)

    def test_each_field_omitted(self, complete_answers):
        full = ConsultationRecord.model_validate(complete_answers)
        for name in full.answered():
            data = full.answered()
            data.pop(name)
            partial = ConsultationRecord.model_validate(data)
            for step in STEP_DEFINITIONS:
                result = step.validator(partial)
                assert isinstance(result.errors, list)
                assert isinstance(result.warnings, list)


class TestCommander:
    def test_requires_commander_or_suggestions(self):
        result = validate_commander(_record(needs_commander_suggestions=False))
        assert not result.is_valid

    def test_suggestions_flag_is_enough(self):
        assert validate_commander(_record(needs_commander_suggestions=True)).is_valid

    def test_both_warns(self):
        result = validate_commander(_record(commander="Atraxa", needs_commander_suggestions=True))
        assert result.is_valid
        assert len(result.warnings) == 1


class TestStrategyAndBudget:
    def test_strategy_required(self):
        assert not validate_strategy(_record()).is_valid
        assert validate_strategy(_record(strategy="combo")).is_valid

    def test_too_many_themes_warns(self):
        result = validate_strategy(_record(strategy="tribal", themes=["elves", "tokens", "lifegain", "counters"]))
        assert result.is_valid
        assert result.warnings

    def test_budget_zero_is_answered(self):
        result = validate_budget(_record(budget=0))
        assert result.is_valid
        assert result.warnings  # very low budget

    def test_budget_missing(self):
        assert not validate_budget(_record()).is_valid

    def test_high_budget_warns(self):
        result = validate_budget(_record(budget=5000))
        assert result.is_valid
        assert "expensive" in result.warnings[0]


class TestPowerLevel:
    @pytest.mark.parametrize("level", [1, 2, 3, 4])
    def test_valid_levels(self, level):
        assert validate_power_level(_record(power_level=level)).is_valid

    def test_missing_level(self):
        assert not validate_power_level(_record()).is_valid

    def test_competitive_on_low_budget_only_warns(self):
        result = validate_power_level(_record(power_level=4, budget=100))
        assert result.is_valid
        assert result.errors == []
        assert len(result.warnings) == 1

    def test_casual_on_high_budget_only_warns(self):
        result = validate_power_level(_record(power_level=1, budget=1500))
        assert result.is_valid
        assert len(result.warnings) == 1


class TestWinConditions:
    def test_primary_required(self):
        assert not validate_win_conditions(_record()).is_valid
        assert not validate_win_conditions(_record(win_conditions={})).is_valid

    def test_combat_without_style_warns(self):
        result = validate_win_conditions(_record(win_conditions={"primary": "combat"}))
        assert result.is_valid
        assert "combat style" in result.warnings[0]

    def test_combo_without_type_warns(self):
        result = validate_win_conditions(_record(win_conditions={"primary": "combo"}))
        assert result.is_valid
        assert "combo type" in result.warnings[0]

    def test_too_many_secondary_warns(self):
        result = validate_win_conditions(
            _record(win_conditions={"primary": "control", "secondary": ["a", "b", "c", "d"]})
        )
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_alternative_needs_nothing_else(self):
        result = validate_win_conditions(_record(win_conditions={"primary": "alternative"}))
        assert result.is_valid
        assert result.warnings == []


class TestInteraction:
    def test_level_required(self):
        assert not validate_interaction(_record(interaction={"types": ["removal"]})).is_valid

    def test_high_without_types_warns(self):
        result = validate_interaction(_record(interaction={"level": "high"}))
        assert result.is_valid
        assert result.warnings

    def test_reactive_aggro_warns(self):
        result = validate_interaction(
            _record(strategy="aggro", interaction={"level": "medium", "timing": "reactive"})
        )
        assert any("Reactive" in w for w in result.warnings)


class TestRestrictions:
    def test_always_valid(self):
        record = _record(
            strategy="combo",
            avoid_strategies=["combo", "stax", "aggro", "control", "tribal", "value"],
            avoid_cards=[f"card {i}" for i in range(25)],
            pet_cards=[f"pet {i}" for i in range(12)],
        )
        result = validate_restrictions(record)
        assert result.is_valid
        assert result.errors == []
        assert len(result.warnings) == 4

    def test_empty_is_valid(self):
        assert validate_restrictions(_record()).is_valid


class TestComplexity:
    def test_required(self):
        assert not validate_complexity(_record()).is_valid

    def test_simple_combo_warns(self):
        result = validate_complexity(_record(complexity_level="simple", strategy="combo"))
        assert result.is_valid
        assert result.warnings


class TestSummary:
    def test_complete_record_passes(self, complete_answers):
        record = ConsultationRecord.model_validate(complete_answers)
        result = validate_summary(record)
        assert result.is_valid
        assert result.errors == []

    def test_empty_record_fails_with_distinct_errors(self):
        result = validate_summary(ConsultationRecord())
        assert not result.is_valid
        assert len(set(result.errors)) >= 4
        for fragment in ("Commander", "strategy", "win condition", "Interaction"):
            assert any(fragment in error for error in result.errors)

    def test_summary_is_last_step(self):
        assert STEP_DEFINITIONS[SUMMARY_STEP].validator is validate_summary


class TestHelpers:
    def test_unknown_step_passes(self):
        assert validate_step(99, ConsultationRecord()).is_valid
        assert validate_step(-1, ConsultationRecord()).is_valid

    def test_validate_all_aggregates(self):
        record = ConsultationRecord.default()
        result = validate_all_steps(3, record)
        assert not result.is_valid
        # commander, commander selection, strategy, budget
        assert len(result.errors) == 4

    def test_validate_all_complete(self, complete_answers):
        record = ConsultationRecord.model_validate(complete_answers)
        assert validate_all_steps(SUMMARY_STEP, record).is_valid

    def test_can_proceed_and_message(self):
        record = ConsultationRecord.default()
        assert not can_proceed_from_step(2, record)
        assert get_step_error_message(2, record) == "Please select a deck strategy"
        assert get_step_error_message(7, record) is None
