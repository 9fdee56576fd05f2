"""
Consultation Record - the accumulating preference document.

Every field is optional until the user sets it. Python code uses snake_case
attribute names; snapshots and the generation wire format use the camelCase
aliases (needsCommanderSuggestions, powerLevel, ...). Both are accepted on input.

Out-of-range values are rejected by the model itself, so a record that exists
is always a valid partial projection of the full schema.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


Strategy = Literal["aggro", "control", "combo", "midrange", "tribal", "value", "stax"]
WinConditionType = Literal["combat", "combo", "alternative", "control"]
CombatStyle = Literal["aggro", "voltron", "tokens", "big-creatures"]
ComboType = Literal["infinite", "synergy", "engine"]
InteractionLevel = Literal["low", "medium", "high"]
InteractionTiming = Literal["proactive", "reactive", "balanced"]
PoliticalStyle = Literal["diplomatic", "aggressive", "hidden", "chaotic"]
ThreatLevel = Literal["low-profile", "moderate", "high-threat"]
ComplexityLevel = Literal["simple", "moderate", "complex"]
TapLandRatio = Literal["low", "medium", "high"]


class _CamelModel(BaseModel):
    """Base for consultation models: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class WinConditions(_CamelModel):
    """How the deck intends to win."""

    primary: WinConditionType | None = None
    secondary: list[str] | None = None
    combat_style: CombatStyle | None = None
    combo_type: ComboType | None = None


class Interaction(_CamelModel):
    """How much the deck interacts with opponents, and when."""

    level: InteractionLevel | None = None
    types: list[str] = Field(default_factory=list)
    timing: InteractionTiming | None = None


class Politics(_CamelModel):
    """Table politics preferences."""

    style: PoliticalStyle | None = None
    threat_level: ThreatLevel | None = None


class ManaStrategy(_CamelModel):
    """Mana base preferences."""

    fetchlands: bool = False
    utility_lands: bool = False
    tap_land_ratio: TapLandRatio = "medium"
    budget: float = Field(default=0, ge=0)


class ConsultationRecord(_CamelModel):
    """
    All answers collected by the consultation wizard.

    Fields left as None are "not answered yet". Snapshots and wire payloads
    omit them (see to_wire).
    """

    # Entry point
    building_full_deck: bool | None = None
    needs_commander_suggestions: bool | None = None

    # Commander
    commander: str | None = None
    commander_colors: list[str] | None = None

    # Strategy
    strategy: Strategy | None = None
    themes: list[str] | None = None
    custom_theme: str | None = None

    # Constraints
    budget: float | None = Field(default=None, ge=0)
    power_level: int | None = Field(default=None, ge=1, le=4)
    use_collection: bool | None = None

    # Colors
    color_preferences: list[str] | None = None
    specific_colors: list[str] | None = None

    win_conditions: WinConditions | None = None
    interaction: Interaction | None = None
    politics: Politics | None = None

    # Restrictions
    avoid_strategies: list[str] | None = None
    avoid_cards: list[str] | None = None
    pet_cards: list[str] | None = None
    complexity_level: ComplexityLevel | None = None

    mana_strategy: ManaStrategy | None = None

    @classmethod
    def default(cls) -> "ConsultationRecord":
        """The record a fresh wizard session starts from."""
        return cls(
            building_full_deck=True,
            needs_commander_suggestions=False,
            use_collection=False,
        )

    @classmethod
    def field_name(cls, key: str) -> str | None:
        """Resolve a snake_case name or camelCase alias to the attribute name."""
        if key in cls.model_fields:
            return key
        for name, info in cls.model_fields.items():
            if info.alias == key:
                return name
        return None

    def answered(self) -> dict[str, Any]:
        """Answered fields keyed by attribute name (nested models as dicts)."""
        return self.model_dump(exclude_none=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize for snapshots and the generation service (camelCase)."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# =============================================================================
# Option catalogues (for clients rendering the steps)
# =============================================================================

STRATEGY_OPTIONS = [
    {"id": "aggro", "label": "Aggro", "description": "Fast pressure with efficient threats"},
    {"id": "control", "label": "Control", "description": "Answers first, threats later"},
    {"id": "combo", "label": "Combo", "description": "Assemble pieces and win on the spot"},
    {"id": "midrange", "label": "Midrange", "description": "Flexible threats and answers"},
    {"id": "tribal", "label": "Tribal", "description": "Creature type synergies"},
    {"id": "value", "label": "Value", "description": "Grind incremental card advantage"},
    {"id": "stax", "label": "Stax", "description": "Deny resources and lock the table"},
]

POWER_LEVELS = [
    {"id": 1, "label": "Casual", "description": "Precons and jank"},
    {"id": 2, "label": "Focused", "description": "Tuned with a clear plan"},
    {"id": 3, "label": "Optimized", "description": "Strong cards, efficient curve"},
    {"id": 4, "label": "Competitive", "description": "cEDH-adjacent"},
]

WIN_CONDITION_OPTIONS = ["combat", "combo", "alternative", "control"]
COMBAT_STYLES = ["aggro", "voltron", "tokens", "big-creatures"]
COMBO_TYPES = ["infinite", "synergy", "engine"]
INTERACTION_LEVELS = ["low", "medium", "high"]
INTERACTION_TYPES = ["removal", "counterspells", "board-wipes", "stax", "discard", "theft"]
INTERACTION_TIMINGS = ["proactive", "reactive", "balanced"]
COMPLEXITY_LEVELS = ["simple", "moderate", "complex"]
POLITICAL_STYLES = ["diplomatic", "aggressive", "hidden", "chaotic"]


def get_form_options() -> dict:
    """All selectable options, grouped by step, for client rendering."""
    return {
        "strategies": STRATEGY_OPTIONS,
        "power_levels": POWER_LEVELS,
        "win_conditions": WIN_CONDITION_OPTIONS,
        "combat_styles": COMBAT_STYLES,
        "combo_types": COMBO_TYPES,
        "interaction_levels": INTERACTION_LEVELS,
        "interaction_types": INTERACTION_TYPES,
        "interaction_timings": INTERACTION_TIMINGS,
        "complexity_levels": COMPLEXITY_LEVELS,
        "political_styles": POLITICAL_STYLES,
    }
