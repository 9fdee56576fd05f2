"""
MoxMuse - Generated Deck Models.

The canonical output of deck assembly. All models are frozen: a deck is
built once by the assembler and never edited in place. The cross-field
invariants (category counts, land/nonland split, mana curve shape) are
checked when the record is constructed.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

CURVE_BUCKETS = 8  # CMC 0..6 plus "7+"

CategoryName = Literal["lands", "creatures", "removal", "draw", "ramp", "other"]
SynergyType = Literal["combo", "support", "engine", "protection", "enabler"]


class _DeckModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Cards & Categories
# =============================================================================


class DeckCard(_DeckModel):
    """One card slot, normalized from the service response."""

    card_id: str
    name: str
    cmc: float = 0
    type_line: str = ""
    color_identity: list[str] = Field(default_factory=list)
    rarity: str | None = None
    price: float | None = None
    category: CategoryName
    role: str | None = None  # category hint as sent by the service

    @property
    def is_land(self) -> bool:
        return self.category == "lands"


class DeckCategory(_DeckModel):
    name: CategoryName
    description: str
    target_count: int  # advisory
    actual_count: int
    cards: list[str] = Field(default_factory=list)  # card ids


# =============================================================================
# Statistics
# =============================================================================


class ManaCurve(_DeckModel):
    distribution: list[int] = Field(min_length=CURVE_BUCKETS, max_length=CURVE_BUCKETS)
    peak_cmc: int
    average_cmc: float
    land_ratio: float


class ColorDistribution(_DeckModel):
    """Percent of cards per color identity bucket."""

    white: float = 0
    blue: float = 0
    black: float = 0
    red: float = 0
    green: float = 0
    colorless: float = 0
    multicolor: float = 0
    devotion: dict[str, int] = Field(default_factory=dict)  # raw symbol counts


class TypeDistribution(_DeckModel):
    """Percent of cards per primary card type."""

    creature: float = 0
    instant: float = 0
    sorcery: float = 0
    artifact: float = 0
    enchantment: float = 0
    planeswalker: float = 0
    land: float = 0
    other: float = 0


class RarityDistribution(_DeckModel):
    """Percent of cards per rarity. Missing or unrecognized rarities count as unknown."""

    common: float = 0
    uncommon: float = 0
    rare: float = 0
    mythic: float = 0
    unknown: float = 0


class DeckStatistics(_DeckModel):
    mana_curve: ManaCurve
    color_distribution: ColorDistribution
    type_distribution: TypeDistribution
    rarity_distribution: RarityDistribution
    average_cmc: float
    total_value: float
    land_count: int
    nonland_count: int


# =============================================================================
# Strategy
# =============================================================================


class DeckStrategy(_DeckModel):
    name: str
    description: str
    archetype: str
    themes: list[str] = Field(default_factory=list)
    gameplan: str
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)


class WinCondition(_DeckModel):
    type: str
    description: str
    key_cards: list[str] = Field(default_factory=list)
    probability: float = Field(ge=0, le=1)


class CardSynergy(_DeckModel):
    card_id: str
    related_card_ids: list[str]
    synergy_type: SynergyType
    strength: int = Field(ge=1, le=10)
    description: str


# =============================================================================
# Deck
# =============================================================================


class GeneratedDeckRecord(_DeckModel):
    """
    A fully assembled Commander deck.

    Invariants (checked on construction):
    - sum of categories[].actual_count == len(cards)
    - statistics.land_count + statistics.nonland_count == len(cards)
    - mana curve has 8 buckets summing to nonland_count
    """

    id: str
    name: str
    commander: str
    format: Literal["commander"] = "commander"
    strategy: DeckStrategy
    win_conditions: list[WinCondition]
    power_level: int
    estimated_budget: float
    cards: list[DeckCard]
    categories: list[DeckCategory]
    statistics: DeckStatistics
    synergies: list[CardSynergy] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    consultation_data: dict[str, Any] = Field(default_factory=dict)
    generated_at: datetime

    @model_validator(mode="after")
    def _check_counts(self) -> "GeneratedDeckRecord":
        total = len(self.cards)
        stats = self.statistics

        if sum(c.actual_count for c in self.categories) != total:
            raise ValueError("Category counts do not add up to the card list")
        if stats.land_count + stats.nonland_count != total:
            raise ValueError("Land and nonland counts do not add up to the card list")
        if sum(stats.mana_curve.distribution) != stats.nonland_count:
            raise ValueError("Mana curve does not cover every nonland card")
        return self

    @property
    def card_count(self) -> int:
        return len(self.cards)

    def to_wire(self) -> dict[str, Any]:
        """camelCase JSON-ready dict."""
        return self.model_dump(by_alias=True, mode="json")
