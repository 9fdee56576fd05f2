"""
Deck Assembler.

Pure transform from a deck service response into a GeneratedDeckRecord:
card normalization, category buckets, statistics, strategy metadata,
synergies and heuristic weaknesses.

The raw response is only read, never modified. Card entries follow
Scryfall naming (name, cmc, type_line, color_identity, rarity, prices.usd)
with an optional `category` hint from the service.
"""

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from consultation.record import ConsultationRecord
from consultation.state import generate_session_id
from moxmuse.models.deck import (
    CURVE_BUCKETS,
    CardSynergy,
    ColorDistribution,
    DeckCard,
    DeckCategory,
    DeckStatistics,
    DeckStrategy,
    GeneratedDeckRecord,
    ManaCurve,
    RarityDistribution,
    TypeDistribution,
    WinCondition,
)

from .errors import AssemblyError

logger = logging.getLogger(__name__)


# =============================================================================
# Tables
# =============================================================================

# name -> (description, advisory target count)
CATEGORIES: dict[str, tuple[str, int]] = {
    "lands": ("Lands and mana base", 35),
    "creatures": ("Creatures and threats", 30),
    "removal": ("Targeted removal, board wipes and interaction", 10),
    "draw": ("Card draw and card advantage", 10),
    "ramp": ("Mana acceleration and fixing", 10),
    "other": ("Utility and support cards", 5),
}

_HINT_BUCKETS = {
    "ramp": "ramp",
    "draw": "draw",
    "card_draw": "draw",
    "card-draw": "draw",
    "removal": "removal",
    "board_wipes": "removal",
    "board-wipes": "removal",
    "wipe": "removal",
}

_SYNERGY_TYPES = {
    "ramp": "enabler",
    "draw": "engine",
    "removal": "support",
    "creatures": "support",
    "other": "support",
}

MAX_SYNERGIES = 20
MAX_RELATED_CARDS = 3

STRATEGY_NAMES = {
    "aggro": "Aggro",
    "control": "Control",
    "combo": "Combo",
    "midrange": "Midrange",
    "tribal": "Tribal",
    "value": "Value Engine",
    "stax": "Stax",
}

STRATEGY_DESCRIPTIONS = {
    "aggro": "An aggressive strategy focused on dealing damage quickly and efficiently.",
    "control": "A controlling strategy that manages the game through removal and card advantage.",
    "combo": "A combo-focused strategy that seeks to win through powerful card interactions.",
    "midrange": "A balanced strategy that adapts to the game state with versatile threats.",
    "tribal": "A tribal strategy built around creature synergies and type-based effects.",
    "value": "A value-oriented strategy that generates card advantage and incremental benefits.",
    "stax": "A resource denial strategy that limits opponents while building advantage.",
}

GAMEPLANS = {
    "aggro": "Deploy threats early and pressure opponents before they can stabilize.",
    "control": "Control the early game, then deploy powerful late-game threats.",
    "combo": "Assemble combo pieces while protecting them from disruption.",
    "midrange": "Play efficient threats and answers while adapting to opponents.",
    "tribal": "Build a critical mass of synergistic creatures to overwhelm opponents.",
    "value": "Generate incremental advantages that compound over time.",
    "stax": "Lock down opponents' resources while building your own advantage.",
}

STRATEGY_STRENGTHS = {
    "aggro": ["Fast clock", "Pressure opponents", "Efficient threats"],
    "control": ["Card advantage", "Flexible answers", "Late game power"],
    "combo": ["Explosive turns", "Consistent win conditions", "Tutors"],
    "midrange": ["Versatile", "Good in most metas", "Balanced approach"],
    "tribal": ["Synergistic", "Explosive potential", "Theme coherence"],
    "value": ["Card advantage", "Incremental benefits", "Long game"],
    "stax": ["Resource denial", "Asymmetric effects", "Control"],
}

STRATEGY_WEAKNESSES = {
    "aggro": ["Vulnerable to board wipes", "Runs out of gas", "Weak late game"],
    "control": ["Slow start", "Vulnerable to fast aggro", "Resource intensive"],
    "combo": ["Vulnerable to disruption", "Inconsistent", "All-in strategy"],
    "midrange": ["Jack of all trades", "Can be outpaced", "No clear focus"],
    "tribal": ["Dependent on synergies", "Vulnerable to hate", "Linear"],
    "value": ["Slow to close games", "Vulnerable to fast strategies", "Grindy"],
    "stax": ["Hated by opponents", "Complex to pilot", "Can backfire"],
}

# type -> (description, key cards, probability)
WIN_CONDITION_DATA = {
    "combat": (
        "Win through combat damage with efficient creatures and combat tricks.",
        ["Combat enhancers", "Efficient creatures", "Protection spells"],
        0.7,
    ),
    "combo": (
        "Win through powerful card combinations and synergies.",
        ["Combo pieces", "Tutors", "Protection"],
        0.6,
    ),
    "alternative": (
        "Win through alternative win conditions and unique effects.",
        ["Alternative win cards", "Support pieces", "Protection"],
        0.5,
    ),
    "control": (
        "Win by controlling the game and deploying inevitable threats.",
        ["Win conditions", "Control pieces", "Card advantage"],
        0.8,
    ),
}

_COLOR_NAMES = {"W": "white", "U": "blue", "B": "black", "R": "red", "G": "green"}
_TYPE_ORDER = ("land", "creature", "planeswalker", "instant", "sorcery", "artifact", "enchantment")
_RARITIES = ("common", "uncommon", "rare", "mythic")


# =============================================================================
# Card normalization
# =============================================================================


def categorize(type_line: str, hint: str | None) -> str:
    """Bucket a card. Lands win over everything, then the service hint, then type."""
    type_lower = type_line.lower()
    hint_lower = (hint or "").strip().lower()

    if "land" in type_lower or (not type_lower and hint_lower in ("land", "lands")):
        return "lands"
    if hint_lower in _HINT_BUCKETS:
        return _HINT_BUCKETS[hint_lower]
    if "creature" in type_lower:
        return "creatures"
    return "other"


def _price(raw: Mapping[str, Any]) -> float | None:
    prices = raw.get("prices")
    value = prices.get("usd") if isinstance(prices, Mapping) else None
    if value is None:
        value = raw.get("price")
    if value is None or value == "":
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    return price if math.isfinite(price) else None


def normalize_card(raw: Any, position: int) -> list[DeckCard]:
    """One response entry -> one DeckCard per copy."""
    if not isinstance(raw, Mapping):
        raise AssemblyError(f"Card entry {position} is not an object")

    name = raw.get("name")
    card_id = raw.get("cardId") or raw.get("id") or name
    if not card_id:
        raise AssemblyError(f"Card entry {position} has neither a name nor an id")

    try:
        cmc = float(raw.get("cmc") or 0)
        quantity = int(raw.get("quantity") or 1)
    except (TypeError, ValueError, OverflowError) as e:
        raise AssemblyError(f"Card entry {position} has a malformed number: {e}") from e
    if not math.isfinite(cmc):
        raise AssemblyError(f"Card entry {position} has a non-finite cmc: {cmc}")

    type_line = raw.get("type_line") or raw.get("typeLine") or ""
    colors = raw.get("color_identity") or raw.get("colorIdentity") or []
    rarity = raw.get("rarity")
    hint = raw.get("category")

    card = DeckCard(
        card_id=str(card_id),
        name=str(name or card_id),
        cmc=max(cmc, 0),
        type_line=str(type_line),
        color_identity=[str(c).upper() for c in colors],
        rarity=str(rarity).lower() if rarity else None,
        price=_price(raw),
        category=categorize(str(type_line), hint if isinstance(hint, str) else None),
        role=hint if isinstance(hint, str) else None,
    )
    return [card] * max(quantity, 1)


def extract_cards(raw_response: Any) -> list[DeckCard]:
    if not isinstance(raw_response, Mapping):
        raise AssemblyError("Generation response is not an object")

    entries = raw_response.get("cards")
    if entries is None and isinstance(raw_response.get("deck"), Mapping):
        entries = raw_response["deck"].get("cards")
    if not isinstance(entries, list):
        raise AssemblyError("Generation response has no card list")

    cards: list[DeckCard] = []
    for position, entry in enumerate(entries):
        cards.extend(normalize_card(entry, position))
    return cards


# =============================================================================
# Statistics
# =============================================================================


def percentages(counts: Mapping[str, int]) -> dict[str, float]:
    """
    Percent per key, one decimal, summing to exactly 100.

    The last non-empty bucket takes whatever rounding left over. All zeros
    when there's nothing to count.
    """
    total = sum(counts.values())
    if total == 0:
        return {key: 0.0 for key in counts}

    last = [key for key, count in counts.items() if count > 0][-1]
    result = {key: round(count * 100 / total, 1) for key, count in counts.items() if key != last}
    result[last] = round(100 - sum(result.values()), 1)
    return {key: result[key] for key in counts}


def mana_curve(cards: list[DeckCard]) -> ManaCurve:
    """8-bucket CMC histogram over nonland cards (index 7 is "7+")."""
    distribution = [0] * CURVE_BUCKETS
    total_cmc = 0.0
    nonland = 0

    for card in cards:
        if card.is_land:
            continue
        bucket = min(max(int(math.floor(card.cmc)), 0), CURVE_BUCKETS - 1)
        distribution[bucket] += 1
        total_cmc += card.cmc
        nonland += 1

    land_count = len(cards) - nonland
    return ManaCurve(
        distribution=distribution,
        # list.index returns the first max, so ties go to the lowest CMC
        peak_cmc=distribution.index(max(distribution)),
        average_cmc=round(total_cmc / nonland, 1) if nonland else 0.0,
        land_ratio=round(land_count / len(cards), 2) if cards else 0.0,
    )


def _primary_type(type_line: str) -> str:
    type_lower = type_line.lower()
    for card_type in _TYPE_ORDER:
        if card_type in type_lower:
            return card_type
    return "other"


def _color_bucket(card: DeckCard) -> str:
    if not card.color_identity:
        return "colorless"
    if len(card.color_identity) > 1:
        return "multicolor"
    return _COLOR_NAMES.get(card.color_identity[0], "colorless")


def type_counts(cards: list[DeckCard]) -> dict[str, int]:
    counts = {key: 0 for key in TypeDistribution.model_fields}
    for card in cards:
        counts[_primary_type(card.type_line)] += 1
    return counts


def calculate_statistics(cards: list[DeckCard]) -> DeckStatistics:
    curve = mana_curve(cards)

    colors = {key: 0 for key in ("white", "blue", "black", "red", "green", "colorless", "multicolor")}
    devotion: dict[str, int] = {}
    rarities = {key: 0 for key in (*_RARITIES, "unknown")}

    for card in cards:
        colors[_color_bucket(card)] += 1
        for symbol in card.color_identity:
            devotion[symbol] = devotion.get(symbol, 0) + 1
        rarities[card.rarity if card.rarity in _RARITIES else "unknown"] += 1

    land_count = sum(1 for card in cards if card.is_land)

    return DeckStatistics(
        mana_curve=curve,
        color_distribution=ColorDistribution(**percentages(colors), devotion=devotion),
        type_distribution=TypeDistribution(**percentages(type_counts(cards))),
        rarity_distribution=RarityDistribution(**percentages(rarities)),
        average_cmc=curve.average_cmc,
        total_value=round(sum(card.price or 0 for card in cards), 2),
        land_count=land_count,
        nonland_count=len(cards) - land_count,
    )


def build_categories(cards: list[DeckCard]) -> list[DeckCategory]:
    """All six buckets, in fixed order, empty ones included."""
    return [
        DeckCategory(
            name=name,
            description=description,
            target_count=target,
            actual_count=sum(1 for card in cards if card.category == name),
            cards=[card.card_id for card in cards if card.category == name],
        )
        for name, (description, target) in CATEGORIES.items()
    ]


# =============================================================================
# Strategy metadata
# =============================================================================


def deck_name(commander: str, record: ConsultationRecord) -> str:
    if record.themes:
        return f"{commander} - {record.themes[0]}"
    if record.strategy:
        return f"{commander} - {STRATEGY_NAMES.get(record.strategy, record.strategy)}"
    return f"{commander} - Commander Deck"


def deck_strategy(commander: str, record: ConsultationRecord) -> DeckStrategy:
    archetype = record.strategy or "midrange"
    return DeckStrategy(
        name=f"{commander} {archetype.capitalize()}",
        description=STRATEGY_DESCRIPTIONS.get(archetype, "A focused Commander strategy."),
        archetype=archetype,
        themes=list(record.themes or []),
        gameplan=GAMEPLANS.get(archetype, "Execute the strategy effectively."),
        strengths=STRATEGY_STRENGTHS.get(archetype, ["Focused strategy"]),
        weaknesses=STRATEGY_WEAKNESSES.get(archetype, ["Strategy-specific weaknesses"]),
    )


def win_conditions(record: ConsultationRecord) -> list[WinCondition]:
    primary = record.win_conditions.primary if record.win_conditions else None
    if primary in WIN_CONDITION_DATA:
        description, key_cards, probability = WIN_CONDITION_DATA[primary]
        return [WinCondition(type=primary, description=description, key_cards=key_cards, probability=probability)]

    return [
        WinCondition(
            type="combat",
            description="Win through combat damage with efficient creatures.",
            key_cards=["Creatures", "Combat tricks", "Protection"],
            probability=0.7,
        )
    ]


def find_synergies(cards: list[DeckCard]) -> list[CardSynergy]:
    """Naive synergies: nonland cards sharing a bucket support each other."""
    groups: dict[str, list[DeckCard]] = {}
    for card in cards:
        if not card.is_land:
            groups.setdefault(card.category, []).append(card)

    synergies: list[CardSynergy] = []
    for category, members in groups.items():
        for card in members:
            related = [other.card_id for other in members if other.card_id != card.card_id]
            related = list(dict.fromkeys(related))[:MAX_RELATED_CARDS]
            if not related:
                continue
            synergies.append(
                CardSynergy(
                    card_id=card.card_id,
                    related_card_ids=related,
                    synergy_type=_SYNERGY_TYPES.get(category, "support"),
                    strength=7,
                    description=f"Works well with other {category} cards in the deck.",
                )
            )
            if len(synergies) >= MAX_SYNERGIES:
                return synergies
    return synergies


def identify_weaknesses(
    cards: list[DeckCard],
    statistics: DeckStatistics,
    record: ConsultationRecord,
) -> list[str]:
    """Commander deck-building heuristics. Advisory text only."""
    weaknesses = []
    counts = type_counts(cards)
    ramp = sum(1 for card in cards if card.category == "ramp")

    if statistics.average_cmc > 4.5:
        weaknesses.append("High average mana cost may lead to slow starts in multiplayer games")

    if statistics.land_count < 32:
        weaknesses.append("Low land count may cause mana issues in Commander")
    elif statistics.land_count > 40:
        weaknesses.append("High land count may reduce spell density")

    distinct_colors = len(set(statistics.color_distribution.devotion) & set(_COLOR_NAMES))
    if distinct_colors > 3 and statistics.land_count < 36:
        weaknesses.append("Multicolor Commander deck may need more lands for color fixing")

    if record.strategy == "aggro" and statistics.average_cmc > 3.5:
        weaknesses.append("Aggro strategy may be too slow for multiplayer Commander games")

    if record.strategy == "control" and counts["instant"] + counts["sorcery"] < 15:
        weaknesses.append("Control deck may need more instant and sorcery spells for multiplayer interaction")

    if counts["creature"] < 15:
        weaknesses.append("Low creature count may make it difficult to pressure opponents")

    if ramp < (8 if record.strategy == "aggro" else 10):
        weaknesses.append("May need more mana ramp for Commander format")

    return weaknesses


# =============================================================================
# Entry point
# =============================================================================


def assemble(
    raw_response: Mapping[str, Any],
    record: ConsultationRecord | Mapping[str, Any],
    commander: str,
    *,
    generated_at: datetime | None = None,
) -> GeneratedDeckRecord:
    """
    Build the canonical deck.

    Raises AssemblyError when the response has no usable card list.
    """
    if not isinstance(record, ConsultationRecord):
        try:
            record = ConsultationRecord.model_validate(dict(record))
        except ValidationError as e:
            raise AssemblyError(f"Invalid consultation data: {e}") from e

    cards = extract_cards(raw_response)
    statistics = calculate_statistics(cards)

    deck_id = raw_response.get("deckId") or generate_session_id("generated")

    try:
        deck = GeneratedDeckRecord(
            id=str(deck_id),
            name=deck_name(commander, record),
            commander=commander,
            strategy=deck_strategy(commander, record),
            win_conditions=win_conditions(record),
            power_level=record.power_level or 3,
            estimated_budget=record.budget or 0,
            cards=cards,
            categories=build_categories(cards),
            statistics=statistics,
            synergies=find_synergies(cards),
            weaknesses=identify_weaknesses(cards, statistics, record),
            consultation_data=record.to_wire(),
            generated_at=generated_at or datetime.now(timezone.utc),
        )
    except ValidationError as e:
        raise AssemblyError(f"Assembled deck failed validation: {e}") from e

    expected = raw_response.get("cardCount")
    if isinstance(expected, int) and expected != deck.card_count:
        logger.warning(f"Deck service reported {expected} cards, assembled {deck.card_count}")

    logger.info(f"Assembled deck {deck.id}: {deck.card_count} cards, {statistics.land_count} lands")
    return deck
