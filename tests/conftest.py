"""
Pytest configuration and fixtures for MoxMuse tests.
"""

import os
from unittest.mock import MagicMock

import pytest

# Set test environment before importing moxmuse modules
os.environ["MOXMUSE_ENV"] = "development"
os.environ["WIZARD_STORAGE_BACKEND"] = "memory"
os.environ["ANALYZE_DELAY_SECONDS"] = "0"
os.environ["FINALIZE_DELAY_SECONDS"] = "0"
os.environ["RETRY_BASE_DELAY_SECONDS"] = "0"


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for unit tests."""
    mock_client = MagicMock()

    # Mock table operations
    mock_table = MagicMock()
    mock_table.select.return_value = mock_table
    mock_table.upsert.return_value = mock_table
    mock_table.delete.return_value = mock_table
    mock_table.eq.return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[])

    mock_client.table.return_value = mock_table

    return mock_client


@pytest.fixture
def complete_answers():
    """A consultation that passes every step, in wire (camelCase) form."""
    return {
        "needsCommanderSuggestions": False,
        "commander": "Atraxa, Praetors' Voice",
        "strategy": "value",
        "budget": 300,
        "powerLevel": 3,
        "winConditions": {"primary": "combat", "combatStyle": "voltron"},
        "interaction": {"level": "medium", "types": ["removal"], "timing": "balanced"},
        "complexityLevel": "moderate",
    }


def _card(name, type_line="Creature — Elf", cmc=2, colors=("G",), rarity="common", price=None, category=None):
    """Scryfall-shaped card entry as the deck service sends it."""
    card = {
        "name": name,
        "cmc": cmc,
        "type_line": type_line,
        "color_identity": list(colors),
        "rarity": rarity,
    }
    if price is not None:
        card["prices"] = {"usd": str(price)}
    if category is not None:
        card["category"] = category
    return card


@pytest.fixture
def sample_response():
    """A small deck service response covering every category bucket."""
    return {
        "deckId": "deck-123",
        "cardCount": 10,
        "cards": [
            _card("Forest", "Basic Land — Forest", 0, (), "common", 0.1),
            _card("Command Tower", "Land", 0, (), "common", 0.25),
            _card("Dryad Arbor", "Land Creature — Forest Dryad", 0, ("G",), "uncommon", 1.5),
            _card("Llanowar Elves", "Creature — Elf Druid", 1, ("G",), "common", 0.3, "ramp"),
            _card("Rhystic Study", "Enchantment", 3, ("U",), "common", 30, "draw"),
            _card("Swords to Plowshares", "Instant", 1, ("W",), "uncommon", 2, "removal"),
            _card("Wrath of God", "Sorcery", 4, ("W",), "rare", 5, "board_wipes"),
            _card("Tymna the Weaver", "Legendary Creature — Human Cleric", 3, ("W", "B"), "mythic", 4),
            _card("Craterhoof Behemoth", "Creature — Beast", 8, ("G",), "mythic", 40),
            _card("Sol Ring", "Artifact", 1, (), "uncommon", 1),
        ],
    }


@pytest.fixture
def make_card():
    """Factory for single card entries."""
    return _card
