"""MoxMuse - Data models."""

from .deck import (
    CardSynergy,
    DeckCard,
    DeckCategory,
    DeckStatistics,
    DeckStrategy,
    GeneratedDeckRecord,
    ManaCurve,
    WinCondition,
)

__all__ = [
    "CardSynergy",
    "DeckCard",
    "DeckCategory",
    "DeckStatistics",
    "DeckStrategy",
    "GeneratedDeckRecord",
    "ManaCurve",
    "WinCondition",
]
