from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PlayActionCard:
    player: str
    card_id: str


@dataclass(frozen=True)
class PlayTreasureCard:
    player: str
    card_id: str


@dataclass(frozen=True)
class BuyCard:
    player: str
    supply_id: str


@dataclass(frozen=True)
class AdvancePhase:
    player: str


@dataclass(frozen=True)
class EndTurn:
    """Advance phases until the turn passes to the next player."""

    player: str


Command = PlayActionCard | PlayTreasureCard | BuyCard | AdvancePhase | EndTurn
