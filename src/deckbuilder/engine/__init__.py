"""Headless rules engine for deckbuilder.

IMPORTANT: This package must never do terminal or file I/O.
"""

from .actions import AdvancePhase, BuyCard, Command, EndTurn, PlayActionCard, PlayTreasureCard
from .match import MatchConfig, MatchState, StepResult, new_match, step
from .scheduler import SchedulerConfig, TurnScheduler
from .types import CardDefinition, CardType, Phase

__all__ = [
    "AdvancePhase",
    "BuyCard",
    "CardDefinition",
    "CardType",
    "Command",
    "EndTurn",
    "MatchConfig",
    "MatchState",
    "Phase",
    "PlayActionCard",
    "PlayTreasureCard",
    "SchedulerConfig",
    "StepResult",
    "TurnScheduler",
    "new_match",
    "step",
]
