from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

CardType = Literal["Action", "Treasure", "Victory", "Curse", "Custom"]
Phase = Literal["action", "buy", "cleanup"]

EffectType = Literal["draw", "gain_coin", "gain_action", "gain_buy", "gain_card", "attack", "custom"]

AttackTarget = Literal["opponent", "all"]

CARD_TYPES: tuple[CardType, ...] = ("Action", "Treasure", "Victory", "Curse", "Custom")


@dataclass(frozen=True)
class DrawEffect:
    type: Literal["draw"]
    count: int


@dataclass(frozen=True)
class GainCoinEffect:
    type: Literal["gain_coin"]
    amount: int


@dataclass(frozen=True)
class GainActionEffect:
    type: Literal["gain_action"]
    amount: int


@dataclass(frozen=True)
class GainBuyEffect:
    type: Literal["gain_buy"]
    amount: int


@dataclass(frozen=True)
class GainCardEffect:
    type: Literal["gain_card"]
    count: int


@dataclass(frozen=True)
class AttackEffect:
    """Each targeted opponent discards `amount` cards from hand."""

    type: Literal["attack"]
    amount: int
    target: AttackTarget


@dataclass(frozen=True)
class CustomEffect:
    type: Literal["custom"]
    amount: int


Effect = (
    DrawEffect
    | GainCoinEffect
    | GainActionEffect
    | GainBuyEffect
    | GainCardEffect
    | AttackEffect
    | CustomEffect
)


@dataclass(frozen=True)
class CardDefinition:
    id: str
    name: str
    type: CardType
    cost: int
    effects: tuple[Effect, ...] = ()
    victory_points: int = 0
    description: str = ""

    @property
    def coin_value(self) -> int:
        return sum(e.amount for e in self.effects if isinstance(e, GainCoinEffect))

    def total(self, effect_type: EffectType) -> int:
        """Sum of the magnitudes of every effect of one kind."""
        n = 0
        for eff in self.effects:
            if eff.type != effect_type:
                continue
            if isinstance(eff, (DrawEffect, GainCardEffect)):
                n += eff.count
            else:
                n += eff.amount
        return n


@dataclass(frozen=True)
class CardInstance:
    """One physical copy of a card. `instance_id` is unique within a match."""

    instance_id: str
    card: CardDefinition

    @property
    def card_id(self) -> str:
        return self.card.id

    @property
    def type(self) -> CardType:
        return self.card.type


@dataclass(frozen=True)
class SupplyEntry:
    card_id: str
    count: int = 0
    count_per_opponent: int = 0

    def size_for(self, num_players: int) -> int:
        return self.count + self.count_per_opponent * max(0, num_players - 1)


@dataclass(frozen=True)
class CardDatabase:
    """Immutable card catalog used by the engine."""

    cards: dict[str, CardDefinition]
    supply: tuple[SupplyEntry, ...] = ()

    def get(self, card_id: str) -> CardDefinition:
        return self.cards[card_id]
