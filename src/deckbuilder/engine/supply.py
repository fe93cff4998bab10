from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .types import CardDatabase, CardDefinition


@dataclass
class SupplyPile:
    card: CardDefinition
    count: int

    @property
    def cost(self) -> int:
        return self.card.cost

    @property
    def exhausted(self) -> bool:
        return self.count <= 0


Supply = dict[str, SupplyPile]


def custom_supply_id(card: CardDefinition) -> str:
    return f"custom_{card.id}"


def build_supply(
    cards: CardDatabase,
    num_players: int,
    custom_cards: Sequence[CardDefinition] = (),
    *,
    max_custom: int = 3,
    custom_pile_size: int = 10,
) -> Supply:
    """Base piles from the catalog followed by up to `max_custom` custom piles."""
    supply: Supply = {}
    for entry in cards.supply:
        supply[entry.card_id] = SupplyPile(
            card=cards.get(entry.card_id),
            count=entry.size_for(num_players),
        )
    for card in list(custom_cards)[:max_custom]:
        sid = custom_supply_id(card)
        if sid in supply:
            continue
        supply[sid] = SupplyPile(card=card, count=custom_pile_size)
    return supply


def take_from_pile(supply: Supply, supply_id: str) -> CardDefinition:
    """Remove one card from a pile.

    Callers must have checked the pile exists and is not exhausted; this is the
    only place pile counts change.
    """
    pile = supply[supply_id]
    if pile.count <= 0:
        raise ValueError(f"Pile {supply_id} is exhausted")
    pile.count -= 1
    return pile.card


def exhausted_piles(supply: Supply) -> list[str]:
    return [sid for sid, pile in supply.items() if pile.exhausted]


def victory_piles(supply: Supply) -> list[str]:
    """Victory piles ordered by VP value, highest first (ties by supply order)."""
    ids = [sid for sid, pile in supply.items() if pile.card.type == "Victory"]
    return sorted(ids, key=lambda sid: -supply[sid].card.victory_points)


def top_victory_pile(supply: Supply) -> str | None:
    piles = victory_piles(supply)
    return piles[0] if piles else None


def affordable(supply: Supply, coins: int, ids: Iterable[str]) -> list[str]:
    return [sid for sid in ids if sid in supply and not supply[sid].exhausted and supply[sid].cost <= coins]
