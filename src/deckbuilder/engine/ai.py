from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field

from .actions import BuyCard, Command, PlayActionCard, PlayTreasureCard
from .match import MatchState, PlayerState
from .supply import affordable, victory_piles
from .types import CardDefinition

# Card draw first, then extra actions, then buys/coins.
DEFAULT_ACTION_PRIORITY: dict[str, int] = {
    "smithy": 9,
    "laboratory": 8,
    "village": 7,
    "market": 6,
    "woodcutter": 5,
}


@dataclass(frozen=True)
class AISpec:
    """Tuning for the autonomous opponent.

    mid_game_turn / late_game_turn:
      turn numbers at which purchases switch to the mid-game tier and to
      victory piles respectively.
    """

    mid_game_turn: int = 4
    late_game_turn: int = 8
    action_priority: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_ACTION_PRIORITY))
    mid_tier: tuple[str, ...] = ("gold", "market", "laboratory", "smithy")
    early_tier: tuple[str, ...] = ("silver", "village", "woodcutter")


def _action_key(spec: AISpec, card: CardDefinition) -> tuple[int, int, int, int]:
    # Unlisted (custom) cards rank below the table, ordered by the same profile.
    return (
        spec.action_priority.get(card.id, 0),
        card.total("draw"),
        card.total("gain_action"),
        card.total("gain_buy") + card.total("gain_coin"),
    )


def choose_action_card(
    state: MatchState, ps: PlayerState, spec: AISpec, rejected: Collection[Command] = ()
) -> PlayActionCard | None:
    if ps.actions <= 0:
        return None
    best: tuple[tuple[int, int, int, int], PlayActionCard] | None = None
    for inst in ps.hand:
        if inst.type != "Action":
            continue
        cand = PlayActionCard(player=ps.id, card_id=inst.instance_id)
        if cand in rejected:
            continue
        key = _action_key(spec, inst.card)
        # strict > keeps the earliest card in hand on ties
        if best is None or key > best[0]:
            best = (key, cand)
    return best[1] if best is not None else None


def choose_treasure(
    state: MatchState, ps: PlayerState, rejected: Collection[Command] = ()
) -> PlayTreasureCard | None:
    for inst in ps.hand:
        if inst.type != "Treasure":
            continue
        cand = PlayTreasureCard(player=ps.id, card_id=inst.instance_id)
        if cand not in rejected:
            return cand
    return None


def purchase_order(state: MatchState, spec: AISpec) -> list[str]:
    """Pile ids in the order the policy would like to buy them this turn."""
    order: list[str] = []
    if state.turn >= spec.late_game_turn:
        order.extend(sid for sid in victory_piles(state.supply) if state.supply[sid].card.victory_points > 0)
    if state.turn >= spec.mid_game_turn:
        order.extend(spec.mid_tier)
        customs = [sid for sid in state.supply if sid.startswith("custom_")]
        customs.sort(key=lambda sid: (-state.supply[sid].cost, sid))
        order.extend(customs)
    order.extend(spec.early_tier)

    seen: set[str] = set()
    out: list[str] = []
    for sid in order:
        if sid not in seen:
            seen.add(sid)
            out.append(sid)
    return out


def choose_purchase(
    state: MatchState, ps: PlayerState, spec: AISpec, rejected: Collection[Command] = ()
) -> BuyCard | None:
    if ps.buys <= 0 or ps.coins <= 0:
        return None
    for sid in affordable(state.supply, ps.coins, purchase_order(state, spec)):
        cand = BuyCard(player=ps.id, supply_id=sid)
        if cand not in rejected:
            return cand
    return None


def decide(
    state: MatchState,
    player_id: str,
    spec: AISpec | None = None,
    rejected: Collection[Command] = (),
) -> Command | None:
    """Pick the next command for an autonomous player, or None when done with the phase.

    Pure: reads `state`, never mutates it. Commands in `rejected` are never
    suggested again, so a caller that feeds back failures always terminates.
    """
    spec = spec or AISpec()
    if state.ended or state.retired:
        return None
    ps = state.current
    if ps.id != player_id:
        return None

    if state.phase == "action":
        return choose_action_card(state, ps, spec, rejected)
    if state.phase == "buy":
        treasure = choose_treasure(state, ps, rejected)
        if treasure is not None:
            return treasure
        return choose_purchase(state, ps, spec, rejected)
    return None
