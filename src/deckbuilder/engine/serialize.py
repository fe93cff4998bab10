from __future__ import annotations

from dataclasses import asdict, dataclass

from .actions import AdvancePhase, BuyCard, Command, EndTurn, PlayActionCard, PlayTreasureCard
from .match import LogEntry, MatchState, PlayerState
from .scoring import PlayerRanking
from .supply import SupplyPile
from .types import CardInstance


@dataclass(frozen=True)
class CardView:
    instance_id: str
    card_id: str
    name: str
    type: str
    cost: int
    victory_points: int


@dataclass(frozen=True)
class PlayerView:
    id: str
    name: str
    is_human: bool
    deck: tuple[CardView, ...]
    hand: tuple[CardView, ...]
    discard: tuple[CardView, ...]
    play_area: tuple[CardView, ...]
    actions: int
    buys: int
    coins: int
    victory_points: int


@dataclass(frozen=True)
class PileView:
    supply_id: str
    card_id: str
    name: str
    type: str
    cost: int
    count: int


@dataclass(frozen=True)
class MatchSnapshot:
    """Read-only copy of a match. Each delivery replaces the previous one whole."""

    seed: int | None
    turn: int
    phase: str
    current_player: str
    players: tuple[PlayerView, ...]
    supply: tuple[PileView, ...]
    trash: tuple[CardView, ...]
    log: tuple[LogEntry, ...]
    ended: bool
    winner: str | None
    end_reason: str | None
    rankings: tuple[PlayerRanking, ...]

    def player(self, player_id: str) -> PlayerView | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def pile(self, supply_id: str) -> PileView | None:
        for p in self.supply:
            if p.supply_id == supply_id:
                return p
        return None


def _card_view(c: CardInstance) -> CardView:
    return CardView(
        instance_id=c.instance_id,
        card_id=c.card_id,
        name=c.card.name,
        type=c.card.type,
        cost=c.card.cost,
        victory_points=c.card.victory_points,
    )


def _cards(cards: list[CardInstance]) -> tuple[CardView, ...]:
    return tuple(_card_view(c) for c in cards)


def _player_view(p: PlayerState) -> PlayerView:
    return PlayerView(
        id=p.id,
        name=p.name,
        is_human=p.is_human,
        deck=_cards(p.deck),
        hand=_cards(p.hand),
        discard=_cards(p.discard),
        play_area=_cards(p.play_area),
        actions=p.actions,
        buys=p.buys,
        coins=p.coins,
        victory_points=p.victory_points,
    )


def _pile_view(supply_id: str, pile: SupplyPile) -> PileView:
    return PileView(
        supply_id=supply_id,
        card_id=pile.card.id,
        name=pile.card.name,
        type=pile.card.type,
        cost=pile.cost,
        count=pile.count,
    )


def snapshot(state: MatchState) -> MatchSnapshot:
    return MatchSnapshot(
        seed=state.seed,
        turn=state.turn,
        phase=state.phase,
        current_player=state.current.id,
        players=tuple(_player_view(p) for p in state.players),
        supply=tuple(_pile_view(sid, pile) for sid, pile in state.supply.items()),
        trash=_cards(state.trash),
        log=tuple(state.log),
        ended=state.ended,
        winner=state.winner,
        end_reason=state.end_reason,
        rankings=tuple(state.rankings),
    )


def command_to_dict(c: Command) -> dict[str, object]:
    if isinstance(c, PlayActionCard):
        return {"type": "play_action", "player": c.player, "card_id": c.card_id}
    if isinstance(c, PlayTreasureCard):
        return {"type": "play_treasure", "player": c.player, "card_id": c.card_id}
    if isinstance(c, BuyCard):
        return {"type": "buy", "player": c.player, "supply_id": c.supply_id}
    if isinstance(c, AdvancePhase):
        return {"type": "advance_phase", "player": c.player}
    if isinstance(c, EndTurn):
        return {"type": "end_turn", "player": c.player}
    # should be unreachable
    return {"type": "unknown"}


def snapshot_to_dict(snap: MatchSnapshot) -> dict[str, object]:
    """JSON-serializable form of a snapshot."""
    return asdict(snap)
