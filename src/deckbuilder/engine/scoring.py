from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from .deck import all_cards
from .supply import exhausted_piles, top_victory_pile

if TYPE_CHECKING:
    from .match import MatchState, PlayerState

EndReason = Literal["top_victory_pile_empty", "three_piles_empty", "max_turns"]


@dataclass(frozen=True)
class PlayerRanking:
    player_id: str
    name: str
    victory_points: int
    rank: int


def victory_points(player: PlayerState) -> int:
    # Every zone counts, including cards still in the play area.
    return sum(c.card.victory_points for c in all_cards(player))


def check_end(state: MatchState, *, after_cleanup: bool = False) -> EndReason | None:
    top = top_victory_pile(state.supply)
    if top is not None and state.supply[top].exhausted:
        return "top_victory_pile_empty"
    if len(exhausted_piles(state.supply)) >= state.config.empty_piles_to_end:
        return "three_piles_empty"
    if after_cleanup and state.config.max_turns is not None and state.turn > state.config.max_turns:
        return "max_turns"
    return None


def rank_players(players: Sequence[PlayerState]) -> list[PlayerRanking]:
    """Rank by victory points, highest first.

    Equal totals share a rank (1, 1, 3). Within a tie the list keeps seating
    order, so the first entry is also the tie-broken winner.
    """
    scored = [(victory_points(p), i, p) for i, p in enumerate(players)]
    scored.sort(key=lambda t: (-t[0], t[1]))
    out: list[PlayerRanking] = []
    for pos, (vp, _, p) in enumerate(scored):
        rank = out[-1].rank if out and out[-1].victory_points == vp else pos + 1
        out.append(PlayerRanking(player_id=p.id, name=p.name, victory_points=vp, rank=rank))
    return out


def conclude(state: MatchState, reason: EndReason) -> None:
    if state.ended:
        return
    state.ended = True
    state.end_reason = reason
    state.rankings = rank_players(state.players)
    state.winner = state.rankings[0].player_id
    state.event_log.append(
        {
            "type": "GAME_ENDED",
            "winner": state.winner,
            "reason": reason,
            "scores": {r.player_id: r.victory_points for r in state.rankings},
        }
    )
