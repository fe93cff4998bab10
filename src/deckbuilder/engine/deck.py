"""Draw/shuffle/discard mechanics for a single player's four zones.

The deck list is ordered with its top at the end (`deck[-1]` is drawn next).
Hand, discard and play area are treated as unordered.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from .types import CardInstance

if TYPE_CHECKING:
    from .match import PlayerState


def reshuffle(player: PlayerState, rng: random.Random) -> None:
    """Move the whole discard pile under the deck as a uniformly shuffled block."""
    if not player.discard:
        return
    pile = list(player.discard)
    player.discard.clear()
    rng.shuffle(pile)
    # Remaining deck cards stay on top.
    player.deck[:0] = pile


def draw(player: PlayerState, n: int, rng: random.Random) -> list[CardInstance]:
    """Draw up to n cards, reshuffling the discard when the deck runs out.

    Returns fewer than n cards when deck and discard are both exhausted.
    """
    drawn: list[CardInstance] = []
    for _ in range(max(0, n)):
        if not player.deck:
            reshuffle(player, rng)
        if not player.deck:
            break
        card = player.deck.pop()
        player.hand.append(card)
        drawn.append(card)
    return drawn


def discard_hand(player: PlayerState) -> int:
    n = len(player.hand)
    player.discard.extend(player.hand)
    player.hand.clear()
    return n


def find_in_hand(player: PlayerState, instance_id: str) -> int | None:
    for i, c in enumerate(player.hand):
        if c.instance_id == instance_id:
            return i
    return None


def move_to_play_area(player: PlayerState, instance_id: str) -> CardInstance | None:
    idx = find_in_hand(player, instance_id)
    if idx is None:
        return None
    card = player.hand.pop(idx)
    player.play_area.append(card)
    return card


def discard_from_hand(player: PlayerState, n: int) -> list[CardInstance]:
    """Discard up to n cards from hand, oldest first."""
    k = min(max(0, n), len(player.hand))
    out = player.hand[:k]
    del player.hand[:k]
    player.discard.extend(out)
    return out


def return_all_to_discard(player: PlayerState) -> None:
    player.discard.extend(player.hand)
    player.discard.extend(player.play_area)
    player.hand.clear()
    player.play_area.clear()


def gain_to_discard(player: PlayerState, card: CardInstance) -> None:
    player.discard.append(card)
    player.owned += 1


def trash_from_hand(player: PlayerState, instance_id: str, trash: list[CardInstance]) -> CardInstance | None:
    idx = find_in_hand(player, instance_id)
    if idx is None:
        return None
    card = player.hand.pop(idx)
    trash.append(card)
    player.owned -= 1
    return card


def all_cards(player: PlayerState) -> list[CardInstance]:
    return [*player.deck, *player.hand, *player.discard, *player.play_area]


def card_count(player: PlayerState) -> int:
    return len(player.deck) + len(player.hand) + len(player.discard) + len(player.play_area)
