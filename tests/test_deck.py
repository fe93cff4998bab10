from __future__ import annotations

import random

from deckbuilder.engine import deck
from deckbuilder.engine.match import PlayerState
from deckbuilder.engine.types import CardInstance
from deckbuilder.paths import get_paths
from deckbuilder.services.content import ContentService


def _load_cards():
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return content.load_cards_db()


def _player(n_deck: int = 0, n_discard: int = 0) -> PlayerState:
    copper = _load_cards().get("copper")
    ps = PlayerState(id="player_0", name="P", is_human=True)
    ps.deck = [CardInstance(instance_id=f"d{i}", card=copper) for i in range(n_deck)]
    ps.discard = [CardInstance(instance_id=f"x{i}", card=copper) for i in range(n_discard)]
    ps.owned = n_deck + n_discard
    return ps


def test_draw_takes_from_top() -> None:
    ps = _player(n_deck=4)
    drawn = deck.draw(ps, 2, random.Random(0))
    assert [c.instance_id for c in drawn] == ["d3", "d2"]
    assert [c.instance_id for c in ps.deck] == ["d0", "d1"]
    assert len(ps.hand) == 2


def test_draw_reshuffles_discard_when_deck_runs_out() -> None:
    ps = _player(n_deck=2, n_discard=5)
    drawn = deck.draw(ps, 4, random.Random(1))
    assert len(drawn) == 4
    # the two deck cards come first, then reshuffled discards
    assert {c.instance_id for c in drawn[:2]} == {"d0", "d1"}
    assert all(c.instance_id.startswith("x") for c in drawn[2:])
    assert ps.discard == []
    assert len(ps.deck) == 3
    assert deck.card_count(ps) == ps.owned


def test_partial_draw_when_everything_is_exhausted() -> None:
    ps = _player(n_deck=1, n_discard=1)
    drawn = deck.draw(ps, 5, random.Random(2))
    assert len(drawn) == 2
    assert ps.deck == [] and ps.discard == []
    assert deck.draw(ps, 3, random.Random(2)) == []


def test_reshuffle_keeps_remaining_deck_on_top() -> None:
    ps = _player(n_deck=2, n_discard=3)
    deck.reshuffle(ps, random.Random(3))
    assert [c.instance_id for c in ps.deck[-2:]] == ["d0", "d1"]
    assert sorted(c.instance_id for c in ps.deck[:3]) == ["x0", "x1", "x2"]


def test_reshuffle_is_seeded() -> None:
    a = _player(n_discard=10)
    b = _player(n_discard=10)
    deck.reshuffle(a, random.Random(42))
    deck.reshuffle(b, random.Random(42))
    assert [c.instance_id for c in a.deck] == [c.instance_id for c in b.deck]


def test_discard_then_draw_round_trip() -> None:
    ps = _player(n_discard=5)
    deck.draw(ps, 5, random.Random(4))
    hand = {c.instance_id for c in ps.hand}
    assert deck.discard_hand(ps) == 5
    deck.draw(ps, 5, random.Random(5))
    assert {c.instance_id for c in ps.hand} == hand
    assert deck.card_count(ps) == 5


def test_discard_from_hand_is_bounded() -> None:
    ps = _player(n_deck=3)
    deck.draw(ps, 3, random.Random(0))
    lost = deck.discard_from_hand(ps, 5)
    assert len(lost) == 3
    assert ps.hand == []
    assert len(ps.discard) == 3


def test_play_area_and_cleanup_zones() -> None:
    ps = _player(n_deck=3)
    deck.draw(ps, 3, random.Random(0))
    played = deck.move_to_play_area(ps, "d2")
    assert played is not None and played.instance_id == "d2"
    assert deck.move_to_play_area(ps, "d2") is None
    deck.return_all_to_discard(ps)
    assert ps.hand == [] and ps.play_area == []
    assert len(ps.discard) == 3


def test_trash_removes_from_ownership() -> None:
    ps = _player(n_deck=2)
    deck.draw(ps, 2, random.Random(0))
    trash: list[CardInstance] = []
    card = deck.trash_from_hand(ps, "d1", trash)
    assert card is not None
    assert trash == [card]
    assert ps.owned == 1
    assert deck.card_count(ps) == ps.owned
    assert deck.trash_from_hand(ps, "d1", trash) is None
