from __future__ import annotations

from deckbuilder.paths import get_paths
from deckbuilder.services.content import ContentService


def _content() -> ContentService:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir)


def _custom(**overrides: object) -> dict[str, object]:
    card: dict[str, object] = {
        "id": "sprint",
        "name": "Sprint",
        "type": "Action",
        "cost": 4,
        "effects": [{"type": "draw", "value": 2}],
        "description": "+2 Cards",
    }
    card.update(overrides)
    return card


def test_content_schemas_validate() -> None:
    _content().validate_all()


def test_catalog_has_base_set() -> None:
    cards = _content().load_cards_db()
    assert cards.get("smithy").total("draw") == 3
    assert cards.get("gold").coin_value == 3
    assert cards.get("province").victory_points == 6
    assert cards.get("curse").victory_points == -1
    assert [e.card_id for e in cards.supply][:3] == ["copper", "silver", "gold"]


def test_custom_card_values_are_clamped() -> None:
    raw = _custom(
        name="X" * 50,
        cost=15,
        description="d" * 300,
        effects=[
            {"type": "gain_coin", "value": 0},
            {"type": "draw", "value": 40},
            {"type": "attack", "value": 2, "target": "self"},
            {"type": "gain_buy", "value": 1},
        ],
    )
    (card,) = _content().parse_custom_cards([raw])
    assert card.type == "Action"
    assert card.cost == 10
    assert len(card.name) == 30
    assert len(card.description) == 200
    assert len(card.effects) == 3
    coin, draw, attack = card.effects
    assert coin.amount == 1
    assert draw.count == 10
    assert attack.type == "attack"
    assert attack.target == "opponent"


def test_negative_cost_clamps_to_zero() -> None:
    (card,) = _content().parse_custom_cards([_custom(cost=-3)])
    assert card.cost == 0


def test_malformed_custom_cards_are_dropped() -> None:
    raws = [
        "not a card",
        _custom(id="no_effects", effects=[]),
        _custom(id="bad_effect", effects=[{"type": "teleport", "value": 1}]),
        _custom(id="treasure", type="Treasure"),
        {"id": "missing_fields"},
        _custom(id="good"),
        _custom(id="good", name="Duplicate"),
    ]
    cards = _content().parse_custom_cards(raws)
    assert [c.id for c in cards] == ["good"]


def test_custom_cards_are_capped() -> None:
    raws = [_custom(id=f"c{i}") for i in range(5)]
    cards = _content().parse_custom_cards(raws, limit=3)
    assert [c.id for c in cards] == ["c0", "c1", "c2"]


def test_no_custom_cards() -> None:
    assert _content().parse_custom_cards(None) == []
    assert _content().parse_custom_cards([]) == []
