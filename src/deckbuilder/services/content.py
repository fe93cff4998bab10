from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Mapping

from jsonschema import Draft202012Validator

from deckbuilder.engine.types import (
    CARD_TYPES,
    AttackEffect,
    CardDatabase,
    CardDefinition,
    CustomEffect,
    DrawEffect,
    Effect,
    GainActionEffect,
    GainBuyEffect,
    GainCardEffect,
    GainCoinEffect,
    SupplyEntry,
)

logger = logging.getLogger(__name__)

# Bounds enforced on authored cards before they reach the supply.
CUSTOM_NAME_MAX = 30
CUSTOM_DESCRIPTION_MAX = 200
CUSTOM_COST_MIN = 0
CUSTOM_COST_MAX = 10
CUSTOM_EFFECTS_MAX = 3
CUSTOM_EFFECT_VALUE_MIN = 1
CUSTOM_EFFECT_VALUE_MAX = 10


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def _load_schema(path: Path) -> object:
    return _load_json(path)


def _schema_errors(instance: object, schema: object) -> list[str]:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    out: list[str] = []
    for err in errors[:10]:
        loc = "/".join(str(p) for p in err.absolute_path)
        out.append(f"- {loc}: {err.message}")
    return out


def validate_json(instance: object, schema: object, *, context: str) -> None:
    errors = _schema_errors(instance, schema)
    if errors:
        raise ContentError("\n".join([f"Schema validation failed for {context}:", *errors]))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _optional_int(obj: Mapping[str, object], key: str, default: int = 0) -> int:
    v = obj.get(key, default)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _parse_effect(raw: Mapping[str, object]) -> Effect:
    t = raw.get("type")
    if not isinstance(t, str):
        raise ContentError("Effect missing type")
    value = _require_int(raw, "value")
    if t == "draw":
        return DrawEffect(type="draw", count=value)
    if t == "gain_coin":
        return GainCoinEffect(type="gain_coin", amount=value)
    if t == "gain_action":
        return GainActionEffect(type="gain_action", amount=value)
    if t == "gain_buy":
        return GainBuyEffect(type="gain_buy", amount=value)
    if t == "gain_card":
        return GainCardEffect(type="gain_card", count=value)
    if t == "attack":
        target = raw.get("target", "opponent")
        if target not in ("opponent", "all"):
            target = "opponent"
        return AttackEffect(type="attack", amount=value, target=target)  # type: ignore[arg-type]
    if t == "custom":
        return CustomEffect(type="custom", amount=value)
    raise ContentError(f"Unknown effect type: {t}")


def _parse_card(item: Mapping[str, object]) -> CardDefinition:
    ctype = _require_str(item, "type")
    if ctype not in CARD_TYPES:
        raise ContentError(f"Unknown card type: {ctype}")
    effects: list[Effect] = []
    effects_raw = item.get("effects", [])
    if isinstance(effects_raw, list):
        for eff in effects_raw:
            if isinstance(eff, dict):
                effects.append(_parse_effect(eff))
    return CardDefinition(
        id=_require_str(item, "id"),
        name=_require_str(item, "name"),
        type=ctype,  # type: ignore[arg-type]
        cost=_require_int(item, "cost"),
        effects=tuple(effects),
        victory_points=_optional_int(item, "victory_points"),
        description=str(item.get("description", "")),
    )


def _clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def _clamp_custom(item: Mapping[str, object]) -> dict[str, object]:
    effects: list[dict[str, object]] = []
    raw_effects = item.get("effects")
    assert isinstance(raw_effects, list)  # schema guarantees it
    for eff in raw_effects[:CUSTOM_EFFECTS_MAX]:
        out = dict(eff)
        out["value"] = _clamp(int(eff["value"]), CUSTOM_EFFECT_VALUE_MIN, CUSTOM_EFFECT_VALUE_MAX)
        if out["type"] == "attack" and out.get("target", "opponent") == "self":
            out["target"] = "opponent"
        effects.append(out)
    return {
        "id": str(item["id"]),
        "name": str(item["name"])[:CUSTOM_NAME_MAX],
        "type": "Action",
        "cost": _clamp(int(item["cost"]), CUSTOM_COST_MIN, CUSTOM_COST_MAX),
        "effects": effects,
        "description": str(item["description"])[:CUSTOM_DESCRIPTION_MAX],
    }


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_cards_db(self) -> CardDatabase:
        cards_path = self._data_dir / "cards.json"
        schema_path = self._schema_dir / "cards.schema.json"
        raw = _load_json(cards_path)
        schema = _load_schema(schema_path)
        validate_json(raw, schema, context=str(cards_path))

        if not isinstance(raw, dict):
            raise ContentError("cards.json must be an object")
        raw_cards = raw.get("cards")
        if not isinstance(raw_cards, list):
            raise ContentError("cards.json.cards must be a list")

        cards: dict[str, CardDefinition] = {}
        for item in raw_cards:
            if not isinstance(item, dict):
                continue
            card = _parse_card(item)
            cards[card.id] = card

        supply: list[SupplyEntry] = []
        raw_supply = raw.get("supply", [])
        if isinstance(raw_supply, list):
            for entry in raw_supply:
                if not isinstance(entry, dict):
                    continue
                card_id = _require_str(entry, "card_id")
                if card_id not in cards:
                    raise ContentError(f"Supply references unknown card: {card_id}")
                supply.append(
                    SupplyEntry(
                        card_id=card_id,
                        count=_optional_int(entry, "count"),
                        count_per_opponent=_optional_int(entry, "count_per_opponent"),
                    )
                )

        for required in ("copper", "estate"):
            if required not in cards:
                raise ContentError(f"Catalog is missing starting-deck card: {required}")
        return CardDatabase(cards=cards, supply=tuple(supply))

    def parse_custom_cards(
        self, raw_cards: Iterable[object] | None, *, limit: int = 3
    ) -> list[CardDefinition]:
        """Validate and clamp authored Action cards.

        Malformed entries are dropped with a warning; this never raises for bad
        input. At most `limit` cards are returned.
        """
        if not raw_cards:
            return []
        schema = _load_schema(self._schema_dir / "custom_card.schema.json")
        out: list[CardDefinition] = []
        seen: set[str] = set()
        for i, item in enumerate(raw_cards):
            if len(out) >= limit:
                logger.info("Ignoring custom cards beyond the first %d", limit)
                break
            errors = _schema_errors(item, schema)
            if errors:
                logger.warning("Dropping custom card #%d:\n%s", i, "\n".join(errors))
                continue
            assert isinstance(item, dict)
            declared = item.get("type", "Action")
            if declared != "Action":
                logger.warning("Dropping custom card %r: type %r is not Action", item.get("id"), declared)
                continue
            if item["id"] in seen:
                logger.warning("Dropping duplicate custom card %r", item["id"])
                continue
            try:
                card = _parse_card(_clamp_custom(item))
            except ContentError as e:
                logger.warning("Dropping custom card %r: %s", item.get("id"), e)
                continue
            seen.add(card.id)
            out.append(card)
        return out

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_cards_db()
        _ = _load_schema(self._schema_dir / "custom_card.schema.json")
