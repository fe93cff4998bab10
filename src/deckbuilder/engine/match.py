from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable, Literal, Sequence

from . import deck
from .actions import AdvancePhase, BuyCard, Command, EndTurn, PlayActionCard, PlayTreasureCard
from .scoring import EndReason, PlayerRanking, check_end, conclude, victory_points
from .supply import Supply, build_supply, take_from_pile
from .types import (
    AttackEffect,
    CardDatabase,
    CardDefinition,
    CardInstance,
    CustomEffect,
    DrawEffect,
    GainActionEffect,
    GainBuyEffect,
    GainCardEffect,
    GainCoinEffect,
    Phase,
)

Event = dict[str, object]

ErrorKind = Literal[
    "WrongPhase",
    "NotCurrentPlayer",
    "InsufficientResource",
    "CardNotFound",
    "SupplyExhausted",
    "MatchAlreadyEnded",
]


@dataclass(frozen=True)
class MatchConfig:
    starting_hand: int = 5
    starting_copper: int = 7
    starting_estate: int = 3
    max_custom_cards: int = 3
    custom_pile_size: int = 10
    empty_piles_to_end: int = 3
    max_turns: int | None = 50
    min_players: int = 2
    max_players: int = 4
    gained_card_id: str = "copper"  # what a gain_card effect hands out


@dataclass
class PlayerState:
    id: str
    name: str
    is_human: bool
    deck: list[CardInstance] = field(default_factory=list)
    hand: list[CardInstance] = field(default_factory=list)
    discard: list[CardInstance] = field(default_factory=list)
    play_area: list[CardInstance] = field(default_factory=list)
    actions: int = 1
    buys: int = 1
    coins: int = 0
    owned: int = 0  # cards ever granted minus cards trashed
    turns_taken: int = 0

    @property
    def victory_points(self) -> int:
        return victory_points(self)


@dataclass(frozen=True)
class LogEntry:
    turn: int
    actor: str
    action: str
    detail: str | None = None


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None
    error_kind: ErrorKind | None = None


def _fail(kind: ErrorKind, message: str) -> StepResult:
    return StepResult(ok=False, events=[], error=message, error_kind=kind)


@dataclass
class MatchState:
    cards: CardDatabase
    config: MatchConfig
    seed: int | None
    rng: random.Random
    players: list[PlayerState]
    supply: Supply
    current_player: int = 0
    turn: int = 1
    phase: Phase = "action"
    trash: list[CardInstance] = field(default_factory=list)
    log: list[LogEntry] = field(default_factory=list)
    action_log: list[Command] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)
    ended: bool = False
    winner: str | None = None
    end_reason: EndReason | None = None
    rankings: list[PlayerRanking] = field(default_factory=list)
    retired: bool = False
    next_instance: int = 0

    @property
    def current(self) -> PlayerState:
        return self.players[self.current_player]

    def get_player(self, player_id: str) -> PlayerState | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def opponents(self, player_id: str) -> list[PlayerState]:
        """Other players in turn order, starting after `player_id`."""
        idx = next(i for i, p in enumerate(self.players) if p.id == player_id)
        n = len(self.players)
        return [self.players[(idx + k) % n] for k in range(1, n)]


def mint_card(state: MatchState, card: CardDefinition, owner: PlayerState) -> CardInstance:
    inst = CardInstance(instance_id=f"{card.id}_{owner.id}_{state.next_instance}", card=card)
    state.next_instance += 1
    return inst


def _log(state: MatchState, actor: PlayerState, action: str, detail: str | None = None) -> None:
    state.log.append(LogEntry(turn=state.turn, actor=actor.id, action=action, detail=detail))


def _draw(state: MatchState, player: PlayerState, n: int) -> None:
    drawn = deck.draw(player, n, state.rng)
    state.event_log.append({"type": "CARDS_DRAWN", "player": player.id, "count": len(drawn)})


def _end(state: MatchState, reason: EndReason) -> None:
    conclude(state, reason)
    _log(state, state.current, "match_ended", f"{reason}; winner={state.winner}")


def _apply_effects(state: MatchState, player: PlayerState, card: CardDefinition) -> None:
    for eff in card.effects:
        if isinstance(eff, DrawEffect):
            _draw(state, player, eff.count)
        elif isinstance(eff, GainCoinEffect):
            player.coins += eff.amount
        elif isinstance(eff, GainActionEffect):
            player.actions += eff.amount
        elif isinstance(eff, GainBuyEffect):
            player.buys += eff.amount
        elif isinstance(eff, GainCardEffect):
            # Minted outside the supply: only purchases move pile counts.
            template = state.cards.get(state.config.gained_card_id)
            for _ in range(max(0, eff.count)):
                inst = mint_card(state, template, player)
                deck.gain_to_discard(player, inst)
                state.event_log.append({"type": "CARD_GAINED", "player": player.id, "card_id": template.id})
        elif isinstance(eff, AttackEffect):
            victims = state.opponents(player.id)
            if eff.target == "opponent":
                victims = victims[:1]
            for victim in victims:
                lost = deck.discard_from_hand(victim, eff.amount)
                state.event_log.append(
                    {"type": "CARDS_DISCARDED", "player": victim.id, "by": player.id, "count": len(lost)}
                )
        elif isinstance(eff, CustomEffect):
            state.event_log.append({"type": "CUSTOM_EFFECT", "player": player.id, "card_id": card.id})
        else:
            raise TypeError(f"Unhandled effect: {eff!r}")


def _play_action_card(state: MatchState, cmd: PlayActionCard) -> StepResult:
    ps = state.current
    if state.phase != "action":
        return _fail("WrongPhase", "Action cards can only be played in the action phase.")
    if ps.actions <= 0:
        return _fail("InsufficientResource", "No actions left.")
    idx = deck.find_in_hand(ps, cmd.card_id)
    if idx is None or ps.hand[idx].type != "Action":
        return _fail("CardNotFound", "No such action card in hand.")

    card = deck.move_to_play_area(ps, cmd.card_id)
    assert card is not None
    ps.actions -= 1
    state.event_log.append({"type": "CARD_PLAYED", "player": ps.id, "card_id": card.card_id})
    _log(state, ps, "play_action", card.card.name)
    _apply_effects(state, ps, card.card)
    return StepResult(ok=True, events=[])


def _play_treasure_card(state: MatchState, cmd: PlayTreasureCard) -> StepResult:
    ps = state.current
    if state.phase != "buy":
        return _fail("WrongPhase", "Treasures can only be played in the buy phase.")
    idx = deck.find_in_hand(ps, cmd.card_id)
    if idx is None or ps.hand[idx].type != "Treasure":
        return _fail("CardNotFound", "No such treasure in hand.")

    card = deck.move_to_play_area(ps, cmd.card_id)
    assert card is not None
    gained = card.card.coin_value
    ps.coins += gained
    state.event_log.append({"type": "TREASURE_PLAYED", "player": ps.id, "card_id": card.card_id, "coins": gained})
    _log(state, ps, "play_treasure", f"{card.card.name} +{gained} (total {ps.coins})")
    return StepResult(ok=True, events=[])


def _buy_card(state: MatchState, cmd: BuyCard) -> StepResult:
    ps = state.current
    if state.phase != "buy":
        return _fail("WrongPhase", "Cards can only be bought in the buy phase.")
    if ps.buys <= 0:
        return _fail("InsufficientResource", "No buys left.")
    pile = state.supply.get(cmd.supply_id)
    if pile is None:
        return _fail("CardNotFound", f"Unknown supply pile: {cmd.supply_id}")
    if pile.exhausted:
        return _fail("SupplyExhausted", f"{pile.card.name} is sold out.")
    if ps.coins < pile.cost:
        return _fail("InsufficientResource", f"Need {pile.cost} coins, have {ps.coins}.")

    ps.buys -= 1
    ps.coins -= pile.cost
    template = take_from_pile(state.supply, cmd.supply_id)
    inst = mint_card(state, template, ps)
    deck.gain_to_discard(ps, inst)
    state.event_log.append(
        {"type": "CARD_BOUGHT", "player": ps.id, "supply_id": cmd.supply_id, "remaining": pile.count}
    )
    _log(state, ps, "buy", f"{template.name} for {pile.cost} (coins left {ps.coins})")

    reason = check_end(state)
    if reason is not None:
        _end(state, reason)
    return StepResult(ok=True, events=[])


def _cleanup(state: MatchState) -> None:
    ps = state.current
    deck.return_all_to_discard(ps)
    _draw(state, ps, state.config.starting_hand)
    ps.actions = 1
    ps.buys = 1
    ps.coins = 0
    ps.turns_taken += 1
    _log(state, ps, "cleanup")

    state.current_player = (state.current_player + 1) % len(state.players)
    if state.current_player == 0:
        state.turn += 1
    state.phase = "action"
    state.event_log.append({"type": "TURN_STARTED", "player": state.current.id, "turn": state.turn})
    _log(state, state.current, "turn_started")

    reason = check_end(state, after_cleanup=True)
    if reason is not None:
        _end(state, reason)


def _advance_phase(state: MatchState) -> None:
    ps = state.current
    if state.phase == "action":
        state.phase = "buy"
        state.event_log.append({"type": "PHASE_CHANGED", "player": ps.id, "phase": "buy"})
        _log(state, ps, "advance_phase", "buy")
        return
    # buy -> cleanup, and cleanup always resolves straight into the next turn
    state.phase = "cleanup"
    state.event_log.append({"type": "PHASE_CHANGED", "player": ps.id, "phase": "cleanup"})
    _cleanup(state)


def _end_turn(state: MatchState) -> None:
    if state.phase == "action":
        _advance_phase(state)
    _advance_phase(state)


_COMMAND_TYPES = (PlayActionCard, PlayTreasureCard, BuyCard, AdvancePhase, EndTurn)


def step(state: MatchState, command: Command) -> StepResult:
    """Validate and apply one command.

    Mutates `state` in place. Every attempted command on a live match is
    appended to `action_log`, accepted or not, so `replay` reproduces the same
    sequence. Beyond that record, guard failures leave the state untouched and
    are reported through `StepResult.error_kind`; nothing here raises for a
    rejected command. Objects that are not commands at all raise TypeError.
    """
    if not isinstance(command, _COMMAND_TYPES):
        raise TypeError(f"Not a command: {command!r}")
    if state.ended or state.retired:
        return _fail("MatchAlreadyEnded", "Match already ended.")

    state.action_log.append(command)

    if command.player != state.current.id:
        return _fail("NotCurrentPlayer", "Not your turn.")

    before = len(state.event_log)
    if isinstance(command, PlayActionCard):
        result = _play_action_card(state, command)
    elif isinstance(command, PlayTreasureCard):
        result = _play_treasure_card(state, command)
    elif isinstance(command, BuyCard):
        result = _buy_card(state, command)
    elif isinstance(command, AdvancePhase):
        _advance_phase(state)
        result = StepResult(ok=True, events=[])
    else:
        _end_turn(state)
        result = StepResult(ok=True, events=[])

    if result.ok:
        result.events = state.event_log[before:]
    return result


def new_match(
    cards: CardDatabase,
    player_names: Sequence[str],
    *,
    humans: Sequence[bool] | None = None,
    custom_cards: Iterable[CardDefinition] = (),
    seed: int | None = None,
    config: MatchConfig | None = None,
) -> MatchState:
    """Build the supply, deal starting decks and hands, and open turn 1.

    By default the first seat is human and every other seat is autonomous.
    """
    cfg = config or MatchConfig()
    n = len(player_names)
    if n < cfg.min_players or n > cfg.max_players:
        raise ValueError(f"A match needs {cfg.min_players}-{cfg.max_players} players, got {n}.")
    if humans is None:
        humans = [i == 0 for i in range(n)]
    if len(humans) != n:
        raise ValueError("humans must have one flag per player.")

    rng = random.Random(seed)
    supply = build_supply(
        cards,
        n,
        list(custom_cards),
        max_custom=cfg.max_custom_cards,
        custom_pile_size=cfg.custom_pile_size,
    )
    players = [
        PlayerState(id=f"player_{i}", name=name, is_human=bool(humans[i]))
        for i, name in enumerate(player_names)
    ]
    state = MatchState(cards=cards, config=cfg, seed=seed, rng=rng, players=players, supply=supply)

    copper = cards.get("copper")
    estate = cards.get("estate")
    for ps in players:
        starting = [copper] * cfg.starting_copper + [estate] * cfg.starting_estate
        for template in starting:
            ps.deck.append(mint_card(state, template, ps))
            ps.owned += 1
        rng.shuffle(ps.deck)
        _draw(state, ps, cfg.starting_hand)

    state.event_log.append({"type": "TURN_STARTED", "player": state.current.id, "turn": state.turn})
    _log(state, state.current, "match_started", ", ".join(p.name for p in players))
    return state


def replay(
    cards: CardDatabase,
    player_names: Sequence[str],
    commands: Iterable[Command],
    *,
    humans: Sequence[bool] | None = None,
    custom_cards: Iterable[CardDefinition] = (),
    seed: int | None = None,
    config: MatchConfig | None = None,
) -> MatchState:
    state = new_match(
        cards, player_names, humans=humans, custom_cards=custom_cards, seed=seed, config=config
    )
    for c in commands:
        step(state, c)
        if state.ended:
            break
    return state
