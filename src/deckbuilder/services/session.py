"""One match, its subscribers, and the autonomous turns that run inside it.

`MatchSession` is the command surface the UI talks to. Every successful
command (human or autonomous) is followed by exactly one snapshot delivery to
every subscriber, in submission order.

Commands issued from inside a subscriber callback are queued and applied once
the current delivery has finished, so only one mutation is ever in flight.
The `StepResult` returned for a queued command is filled in when it runs.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable, Sequence

from deckbuilder.engine.actions import (
    AdvancePhase,
    BuyCard,
    Command,
    EndTurn,
    PlayActionCard,
    PlayTreasureCard,
)
from deckbuilder.engine.ai import AISpec
from deckbuilder.engine.match import MatchConfig, MatchState, StepResult, new_match, step
from deckbuilder.engine.scheduler import SchedulerConfig, TurnScheduler
from deckbuilder.engine.serialize import MatchSnapshot, command_to_dict, snapshot
from deckbuilder.engine.types import CardDatabase
from deckbuilder.paths import Paths, get_paths
from deckbuilder.services.content import ContentService

logger = logging.getLogger(__name__)

Subscriber = Callable[[MatchSnapshot], None]


class MatchSession:
    def __init__(
        self,
        cards: CardDatabase,
        content: ContentService,
        *,
        config: MatchConfig | None = None,
        ai_spec: AISpec | None = None,
        scheduler_config: SchedulerConfig | None = None,
    ) -> None:
        self.cards = cards
        self.content = content
        self.config = config or MatchConfig()
        self.ai_spec = ai_spec or AISpec()
        self.scheduler_config = scheduler_config or SchedulerConfig()
        self.state: MatchState | None = None
        self._subscribers: list[Subscriber] = []
        self._scheduler: TurnScheduler | None = None
        self._last: MatchSnapshot | None = None
        self._dispatching = False
        self._queued: deque[tuple[Command, StepResult]] = deque()

    @classmethod
    def from_paths(cls, paths: Paths | None = None, **kwargs: object) -> "MatchSession":
        paths = paths or get_paths()
        content = ContentService(paths.data_dir, paths.schema_dir)
        return cls(content.load_cards_db(), content, **kwargs)  # type: ignore[arg-type]

    # --- subscriptions -------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self) -> None:
        assert self.state is not None
        snap = snapshot(self.state)
        self._last = snap
        self._dispatching = True
        try:
            for cb in list(self._subscribers):
                try:
                    cb(snap)
                except Exception:
                    logger.exception("Snapshot subscriber %r failed", cb)
        finally:
            self._dispatching = False
        self._drain()

    def _drain(self) -> None:
        while self._queued and not self._dispatching:
            command, pending = self._queued.popleft()
            result = self._apply(command)
            pending.ok = result.ok
            pending.events = result.events
            pending.error = result.error
            pending.error_kind = result.error_kind

    # --- lifecycle -----------------------------------------------------

    def start_match(
        self,
        player_names: Sequence[str],
        custom_cards: Iterable[object] | None = None,
        *,
        humans: Sequence[bool] | None = None,
        seed: int | None = None,
    ) -> MatchSnapshot:
        self.close()
        self._queued.clear()
        customs = self.content.parse_custom_cards(custom_cards, limit=self.config.max_custom_cards)
        self.state = new_match(
            self.cards,
            player_names,
            humans=humans,
            custom_cards=customs,
            seed=seed,
            config=self.config,
        )
        logger.info(
            "Match started: %s (custom piles: %s)",
            ", ".join(player_names),
            ", ".join(c.id for c in customs) or "none",
        )
        self._publish()
        self._after_command()
        assert self._last is not None
        return self._last

    def close(self) -> None:
        """Retire the current match. Pending autonomous steps are abandoned.

        Safe to call from a subscriber, including during an autonomous step.
        """
        if self.state is not None:
            self.state.retired = True
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None:
            scheduler.cancel()

    # --- commands ------------------------------------------------------

    def play_action_card(self, player_id: str, card_id: str) -> StepResult:
        return self._command(PlayActionCard(player=player_id, card_id=card_id))

    def play_treasure_card(self, player_id: str, card_id: str) -> StepResult:
        return self._command(PlayTreasureCard(player=player_id, card_id=card_id))

    def buy_card(self, player_id: str, supply_id: str) -> StepResult:
        return self._command(BuyCard(player=player_id, supply_id=supply_id))

    def advance_phase(self, player_id: str) -> StepResult:
        return self._command(AdvancePhase(player=player_id))

    def end_turn(self, player_id: str) -> StepResult:
        return self._command(EndTurn(player=player_id))

    def _command(self, command: Command) -> StepResult:
        result = self._submit(command)
        if result.ok and not self._dispatching:
            self._after_command()
        return result

    def _submit(self, command: Command) -> StepResult:
        if self.state is None:
            return StepResult(
                ok=False, events=[], error="No match in progress.", error_kind="MatchAlreadyEnded"
            )
        if self._dispatching:
            pending = StepResult(ok=False, events=[], error="Queued behind snapshot delivery.")
            self._queued.append((command, pending))
            return pending
        return self._apply(command)

    def _apply(self, command: Command) -> StepResult:
        assert self.state is not None
        result = step(self.state, command)
        if result.ok:
            self._publish()
        else:
            logger.info(
                "Rejected %s: %s (%s)", command_to_dict(command), result.error, result.error_kind
            )
        return result

    # --- autonomous turns ----------------------------------------------

    def _after_command(self) -> None:
        self._schedule_autonomous()
        if self.scheduler_config.inline:
            self.run_autonomous()

    def _schedule_autonomous(self) -> None:
        if self._scheduler is not None and not self._scheduler.done:
            return
        self._scheduler = None
        s = self.state
        if s is None or s.ended or s.retired or s.current.is_human:
            return
        logger.debug("Scheduling autonomous turn for %s", s.current.id)
        self._scheduler = TurnScheduler(
            s,
            s.current.id,
            self._submit,
            spec=self.ai_spec,
            config=self.scheduler_config,
        )

    def tick(self, dt: float) -> list[StepResult]:
        """Let the host loop advance the autonomous turn by `dt` seconds."""
        scheduler = self._scheduler
        if scheduler is None or self._dispatching:
            return []
        results = scheduler.tick(dt)
        if scheduler.done and self._scheduler is scheduler:
            self._scheduler = None
            self._schedule_autonomous()
        return results

    def run_autonomous(self) -> None:
        """Finish every pending autonomous turn now, ignoring presentation delays."""
        if self._dispatching:
            return
        while self._scheduler is not None:
            scheduler = self._scheduler
            scheduler.run_to_completion()
            if self._scheduler is scheduler:
                self._scheduler = None
                self._schedule_autonomous()

    @property
    def autonomous_turn_active(self) -> bool:
        return self._scheduler is not None and not self._scheduler.done

    # --- queries -------------------------------------------------------

    def current_player_id(self) -> str | None:
        return self.state.current.id if self.state is not None else None

    def is_human(self, player_id: str) -> bool:
        if self.state is None:
            return False
        p = self.state.get_player(player_id)
        return p is not None and p.is_human

    def snapshot(self) -> MatchSnapshot | None:
        return self._last
