from __future__ import annotations

from deckbuilder.engine.actions import AdvancePhase, BuyCard, Command, EndTurn, PlayActionCard
from deckbuilder.engine.match import MatchState, StepResult, mint_card, new_match, step
from deckbuilder.engine.scheduler import SchedulerConfig, TurnScheduler
from deckbuilder.paths import get_paths
from deckbuilder.services.content import ContentService


def _load_cards():
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return content.load_cards_db()


def _cpu_to_move(seed: int = 21) -> MatchState:
    state = new_match(_load_cards(), ["Alice", "Bot"], seed=seed)
    assert step(state, EndTurn(player="player_0")).ok
    assert state.current.id == "player_1"
    return state


class _Recorder:
    """Submit hook that records commands and can reject the first few."""

    def __init__(self, state: MatchState, reject: int = 0) -> None:
        self.state = state
        self.reject = reject
        self.commands: list[Command] = []

    def __call__(self, command: Command) -> StepResult:
        self.commands.append(command)
        if self.reject > 0:
            self.reject -= 1
            return StepResult(ok=False, events=[], error="rejected", error_kind="InsufficientResource")
        return step(self.state, command)


def test_autonomous_turn_runs_to_the_next_player() -> None:
    state = _cpu_to_move()
    sub = _Recorder(state)
    sched = TurnScheduler(state, "player_1", sub)
    results = sched.run_to_completion()

    assert sched.done
    assert not sched.aborted
    assert results and all(r.ok for r in results)
    assert state.current.id == "player_0"
    assert state.turn == 2
    assert state.phase == "action"
    assert len(state.players[1].hand) == 5
    assert sched.step() is None


def test_draw_card_played_before_any_purchase() -> None:
    state = _cpu_to_move()
    bot = state.players[1]
    smithy = mint_card(state, state.cards.get("smithy"), bot)
    bot.hand.append(smithy)
    bot.owned += 1

    sub = _Recorder(state)
    sched = TurnScheduler(state, "player_1", sub)

    first = sched.step()
    assert first is not None and first.ok
    assert sub.commands[0] == PlayActionCard(player="player_1", card_id=smithy.instance_id)
    assert len(bot.hand) == 5 + 1 - 1 + 3
    assert bot.actions == 0

    second = sched.step()
    assert second is not None and second.ok
    assert sub.commands[1] == AdvancePhase(player="player_1")
    assert state.phase == "buy"

    sched.run_to_completion()
    buys = [i for i, c in enumerate(sub.commands) if isinstance(c, BuyCard)]
    assert all(i > 1 for i in buys)


def test_rejected_step_abandons_and_forces_the_turn_forward() -> None:
    state = _cpu_to_move()
    sub = _Recorder(state, reject=1)
    sched = TurnScheduler(state, "player_1", sub)
    results = sched.run_to_completion()

    assert sched.aborted
    assert not results[0].ok
    assert all(r.ok for r in results[1:])
    assert all(c == AdvancePhase(player="player_1") for c in sub.commands[1:])
    assert state.current.id == "player_0"


def test_scheduler_stops_when_nothing_is_accepted() -> None:
    state = _cpu_to_move()
    sub = _Recorder(state, reject=100)
    sched = TurnScheduler(state, "player_1", sub)
    results = sched.run_to_completion()

    assert sched.done and sched.aborted
    assert len(results) == 2
    assert state.current.id == "player_1"


def test_tick_honours_step_delay() -> None:
    state = _cpu_to_move()
    sub = _Recorder(state)
    sched = TurnScheduler(state, "player_1", sub, config=SchedulerConfig(step_delay=1.0))

    assert sched.tick(0.5) == []
    assert sub.commands == []
    assert len(sched.tick(0.5)) == 1
    assert len(sub.commands) == 1

    sched.tick(100.0)
    assert sched.done
    assert state.current.id == "player_0"


def test_cancel_abandons_pending_steps() -> None:
    state = _cpu_to_move()
    sub = _Recorder(state)
    sched = TurnScheduler(state, "player_1", sub)
    assert sched.step() is not None
    submitted = len(sub.commands)

    sched.cancel()
    assert sched.done
    assert sched.step() is None
    assert sched.run_to_completion() == []
    assert len(sub.commands) == submitted
    assert state.current.id == "player_1"


def test_retired_match_submits_nothing() -> None:
    state = _cpu_to_move()
    state.retired = True
    sub = _Recorder(state)
    sched = TurnScheduler(state, "player_1", sub)
    assert sched.step() is None
    assert sched.done
    assert sub.commands == []


def test_scheduler_for_someone_else_does_nothing() -> None:
    state = _cpu_to_move()
    sub = _Recorder(state)
    sched = TurnScheduler(state, "player_0", sub)
    assert sched.run_to_completion() == []
    assert sub.commands == []


def test_cancel_from_inside_submit() -> None:
    state = _cpu_to_move()
    commands: list[Command] = []
    sched: TurnScheduler

    def submit(command: Command) -> StepResult:
        commands.append(command)
        result = step(state, command)
        sched.cancel()
        return result

    sched = TurnScheduler(state, "player_1", submit)
    first = sched.step()
    assert first is not None and first.ok
    assert sched.done
    assert sched.step() is None
    assert sched.run_to_completion() == []
    assert len(commands) == 1
    assert state.current.id == "player_1"
