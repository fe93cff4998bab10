from __future__ import annotations

import time
from collections.abc import Callable

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from deckbuilder.engine.serialize import MatchSnapshot, PlayerView
from deckbuilder.services.session import MatchSession

HELP = (
    "Commands: play <n> | treasure <n> | treasures | buy <pile> | next | end | supply | help | quit\n"
    "  <n> is the hand position shown in brackets."
)

TYPE_STYLE = {
    "Action": "cyan",
    "Treasure": "yellow",
    "Victory": "green",
    "Curse": "magenta",
    "Custom": "cyan",
}


def _hand_text(p: PlayerView) -> str:
    if not p.hand:
        return "[dim](empty)[/dim]"
    parts = []
    for i, c in enumerate(p.hand):
        style = TYPE_STYLE.get(c.type, "white")
        parts.append(f"\\[{i}] [{style}]{c.name}[/{style}]")
    return "  ".join(parts)


def supply_table(snap: MatchSnapshot) -> Table:
    table = Table(title="Supply", box=box.SIMPLE)
    table.add_column("Pile")
    table.add_column("Type", style="dim")
    table.add_column("Cost", justify="right")
    table.add_column("Left", justify="right")
    for pile in snap.supply:
        left = f"[red]{pile.count}[/red]" if pile.count == 0 else str(pile.count)
        table.add_row(pile.supply_id, pile.type, str(pile.cost), left)
    return table


def rankings_table(snap: MatchSnapshot) -> Table:
    table = Table(title="Final standings", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Player")
    table.add_column("VP", justify="right")
    for r in snap.rankings:
        name = f"[bold]{r.name}[/bold]" if r.player_id == snap.winner else r.name
        table.add_row(str(r.rank), name, str(r.victory_points))
    return table


class MatchScreen:
    """Text presentation of one match. Reads snapshots, issues session commands."""

    def __init__(self, session: MatchSession, console: Console, human_id: str | None) -> None:
        self.session = session
        self.console = console
        self.human_id = human_id
        self._printed_log = 0
        self.quit = False
        self._commands: dict[str, Callable[[list[str]], None]] = {
            "play": self._play,
            "treasure": self._treasure,
            "treasures": self._all_treasures,
            "buy": self._buy,
            "next": self._next,
            "end": self._end,
            "supply": lambda _: self._print_supply(),
            "help": lambda _: self._say(HELP),
            "quit": self._quit,
        }
        session.subscribe(self.on_snapshot)

    def _say(self, text: str) -> None:
        self.console.print(text, markup=False, highlight=False)

    def _me(self) -> PlayerView | None:
        snap = self.session.snapshot()
        if snap is None or self.human_id is None:
            return None
        return snap.player(self.human_id)

    def _report(self, ok: bool, error: str | None) -> None:
        if not ok:
            self._say(f"! {error}")

    def _card_at(self, args: list[str]) -> str | None:
        me = self._me()
        if me is None or not args or not args[0].isdigit():
            self._say("! Give a hand position.")
            return None
        idx = int(args[0])
        if idx >= len(me.hand):
            self._say("! No card at that position.")
            return None
        return me.hand[idx].instance_id

    def _play(self, args: list[str]) -> None:
        cid = self._card_at(args)
        if cid is not None and self.human_id is not None:
            res = self.session.play_action_card(self.human_id, cid)
            self._report(res.ok, res.error)

    def _treasure(self, args: list[str]) -> None:
        cid = self._card_at(args)
        if cid is not None and self.human_id is not None:
            res = self.session.play_treasure_card(self.human_id, cid)
            self._report(res.ok, res.error)

    def _all_treasures(self, _: list[str]) -> None:
        me = self._me()
        if me is None or self.human_id is None:
            return
        for c in [c for c in me.hand if c.type == "Treasure"]:
            res = self.session.play_treasure_card(self.human_id, c.instance_id)
            if not res.ok:
                self._report(res.ok, res.error)
                return

    def _buy(self, args: list[str]) -> None:
        if not args or self.human_id is None:
            self._say("! Name a supply pile.")
            return
        res = self.session.buy_card(self.human_id, args[0])
        self._report(res.ok, res.error)

    def _next(self, _: list[str]) -> None:
        if self.human_id is not None:
            res = self.session.advance_phase(self.human_id)
            self._report(res.ok, res.error)

    def _end(self, _: list[str]) -> None:
        if self.human_id is not None:
            res = self.session.end_turn(self.human_id)
            self._report(res.ok, res.error)

    def _quit(self, _: list[str]) -> None:
        self.quit = True

    def handle_line(self, line: str) -> None:
        parts = line.strip().split()
        if not parts:
            return
        fn = self._commands.get(parts[0].lower())
        if fn is None:
            self._say(f"! Unknown command: {parts[0]}")
            return
        fn(parts[1:])

    def on_snapshot(self, snap: MatchSnapshot) -> None:
        for entry in snap.log[self._printed_log :]:
            detail = f" ({entry.detail})" if entry.detail else ""
            self._say(f"  t{entry.turn} {entry.actor}: {entry.action}{detail}")
        self._printed_log = len(snap.log)

    def _print_supply(self) -> None:
        snap = self.session.snapshot()
        if snap is not None:
            self.console.print(supply_table(snap))

    def render_prompt(self) -> str:
        snap = self.session.snapshot()
        me = self._me()
        if snap is not None and me is not None:
            title = (
                f"Turn {snap.turn} | {snap.phase} phase | "
                f"actions {me.actions} buys {me.buys} coins {me.coins} | VP {me.victory_points}"
            )
            self.console.print(Panel(_hand_text(me), title=title, border_style="blue", padding=(0, 1)))
        return "[dim]Command[/dim]"

    def render_result(self, snap: MatchSnapshot) -> None:
        self._say(f"\nMatch over ({snap.end_reason}). Winner: {snap.winner}")
        self.console.print(rankings_table(snap))


class TerminalApp:
    def __init__(
        self,
        session: MatchSession,
        console: Console,
        read_line: Callable[[str], str],
        human_id: str | None,
    ) -> None:
        self.session = session
        self.screen = MatchScreen(session, console, human_id)
        self.read_line = read_line
        self.human_id = human_id

    def run(self) -> int:
        delay = self.session.scheduler_config.step_delay
        while not self.screen.quit:
            snap = self.session.snapshot()
            if snap is None:
                return 1
            if snap.ended:
                self.screen.render_result(snap)
                return 0
            if self.session.autonomous_turn_active:
                time.sleep(delay)
                self.session.tick(delay)
                continue
            if snap.current_player != self.human_id:
                # Nobody to drive this seat (should not happen with a human seat).
                return 1
            try:
                line = self.read_line(self.screen.render_prompt())
            except EOFError:
                break
            self.screen.handle_line(line)
        self.session.close()
        return 0
