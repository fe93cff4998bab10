from __future__ import annotations

import io
import json

from rich.console import Console

from deckbuilder.client.terminal.app import MatchScreen, TerminalApp, rankings_table, supply_table
from deckbuilder.client.terminal.main import main
from deckbuilder.engine.scheduler import SchedulerConfig
from deckbuilder.paths import get_paths
from deckbuilder.services.content import ContentService
from deckbuilder.services.session import MatchSession


def _session() -> MatchSession:
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return MatchSession(content.load_cards_db(), content, scheduler_config=SchedulerConfig(inline=True))


def _console() -> tuple[Console, io.StringIO]:
    out = io.StringIO()
    return Console(file=out, width=120, color_system=None), out


def _script(lines: list[str]):
    it = iter(lines)

    def read_line(prompt: str) -> str:
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None

    return read_line


def test_screen_reports_rejections() -> None:
    s = _session()
    console, out = _console()
    screen = MatchScreen(s, console, "player_0")
    s.start_match(["Alice", "Bot"], seed=1)

    screen.handle_line("buy province")
    screen.handle_line("dance")
    screen.handle_line("play 99")
    text = out.getvalue()
    assert "! Cards can only be bought in the buy phase." in text
    assert "! Unknown command: dance" in text
    assert "! No card at that position." in text


def test_screen_plays_treasures_and_prints_log() -> None:
    s = _session()
    console, out = _console()
    screen = MatchScreen(s, console, "player_0")
    s.start_match(["Alice", "Bot"], seed=1)

    screen.handle_line("next")
    screen.handle_line("treasures")
    me = s.snapshot().player("player_0")
    assert me.coins > 0
    assert all(c.type != "Treasure" for c in me.hand)
    assert "play_treasure" in out.getvalue()


def test_app_runs_until_quit() -> None:
    s = _session()
    console, out = _console()
    app = TerminalApp(s, console, _script(["next", "end", "quit"]), "player_0")
    s.start_match(["Alice", "Bot"], seed=2)
    assert app.run() == 0
    assert s.snapshot().turn == 2
    assert s.state is not None and s.state.retired


def test_cpu_only_cli(capsys) -> None:
    assert main(["--cpu-only", "--seed", "3", "--delay", "0"]) == 0
    assert "Match over" in capsys.readouterr().out


def test_telemetry_lands_in_userdata(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("DECKBUILDER_USERDATA", str(tmp_path))
    assert get_paths().telemetry_file == tmp_path / "telemetry.jsonl"

    assert main(["--cpu-only", "--seed", "4", "--delay", "0", "--telemetry"]) == 0
    records = [json.loads(line) for line in get_paths().telemetry_file.read_text(encoding="utf-8").splitlines()]
    assert records[-1]["type"] == "match_result"
    assert records[-1]["payload"]["winner"] is not None


def test_supply_and_standings_render_as_tables() -> None:
    s = _session()
    console, out = _console()
    screen = MatchScreen(s, console, "player_0")
    snap = s.start_match(["Alice", "Bot"], seed=1)

    assert supply_table(snap).row_count == len(snap.supply)
    screen.handle_line("supply")
    text = out.getvalue()
    assert "Supply" in text
    assert "province" in text and "woodcutter" in text

    s.close()
    cpu = _session()
    final = cpu.start_match(["CPU 1", "CPU 2"], humans=[False, False], seed=6)
    assert final.ended
    assert rankings_table(final).row_count == 2
    screen.render_result(final)
    assert "Final standings" in out.getvalue()
    assert "CPU 1" in out.getvalue()


def test_prompt_shows_hand_panel() -> None:
    s = _session()
    console, out = _console()
    screen = MatchScreen(s, console, "player_0")
    s.start_match(["Alice", "Bot"], seed=1)
    screen.render_prompt()
    text = out.getvalue()
    assert "Turn 1 | action phase" in text
    assert "[0]" in text
