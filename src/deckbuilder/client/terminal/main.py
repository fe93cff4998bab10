from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from rich.console import Console
from rich.prompt import Prompt

from deckbuilder.engine.scheduler import SchedulerConfig
from deckbuilder.paths import get_paths
from deckbuilder.services.content import ContentService
from deckbuilder.services.session import MatchSession
from deckbuilder.services.telemetry import MatchRecorder, TelemetryService

from .app import TerminalApp


def _load_custom_cards(path: Path | None) -> list[object]:
    if path is None:
        return []
    raw = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("cards", [])
    return raw if isinstance(raw, list) else []


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="deckbuilder")
    parser.add_argument("--name", default="Player", help="your display name")
    parser.add_argument("--cpu-only", action="store_true", help="watch two autonomous players")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--delay", type=float, default=None, help="seconds between autonomous steps")
    parser.add_argument("--custom-cards", type=Path, default=None, help="JSON list of custom Action cards")
    parser.add_argument("--telemetry", action="store_true", help="append match events to userdata")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    paths = get_paths()
    content = ContentService(data_dir=paths.data_dir, schema_dir=paths.schema_dir)
    delay = args.delay if args.delay is not None else (0.0 if args.cpu_only else 0.6)
    session = MatchSession(
        content.load_cards_db(),
        content,
        scheduler_config=SchedulerConfig(step_delay=delay),
    )
    if args.telemetry:
        telemetry = TelemetryService(paths.telemetry_file)
        session.subscribe(MatchRecorder(telemetry))

    if args.cpu_only:
        names = ["CPU 1", "CPU 2"]
        humans = [False, False]
        human_id = None
    else:
        names = [args.name, "CPU"]
        humans = [True, False]
        human_id = "player_0"

    console = Console()

    def read_line(prompt: str) -> str:
        return Prompt.ask(prompt, console=console)

    app = TerminalApp(session, console, read_line, human_id)
    session.start_match(names, _load_custom_cards(args.custom_cards), humans=humans, seed=args.seed)
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
