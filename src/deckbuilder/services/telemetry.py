from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from deckbuilder.engine.serialize import MatchSnapshot


@dataclass
class TelemetryService:
    path: Path

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")


class MatchRecorder:
    """Snapshot subscriber that appends new match log entries to telemetry."""

    def __init__(self, telemetry: TelemetryService) -> None:
        self.telemetry = telemetry
        self._seen = 0
        self._reported_end = False

    def __call__(self, snap: MatchSnapshot) -> None:
        for entry in snap.log[self._seen :]:
            self.telemetry.log("match_log", asdict(entry))
        self._seen = len(snap.log)
        if snap.ended and not self._reported_end:
            self._reported_end = True
            self.telemetry.log(
                "match_result",
                {
                    "winner": snap.winner,
                    "reason": snap.end_reason,
                    "rankings": [asdict(r) for r in snap.rankings],
                },
            )
