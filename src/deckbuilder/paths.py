from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

USERDATA_ENV = "DECKBUILDER_USERDATA"


@dataclass(frozen=True)
class Paths:
    package_root: Path
    data_dir: Path
    schema_dir: Path
    userdata_dir: Path

    @property
    def telemetry_file(self) -> Path:
        return self.userdata_dir / "telemetry.jsonl"


def get_paths() -> Paths:
    """Locate bundled content and the writable userdata directory.

    Content ships inside the package so an installed copy finds it too.
    Userdata defaults to ./userdata and can be moved with $DECKBUILDER_USERDATA.
    """
    package_root = Path(__file__).resolve().parent
    data_dir = package_root / "data"
    override = os.environ.get(USERDATA_ENV)
    return Paths(
        package_root=package_root,
        data_dir=data_dir,
        schema_dir=data_dir / "schemas",
        userdata_dir=Path(override) if override else Path.cwd() / "userdata",
    )
