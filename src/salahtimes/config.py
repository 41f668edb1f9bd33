"""Runtime settings read from the environment (entry scripts load .env first)."""

import os
from dataclasses import dataclass
from pathlib import Path

_ROOT = Path(__file__).parent.parent.parent


@dataclass(frozen=True)
class Settings:
    """Where skyfield keeps its downloaded data files."""

    data_dir: Path  # skyfield Loader directory (ephemeris is downloaded here on first use)
    ephemeris: str  # JPL ephemeris filename ("de421.bsp")


def load_settings() -> Settings:
    """Build Settings from SALAHTIMES_DATA_DIR / SALAHTIMES_EPHEMERIS."""
    data_dir = os.environ.get("SALAHTIMES_DATA_DIR")
    return Settings(
        data_dir=Path(data_dir) if data_dir else _ROOT / "resources",
        ephemeris=os.environ.get("SALAHTIMES_EPHEMERIS", "de421.bsp"),
    )
