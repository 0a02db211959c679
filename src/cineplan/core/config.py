# src/cineplan/core/config.py

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_DB_PATH = os.path.join("data", "schedules.sqlite")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    cache_ttl_seconds: int = 2 * 60 * 60
    db_path: str = DEFAULT_DB_PATH
    plain_top_n: int = 10
    optimized_top_n: int = 15
    max_combinations: int = 50_000
    showtimes_url: Optional[str] = None
    showtimes_csv: Optional[str] = None


def load_settings() -> Settings:
    """
    Settings from the environment, falling back to the defaults above.
    """
    return Settings(
        cache_ttl_seconds=_int_env("CINEPLAN_CACHE_TTL_SECONDS", 2 * 60 * 60),
        db_path=os.getenv("CINEPLAN_DB_PATH", "").strip() or DEFAULT_DB_PATH,
        plain_top_n=_int_env("CINEPLAN_PLAIN_TOP_N", 10),
        optimized_top_n=_int_env("CINEPLAN_OPTIMIZED_TOP_N", 15),
        max_combinations=_int_env("CINEPLAN_MAX_COMBINATIONS", 50_000),
        showtimes_url=os.getenv("CINEPLAN_SHOWTIMES_URL", "").strip() or None,
        showtimes_csv=os.getenv("CINEPLAN_SHOWTIMES_CSV", "").strip() or None,
    )
