# src/cineplan/core/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Union

CONFLICT_PREFIX = "CONFLICT:"
SLACK_PREFIX = "SLACK:"
FALLBACK_PREFIX = "FALLBACK:"
WARNING_PREFIX = "WARNING:"


@dataclass(frozen=True)
class Showtime:
    id: str
    time: str  # "HH:MM", hours above 23 mean past midnight
    session_type: Optional[str] = None  # e.g. "3D", "DUB", "LEG"


@dataclass(frozen=True)
class Movie:
    """Scheduling view of a movie: what the engine needs, nothing more."""

    id: str
    title: str
    duration: Union[int, str, None] = None  # minutes, or free text like "2h 10min"
    showtimes: List[Showtime] = field(default_factory=list)


@dataclass(frozen=True)
class SessionPick:
    """One entry of a combination: a movie and the showtime chosen for it."""

    movie: Movie
    showtime: Showtime


Combination = List[SessionPick]


@dataclass(frozen=True)
class FlexibilityConfig:
    allow_late_entry: int = 5  # grace after the official start
    allow_early_exit: int = 5  # minutes before the official end one may leave
    break_time: int = 5  # minimum gap between two attendances

    @classmethod
    def clamped(
        cls,
        allow_late_entry: Optional[int] = None,
        allow_early_exit: Optional[int] = None,
        break_time: Optional[int] = None,
    ) -> "FlexibilityConfig":
        """
        Build a config from loosely validated input, clamped to the bounds
        offered by the front end (0-30, 0-30, 0-60). Missing values use 5.
        """

        def _clamp(value: Optional[int], upper: int) -> int:
            if value is None:
                return 5
            return max(0, min(int(value), upper))

        return cls(
            allow_late_entry=_clamp(allow_late_entry, 30),
            allow_early_exit=_clamp(allow_early_exit, 30),
            break_time=_clamp(break_time, 60),
        )


@dataclass(frozen=True)
class SchedulePreferences:
    preferred_start_time: Optional[str] = None  # "HH:MM"
    avoid_late_night: bool = False
    prefer_matinee: bool = False
    allow_meal_breaks: bool = True

    @classmethod
    def default(cls) -> "SchedulePreferences":
        # What the schedule generation endpoint has always asked for.
        return cls(avoid_late_night=True, prefer_matinee=True, allow_meal_breaks=True)


class DurationSource(str, Enum):
    STRUCTURED = "structured"
    PARSED = "parsed"
    DEFAULTED = "defaulted"


@dataclass(frozen=True)
class ParsedDuration:
    minutes: int
    source: DurationSource
    raw: Union[int, str, None] = None

    @property
    def defaulted(self) -> bool:
        return self.source is DurationSource.DEFAULTED


@dataclass(frozen=True)
class ItineraryItem:
    movie_id: str
    movie_title: str
    showtime_id: str
    order: int
    start_time: str
    end_time: str
    entry_deadline: str
    exit_time: str
    duration_minutes: int
    gap_to_next: int = 0
    session_type: Optional[str] = None


@dataclass(frozen=True)
class BreakInfo:
    after_movie: str
    duration: int
    kind: str  # "travel" | "meal" | "rest"


@dataclass(frozen=True)
class ScheduledItinerary:
    """
    One recommended plan for the day.

    `score` and `breaks` are only filled in by the optimizer; the plain
    feasibility analysis leaves them as None / empty.
    """

    id: str
    name: str
    items: List[ItineraryItem]
    start_time: str
    end_time: str
    total_duration: int
    diagnostics: List[str] = field(default_factory=list)
    feasible: bool = True
    score: Optional[float] = None
    breaks: List[BreakInfo] = field(default_factory=list)

    @property
    def conflicts(self) -> List[str]:
        return [d for d in self.diagnostics if d.startswith(CONFLICT_PREFIX)]

    @property
    def notices(self) -> List[str]:
        return [d for d in self.diagnostics if not d.startswith(CONFLICT_PREFIX)]


@dataclass(frozen=True)
class CacheEntry:
    itinerary: ScheduledItinerary
    created_at: float  # epoch seconds
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class GenerationResult:
    itineraries: List[ScheduledItinerary] = field(default_factory=list)
    total_combinations: int = 0
    analyzed: int = 0
    diagnostics: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ShowtimeQuery:
    cinema_code: str
    play_date: date
    movie_ids: Optional[List[str]] = None
