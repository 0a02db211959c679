# src/cineplan/core/feasibility.py

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from cineplan.core.models import (
    CONFLICT_PREFIX,
    FALLBACK_PREFIX,
    SLACK_PREFIX,
    Combination,
    FlexibilityConfig,
    ItineraryItem,
    ParsedDuration,
    ScheduledItinerary,
    SessionPick,
)
from cineplan.core.timeutil import minutes_to_time, parse_duration, time_to_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimedSession:
    """A pick with its official and effective times, in minutes since 00:00."""

    pick: SessionPick
    duration: ParsedDuration
    start: int
    end: int
    entry_deadline: int
    exit: int

    @property
    def title(self) -> str:
        return self.pick.movie.title

    @property
    def occupied(self) -> int:
        return self.exit - self.start


@dataclass(frozen=True)
class Transition:
    previous: TimedSession
    current: TimedSession
    min_next_start: int  # earliest moment the next room can be entered

    @property
    def conflict(self) -> bool:
        return self.current.entry_deadline < self.min_next_start

    @property
    def shortfall(self) -> int:
        return max(0, self.min_next_start - self.current.entry_deadline)

    @property
    def slack(self) -> int:
        # Negative slack: arriving after the official start, inside the grace period.
        return self.current.start - self.min_next_start

    @property
    def gap(self) -> int:
        """Free minutes between leaving one room and the next official start."""
        return self.current.start - self.previous.exit


def new_itinerary_id() -> str:
    return uuid.uuid4().hex


def time_session(pick: SessionPick, flexibility: FlexibilityConfig) -> TimedSession:
    duration = parse_duration(pick.movie.duration)
    start = time_to_minutes(pick.showtime.time)
    return TimedSession(
        pick=pick,
        duration=duration,
        start=start,
        end=start + duration.minutes,
        entry_deadline=start + flexibility.allow_late_entry,
        # Leaving early never means leaving before the showing starts.
        exit=max(start, start + duration.minutes - flexibility.allow_early_exit),
    )


def build_timeline(combination: Combination, flexibility: FlexibilityConfig) -> List[TimedSession]:
    """
    Time every pick and order them by official start. sorted() is stable, so
    picks starting together keep their input order.
    """
    timed = [time_session(pick, flexibility) for pick in combination]
    return sorted(timed, key=lambda t: t.start)


def transitions(timeline: List[TimedSession], flexibility: FlexibilityConfig) -> List[Transition]:
    return [
        Transition(
            previous=prev,
            current=cur,
            min_next_start=prev.exit + flexibility.break_time,
        )
        for prev, cur in zip(timeline, timeline[1:])
    ]


def fallback_diagnostics(timeline: List[TimedSession]) -> List[str]:
    out: List[str] = []
    for t in timeline:
        if t.duration.defaulted:
            out.append(
                f"{FALLBACK_PREFIX} duration of '{t.title}' unavailable "
                f"({t.duration.raw!r}); assumed {t.duration.minutes} min"
            )
    return out


def describe_transition(tr: Transition, flexibility: FlexibilityConfig) -> str:
    prev, cur = tr.previous, tr.current
    if tr.conflict:
        return (
            f"{CONFLICT_PREFIX} '{prev.title}' ({minutes_to_time(prev.start)}) lets out at "
            f"{minutes_to_time(prev.exit)}; with a {flexibility.break_time} min break "
            f"'{cur.title}' cannot be entered before {minutes_to_time(tr.min_next_start)}, "
            f"but its {minutes_to_time(cur.start)} showing admits until "
            f"{minutes_to_time(cur.entry_deadline)} ({tr.shortfall} min short)"
        )
    if tr.slack >= 0:
        return (
            f"{SLACK_PREFIX} {tr.slack} min spare between '{prev.title}' and "
            f"'{cur.title}' ({minutes_to_time(cur.start)})"
        )
    return (
        f"{SLACK_PREFIX} entering '{cur.title}' {-tr.slack} min after its "
        f"{minutes_to_time(cur.start)} start (grace {flexibility.allow_late_entry} min)"
    )


def itinerary_items(timeline: List[TimedSession], flexibility: FlexibilityConfig) -> List[ItineraryItem]:
    last = len(timeline) - 1
    return [
        ItineraryItem(
            movie_id=t.pick.movie.id,
            movie_title=t.title,
            showtime_id=t.pick.showtime.id,
            order=i,
            start_time=minutes_to_time(t.start),
            end_time=minutes_to_time(t.end),
            entry_deadline=minutes_to_time(t.entry_deadline),
            exit_time=minutes_to_time(t.exit),
            duration_minutes=t.duration.minutes,
            gap_to_next=flexibility.break_time if i < last else 0,
            session_type=t.pick.showtime.session_type,
        )
        for i, t in enumerate(timeline)
    ]


def empty_itinerary(index: int = 0) -> ScheduledItinerary:
    return ScheduledItinerary(
        id=new_itinerary_id(),
        name=f"Itinerary {index + 1}",
        items=[],
        start_time="00:00",
        end_time="00:00",
        total_duration=0,
        diagnostics=[f"{CONFLICT_PREFIX} empty combination, nothing to schedule"],
        feasible=False,
    )


def analyze_combination(
    combination: Combination,
    flexibility: Optional[FlexibilityConfig] = None,
    index: int = 0,
) -> ScheduledItinerary:
    """
    Check whether a combination can be attended back to back.

    A pair conflicts when the next showing's entry deadline (start plus late
    entry allowance) falls before the previous exit (end minus early exit
    allowance) plus the break time. Raises MalformedTimeError if a showtime
    is not HH:MM.
    """
    flexibility = flexibility or FlexibilityConfig()
    if not combination:
        return empty_itinerary(index)

    timeline = build_timeline(combination, flexibility)

    diagnostics = fallback_diagnostics(timeline)
    feasible = True
    for tr in transitions(timeline, flexibility):
        diagnostics.append(describe_transition(tr, flexibility))
        if tr.conflict:
            feasible = False

    first, last = timeline[0], timeline[-1]
    itinerary = ScheduledItinerary(
        id=new_itinerary_id(),
        name=f"Itinerary {index + 1}",
        items=itinerary_items(timeline, flexibility),
        start_time=minutes_to_time(first.start),
        end_time=minutes_to_time(last.end),
        total_duration=last.end - first.start,
        diagnostics=diagnostics,
        feasible=feasible,
    )
    logger.debug(
        "Combination %d: feasible=%s span=%d min", index, feasible, itinerary.total_duration
    )
    return itinerary


def rank_by_feasibility(itineraries: List[ScheduledItinerary], top_n: int = 10) -> List[ScheduledItinerary]:
    """
    Feasible first, then shortest day first; generation order breaks ties.
    """
    ranked = sorted(itineraries, key=lambda it: (not it.feasible, it.total_duration))
    return ranked[: max(0, int(top_n))]
