# src/cineplan/core/scoring.py

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from cineplan.core.feasibility import (
    build_timeline,
    describe_transition,
    empty_itinerary,
    fallback_diagnostics,
    itinerary_items,
    new_itinerary_id,
    transitions,
)
from cineplan.core.models import (
    WARNING_PREFIX,
    BreakInfo,
    Combination,
    FlexibilityConfig,
    SchedulePreferences,
    ScheduledItinerary,
)
from cineplan.core.timeutil import minutes_to_time, time_to_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringRules:
    baseline: float = 100.0
    conflict_penalty: float = 50.0
    short_break_penalty: float = 20.0
    meal_bonus: float = 10.0

    min_break: int = 5
    meal_break: int = 30
    lunch_hours: Tuple[int, int] = (11, 14)  # inclusive
    dinner_hours: Tuple[int, int] = (18, 21)

    preferred_start_close: int = 30
    preferred_start_close_bonus: float = 15.0
    preferred_start_near: int = 60
    preferred_start_near_bonus: float = 5.0

    late_night_cutoff: int = 22 * 60
    late_night_penalty: float = 20.0
    matinee_cutoff: int = 14 * 60
    matinee_bonus: float = 10.0

    max_continuous: int = 240
    long_day_multiplier: float = 1.5
    long_day_penalty: float = 30.0


DEFAULT_RULES = ScoringRules()


def classify_break(duration: int, starts_at: int, rules: ScoringRules = DEFAULT_RULES) -> str:
    """
    'meal' for a long break starting in the lunch or dinner hours, 'rest' for
    any other long break, 'travel' for a short one.
    """
    if duration < rules.meal_break:
        return "travel"
    hour = starts_at // 60
    lunch_lo, lunch_hi = rules.lunch_hours
    dinner_lo, dinner_hi = rules.dinner_hours
    if lunch_lo <= hour <= lunch_hi or dinner_lo <= hour <= dinner_hi:
        return "meal"
    return "rest"


def _preference_delta(
    first_start: int,
    last_end: int,
    preferences: SchedulePreferences,
    rules: ScoringRules,
) -> float:
    delta = 0.0

    if preferences.preferred_start_time:
        difference = abs(first_start - time_to_minutes(preferences.preferred_start_time))
        if difference <= rules.preferred_start_close:
            delta += rules.preferred_start_close_bonus
        elif difference <= rules.preferred_start_near:
            delta += rules.preferred_start_near_bonus

    if preferences.avoid_late_night and last_end > rules.late_night_cutoff:
        delta -= rules.late_night_penalty

    if preferences.prefer_matinee and first_start < rules.matinee_cutoff:
        delta += rules.matinee_bonus

    return delta


def itinerary_name(movie_count: int, breaks: List[BreakInfo], rules: ScoringRules = DEFAULT_RULES) -> str:
    if any(b.duration >= rules.meal_break for b in breaks):
        return f"Marathon: {movie_count} movies (with meal break)"
    if movie_count >= 3:
        return f"Marathon: {movie_count} movies (intensive)"
    if movie_count == 2:
        return "Double feature: 2 movies"
    return "Single session"


def optimize_combination(
    combination: Combination,
    flexibility: Optional[FlexibilityConfig] = None,
    preferences: Optional[SchedulePreferences] = None,
    index: int = 0,
    rules: ScoringRules = DEFAULT_RULES,
) -> ScheduledItinerary:
    """
    Feasibility analysis plus a desirability score. Higher is better, never
    below zero.

    Starts from `rules.baseline` and applies: conflicts, too-short breaks,
    meal breaks, the start-time/late-night/matinee preferences, and an
    over-long day. Timing and conflicts are the same as analyze_combination().
    """
    flexibility = flexibility or FlexibilityConfig()
    preferences = preferences or SchedulePreferences()

    if not combination:
        return replace(empty_itinerary(index), score=0.0)

    timeline = build_timeline(combination, flexibility)

    score = rules.baseline
    feasible = True
    diagnostics = fallback_diagnostics(timeline)
    breaks: List[BreakInfo] = []

    for tr in transitions(timeline, flexibility):
        diagnostics.append(describe_transition(tr, flexibility))
        if tr.conflict:
            feasible = False
            score -= rules.conflict_penalty
        elif tr.gap < rules.min_break:
            score -= rules.short_break_penalty
            if tr.gap < 0:
                warning = (
                    f"'{tr.current.title}' starts {-tr.gap} min before "
                    f"'{tr.previous.title}' lets out; only late entry makes it"
                )
            else:
                warning = (
                    f"only {tr.gap} min between '{tr.previous.title}' "
                    f"and '{tr.current.title}'"
                )
            diagnostics.append(f"{WARNING_PREFIX} {warning}")
        else:
            kind = classify_break(tr.gap, tr.previous.exit, rules)
            breaks.append(BreakInfo(after_movie=tr.previous.title, duration=tr.gap, kind=kind))
            if kind == "meal" and preferences.allow_meal_breaks:
                score += rules.meal_bonus

    first, last = timeline[0], timeline[-1]
    score += _preference_delta(first.start, last.end, preferences, rules)

    total_duration = last.end - first.start
    if total_duration > rules.max_continuous * rules.long_day_multiplier:
        score -= rules.long_day_penalty
        diagnostics.append(
            f"{WARNING_PREFIX} {total_duration} min is a very long day; "
            "consider splitting it across two days"
        )

    logger.debug("Combination %d scored %.1f (feasible=%s)", index, score, feasible)
    return ScheduledItinerary(
        id=new_itinerary_id(),
        name=itinerary_name(len(timeline), breaks, rules),
        items=itinerary_items(timeline, flexibility),
        start_time=minutes_to_time(first.start),
        end_time=minutes_to_time(last.end),
        total_duration=total_duration,
        diagnostics=diagnostics,
        feasible=feasible,
        score=max(0.0, score),
        breaks=breaks,
    )


def rank_by_score(
    itineraries: List[ScheduledItinerary],
    top_n: int = 15,
    min_score: Optional[float] = None,
) -> List[ScheduledItinerary]:
    """
    Best score first; equal scores keep generation order.
    """
    pool = itineraries
    if min_score is not None:
        pool = [it for it in itineraries if (it.score or 0.0) >= min_score]
    ranked = sorted(pool, key=lambda it: -(it.score or 0.0))
    return ranked[: max(0, int(top_n))]


def pick_recommended(ranked: List[ScheduledItinerary]) -> Optional[ScheduledItinerary]:
    if not ranked:
        return None
    return ranked[0]


def format_itinerary_label(itinerary: ScheduledItinerary) -> str:
    """
    Human-readable label for UI.
    """
    parts = [itinerary.name, f"{itinerary.start_time}-{itinerary.end_time}"]
    if itinerary.score is not None:
        parts.append(f"score {itinerary.score:.0f}")
    if not itinerary.feasible:
        parts.append("has conflicts")
    return " · ".join(parts)
