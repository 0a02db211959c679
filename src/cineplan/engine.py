from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from cineplan.core.combinations import count_combinations, generate_combinations
from cineplan.core.config import Settings
from cineplan.core.errors import InputError, MalformedTimeError, ScheduleNotFoundError
from cineplan.core.feasibility import analyze_combination, rank_by_feasibility
from cineplan.core.models import (
    FlexibilityConfig,
    GenerationResult,
    Movie,
    SchedulePreferences,
    ScheduledItinerary,
    ShowtimeQuery,
)
from cineplan.core.scoring import optimize_combination, rank_by_score
from cineplan.core.timeutil import time_to_minutes
from cineplan.providers.base import ShowtimeProvider
from cineplan.services.result_cache import ItineraryCache

logger = logging.getLogger(__name__)

SKIPPED_PREFIX = "SKIPPED:"
EXCLUDED_PREFIX = "EXCLUDED:"


def generate_schedules(
    movies: List[Movie],
    flexibility: Optional[FlexibilityConfig] = None,
    preferences: Optional[SchedulePreferences] = None,
    *,
    optimize: bool = True,
    cache: Optional[ItineraryCache] = None,
    settings: Optional[Settings] = None,
    min_score: Optional[float] = None,
) -> GenerationResult:
    """
    Build, check and rank every showtime combination for the given movies.

    optimize=True scores each plan (preferences, breaks, day length) and keeps
    the best `settings.optimized_top_n`; optimize=False only checks
    feasibility and keeps `settings.plain_top_n`, feasible and shortest first.

    Never raises for bad input: no movies, too many combinations, or every
    combination excluded all come back as GenerationResult.error. A
    combination with a malformed showtime is dropped and noted in
    GenerationResult.diagnostics without stopping the batch.

    When a cache is given the returned itineraries are stored in it, so a
    later save can find them by id.
    """
    settings = settings or Settings()
    flexibility = flexibility or FlexibilityConfig()
    preferences = preferences or SchedulePreferences.default()

    diagnostics: List[str] = [
        f"{SKIPPED_PREFIX} '{m.title}' has no showtimes" for m in movies if not m.showtimes
    ]

    if optimize and preferences.preferred_start_time:
        try:
            time_to_minutes(preferences.preferred_start_time)
        except MalformedTimeError as exc:
            logger.info("Rejecting preferences: %s", exc)
            return GenerationResult(
                diagnostics=diagnostics, error=f"Invalid preferred start time: {exc}"
            )

    total = count_combinations(movies)
    if total > settings.max_combinations:
        logger.warning(
            "Refusing to expand %d combinations (limit %d)", total, settings.max_combinations
        )
        return GenerationResult(
            total_combinations=total,
            diagnostics=diagnostics,
            error=(
                f"Too many combinations ({total}); select fewer movies "
                f"(limit {settings.max_combinations})"
            ),
        )

    try:
        combinations = generate_combinations(movies)
    except InputError as exc:
        logger.info("No valid combinations: %s", exc)
        return GenerationResult(diagnostics=diagnostics, error=f"No valid combinations: {exc}")

    logger.info("Analysing %d possible combinations...", len(combinations))

    analyzed: List[ScheduledItinerary] = []
    for index, combination in enumerate(combinations):
        try:
            if optimize:
                itinerary = optimize_combination(combination, flexibility, preferences, index)
            else:
                itinerary = analyze_combination(combination, flexibility, index)
        except MalformedTimeError as exc:
            logger.warning("Excluding combination %d: %s", index + 1, exc)
            diagnostics.append(f"{EXCLUDED_PREFIX} combination {index + 1}: {exc}")
            continue
        analyzed.append(itinerary)

    if not analyzed:
        return GenerationResult(
            total_combinations=len(combinations),
            diagnostics=diagnostics,
            error="No valid combinations: every combination was excluded",
        )

    if optimize:
        ranked = rank_by_score(analyzed, settings.optimized_top_n, min_score=min_score)
    else:
        ranked = rank_by_feasibility(analyzed, settings.plain_top_n)

    if cache is not None:
        cache.put_many(ranked)

    feasible = sum(1 for it in analyzed if it.feasible)
    logger.info(
        "%d of %d combinations feasible; returning %d", feasible, len(analyzed), len(ranked)
    )
    return GenerationResult(
        itineraries=ranked,
        total_combinations=len(combinations),
        analyzed=len(analyzed),
        diagnostics=diagnostics,
    )


def plan_day(
    provider: ShowtimeProvider,
    query: ShowtimeQuery,
    flexibility: Optional[FlexibilityConfig] = None,
    preferences: Optional[SchedulePreferences] = None,
    **kwargs,
) -> GenerationResult:
    """
    Fetch the requested movies from a showtime source and plan them.
    """
    movies = movies_for_query(provider, query)
    if not movies:
        return GenerationResult(
            error=f"No movies found for cinema {query.cinema_code} on {query.play_date.isoformat()}"
        )
    return generate_schedules(movies, flexibility, preferences, **kwargs)


def movies_for_query(provider: ShowtimeProvider, query: ShowtimeQuery) -> List[Movie]:
    movies = provider.fetch_movies(query)
    logger.info(
        "%d movies for cinema %s on %s", len(movies), query.cinema_code, query.play_date.isoformat()
    )
    return movies


def replan_schedule(
    provider: ShowtimeProvider,
    store,
    schedule_id: str,
    *,
    user_id: str,
    movie_ids: List[str],
    flexibility: Optional[FlexibilityConfig] = None,
    **kwargs,
) -> Tuple[Dict[str, Any], GenerationResult]:
    """
    Fresh recommendations for a saved schedule with a different set of movies.

    Showtimes are fetched again for the schedule's cinema and day and ranked
    feasible and shortest first. The saved schedule itself is left untouched;
    returns it alongside the new result. Raises ScheduleNotFoundError if the
    user has no such schedule and InputError for an empty movie list.
    """
    schedule = store.get_schedule(schedule_id, user_id)
    if schedule is None:
        raise ScheduleNotFoundError(schedule_id)
    if not movie_ids:
        raise InputError("Select at least one movie to re-plan")

    query = ShowtimeQuery(
        cinema_code=schedule["cinema_code"],
        play_date=schedule["play_date"],
        movie_ids=list(movie_ids),
    )
    logger.info("Re-planning schedule %s with %d movies", schedule_id, len(query.movie_ids))
    result = plan_day(provider, query, flexibility, optimize=False, **kwargs)
    return schedule, result


def save_selected_schedule(
    cache: ItineraryCache,
    store,
    itinerary_id: str,
    *,
    user_id: str,
    cinema_code: str,
    play_date: date,
    name: Optional[str] = None,
) -> str:
    """
    Persist the itinerary the user picked and return the saved schedule id.

    Raises ItineraryNotFoundError if it is no longer cached; the caller should
    regenerate. `store` is anything with SqliteScheduleStore.save_schedule().
    """
    itinerary = cache.require(itinerary_id)
    schedule_id = store.save_schedule(
        itinerary,
        user_id=user_id,
        cinema_code=cinema_code,
        play_date=play_date,
        name=name or itinerary.name,
    )
    logger.info("Saved itinerary %s as schedule %s for %s", itinerary_id, schedule_id, user_id)
    return schedule_id
