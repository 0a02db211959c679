# src/cineplan/core/combinations.py

from __future__ import annotations

from typing import List

from cineplan.core.errors import InputError
from cineplan.core.models import Combination, Movie, SessionPick


def movies_with_showtimes(movies: List[Movie]) -> List[Movie]:
    return [m for m in movies if m.showtimes]


def count_combinations(movies: List[Movie], skip_empty: bool = True) -> int:
    """
    Size of the Cartesian product, without building it.
    """
    pool = movies_with_showtimes(movies) if skip_empty else list(movies)
    if not pool:
        return 0
    total = 1
    for movie in pool:
        total *= len(movie.showtimes)
    return total


def generate_combinations(movies: List[Movie], skip_empty: bool = True) -> List[Combination]:
    """
    Every way of picking exactly one showtime per movie.

    Input order is kept (movie order and showtime order) and nothing is
    deduplicated. Movies without showtimes are left out when `skip_empty`
    is set; otherwise they make the product empty.

    The product grows multiplicatively; use count_combinations() to bound it
    before calling this.
    """
    if not movies:
        raise InputError("No movies supplied")

    pool = movies_with_showtimes(movies) if skip_empty else list(movies)
    if not pool:
        raise InputError("None of the supplied movies has a showtime")

    combinations: List[Combination] = []

    def _expand(movie_index: int, current: Combination) -> None:
        if movie_index >= len(pool):
            combinations.append(list(current))
            return

        movie = pool[movie_index]
        for showtime in movie.showtimes:
            current.append(SessionPick(movie=movie, showtime=showtime))
            _expand(movie_index + 1, current)
            current.pop()

    _expand(0, [])
    return combinations
