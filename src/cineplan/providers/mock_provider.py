# src/cineplan/providers/mock_provider.py

from __future__ import annotations

from typing import Any, Dict, List

from cineplan.core.models import Movie, Showtime, ShowtimeQuery
from cineplan.providers.base import ShowtimeProvider

# Fixed programme, the same for every cinema and day.
MOCK_PROGRAMME: List[Dict[str, Any]] = [
    {
        "movie_id": "dune-2",
        "title": "Dune: Part Two",
        "duration": "2h 46min",
        "times": [("13:00", "LEG"), ("16:30", "DUB"), ("20:00", "IMAX")],
    },
    {
        "movie_id": "inside-out-2",
        "title": "Inside Out 2",
        "duration": "1h 36min",
        "times": [("11:10", "DUB"), ("14:00", "DUB"), ("17:45", "LEG")],
    },
    {
        "movie_id": "the-substance",
        "title": "The Substance",
        "duration": 141,
        "times": [("15:20", "LEG"), ("21:40", "LEG")],
    },
    {
        "movie_id": "wild-robot",
        "title": "The Wild Robot",
        "duration": "1h 42min",
        "times": [("10:30", "DUB"), ("12:50", "DUB"), ("19:10", "3D")],
    },
    {
        "movie_id": "festival-short",
        "title": "Festival Shorts",
        "duration": "N/A",
        "times": [("18:00", None)],
    },
]


def generate_mock_movies(cinema_code: str, play_date_iso: str) -> List[Movie]:
    """
    Build Movie objects from MOCK_PROGRAMME. Showtime ids embed the cinema and
    date so they look like the ids a real source hands out.
    """
    movies: List[Movie] = []
    for entry in MOCK_PROGRAMME:
        showtimes = [
            Showtime(
                id=f"{cinema_code}-{play_date_iso}-{entry['movie_id']}-{time.replace(':', '')}",
                time=time,
                session_type=session_type,
            )
            for time, session_type in entry["times"]
        ]
        movies.append(
            Movie(
                id=entry["movie_id"],
                title=entry["title"],
                duration=entry["duration"],
                showtimes=showtimes,
            )
        )
    return movies


class MockProvider(ShowtimeProvider):
    """
    Deterministic offline provider for dev/testing.
    """

    def fetch_movies(self, query: ShowtimeQuery) -> List[Movie]:
        movies = generate_mock_movies(query.cinema_code, query.play_date.isoformat())
        if query.movie_ids:
            wanted = set(query.movie_ids)
            movies = [m for m in movies if m.id in wanted]
        return movies
