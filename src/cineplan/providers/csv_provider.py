# src/cineplan/providers/csv_provider.py

from typing import Dict, List, Optional
from cineplan.providers.base import ShowtimeProvider
from cineplan.core.models import ShowtimeQuery, Movie, Showtime
from cineplan.data_access import load_showtimes


def _duration_value(raw: str):
    raw = (raw or "").strip()
    return int(raw) if raw.isdigit() else (raw or None)


class CSVProvider(ShowtimeProvider):
    def __init__(self, path: Optional[str] = None):
        self.path = path

    def fetch_movies(self, query: ShowtimeQuery) -> List[Movie]:
        df = load_showtimes(query.cinema_code, query.play_date, self.path)
        if df is None or df.empty:
            return []

        if query.movie_ids:
            df = df[df["movie_id"].isin(query.movie_ids)]

        rows = df.to_dict(orient="records")

        # Group rows into movies, keeping first-seen order.
        titles: Dict[str, str] = {}
        durations: Dict[str, object] = {}
        showtimes: Dict[str, List[Showtime]] = {}

        for d in rows:
            movie_id = str(d.get("movie_id", ""))
            if movie_id not in showtimes:
                titles[movie_id] = d.get("title", "") or movie_id
                durations[movie_id] = _duration_value(d.get("duration", ""))
                showtimes[movie_id] = []
            showtimes[movie_id].append(
                Showtime(
                    id=str(d.get("showtime_id", "")),
                    time=d.get("time", ""),
                    session_type=d.get("session_type") or None,
                )
            )

        return [
            Movie(
                id=movie_id,
                title=titles[movie_id],
                duration=durations[movie_id],
                showtimes=showtimes[movie_id],
            )
            for movie_id in showtimes
        ]
