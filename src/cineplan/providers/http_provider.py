# src/cineplan/providers/http_provider.py

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import requests

from cineplan.core.models import Movie, Showtime, ShowtimeQuery
from cineplan.providers.base import ShowtimeProvider

logger = logging.getLogger(__name__)


def _movie_from_payload(item: Dict[str, Any]) -> Movie:
    """
    Map one upstream movie object:
      {"id", "title", "duration", "sessions": [{"id", "time", "sessionType"}]}
    """
    sessions = item.get("sessions", []) or []
    showtimes = [
        Showtime(
            id=str(s.get("id", "")),
            time=str(s.get("time", "")),
            session_type=s.get("sessionType") or s.get("session_type") or None,
        )
        for s in sessions
    ]
    return Movie(
        id=str(item.get("id", "")),
        title=str(item.get("title", "")),
        duration=item.get("duration"),
        showtimes=showtimes,
    )


class HttpShowtimeProvider(ShowtimeProvider):
    """
    Reads movies and sessions from an upstream showtimes API.

    GET {base_url}/cinemas/{cinema_code}/sessions?date=YYYY-MM-DD
    -> {"movies": [...]} or a bare list of movie objects.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: int = 20,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or os.getenv("CINEPLAN_SHOWTIMES_URL", "")).strip().rstrip("/")
        if not self.base_url:
            raise ValueError("Missing showtimes API URL. Set CINEPLAN_SHOWTIMES_URL.")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def fetch_movies(self, query: ShowtimeQuery) -> List[Movie]:
        url = f"{self.base_url}/cinemas/{query.cinema_code}/sessions"
        params = {"date": query.play_date.isoformat()}

        resp = self.session.get(url, params=params, timeout=self.timeout_seconds)
        resp.raise_for_status()
        payload = resp.json()

        items = payload.get("movies", []) if isinstance(payload, dict) else payload
        movies = [_movie_from_payload(item) for item in (items or [])]

        if query.movie_ids:
            wanted = set(query.movie_ids)
            movies = [m for m in movies if m.id in wanted]

        logger.info(
            "Fetched %d movies for %s on %s", len(movies), query.cinema_code, params["date"]
        )
        return movies
