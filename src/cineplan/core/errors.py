# src/cineplan/core/errors.py

from __future__ import annotations


class CinePlanError(Exception):
    """Base class for errors raised by the scheduling engine."""


class InputError(CinePlanError, ValueError):
    """Nothing to combine: no movies, or none of them has a showtime."""


class MalformedTimeError(CinePlanError, ValueError):
    """A clock time is not in HH:MM form."""

    def __init__(self, value: object, reason: str = "expected HH:MM"):
        self.value = value
        super().__init__(f"Malformed time {value!r}: {reason}")


class ItineraryNotFoundError(CinePlanError, KeyError):
    def __init__(self, itinerary_id: str):
        self.itinerary_id = itinerary_id
        super().__init__(itinerary_id)

    def __str__(self) -> str:
        return f"Itinerary {self.itinerary_id} not found or expired; regenerate"


class ScheduleNotFoundError(CinePlanError, KeyError):
    def __init__(self, schedule_id: str):
        self.schedule_id = schedule_id
        super().__init__(schedule_id)

    def __str__(self) -> str:
        return f"Schedule {self.schedule_id} not found"
