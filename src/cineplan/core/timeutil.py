# src/cineplan/core/timeutil.py

"""
Clock-time helpers for a single cinema day.

Times are plain "HH:MM" strings. Hours are never wrapped: a showtime listed
as "24:30" (or the result of adding 60 minutes to "23:30") means half past
midnight on the same cinema day. Callers that need calendar arithmetic must
do it themselves.
"""

from __future__ import annotations

import re
from typing import Optional, Union

from cineplan.core.errors import MalformedTimeError
from cineplan.core.models import DurationSource, ParsedDuration

DEFAULT_DURATION_MINUTES = 120

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")

_COLON_DURATION_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_HOURS_DURATION_RE = re.compile(
    r"(\d+)\s*h[a-z]*\.?\s*(?:(\d+)\s*(?:m[a-z]*)?)?", re.IGNORECASE
)
_MINUTES_DURATION_RE = re.compile(r"(\d+)\s*m(?:in[a-z]*)?\b", re.IGNORECASE)
_BARE_NUMBER_RE = re.compile(r"^\s*(\d+)\s*$")


def time_to_minutes(time: str) -> int:
    """
    Parse 'HH:MM' into minutes since 00:00.
    """
    if not isinstance(time, str):
        raise MalformedTimeError(time, "not a string")
    m = _TIME_RE.match(time)
    if not m:
        raise MalformedTimeError(time)
    hours, minutes = int(m.group(1)), int(m.group(2))
    if minutes > 59:
        raise MalformedTimeError(time, "minutes must be 00-59")
    return hours * 60 + minutes


def minutes_to_time(total_minutes: int) -> str:
    if total_minutes < 0:
        raise MalformedTimeError(total_minutes, "negative minute offset")
    hours, mins = divmod(int(total_minutes), 60)
    return f"{hours:02d}:{mins:02d}"


def add_minutes(time: str, minutes: int) -> str:
    # No day rollover: "23:30" + 60 -> "24:30".
    return minutes_to_time(time_to_minutes(time) + minutes)


def parse_duration(
    value: Union[int, str, None],
    default: int = DEFAULT_DURATION_MINUTES,
) -> ParsedDuration:
    """
    Turn a movie duration into minutes, saying where the number came from.

    Accepts a structured minute count, or text such as '2h 10min', '2h10',
    '2:10', '130 min' or '130'. Anything else (None, '', 'N/A', zero) is
    reported as DEFAULTED with `default` minutes so the caller can surface it.
    """
    if isinstance(value, bool):
        return ParsedDuration(default, DurationSource.DEFAULTED, value)

    if isinstance(value, int):
        if value > 0:
            return ParsedDuration(value, DurationSource.STRUCTURED, value)
        return ParsedDuration(default, DurationSource.DEFAULTED, value)

    if not isinstance(value, str) or not value.strip():
        return ParsedDuration(default, DurationSource.DEFAULTED, value)

    minutes = _minutes_from_text(value)
    if minutes is None or minutes <= 0:
        return ParsedDuration(default, DurationSource.DEFAULTED, value)
    return ParsedDuration(minutes, DurationSource.PARSED, value)


def _minutes_from_text(text: str) -> Optional[int]:
    m = _COLON_DURATION_RE.match(text)
    if m:
        return int(m.group(1)) * 60 + int(m.group(2))

    m = _HOURS_DURATION_RE.search(text)
    if m:
        hours = int(m.group(1))
        mins = int(m.group(2)) if m.group(2) else 0
        return hours * 60 + mins

    m = _MINUTES_DURATION_RE.search(text)
    if m:
        return int(m.group(1))

    m = _BARE_NUMBER_RE.match(text)
    if m:
        return int(m.group(1))

    return None
