"""
Elapsed time between two calendar timestamps.

The prediction layer works in elapsed days since the first gravity reading.
This module turns two absolute timestamps (``datetime`` objects or ISO-8601
strings) into that axis, and carries the small calendar helpers used by
date-entry forms (12-hour clock fields, month labels, display labels).

Invalid input never yields NaN: :func:`duration_between` returns a
:class:`DurationError` value instead.
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

logger = logging.getLogger(__name__)

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
MONTHS_DOT = ["Jan.", "Feb.", "Mar.", "Apr.", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60


@dataclass(frozen=True)
class Duration:
    days: int
    hours: int
    minutes: int
    seconds: int
    total_days: float
    total_hours: float
    total_minutes: float
    total_seconds: float
    swapped: bool = False


@dataclass(frozen=True)
class DurationError:
    error: str

    def __bool__(self) -> bool:
        return False


TimestampLike = Union[datetime, str, None]


def month_index_to_label(month_index: int) -> str:
    """``0 -> "Jan"``; out-of-range indices fall back to ``"Jan"``."""
    if 0 <= month_index < len(MONTHS):
        return MONTHS[month_index]
    return MONTHS[0]


def month_label_to_index(label: str) -> int:
    """``"Mar" -> 2``; unknown labels fall back to 0."""
    try:
        return MONTHS.index(label)
    except ValueError:
        return 0


def _is_finite_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def make_local_datetime(
    year, month_index, day, hour12, minute, second, ampm: str
) -> Optional[datetime]:
    """
    Build a naive local datetime from 12-hour clock form fields.

    ``month_index`` is zero-based and ``ampm`` is ``"a"`` or ``"p"``. The hour
    is clamped to 1..12 before conversion to the 24-hour clock.

    Returns None when a field is not a finite number, ``ampm`` is invalid or
    the fields do not form a real calendar date (e.g. 31 February).
    """
    fields = (year, month_index, day, hour12, minute, second)
    if not all(_is_finite_number(v) for v in fields) or ampm not in ("a", "p"):
        return None

    hour24 = min(max(math.trunc(hour12), 1), 12)
    if ampm == "p" and hour24 != 12:
        hour24 += 12
    if ampm == "a" and hour24 == 12:
        hour24 = 0

    try:
        return datetime(
            math.trunc(year),
            math.trunc(month_index) + 1,
            math.trunc(day),
            hour24,
            math.trunc(minute),
            math.trunc(second),
        )
    except ValueError:
        return None


def format_datetime_label(value: Optional[datetime]) -> str:
    """Display label such as ``"Jan. 18, 2026, 3:44:00 PM"``."""
    if not isinstance(value, datetime):
        return "Invalid date"

    hh = value.hour % 12 or 12
    suffix = "PM" if value.hour >= 12 else "AM"
    mon = MONTHS_DOT[value.month - 1]
    return f"{mon} {value.day}, {value.year}, {hh}:{value.minute:02d}:{value.second:02d} {suffix}"


def _parse(value: TimestampLike) -> Union[datetime, DurationError]:
    if value is None:
        return DurationError("Invalid date/time input.")
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return DurationError(f"Invalid date/time input: {value!r}")
    return DurationError("Start/end must be datetimes or ISO-8601 strings.")


def duration_between(start: TimestampLike, end: TimestampLike) -> Union[Duration, DurationError]:
    """
    Elapsed time from ``start`` to ``end``.

    If ``end`` precedes ``start`` the two are swapped and ``swapped`` is set.
    The component breakdown (days/hours/minutes/seconds) uses whole seconds;
    the ``total_*`` fields keep the fractional part.

    Returns
    -------
    Duration or DurationError
    """
    start_dt = _parse(start)
    end_dt = _parse(end)
    for parsed in (start_dt, end_dt):
        if isinstance(parsed, DurationError):
            return parsed

    try:
        delta = end_dt - start_dt
    except TypeError:
        return DurationError("Cannot compare timezone-aware and naive timestamps.")

    swapped = delta.total_seconds() < 0
    total_seconds = abs(delta.total_seconds())

    remaining = math.floor(total_seconds)
    days, remaining = divmod(remaining, SECONDS_PER_DAY)
    hours, remaining = divmod(remaining, SECONDS_PER_HOUR)
    minutes, seconds = divmod(remaining, SECONDS_PER_MINUTE)

    return Duration(
        days=int(days),
        hours=int(hours),
        minutes=int(minutes),
        seconds=int(seconds),
        total_days=total_seconds / SECONDS_PER_DAY,
        total_hours=total_seconds / SECONDS_PER_HOUR,
        total_minutes=total_seconds / SECONDS_PER_MINUTE,
        total_seconds=total_seconds,
        swapped=swapped,
    )


def elapsed_days(day0: TimestampLike, query: TimestampLike) -> Union[float, DurationError]:
    """
    Signed elapsed days from ``day0`` to ``query``.

    A query before ``day0`` gives a negative value, which the query layer
    clamps to the start of the series.
    """
    d = duration_between(day0, query)
    if isinstance(d, DurationError):
        logger.warning("Cannot compute elapsed time: %s", d.error)
        return d
    return -d.total_days if d.swapped else d.total_days
