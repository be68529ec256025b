from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fermtrack.duration import (
    Duration,
    DurationError,
    duration_between,
    elapsed_days,
    format_datetime_label,
    make_local_datetime,
    month_index_to_label,
    month_label_to_index,
)


def test_duration_breakdown() -> None:
    d = duration_between("2026-01-17T02:14:00", "2026-01-18T15:44:15")
    assert isinstance(d, Duration)
    assert (d.days, d.hours, d.minutes, d.seconds) == (1, 13, 30, 15)
    assert d.total_days == pytest.approx(1.5626, abs=1e-4)
    assert d.total_hours == pytest.approx(37.504167, rel=1e-6)
    assert d.total_seconds == 135015.0
    assert not d.swapped


def test_duration_accepts_datetimes() -> None:
    d = duration_between(datetime(2026, 3, 1, 8, 0), datetime(2026, 3, 3, 8, 0))
    assert d.days == 2 and d.total_days == 2.0


def test_swapped_inputs() -> None:
    d = duration_between("2026-01-18T15:44:15", "2026-01-17T02:14:00")
    assert d.swapped
    assert (d.days, d.hours, d.minutes, d.seconds) == (1, 13, 30, 15)


@pytest.mark.parametrize("start, end", [(None, "2026-01-01"), ("2026-01-01", "soon"), (42, "2026-01-01")])
def test_invalid_inputs(start, end) -> None:
    d = duration_between(start, end)
    assert isinstance(d, DurationError)
    assert not d
    assert d.error


def test_aware_and_naive_cannot_mix() -> None:
    d = duration_between(datetime(2026, 1, 1, tzinfo=timezone.utc), datetime(2026, 1, 2))
    assert isinstance(d, DurationError)


def test_elapsed_days_is_signed() -> None:
    assert elapsed_days("2026-01-01T00:00", "2026-01-03T12:00") == pytest.approx(2.5)
    assert elapsed_days("2026-01-03T12:00", "2026-01-01T00:00") == pytest.approx(-2.5)
    assert isinstance(elapsed_days("2026-01-01", None), DurationError)


@pytest.mark.parametrize(
    "hour12, ampm, expected",
    [(12, "a", 0), (12, "p", 12), (1, "a", 1), (3, "p", 15), (0, "a", 1), (13, "p", 12)],
)
def test_make_local_datetime_twelve_hour_clock(hour12, ampm, expected) -> None:
    dt = make_local_datetime(2026, 0, 18, hour12, 44, 0, ampm)
    assert dt.hour == expected
    assert (dt.year, dt.month, dt.day, dt.minute) == (2026, 1, 18, 44)


@pytest.mark.parametrize(
    "fields",
    [
        (2026, 1, 31, 10, 0, 0, "a"),           # 31 February
        (2026, 12, 1, 10, 0, 0, "a"),           # month index out of range
        (2026, 0, 1, 10, 0, 0, "x"),
        (2026, 0, float("nan"), 10, 0, 0, "a"),
        ("2026", 0, 1, 10, 0, 0, "a"),
    ],
)
def test_make_local_datetime_invalid(fields) -> None:
    assert make_local_datetime(*fields) is None


def test_format_datetime_label() -> None:
    assert format_datetime_label(datetime(2026, 1, 18, 15, 44, 0)) == "Jan. 18, 2026, 3:44:00 PM"
    assert format_datetime_label(datetime(2026, 5, 2, 0, 5, 9)) == "May 2, 2026, 12:05:09 AM"
    assert format_datetime_label(None) == "Invalid date"


def test_month_helpers() -> None:
    assert month_index_to_label(2) == "Mar"
    assert month_index_to_label(15) == "Jan"
    assert month_label_to_index("Dec") == 11
    assert month_label_to_index("Smarch") == 0


def test_duration_from_midnight() -> None:
    d = duration_between("2024-01-01T00:00:00", "2024-01-02T13:30:15")
    assert (d.days, d.hours, d.minutes, d.seconds) == (1, 13, 30, 15)
    assert d.total_days == pytest.approx(1.5626, abs=1e-4)
