from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from promguard.timeutil import InvalidTimeRange, TimeRange, parse_duration, parse_timestamp

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("5m", timedelta(minutes=5)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("2d", timedelta(days=2)),
        ("1w", timedelta(weeks=1)),
        ("500ms", timedelta(milliseconds=500)),
        ("1y", timedelta(days=365)),
    ],
)
def test_parse_duration(text, expected) -> None:
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "5", "m", "30m1h", "1.5h", "-5m"])
def test_parse_duration_rejects(text) -> None:
    with pytest.raises(ValueError):
        parse_duration(text)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("NOW", NOW),
        ("now", NOW),
        ("NOW-5m", NOW - timedelta(minutes=5)),
        ("NOW+1h", NOW + timedelta(hours=1)),
        ("2024-05-01T10:00:00Z", datetime(2024, 5, 1, 10, tzinfo=timezone.utc)),
        ("2024-05-01T12:00:00+02:00", datetime(2024, 5, 1, 10, tzinfo=timezone.utc)),
        ("1714557600", datetime(2024, 5, 1, 10, tzinfo=timezone.utc)),
    ],
)
def test_parse_timestamp(text, expected) -> None:
    assert parse_timestamp(text, now=NOW) == expected


@pytest.mark.parametrize(
    "text", ["yesterday", "NOW-", "NOW-5x", "2024-05-01T10:00:00", "2024-05-01"]
)
def test_parse_timestamp_rejects(text) -> None:
    with pytest.raises(ValueError):
        parse_timestamp(text, now=NOW)


def test_range_defaults_to_last_hour() -> None:
    tr = TimeRange.parse(None, None, now=NOW)
    assert tr.end == NOW
    assert tr.duration == timedelta(hours=1)


def test_range_start_defaults_relative_to_end() -> None:
    tr = TimeRange.parse(None, "NOW-1d", now=NOW)
    assert tr.start == NOW - timedelta(days=1, hours=1)


def test_range_rejects_end_before_start() -> None:
    with pytest.raises(ValueError):
        TimeRange.parse("NOW", "NOW-1h", now=NOW)


def test_last_window() -> None:
    tr = TimeRange.last(timedelta(minutes=15), now=NOW)
    assert tr.start == NOW - timedelta(minutes=15)


@pytest.mark.parametrize(
    "start,end",
    [("NOW-1000000y", None), ("99999999999999999999", None), (None, "NOW+999999999w")],
)
def test_out_of_range_values_raise_invalid_time_range(start, end) -> None:
    with pytest.raises(InvalidTimeRange):
        TimeRange.parse(start, end, now=NOW)


def test_invalid_time_range_is_a_value_error() -> None:
    assert issubclass(InvalidTimeRange, ValueError)
