"""Timestamp and duration parsing for query time ranges.

Accepted timestamps: ``NOW``, ``NOW-5m`` / ``NOW+1h`` (Prometheus duration
syntax), RFC3339, or Unix seconds.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
    "y": 31536000,
}

# Units must appear largest first, each at most once ("1h30m", not "30m1h").
_DURATION_RE = re.compile(
    r"^(?:(\d+)y)?(?:(\d+)w)?(?:(\d+)d)?(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?(?:(\d+)ms)?$"
)
_DURATION_UNITS = ("y", "w", "d", "h", "m", "s", "ms")

DEFAULT_WINDOW = timedelta(hours=1)


class InvalidTimeRange(ValueError):
    """A timestamp, duration or start/end pair that cannot form a range."""


def parse_duration(text: str) -> timedelta:
    raw = (text or "").strip()
    match = _DURATION_RE.match(raw)
    if not raw or match is None or not any(match.groups()):
        raise InvalidTimeRange(f"invalid duration {text!r}")
    seconds = 0.0
    for unit, amount in zip(_DURATION_UNITS, match.groups()):
        if amount:
            seconds += int(amount) * _UNIT_SECONDS[unit]
    try:
        return timedelta(seconds=seconds)
    except OverflowError as exc:
        raise InvalidTimeRange(f"duration {text!r} is too large") from exc


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(text: str, now: Optional[datetime] = None) -> datetime:
    """Parse a user supplied timestamp into an aware UTC datetime."""
    raw = (text or "").strip()
    current = now or _utcnow()

    upper = raw.upper()
    if upper == "NOW":
        return current
    if upper.startswith("NOW") and len(raw) > 3 and raw[3] in "+-":
        try:
            offset = parse_duration(raw[4:])
        except ValueError as exc:
            raise InvalidTimeRange(f"invalid duration in relative time expression: {exc}") from exc
        try:
            return current - offset if raw[3] == "-" else current + offset
        except OverflowError as exc:
            raise InvalidTimeRange(f"relative time {text!r} is out of range") from exc

    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
    if parsed is not None and "T" in raw.upper():
        if parsed.tzinfo is None:
            raise InvalidTimeRange(f"timestamp {text!r} is missing a timezone offset")
        return parsed.astimezone(timezone.utc)

    if re.fullmatch(r"-?\d+", raw):
        try:
            return datetime.fromtimestamp(int(raw), tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidTimeRange(f"unix timestamp {text!r} is out of range") from exc

    raise InvalidTimeRange(
        "timestamp must be RFC3339 format, Unix timestamp, NOW, or relative time (NOW±duration)"
    )


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidTimeRange("time range end must not be before start")

    @classmethod
    def last(cls, window: timedelta = DEFAULT_WINDOW, now: Optional[datetime] = None) -> "TimeRange":
        end = now or _utcnow()
        return cls(start=end - window, end=end)

    @classmethod
    def parse(
        cls, start: Optional[str], end: Optional[str], now: Optional[datetime] = None
    ) -> "TimeRange":
        """Build a range from optional user strings; missing bounds default to the last hour."""
        current = now or _utcnow()
        end_dt = parse_timestamp(end, now=current) if end else current
        start_dt = parse_timestamp(start, now=current) if start else end_dt - DEFAULT_WINDOW
        return cls(start=start_dt, end=end_dt)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start
