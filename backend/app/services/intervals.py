"""Time-of-day intervals and the single overlap rule used by every conflict check."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import time

from app.core.exceptions import ScheduleValidationError

CLOCK_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def parse_clock_time(value: str | time) -> time:
    """Accept ``H:MM``/``HH:MM`` strings or ``time`` values, truncated to the minute."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    match = CLOCK_PATTERN.match(str(value).strip())
    if not match:
        raise ValueError("Time must be in HH:MM 24-hour format")
    return time(int(match.group(1)), int(match.group(2)))


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def format_clock_time(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


@dataclass(frozen=True)
class TimeInterval:
    """Half-open ``[start, end)`` range of wall-clock time within one day."""

    start: time
    end: time

    def __post_init__(self) -> None:
        if to_minutes(self.start) >= to_minutes(self.end):
            raise ScheduleValidationError(
                "start_time must be before end_time",
                details={
                    "start_time": format_clock_time(self.start),
                    "end_time": format_clock_time(self.end),
                },
            )

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end)

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    def overlaps(self, other: "TimeInterval") -> bool:
        return overlaps(self, other)


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    # Strict on both ends: a slot ending at 10:00 and one starting at 10:00 do not clash.
    return a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes
