"""Wall-clock time helpers used by the slot engine.

All values are naive local times. No timezone conversion happens here; the
schedule rows and the appointment rows must already share one convention.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

TIME_FORMAT = "%H:%M:%S"
SHORT_TIME_FORMAT = "%H:%M"
_ANCHOR = date(2000, 1, 1)


@dataclass(frozen=True)
class Interval:
    start: time
    end: time

    def contains(self, start: time, end: time) -> bool:
        return self.start <= start and end <= self.end


def parse_time(value) -> time:
    """Parse ``HH:MM:SS`` (or ``HH:MM``) into a naive ``time``.

    ``time`` objects pass through unless they carry a timezone.
    """
    if isinstance(value, time):
        if value.tzinfo is not None:
            raise ValueError(f"Time '{value.isoformat()}' has a timezone. Use wall-clock HH:MM:SS")
        return value
    for fmt in (TIME_FORMAT, SHORT_TIME_FORMAT):
        try:
            return datetime.strptime(value, fmt).time()
        except (TypeError, ValueError):
            continue
    raise ValueError(f"Invalid time '{value}'. Use HH:MM:SS")


def format_time(value: time) -> str:
    return value.strftime(TIME_FORMAT)


def add_minutes(value: time, minutes: int) -> time:
    base = datetime.combine(_ANCHOR, value)
    shifted = base + timedelta(minutes=minutes)
    if shifted.date() != base.date():
        raise ValueError(f"{format_time(value)} + {minutes} minutes leaves the day")
    return shifted.time()


def minutes_between(start: time, end: time) -> int:
    delta = datetime.combine(_ANCHOR, end) - datetime.combine(_ANCHOR, start)
    return int(delta.total_seconds() // 60)


def overlaps(a_start: time, a_end: time, b_start: time, b_end: time) -> bool:
    # Half-open intervals: touching ends do not overlap
    return a_start < b_end and b_start < a_end


def day_of_week(value: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (value.weekday() + 1) % 7
