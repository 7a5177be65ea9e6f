# appointly/services/availability/calendar_arithmetic.py
"""
Pure time helpers for slot generation.
Nothing here reads the clock or touches storage.
"""
import re
from datetime import date, datetime, time
from typing import List, Union

from appointly.core.exceptions import InputValidationError, InvalidDurationError

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

TimeLike = Union[str, time]


def parse_time(value: TimeLike) -> time:
    """Parse an HH:MM string (seconds are not accepted)"""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        raise InputValidationError(f"Expected HH:MM time, got {value!r}")

    match = _HHMM.match(value.strip())
    if not match:
        raise InputValidationError(f"Invalid time '{value}', expected HH:MM")
    return time(int(match.group(1)), int(match.group(2)))


def format_time(value: Union[time, datetime]) -> str:
    return value.strftime("%H:%M")


def to_minutes(value: TimeLike) -> int:
    """Minutes since midnight"""
    parsed = parse_time(value)
    return parsed.hour * 60 + parsed.minute


def from_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date(value: Union[str, date]) -> date:
    """Parse an ISO calendar date (YYYY-MM-DD)"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InputValidationError(f"Invalid date '{value}', expected YYYY-MM-DD")


def validate_duration(minutes: int, label: str = "duration") -> int:
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise InputValidationError(f"{label} must be an integer number of minutes")
    if minutes <= 0:
        raise InvalidDurationError(f"{label} must be greater than zero, got {minutes}")
    return minutes


def windows_overlap(start_a, end_a, start_b, end_b) -> bool:
    """Half-open interval intersection: [a) and [b) share at least one instant"""
    return start_a < end_b and start_b < end_a


def combine(day: date, value: TimeLike) -> datetime:
    return datetime.combine(day, parse_time(value))


def generate_slots(open_time: TimeLike, close_time: TimeLike, step_minutes: int) -> List[str]:
    """
    Candidate start times between open and close.

    The first slot starts at open_time and each following slot is step_minutes
    later. A slot is only produced if it ends by close_time, so the result has
    floor((close - open) / step) entries.

    Raises:
        InvalidDurationError: step_minutes is zero or negative
        InputValidationError: open_time / close_time is not HH:MM
    """
    step = validate_duration(step_minutes, "step_minutes")
    start = to_minutes(open_time)
    end = to_minutes(close_time)

    slots = []
    current = start
    while current + step <= end:
        slots.append(from_minutes(current))
        current += step

    return slots

