"""
Shift-time policy: lateness at check-in, earliness at check-out, and worked
duration.

Timestamps and shift boundaries are assumed to be in the office's local
time zone. The reference instant is built on the event's own calendar date,
so shifts that cross midnight are not supported.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta

from .exceptions import InvariantViolation


ONE_MINUTE = timedelta(minutes=1)


@dataclass(frozen=True)
class Lateness:
    is_late: bool
    late_minutes: int


@dataclass(frozen=True)
class Earliness:
    is_early: bool
    early_minutes: int


def parse_shift_time(value) -> time:
    """Accepts a ``time`` or an "HH:MM" / "HH:MM:SS" string."""
    if isinstance(value, time):
        return value
    parts = [int(part) for part in str(value).strip().split(":")]
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid shift time: {value!r}")
    return time(*parts)


def _reference(actual: datetime, boundary) -> datetime:
    boundary = parse_shift_time(boundary)
    return actual.replace(hour=boundary.hour, minute=boundary.minute, second=0, microsecond=0)


def _whole_minutes(delta: timedelta) -> int:
    return delta // ONE_MINUTE


def lateness(actual: datetime, shift_start) -> Lateness:
    minutes = _whole_minutes(actual - _reference(actual, shift_start))
    if minutes > 0:
        return Lateness(is_late=True, late_minutes=minutes)
    return Lateness(is_late=False, late_minutes=0)


def earliness(actual: datetime, shift_end) -> Earliness:
    minutes = _whole_minutes(_reference(actual, shift_end) - actual)
    if minutes > 0:
        return Earliness(is_early=True, early_minutes=minutes)
    return Earliness(is_early=False, early_minutes=0)


def duration_minutes(check_in: datetime, check_out: datetime) -> int:
    minutes = _whole_minutes(check_out - check_in)
    if minutes < 0:
        raise InvariantViolation(
            f"check-out {check_out.isoformat()} precedes check-in {check_in.isoformat()}"
        )
    return minutes


def format_duration(minutes) -> str | None:
    if minutes is None:
        return None
    hours, mins = divmod(int(minutes), 60)
    return f"{hours} jam {mins} menit"
