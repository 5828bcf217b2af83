"""
Temporal Conversion

Single source of truth for calendar <-> nanosecond conversion and for
building epochs, segments and keyframes from calendar-friendly arguments.

All values are Python ints. Calendar fields are always UTC. Dates are
limited to the years ``datetime`` supports (1..9999).
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
import math

from ..contracts.base import TimePrecision
from ..contracts.universe import TemporalEpoch, TemporalKeyframe, TemporalSegment


UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
NS_PER_MS = 1_000_000
NS_PER_SECOND = int(TimePrecision.SECOND)


def _timedelta_to_nanoseconds(delta: timedelta) -> int:
    return (delta.days * 86_400 + delta.seconds) * NS_PER_SECOND + delta.microseconds * 1_000


def _as_int(value, unit: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{unit} must be a number, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{unit} must be integral, got {value!r}")
        return int(value)
    return int(value)


# =============================================================================
# CALENDAR <-> NANOSECONDS
# =============================================================================

def date_to_nanoseconds(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    millisecond: int = 0,
) -> int:
    """
    Convert a UTC calendar instant to nanoseconds since the Unix epoch.

    ``month`` is 1-based. Out-of-range fields raise ValueError rather than
    rolling over into the next unit.
    """
    if not 0 <= millisecond < 1000:
        raise ValueError(f"millisecond must be in 0..999, got {millisecond}")
    instant = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
    return _timedelta_to_nanoseconds(instant - UNIX_EPOCH) + millisecond * NS_PER_MS


def datetime_to_nanoseconds(value: datetime) -> int:
    """Millisecond-resolution conversion of a datetime (naive means UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return date_to_nanoseconds(
        *value.astimezone(timezone.utc).timetuple()[:6],
        millisecond=value.microsecond // 1000,
    )


def nanoseconds_to_date(nanoseconds: int) -> datetime:
    """
    Recover an aware UTC datetime at millisecond resolution.

    Division truncates toward zero, so -1 ns maps to the epoch itself rather
    than to the millisecond before it.
    """
    milliseconds = abs(nanoseconds) // NS_PER_MS
    if nanoseconds < 0:
        milliseconds = -milliseconds
    return UNIX_EPOCH + timedelta(milliseconds=milliseconds)


def year_bounds(year: int):
    """``(start, end)`` of a UTC calendar year, end at 23:59:59.999 Dec 31."""
    return (
        date_to_nanoseconds(year, 1, 1),
        date_to_nanoseconds(year, 12, 31, 23, 59, 59, 999),
    )


# =============================================================================
# ENTITY FACTORIES
# =============================================================================

def create_epoch(
    start_year: int,
    start_month: int,
    start_day: int,
    end_year: int,
    end_month: int,
    end_day: int,
    precision: TimePrecision,
    epoch_id: Optional[str] = None,
    description: Optional[str] = None,
) -> TemporalEpoch:
    """Epoch from the start of the first day to the last instant of the end day."""
    return TemporalEpoch(
        start_time=date_to_nanoseconds(start_year, start_month, start_day),
        end_time=date_to_nanoseconds(end_year, end_month, end_day, 23, 59, 59, 999),
        precision=precision,
        epoch_id=epoch_id,
        description=description,
    )


def create_day_epoch(
    year: int,
    month: int,
    day: int,
    precision: TimePrecision = TimePrecision.HOUR,
    epoch_id: Optional[str] = None,
    description: Optional[str] = None,
) -> TemporalEpoch:
    return create_epoch(year, month, day, year, month, day, precision, epoch_id, description)


def create_year_epoch(
    year: int,
    precision: TimePrecision = TimePrecision.DAY,
    epoch_id: Optional[str] = None,
    description: Optional[str] = None,
) -> TemporalEpoch:
    return create_epoch(year, 1, 1, year, 12, 31, precision, epoch_id, description)


def create_keyframe(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    *,
    keyframe_id: str,
    significance: float,
    tags: Iterable[str] = (),
    certainty: float = 1.0,
) -> TemporalKeyframe:
    return TemporalKeyframe(
        keyframe_id=keyframe_id,
        timestamp=date_to_nanoseconds(year, month, day, hour, minute, second),
        significance=significance,
        tags=tuple(tags),
        certainty=certainty,
    )


def create_segment(
    start_year: int,
    start_month: int,
    start_day: int,
    end_year: int,
    end_month: int,
    end_day: int,
    *,
    segment_id: str,
    segment_type: str,
    start_hour: int = 0,
    end_hour: int = 23,
    status: Optional[str] = None,
    jurisdiction: Optional[str] = None,
) -> TemporalSegment:
    """Segment whose end is normalized to ``end_hour:59:59.999`` of the end day."""
    return TemporalSegment(
        segment_id=segment_id,
        start_time=date_to_nanoseconds(start_year, start_month, start_day, start_hour),
        end_time=date_to_nanoseconds(end_year, end_month, end_day, end_hour, 59, 59, 999),
        segment_type=segment_type,
        status=status,
        jurisdiction=jurisdiction,
    )


# -----------------------------------------------------------------------------
# Runtime-relative media (coordinates start at zero)
# -----------------------------------------------------------------------------

def create_runtime_epoch(
    duration_minutes: int,
    precision: TimePrecision = TimePrecision.MILLISECOND,
    epoch_id: Optional[str] = None,
    description: Optional[str] = None,
) -> TemporalEpoch:
    return TemporalEpoch(
        start_time=0,
        end_time=minutes_to_nanoseconds(duration_minutes),
        precision=precision,
        epoch_id=epoch_id,
        description=description,
    )


def create_runtime_keyframe(
    minutes: int,
    seconds: int,
    keyframe_id: str,
    significance: float,
    tags: Iterable[str] = (),
    milliseconds: int = 0,
) -> TemporalKeyframe:
    total_ms = (minutes * 60 + seconds) * 1000 + milliseconds
    return TemporalKeyframe(
        keyframe_id=keyframe_id,
        timestamp=total_ms * NS_PER_MS,
        significance=significance,
        tags=tuple(tags),
    )


def create_runtime_segment(
    start_minutes: int,
    start_seconds: int,
    end_minutes: int,
    end_seconds: int,
    segment_id: str,
    segment_type: str,
) -> TemporalSegment:
    return TemporalSegment(
        segment_id=segment_id,
        start_time=(start_minutes * 60 + start_seconds) * NS_PER_SECOND,
        end_time=(end_minutes * 60 + end_seconds) * NS_PER_SECOND,
        segment_type=segment_type,
    )


# =============================================================================
# DURATIONS AND UNITS
# =============================================================================

def format_duration(nanoseconds: int) -> str:
    """
    Render the largest two units among days/hours/minutes/seconds.

    A zero lower unit is dropped: 7200 s is ``"2h"``, 5400 s is ``"1h 30m"``.
    Sub-second remainders are truncated.
    """
    if nanoseconds < 0:
        return "-" + format_duration(-nanoseconds)

    total_seconds = nanoseconds // NS_PER_SECOND
    if total_seconds < 60:
        return f"{total_seconds}s"

    minutes, seconds = divmod(total_seconds, 60)
    if minutes < 60:
        return f"{minutes}m {seconds}s" if seconds else f"{minutes}m"

    hours, minutes = divmod(minutes, 60)
    if hours < 24:
        return f"{hours}h {minutes}m" if minutes else f"{hours}h"

    days, hours = divmod(hours, 24)
    return f"{days}d {hours}h" if hours else f"{days}d"


def calculate_duration(start: int, end: int) -> int:
    return end - start


def is_within_range(timestamp: int, range_start: int, range_end: int) -> bool:
    """Inclusive on both ends."""
    return range_start <= timestamp <= range_end


def years_to_nanoseconds(years: float) -> int:
    """Approximate: 365.25-day years, rounded half up to the millisecond."""
    milliseconds = math.floor(years * 365.25 * 24 * 60 * 60 * 1000 + 0.5)
    return milliseconds * NS_PER_MS


def days_to_nanoseconds(days: int) -> int:
    return _as_int(days, "days") * TimePrecision.DAY


def hours_to_nanoseconds(hours: int) -> int:
    return _as_int(hours, "hours") * TimePrecision.HOUR


def minutes_to_nanoseconds(minutes: int) -> int:
    return _as_int(minutes, "minutes") * TimePrecision.MINUTE


# =============================================================================
# PRECISION HELPERS
# =============================================================================

def to_nanoseconds(value: int, precision: TimePrecision) -> int:
    """Scale a count of ``precision`` units to nanoseconds."""
    return _as_int(value, precision.name.lower()) * int(precision)


def from_nanoseconds(nanoseconds: int, precision: TimePrecision) -> int:
    """Whole ``precision`` units contained in ``nanoseconds`` (floor)."""
    return nanoseconds // int(precision)


def align_to_window(nanoseconds: int, window_size: int) -> int:
    """Floor ``nanoseconds`` to the start of its fixed-size window."""
    if window_size <= 0:
        raise ValueError(f"window_size must be positive, got {window_size}")
    return nanoseconds - (nanoseconds % window_size)
