"""
Time/Window Utilities (``shiftpay_engines.time_windows``).

Responsibility
--------------
The wall-clock / instant conversion boundary for one fixed business
timezone:

* convert stored UTC instants to business wall-clock time,
* compute the UTC bounds of a local calendar day or month,
* turn a rule window (minutes since local midnight) into one or two UTC
  intervals for a given day,
* measure the overlap of two UTC intervals in whole minutes,
* split an interval into per-local-day segments.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
The timezone is passed in explicitly (``tz``); nothing here reads settings.

Invariants enforced
-------------------
* Day and window bounds are computed by adding minutes to local midnight
  in wall-clock time and converting the result to UTC.  Offsets are never
  added by hand, so 23- and 25-hour days around DST transitions come out
  right.
* ``window_end_min == 0`` means 24:00.  ``end <= start`` wraps past local
  midnight and yields exactly two intervals:
  ``[D start, D+1 00:00)`` and ``[D+1 00:00, D+1 end)``.
* Overlap minutes are ``max(0, ...)`` rounded half away from zero.
* Every returned datetime is timezone-aware UTC.

Failure modes
-------------
* ``ValueError`` if an interval ends before it starts where that is not
  allowed (``split_by_local_day``).
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from decimal import Decimal

from shiftpay_kernel.domain.values import round_half_up

MINUTES_PER_DAY = 24 * 60

_MICROS_PER_MINUTE = Decimal(60_000_000)
_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class DaySegment:
    """Part of an interval that falls on one local calendar day."""

    day: date
    start: datetime
    end: datetime


# ---------------------------------------------------------------------------
# Instant <-> wall clock
# ---------------------------------------------------------------------------


def as_utc(instant: datetime) -> datetime:
    """Normalise to aware UTC; naive input is taken to be UTC already."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def to_business_time(instant: datetime, tz: tzinfo) -> datetime:
    """Wall-clock representation of ``instant`` in the business timezone."""
    return as_utc(instant).astimezone(tz)


def business_day_of(instant: datetime, tz: tzinfo) -> date:
    """Local calendar date on which ``instant`` falls."""
    return to_business_time(instant, tz).date()


def wall_minute_to_utc(day: date, minute: int, tz: tzinfo) -> datetime:
    """UTC instant of local ``day`` 00:00 plus ``minute`` wall-clock minutes.

    ``minute`` may be 1440 (next local midnight) or more.
    """
    local_midnight = datetime.combine(day, time(0), tzinfo=tz)
    return (local_midnight + timedelta(minutes=minute)).astimezone(UTC)


def day_bounds_utc(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """UTC ``[start, end)`` of local calendar ``day``."""
    return wall_minute_to_utc(day, 0, tz), wall_minute_to_utc(day + _ONE_DAY, 0, tz)


def windows_for_day_utc(
    day: date,
    start_min: int | None,
    end_min: int | None,
    tz: tzinfo,
) -> list[tuple[datetime, datetime]]:
    """UTC intervals covered by a ``(start_min, end_min)`` window on ``day``.

    Args:
        day: Local calendar day the window is anchored to.
        start_min: Window start, minutes since local midnight, or None.
        end_min: Window end, minutes since local midnight, or None.
            0 means 24:00.
        tz: Business timezone.

    Returns:
        One interval for a same-day window or the whole day (either bound
        None); two intervals for a window that wraps past local midnight.
    """
    if start_min is None or end_min is None:
        return [day_bounds_utc(day, tz)]

    end = MINUTES_PER_DAY if end_min == 0 else end_min
    if end <= start_min:
        next_day = day + _ONE_DAY
        midnight = wall_minute_to_utc(next_day, 0, tz)
        return [
            (wall_minute_to_utc(day, start_min, tz), midnight),
            (midnight, wall_minute_to_utc(next_day, end, tz)),
        ]
    return [(wall_minute_to_utc(day, start_min, tz), wall_minute_to_utc(day, end, tz))]


# ---------------------------------------------------------------------------
# Interval arithmetic
# ---------------------------------------------------------------------------


def overlap_minutes(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> int:
    """Whole minutes shared by ``[a_start, a_end)`` and ``[b_start, b_end)``."""
    shared = min(a_end, b_end) - max(a_start, b_start)
    if shared <= timedelta(0):
        return 0
    return max(0, round_half_up(Decimal(shared // timedelta(microseconds=1)) / _MICROS_PER_MINUTE))


def interval_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes in ``[start, end)``; 0 for empty or inverted intervals."""
    return overlap_minutes(start, end, start, end)


def clip_interval(
    start: datetime,
    end: datetime,
    lower: datetime,
    upper: datetime,
) -> tuple[datetime, datetime] | None:
    """``[start, end)`` clipped to ``[lower, upper)``, or None if nothing is left."""
    clipped_start = max(start, lower)
    clipped_end = min(end, upper)
    if clipped_end <= clipped_start:
        return None
    return clipped_start, clipped_end


def split_by_local_day(start: datetime, end: datetime, tz: tzinfo) -> list[DaySegment]:
    """Split ``[start, end)`` at local midnights.

    Each segment is clipped to the input interval and tagged with the local
    day it falls on.  An empty interval yields no segments.

    Raises:
        ValueError: If end precedes start.
    """
    start, end = as_utc(start), as_utc(end)
    if end < start:
        raise ValueError(f"Interval ends before it starts: {start.isoformat()} > {end.isoformat()}")

    segments: list[DaySegment] = []
    cursor = start
    while cursor < end:
        local_day = business_day_of(cursor, tz)
        _, day_end = day_bounds_utc(local_day, tz)
        segment_end = min(day_end, end)
        segments.append(DaySegment(day=local_day, start=cursor, end=segment_end))
        cursor = segment_end
    return segments


# ---------------------------------------------------------------------------
# Months
# ---------------------------------------------------------------------------


def add_months(year: int, month_index: int, delta: int) -> tuple[int, int]:
    """(year, month_index) shifted by ``delta`` months; month_index is 0-based."""
    carry, new_index = divmod(month_index + delta, 12)
    return year + carry, new_index


def first_day_of_month(year: int, month_index: int) -> date:
    return date(year, month_index + 1, 1)


def last_day_of_month(year: int, month_index: int) -> date:
    return date(year, month_index + 1, calendar.monthrange(year, month_index + 1)[1])


def days_of_month(year: int, month_index: int) -> list[date]:
    first = first_day_of_month(year, month_index)
    return [first + timedelta(days=i) for i in range(last_day_of_month(year, month_index).day)]


def month_bounds_utc(year: int, month_index: int, tz: tzinfo) -> tuple[datetime, datetime]:
    """UTC ``[start, end)`` of a local calendar month."""
    next_year, next_index = add_months(year, month_index, 1)
    start, _ = day_bounds_utc(first_day_of_month(year, month_index), tz)
    end, _ = day_bounds_utc(first_day_of_month(next_year, next_index), tz)
    return start, end


def months_between_inclusive(start: date, end: date) -> int:
    """Calendar months touched by ``[start, end]``; 0 if end precedes start."""
    if end < start:
        return 0
    return (end.year - start.year) * 12 + (end.month - start.month) + 1


def to_iso_utc(instant: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    utc = as_utc(instant)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"
