"""
Timesheet builder (``shiftpay_engines.timesheet``).

Per-day view of one employee's shifts between two local dates: the shift
segments falling on each day and the supplement cents those segments earn.
Supplements use the same rule evaluation as the payroll aggregator, with
the rate of the contract effective on the segment's day.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal
from typing import Any

from shiftpay_engines.contracts import hourly_rate_cents, pick_contract_for_date
from shiftpay_engines.pay_rules import evaluate_segment, holiday_dates, supplement_cents
from shiftpay_engines.time_windows import (
    DaySegment,
    clip_interval,
    day_bounds_utc,
    split_by_local_day,
    to_iso_utc,
)
from shiftpay_kernel.domain.dtos import ContractTerms, HolidayRecord, PayRuleSpec, ShiftRecord
from shiftpay_kernel.domain.values import round_hours

_ONE_DAY = timedelta(days=1)
_SECONDS_PER_HOUR = Decimal(3600)


@dataclass(frozen=True)
class TimesheetSegment:
    start: datetime
    end: datetime

    @property
    def hours(self) -> Decimal:
        return round_hours(Decimal((self.end - self.start).total_seconds()) / _SECONDS_PER_HOUR)

    def to_payload(self) -> dict[str, Any]:
        return {
            "start": to_iso_utc(self.start),
            "end": to_iso_utc(self.end),
            "hours": str(self.hours),
        }


@dataclass(frozen=True)
class TimesheetDay:
    day: date
    segments: tuple[TimesheetSegment, ...]
    supplements_cents: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "day": self.day.day,
            "date": self.day.isoformat(),
            "shifts": [s.to_payload() for s in self.segments],
            "supplementsCents": self.supplements_cents,
        }


def _segment_supplement_cents(
    segment: DaySegment,
    contracts: Sequence[ContractTerms],
    pay_rules: Sequence[PayRuleSpec],
    holidays: frozenset[date],
    tz: tzinfo,
) -> int:
    hourly = hourly_rate_cents(pick_contract_for_date(contracts, segment.day))
    if not hourly:
        return 0
    cents = 0
    for hit in evaluate_segment(pay_rules, segment, holidays, tz):
        if not hit.rule.percent:
            continue
        cents += supplement_cents(hit.minutes, hourly, hit.rule.percent)
    return cents


def build_timesheet(
    from_day: date,
    to_day: date,
    shifts: Iterable[ShiftRecord],
    contracts: Sequence[ContractTerms],
    pay_rules: Sequence[PayRuleSpec],
    holidays: Iterable[HolidayRecord | date],
    tz: tzinfo,
) -> list[TimesheetDay]:
    """One ``TimesheetDay`` per local day in ``[from_day, to_day]``.

    Clock times are used where present, planned times otherwise.  Segments
    are clipped to the requested range; days without shifts are included
    with no segments.

    Raises:
        ValueError: If to_day precedes from_day.
    """
    if to_day < from_day:
        raise ValueError(f"to_day {to_day} precedes from_day {from_day}")

    range_start, _ = day_bounds_utc(from_day, tz)
    _, range_end = day_bounds_utc(to_day, tz)
    holiday_days = holiday_dates(holidays)

    segments_by_day: dict[date, list[TimesheetSegment]] = {}
    cents_by_day: dict[date, int] = {}
    for shift in sorted(shifts, key=lambda s: (s.start, str(s.id))):
        start = shift.clock_in or shift.start
        end = shift.clock_out or shift.end
        clipped = clip_interval(start, end, range_start, range_end)
        if clipped is None:
            continue
        for segment in split_by_local_day(clipped[0], clipped[1], tz):
            segments_by_day.setdefault(segment.day, []).append(
                TimesheetSegment(start=segment.start, end=segment.end)
            )
            cents_by_day[segment.day] = cents_by_day.get(segment.day, 0) + _segment_supplement_cents(
                segment, contracts, pay_rules, holiday_days, tz
            )

    days: list[TimesheetDay] = []
    cursor = from_day
    while cursor <= to_day:
        days.append(
            TimesheetDay(
                day=cursor,
                segments=tuple(segments_by_day.get(cursor, ())),
                supplements_cents=cents_by_day.get(cursor, 0),
            )
        )
        cursor += _ONE_DAY
    return days
