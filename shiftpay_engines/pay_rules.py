"""
Pay-Rule Evaluator (``shiftpay_engines.pay_rules``).

Responsibility
--------------
Decide whether a supplement rule applies on a calendar day, produce the
rule's UTC interval(s) for that day, and measure how much of a day segment
each rule covers.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.  Shared by the
payroll aggregator and the timesheet builder.

Invariants enforced
-------------------
* A rule is active on a day unless: it is holiday-only and the day is no
  holiday; it excludes holidays and the day is one; it lists weekdays and
  the day's weekday (0 = Sunday ... 6 = Saturday) is not among them; or
  the day lies outside ``[valid_from, valid_until]``.
* Holiday matching compares dates only.
* A segment on local day X is evaluated against each rule anchored on
  X-1 and on X.  Only a wrapping window anchored on X-1 can reach into X
  (its after-midnight part), so no minute is counted twice.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal

from shiftpay_engines.time_windows import DaySegment, overlap_minutes, windows_for_day_utc
from shiftpay_kernel.domain.dtos import HolidayRecord, PayRuleSpec
from shiftpay_kernel.domain.values import round_half_up

_ONE_DAY = timedelta(days=1)
_MINUTES_TIMES_PERCENT = Decimal(60 * 100)


@dataclass(frozen=True)
class RuleHit:
    """Minutes of one segment covered by one rule anchored on one day."""

    rule: PayRuleSpec
    anchor_day: date
    segment: DaySegment
    minutes: int


def js_weekday(day: date) -> int:
    """Weekday with 0 = Sunday ... 6 = Saturday."""
    return day.isoweekday() % 7


def supplement_cents(minutes: int, hourly_cents: int, percent: Decimal) -> int:
    """Premium for ``minutes`` at ``percent`` of the hourly rate, in whole cents."""
    return round_half_up(Decimal(minutes) * hourly_cents * Decimal(percent) / _MINUTES_TIMES_PERCENT)


def holiday_dates(holidays: Iterable[HolidayRecord | date]) -> frozenset[date]:
    """Normalise holiday records (or plain dates) to a set of dates."""
    return frozenset(h.day if isinstance(h, HolidayRecord) else h for h in holidays)


def rule_active_on_day(
    rule: PayRuleSpec,
    day: date,
    holidays: Iterable[HolidayRecord | date],
) -> bool:
    """True if ``rule`` applies on calendar ``day``."""
    days = holidays if isinstance(holidays, frozenset) else holiday_dates(holidays)
    is_holiday = day in days
    if rule.holiday_only and not is_holiday:
        return False
    if rule.exclude_holidays and is_holiday:
        return False
    if rule.days_of_week and js_weekday(day) not in rule.days_of_week:
        return False
    if rule.valid_from is not None and day < rule.valid_from:
        return False
    if rule.valid_until is not None and day > rule.valid_until:
        return False
    return True


def rule_intervals_for_day(
    rule: PayRuleSpec,
    day: date,
    tz: tzinfo,
) -> list[tuple[datetime, datetime]]:
    """UTC interval(s) of the rule's window anchored on ``day``."""
    return windows_for_day_utc(day, rule.window_start_min, rule.window_end_min, tz)


def evaluate_segment(
    rules: Sequence[PayRuleSpec],
    segment: DaySegment,
    holidays: frozenset[date],
    tz: tzinfo,
) -> list[RuleHit]:
    """All rule hits with minutes > 0 for one local-day segment.

    Hits are ordered by anchor day (previous day first), then by rule order.
    """
    hits: list[RuleHit] = []
    for anchor_day in (segment.day - _ONE_DAY, segment.day):
        for rule in rules:
            if not rule_active_on_day(rule, anchor_day, holidays):
                continue
            minutes = sum(
                overlap_minutes(segment.start, segment.end, w_start, w_end)
                for w_start, w_end in rule_intervals_for_day(rule, anchor_day, tz)
            )
            if minutes > 0:
                hits.append(RuleHit(rule=rule, anchor_day=anchor_day, segment=segment, minutes=minutes))
    return hits
