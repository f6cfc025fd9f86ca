"""
Payroll Aggregator (``shiftpay_engines.payroll``).

Responsibility
--------------
Turn one month of shifts, contracts, pay rules and holidays into one gross
pay row per active employee:

* base pay: fixed monthly salary, or worked hours times the hourly rate,
* rule-based supplements with a per-rule breakdown and audit triggers,
* seasonal bonus (holiday pay in June, Christmas pay in November).

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
Inputs are DTOs from ``shiftpay_kernel.domain.dtos``; the timezone and the
representative day are explicit parameters.

Invariants enforced
-------------------
* Money is integer cents, durations integer minutes.
* Rounding is half away from zero and happens where each amount is
  computed: per rule trigger, for the hourly base, for the bonus.  Sums of
  rounded amounts are never rounded again.
* Each employee's row depends only on that employee's data.  A missing
  contract, a missing hourly rate or a rule without a percent yields zero
  contributions for that employee and never fails the batch.
* Deterministic: identical inputs give identical rows and payloads.

Qualifying shifts
-----------------
A shift counts only with a working shift code.  With an approved absence
its planned start/end are used.  With a pending or rejected absence it is
excluded.  Otherwise it needs both clock times, which are used.  The
interval is clipped to the local calendar month.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Any
from uuid import UUID

from shiftpay_engines.contracts import (
    Bonus,
    fixed_salary_cents,
    hourly_rate_cents,
    pick_contract_for_date,
    seasonal_bonus,
)
from shiftpay_engines.pay_rules import evaluate_segment, holiday_dates, supplement_cents
from shiftpay_engines.time_windows import (
    clip_interval,
    first_day_of_month,
    interval_minutes,
    month_bounds_utc,
    split_by_local_day,
    to_iso_utc,
)
from shiftpay_engines.tracer import traced_engine
from shiftpay_kernel.domain.dtos import HolidayRecord, PayRuleSpec, ShiftRecord, UserSnapshot
from shiftpay_kernel.domain.values import round_half_up
from shiftpay_kernel.logging_config import get_logger

logger = get_logger("engines.payroll")


def decimal_to_str(value: Decimal) -> str:
    """Plain decimal string without exponent or trailing zeros ("25", "12.5")."""
    normalized = value.normalize()
    if normalized == normalized.to_integral_value():
        return str(normalized.quantize(Decimal(1)))
    return format(normalized, "f")


def decimal_to_number(value: Decimal) -> int | float:
    """JSON number: int when integral (25), float otherwise (12.5)."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# ---------------------------------------------------------------------------
# Row types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SupplementTrigger:
    """One segment/rule overlap that produced supplement minutes.

    day is the local day of the segment; from/to are its UTC bounds.
    """

    day: date
    start: datetime
    end: datetime
    minutes: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "from": to_iso_utc(self.start),
            "to": to_iso_utc(self.end),
            "minutes": self.minutes,
        }


@dataclass(frozen=True)
class SupplementLine:
    """Accumulated supplement for one rule."""

    rule_id: UUID
    name: str
    minutes: int
    amount_cents: int
    percent: Decimal
    triggers: tuple[SupplementTrigger, ...]

    def to_payload(self) -> dict[str, Any]:
        return {
            "ruleId": str(self.rule_id),
            "name": self.name,
            "minutes": self.minutes,
            "amountCents": self.amount_cents,
            "percent": decimal_to_number(self.percent),
            "triggers": [t.to_payload() for t in self.triggers],
        }


@dataclass(frozen=True)
class PayrollRow:
    """Gross pay components of one employee for one month."""

    user_id: UUID
    user_name: str
    month_minutes: int
    base_salary_cents: int
    base_hourly_cents: int | None
    base_from_hours_cents: int
    supplements: tuple[SupplementLine, ...]
    supplements_total_cents: int
    gross_cents: int
    bonus: Bonus | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "userId": str(self.user_id),
            "userName": self.user_name,
            "monthMinutes": self.month_minutes,
            "baseSalaryCents": self.base_salary_cents,
            "baseHourlyCents": self.base_hourly_cents,
            "baseFromHoursCents": self.base_from_hours_cents,
            "supplementsByRule": [s.to_payload() for s in self.supplements],
            "supplementsTotalCents": self.supplements_total_cents,
            "grossCents": self.gross_cents,
        }
        if self.bonus is not None:
            payload["bonus"] = self.bonus.to_payload()
        return payload


@dataclass
class _SupplementBucket:
    rule: PayRuleSpec
    minutes: int = 0
    amount_cents: int = 0
    triggers: list[SupplementTrigger] = field(default_factory=list)

    def freeze(self) -> SupplementLine:
        return SupplementLine(
            rule_id=self.rule.id,
            name=self.rule.name,
            minutes=self.minutes,
            amount_cents=self.amount_cents,
            percent=Decimal(self.rule.percent),
            triggers=tuple(self.triggers),
        )


# ---------------------------------------------------------------------------
# Shift selection
# ---------------------------------------------------------------------------


def payable_interval(shift: ShiftRecord) -> tuple[datetime, datetime] | None:
    """Interval a shift contributes to payroll, or None if it does not count."""
    if not shift.is_working_shift:
        return None
    if shift.has_approved_absence:
        return shift.start, shift.end
    if shift.has_unapproved_absence:
        return None
    if shift.clock_in is None or shift.clock_out is None:
        return None
    return shift.clock_in, shift.clock_out


def shifts_in_window(
    shifts: Iterable[ShiftRecord],
    window_start: datetime,
    window_end: datetime,
) -> list[ShiftRecord]:
    """Shifts whose planned ``[start, end)`` intersects the window, in start order."""
    selected = [s for s in shifts if s.end > window_start and s.start < window_end]
    return sorted(selected, key=lambda s: (s.start, str(s.id)))


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def _row_for_user(
    user: UserSnapshot,
    shifts: Sequence[ShiftRecord],
    holidays: frozenset[date],
    month_index: int,
    month_start: datetime,
    month_end: datetime,
    reference_day: date,
    tz: tzinfo,
    vacation_bonus_month_index: int,
    christmas_bonus_month_index: int,
) -> PayrollRow:
    contract = pick_contract_for_date(user.contracts, reference_day)
    hourly = hourly_rate_cents(contract)
    fixed_salary = fixed_salary_cents(contract)

    if contract is None:
        logger.debug(
            "payroll_no_contract",
            extra={"user_id": str(user.id), "reference_day": reference_day.isoformat()},
        )
    elif hourly is None:
        logger.debug("payroll_no_hourly_rate", extra={"user_id": str(user.id)})

    buckets: dict[UUID, _SupplementBucket] = {}
    skipped_rules: set[UUID] = set()
    month_minutes = 0

    for shift in shifts:
        interval = payable_interval(shift)
        if interval is None:
            continue
        clipped = clip_interval(interval[0], interval[1], month_start, month_end)
        if clipped is None:
            continue
        month_minutes += interval_minutes(*clipped)

        for segment in split_by_local_day(clipped[0], clipped[1], tz):
            for hit in evaluate_segment(user.pay_rules, segment, holidays, tz):
                rule = hit.rule
                if hourly is None or rule.percent is None:
                    if rule.id not in skipped_rules:
                        skipped_rules.add(rule.id)
                        logger.debug(
                            "payroll_rule_skipped",
                            extra={
                                "user_id": str(user.id),
                                "rule_id": str(rule.id),
                                "reason": "no_hourly_rate" if hourly is None else "no_percent",
                            },
                        )
                    continue
                amount = supplement_cents(hit.minutes, hourly, rule.percent)
                bucket = buckets.get(rule.id)
                if bucket is None:
                    bucket = buckets[rule.id] = _SupplementBucket(rule=rule)
                bucket.minutes += hit.minutes
                bucket.amount_cents += amount
                bucket.triggers.append(
                    SupplementTrigger(
                        day=segment.day,
                        start=segment.start,
                        end=segment.end,
                        minutes=hit.minutes,
                    )
                )

    supplements = tuple(bucket.freeze() for bucket in buckets.values())
    supplements_total = sum(s.amount_cents for s in supplements)

    base_from_hours = 0
    if hourly is not None and not fixed_salary:
        base_from_hours = round_half_up(Decimal(month_minutes) * hourly / 60)

    bonus = seasonal_bonus(
        contract,
        month_index,
        vacation_bonus_month_index=vacation_bonus_month_index,
        christmas_bonus_month_index=christmas_bonus_month_index,
    )
    bonus_cents = bonus.amount_cents if bonus is not None else 0

    return PayrollRow(
        user_id=user.id,
        user_name=user.full_name,
        month_minutes=month_minutes,
        base_salary_cents=fixed_salary,
        base_hourly_cents=hourly,
        base_from_hours_cents=base_from_hours,
        supplements=supplements,
        supplements_total_cents=supplements_total,
        gross_cents=fixed_salary + base_from_hours + supplements_total + bonus_cents,
        bonus=bonus,
    )


@traced_engine("payroll", "1.0", fingerprint_fields=("year", "month_index"))
def compute_payroll(
    year: int,
    month_index: int,
    users: Sequence[UserSnapshot],
    shifts: Iterable[ShiftRecord],
    holidays: Iterable[HolidayRecord | date],
    *,
    tz: tzinfo,
    representative_day: int = 15,
    vacation_bonus_month_index: int = 5,
    christmas_bonus_month_index: int = 10,
) -> tuple[PayrollRow, ...]:
    """Build one payroll row per active employee for a local calendar month.

    Args:
        year: Calendar year.
        month_index: Zero-based month (0 = January).
        users: Employees with their contracts (ascending valid_from) and
            applicable pay rules.  Inactive users are skipped; active users
            without shifts still get a row.
        shifts: Shifts to consider; anything not intersecting the month is
            ignored.
        holidays: Holidays (records or dates) covering the month and the
            day before it.
        tz: Business timezone.
        representative_day: Day of month whose effective contract sets rate
            and salary.
        vacation_bonus_month_index: Month paying the vacation bonus.
        christmas_bonus_month_index: Month paying the Christmas bonus.

    Returns:
        Rows in the order of ``users``.
    """
    month_start, month_end = month_bounds_utc(year, month_index, tz)
    reference_day = first_day_of_month(year, month_index).replace(day=representative_day)
    holiday_days = holiday_dates(holidays)

    by_user: dict[UUID, list[ShiftRecord]] = {}
    for shift in shifts_in_window(shifts, month_start, month_end):
        by_user.setdefault(shift.user_id, []).append(shift)

    rows = [
        _row_for_user(
            user,
            by_user.get(user.id, ()),
            holiday_days,
            month_index,
            month_start,
            month_end,
            reference_day,
            tz,
            vacation_bonus_month_index,
            christmas_bonus_month_index,
        )
        for user in users
        if user.is_active
    ]
    logger.debug(
        "payroll_computed",
        extra={
            "period": f"{year:04d}-{month_index + 1:02d}",
            "row_count": len(rows),
            "gross_total_cents": sum(r.gross_cents for r in rows),
        },
    )
    return tuple(rows)


def rows_to_payload(rows: Iterable[PayrollRow]) -> list[dict[str, Any]]:
    """JSON-compatible payload for the PAYROLL cache."""
    return [row.to_payload() for row in rows]
