"""
Dashboard builder (``shiftpay_engines.dashboard``).

Responsibility
--------------
Management dashboard figures for one month, derived from the month's
payroll rows and shifts: a summary block, clocked hours per local day and
the points of the cost trend.

Architecture position
---------------------
**Engines layer** -- pure functional core.  The caller supplies the payroll
rows (usually the ones just written to the PAYROLL cache) so a dashboard
never disagrees with the payroll of the same month.

Invariants enforced
-------------------
* totalCost is whole euros, rounded half away from zero from gross cents.
* avgRate is euros per (rounded) total hour, two places, "0.00" when no
  hours were worked.
* Vacation entitlement uses the contract effective on the representative
  day of the target month, so results never depend on the wall clock.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from shiftpay_engines.contracts import pick_contract_for_date
from shiftpay_engines.pay_rules import js_weekday
from shiftpay_engines.payroll import PayrollRow, decimal_to_str
from shiftpay_engines.time_windows import (
    clip_interval,
    first_day_of_month,
    interval_minutes,
    month_bounds_utc,
    split_by_local_day,
)
from shiftpay_kernel.domain.dtos import ShiftRecord, UserSnapshot
from shiftpay_kernel.domain.values import round_half_up

GERMAN_MONTHS_SHORT = (
    "Jan.", "Feb.", "März", "Apr.", "Mai", "Juni",
    "Juli", "Aug.", "Sept.", "Okt.", "Nov.", "Dez.",
)

# Indexed by js_weekday (0 = Sunday)
GERMAN_WEEKDAYS_SHORT = ("So", "Mo", "Di", "Mi", "Do", "Fr", "Sa")

_TWO_PLACES = Decimal("0.01")


def _hours(minutes: int | Decimal) -> int:
    return round_half_up(Decimal(minutes) / 60)


def planned_minutes(
    shifts: Iterable[ShiftRecord],
    month_start: datetime,
    month_end: datetime,
) -> int:
    """Planned minutes of working shifts without any absence, inside the month."""
    total = 0
    for shift in shifts:
        if not shift.is_working_shift or shift.absence is not None:
            continue
        clipped = clip_interval(shift.start, shift.end, month_start, month_end)
        if clipped is not None:
            total += interval_minutes(*clipped)
    return total


def total_vacation_days(users: Iterable[UserSnapshot], on: date) -> Decimal:
    """Annual vacation entitlement summed over the contracts effective on ``on``."""
    total = Decimal(0)
    for user in users:
        contract = pick_contract_for_date(user.contracts, on)
        if contract is not None and contract.vacation_days_annual:
            total += Decimal(contract.vacation_days_annual)
    return total


def build_dashboard_summary(
    rows: Sequence[PayrollRow],
    users: Iterable[UserSnapshot],
    shifts: Iterable[ShiftRecord],
    *,
    year: int,
    month_index: int,
    used_vacation_days: int,
    tz: tzinfo,
    representative_day: int = 15,
) -> dict[str, Any]:
    month_start, month_end = month_bounds_utc(year, month_index, tz)
    total_hours = _hours(sum(r.month_minutes for r in rows))
    total_cost_cents = sum(r.gross_cents for r in rows)

    if total_hours > 0:
        avg_rate = (Decimal(total_cost_cents) / 100 / total_hours).quantize(
            _TWO_PLACES, rounding=ROUND_HALF_UP
        )
    else:
        avg_rate = Decimal("0.00")

    reference_day = first_day_of_month(year, month_index).replace(day=representative_day)
    return {
        "activeEmployees": len(rows),
        "totalHours": total_hours,
        "plannedHours": _hours(planned_minutes(shifts, month_start, month_end)),
        "totalCost": round_half_up(Decimal(total_cost_cents) / 100),
        "avgRate": str(avg_rate),
        "totalVacationDays": decimal_to_str(
            total_vacation_days((u for u in users if u.is_active), reference_day)
        ),
        "usedVacationDays": used_vacation_days,
    }


def build_hours_by_day(
    shifts: Iterable[ShiftRecord],
    year: int,
    month_index: int,
    tz: tzinfo,
) -> list[dict[str, Any]]:
    """Clocked hours per local day of the month, in day order.

    Only shifts with a clock-out, a shift code and no absence count; a
    missing clock-in falls back to the planned start.
    """
    month_start, month_end = month_bounds_utc(year, month_index, tz)
    minutes_by_day: dict[date, int] = {}
    for shift in shifts:
        if shift.clock_out is None or shift.code is None or shift.absence is not None:
            continue
        clipped = clip_interval(shift.clock_in or shift.start, shift.clock_out, month_start, month_end)
        if clipped is None:
            continue
        for segment in split_by_local_day(clipped[0], clipped[1], tz):
            minutes_by_day[segment.day] = (
                minutes_by_day.get(segment.day, 0) + interval_minutes(segment.start, segment.end)
            )

    return [
        {
            "key": day.isoformat(),
            "name": f"{GERMAN_WEEKDAYS_SHORT[js_weekday(day)]} {day.day}.{day.month}.",
            "hours": _hours(minutes),
        }
        for day, minutes in sorted(minutes_by_day.items())
    ]


def cost_trend_point(year: int, month_index: int, total_cost: int | Decimal) -> dict[str, Any]:
    return {
        "name": GERMAN_MONTHS_SHORT[month_index],
        "year": year,
        "monthIndex": month_index,
        "cost": round_half_up(Decimal(total_cost)),
    }


def build_dashboard_base(
    rows: Sequence[PayrollRow],
    users: Sequence[UserSnapshot],
    shifts: Sequence[ShiftRecord],
    *,
    year: int,
    month_index: int,
    used_vacation_days: int,
    tz: tzinfo,
    representative_day: int = 15,
) -> dict[str, Any]:
    """Dashboard payload without the cost trend (``summary`` and ``hoursByDay``)."""
    return {
        "summary": build_dashboard_summary(
            rows,
            users,
            shifts,
            year=year,
            month_index=month_index,
            used_vacation_days=used_vacation_days,
            tz=tz,
            representative_day=representative_day,
        ),
        "hoursByDay": build_hours_by_day(shifts, year, month_index, tz),
    }
