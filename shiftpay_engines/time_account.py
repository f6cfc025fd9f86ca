"""
Time-Account Calculator (``shiftpay_engines.time_account``).

Responsibility
--------------
Worked vs. planned hours, overtime, vacation and sick-day accounting per
employee for a target month and the year to date.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.  Shares the contract
window logic and month bounds with the payroll aggregator but not the
pay-rule evaluator.

Invariants enforced
-------------------
* Planned hours per month = ``round(weekly_hours * 4.35)`` of the contract
  in force.  When two contracts share a month the later one plans it, and
  the month's shifts, vacation and sick days are counted once.
* Yearly vacation entitlement is pro-rated per contract:
  ``vacation_days_annual / 12 * months the contract touches this year``.
* Trailing vacation rule (order sensitive, kept as is):
  the target month's worked hours are credited with
  ``floor((vacation days in month + carry) / 5) * weekly_hours`` where
  carry is the length of the run of consecutive vacation days ending on
  the last calendar day of the previous month.  A run longer than 4 days
  carries nothing (those days were already credited as a full block).
* Year to date: after the last month a contract is in force,
  ``floor(cumulative vacation days / 5) * weekly_hours`` is credited.
* Overtime = year-to-date worked hours - year-to-date planned hours.

Shift minutes
-------------
A shift with an approved absence counts its clock times where present and
its planned times otherwise.  Any other shift needs both clock times.
Shifts coded as non-working placeholders never count.  Minutes are clipped
to the local calendar month.  Sick days are the distinct local start days
of shifts with an approved sickness absence; other approved absences count
hours but not sick days.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal
from typing import Any
from uuid import UUID

from shiftpay_engines.time_windows import (
    add_months,
    business_day_of,
    clip_interval,
    interval_minutes,
    last_day_of_month,
    month_bounds_utc,
    months_between_inclusive,
)
from shiftpay_engines.tracer import traced_engine
from shiftpay_kernel.domain.dtos import ContractTerms, ShiftRecord, UserSnapshot
from shiftpay_kernel.domain.values import round_half_up, round_hours
from shiftpay_kernel.logging_config import get_logger

logger = get_logger("engines.time_account")

_ZERO = Decimal(0)
_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class TimeAccountInput:
    """Everything the calculator needs about one employee.

    vacation_days should cover the previous year as well: December feeds
    January's carry, the whole year feeds the prior-year remainder.
    """

    user: UserSnapshot
    shifts: tuple[ShiftRecord, ...] = ()
    vacation_days: tuple[date, ...] = ()
    hours_adjustment: Decimal = _ZERO


@dataclass(frozen=True)
class WorkingStatsEntry:
    """Time-account figures for one employee; hours are two-place decimals."""

    user_id: UUID
    first_name: str
    last_name: str
    m_hours: Decimal
    m_hours_plan: int
    y_hours: Decimal
    y_hours_plan: int
    overtime: Decimal
    m_vacation: int
    y_vacation: int
    y_vacation_plan: Decimal
    r_vacation_prev_year: Decimal
    m_sick_days: int
    y_sick_days: int
    hours_adjustment: Decimal
    overtime_balance: Decimal

    def to_payload(self) -> dict[str, Any]:
        return {
            "user": {
                "id": str(self.user_id),
                "firstName": self.first_name,
                "lastName": self.last_name,
            },
            "mHours": str(self.m_hours),
            "mHoursPlan": self.m_hours_plan,
            "yHours": str(self.y_hours),
            "yHoursPlan": self.y_hours_plan,
            "overtime": str(self.overtime),
            "mVacation": self.m_vacation,
            "yVacation": self.y_vacation,
            "yVacationPlan": str(self.y_vacation_plan),
            "rVacationPrevYear": str(self.r_vacation_prev_year),
            "mSickDays": self.m_sick_days,
            "ySickDays": self.y_sick_days,
            "hoursAdjustment": str(self.hours_adjustment),
            "overtimeBalance": str(self.overtime_balance),
        }


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


def trailing_vacation_chain(
    vacation_days: Iterable[date],
    year: int,
    month_index: int,
    cap: int = 4,
) -> list[date]:
    """Run of consecutive vacation days ending on the month's last day.

    Returns the run in calendar order, or [] if the last day is not a
    vacation day or the run is longer than ``cap``.
    """
    last_day = last_day_of_month(year, month_index)
    in_month = {d for d in vacation_days if d.year == year and d.month == month_index + 1}
    if last_day not in in_month:
        return []
    chain = [last_day]
    cursor = last_day - _ONE_DAY
    while cursor in in_month:
        chain.append(cursor)
        cursor -= _ONE_DAY
    if len(chain) > cap:
        return []
    return sorted(chain)


def vacation_days_in_month(vacation_days: Iterable[date], year: int, month_index: int) -> int:
    return sum(1 for d in vacation_days if d.year == year and d.month == month_index + 1)


def shift_minutes_in_month(
    shift: ShiftRecord,
    month_start: datetime,
    month_end: datetime,
) -> int:
    """Minutes a shift contributes to worked time inside the month window."""
    if shift.code is not None and not shift.is_working_shift:
        return 0
    if shift.has_approved_absence:
        start = shift.clock_in or shift.start
        end = shift.clock_out or shift.end
    elif shift.clock_in is None or shift.clock_out is None:
        return 0
    else:
        start, end = shift.clock_in, shift.clock_out
    clipped = clip_interval(start, end, month_start, month_end)
    if clipped is None:
        return 0
    return interval_minutes(*clipped)


def monthly_planned_hours(contract: ContractTerms, factor: Decimal) -> int:
    return round_half_up(Decimal(contract.weekly_hours or 0) * factor)


def prorated_vacation_entitlement(
    contracts: Iterable[ContractTerms],
    year: int,
) -> Decimal:
    """Vacation days granted for ``year``, pro-rated by months under contract."""
    year_start, year_end = date(year, 1, 1), date(year, 12, 31)
    total = _ZERO
    for contract in contracts:
        if contract.valid_from is None or contract.valid_from > year_end:
            continue
        if contract.valid_until is not None and contract.valid_until < year_start:
            continue
        start = max(contract.valid_from, year_start)
        end = min(contract.valid_until or year_end, year_end)
        annual = Decimal(contract.vacation_days_annual or 0)
        total += annual / 12 * months_between_inclusive(start, end)
    return total


def is_considered(user: UserSnapshot, year: int, month_index: int) -> bool:
    """Active, hired by the end of the target month, not gone before the year."""
    if not user.is_active:
        return False
    if user.employment_start is not None and user.employment_start > last_day_of_month(year, month_index):
        return False
    if user.termination_date is not None and user.termination_date < date(year, 1, 1):
        return False
    return True


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------


def _stats_for_user(
    account: TimeAccountInput,
    year: int,
    month_index: int,
    tz: tzinfo,
    planned_hours_factor: Decimal,
    vacation_block_days: int,
    trailing_vacation_cap: int,
) -> WorkingStatsEntry:
    user = account.user
    year_start, year_end = date(year, 1, 1), date(year, 12, 31)
    target_end = last_day_of_month(year, month_index)
    carry_year, carry_month = add_months(year, month_index, -1)

    m_minutes = y_minutes = 0
    m_credit = y_credit = _ZERO
    m_plan = y_plan = 0
    m_vacation = y_vacation = 0
    y_vacation_plan = _ZERO
    sick_year: set[date] = set()
    m_sick_days = 0

    # Month index -> contract in force; a later contract takes over a shared month
    in_force: dict[int, ContractTerms] = {}
    for contract in user.contracts:
        if contract.valid_from is None or contract.valid_from > target_end:
            continue
        if contract.valid_until is not None and contract.valid_until < year_start:
            continue

        start = max(contract.valid_from, year_start)
        end = min(contract.valid_until or target_end, target_end)
        end_of_year = min(contract.valid_until or year_end, year_end)

        annual = Decimal(contract.vacation_days_annual or 0)
        y_vacation_plan += annual / 12 * months_between_inclusive(start, end_of_year)

        first_month = start.month - 1
        for m in range(first_month, first_month + months_between_inclusive(start, end)):
            in_force[m] = contract

    months = sorted(in_force)
    for position, m in enumerate(months):
        contract = in_force[m]
        weekly = Decimal(contract.weekly_hours or 0)
        monthly_plan = monthly_planned_hours(contract, planned_hours_factor)
        month_start, month_end = month_bounds_utc(year, m, tz)
        vacation = vacation_days_in_month(account.vacation_days, year, m)
        y_vacation += vacation
        y_plan += monthly_plan

        month_minutes = 0
        sick_month: set[date] = set()
        for shift in account.shifts:
            if not (shift.end > month_start and shift.start < month_end):
                continue
            month_minutes += shift_minutes_in_month(shift, month_start, month_end)
            if shift.is_approved_sickness:
                sick_day = business_day_of(shift.start, tz)
                sick_year.add(sick_day)
                sick_month.add(sick_day)
        y_minutes += month_minutes

        if m == month_index:
            m_plan = monthly_plan
            m_vacation = vacation
            m_minutes = month_minutes
            carry = len(
                trailing_vacation_chain(
                    account.vacation_days, carry_year, carry_month, trailing_vacation_cap
                )
            )
            m_credit = ((vacation + carry) // vacation_block_days) * weekly
            m_sick_days = len(sick_month)

        # Cumulative across contracts, credited when a contract's run of months ends
        is_last_of_run = position + 1 == len(months) or in_force[months[position + 1]] is not contract
        if is_last_of_run:
            y_credit += (y_vacation // vacation_block_days) * weekly

    m_hours = round_hours(Decimal(m_minutes) / 60 + m_credit)
    y_hours_exact = Decimal(y_minutes) / 60 + y_credit
    overtime = round_hours(y_hours_exact - y_plan)

    prior_entitlement = prorated_vacation_entitlement(user.contracts, year - 1)
    prior_taken = sum(1 for d in account.vacation_days if d.year == year - 1)
    remainder = max(_ZERO, prior_entitlement - prior_taken)

    adjustment = round_hours(account.hours_adjustment)
    return WorkingStatsEntry(
        user_id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        m_hours=m_hours,
        m_hours_plan=m_plan,
        y_hours=round_hours(y_hours_exact),
        y_hours_plan=y_plan,
        overtime=overtime,
        m_vacation=m_vacation,
        y_vacation=y_vacation,
        y_vacation_plan=round_hours(y_vacation_plan),
        r_vacation_prev_year=round_hours(remainder),
        m_sick_days=m_sick_days,
        y_sick_days=len(sick_year),
        hours_adjustment=adjustment,
        overtime_balance=overtime + adjustment,
    )


@traced_engine("time_account", "1.0", fingerprint_fields=("year", "month_index"))
def compute_working_stats(
    year: int,
    month_index: int,
    accounts: Sequence[TimeAccountInput],
    *,
    tz: tzinfo,
    planned_hours_factor: Decimal = Decimal("4.35"),
    vacation_block_days: int = 5,
    trailing_vacation_cap: int = 4,
) -> tuple[WorkingStatsEntry, ...]:
    """Time-account entries for every considered employee.

    Args:
        year: Calendar year.
        month_index: Zero-based target month.
        accounts: One input per employee; contracts ascending by valid_from,
            shifts covering the year to the end of the target month.
        tz: Business timezone.
        planned_hours_factor: Weeks per month used for planned hours.
        vacation_block_days: Vacation days that make one credited work week.
        trailing_vacation_cap: Longest trailing run that still carries over.

    Returns:
        Entries in the order of ``accounts``; users that are inactive, not
        yet employed or terminated before the year are left out.
    """
    entries = tuple(
        _stats_for_user(
            account,
            year,
            month_index,
            tz,
            planned_hours_factor,
            vacation_block_days,
            trailing_vacation_cap,
        )
        for account in accounts
        if is_considered(account.user, year, month_index)
    )
    logger.debug(
        "time_account_computed",
        extra={"period": f"{year:04d}-{month_index + 1:02d}", "entry_count": len(entries)},
    )
    return entries


def entries_to_payload(entries: Iterable[WorkingStatsEntry]) -> list[dict[str, Any]]:
    """JSON-compatible payload for the TIMEACCOUNT cache."""
    return [entry.to_payload() for entry in entries]
