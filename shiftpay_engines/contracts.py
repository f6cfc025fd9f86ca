"""
Contract Resolver (``shiftpay_engines.contracts``).

Responsibility
--------------
Pick the employment contract effective on a date and derive its hourly
rate, fixed salary and seasonal bonus.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.

Invariants enforced
-------------------
* Last match wins: contracts are scanned in the order supplied and every
  contract whose inclusive ``[valid_from, valid_until]`` contains the date
  replaces the previous candidate.  Callers pass contracts sorted by
  ``valid_from`` ascending to get "most recent contract wins"; with
  overlapping ranges the result is the last one in list order, which is
  not necessarily the one with the latest ``valid_from``.
* Contracts without ``valid_from`` never match.
* Derived hourly rate: ``hourly_rate_cents`` if set, else
  ``round(salary / (weekly_hours * 52 / 12))`` when both are present and
  weekly_hours > 0, else None.  All rounding is half away from zero.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from shiftpay_kernel.domain.dtos import ContractTerms
from shiftpay_kernel.domain.values import round_half_up

_WEEKS_PER_MONTH = Decimal(52) / Decimal(12)

VACATION_BONUS_NAME = "Urlaubsgeld"
CHRISTMAS_BONUS_NAME = "Weihnachtsgeld"


@dataclass(frozen=True)
class Bonus:
    """Seasonal one-off payment."""

    name: str
    amount_cents: int

    def to_payload(self) -> dict[str, object]:
        return {"name": self.name, "amountCents": self.amount_cents}


def pick_contract_for_date(
    contracts: Iterable[ContractTerms],
    on: date,
) -> ContractTerms | None:
    """Contract effective on ``on``; the last match in iteration order wins."""
    picked: ContractTerms | None = None
    for contract in contracts:
        if contract.covers(on):
            picked = contract
    return picked


def hourly_rate_cents(contract: ContractTerms | None) -> int | None:
    """Hourly rate in cents, or None when no rate can be derived."""
    if contract is None:
        return None
    if contract.hourly_rate_cents is not None:
        return contract.hourly_rate_cents
    if contract.salary_monthly_cents and contract.weekly_hours and contract.weekly_hours > 0:
        monthly_hours = Decimal(contract.weekly_hours) * _WEEKS_PER_MONTH
        return round_half_up(Decimal(contract.salary_monthly_cents) / monthly_hours)
    return None


def fixed_salary_cents(contract: ContractTerms | None) -> int:
    """Monthly fixed salary in cents; 0 without contract or salary."""
    if contract is None or not contract.salary_monthly_cents:
        return 0
    return contract.salary_monthly_cents


def seasonal_bonus(
    contract: ContractTerms | None,
    month_index: int,
    *,
    vacation_bonus_month_index: int = 5,
    christmas_bonus_month_index: int = 10,
) -> Bonus | None:
    """Holiday pay (June) or Christmas pay (November) for salaried contracts.

    amount = round(salary * percent / 100).  At most one bonus per month.
    """
    salary = fixed_salary_cents(contract)
    if not salary:
        return None
    if month_index == vacation_bonus_month_index and contract.vacation_bonus:
        return Bonus(
            name=VACATION_BONUS_NAME,
            amount_cents=round_half_up(Decimal(salary) * contract.vacation_bonus / 100),
        )
    if month_index == christmas_bonus_month_index and contract.christmas_bonus:
        return Bonus(
            name=CHRISTMAS_BONUS_NAME,
            amount_cents=round_half_up(Decimal(salary) * contract.christmas_bonus / 100),
        )
    return None


def ranges_overlap(
    a_from: date,
    a_until: date | None,
    b_from: date,
    b_until: date | None,
) -> bool:
    """Inclusive date-range overlap; None upper bounds are open-ended."""
    a_starts_before_b_ends = b_until is None or a_from <= b_until
    b_starts_before_a_ends = a_until is None or b_from <= a_until
    return a_starts_before_b_ends and b_starts_before_a_ends
