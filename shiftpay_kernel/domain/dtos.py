"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Immutable snapshots of persisted data that flow into the calculation
    engines: ContractTerms, PayRuleSpec, UserSnapshot, ShiftRecord,
    HolidayRecord, VacationDayRecord, ManualAdjustmentRecord, and the
    CacheEntry read back from the KPI cache table.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies.  from_model() class methods exist as boundary
    converters but are only invoked from selectors (never from engines).

Invariants enforced:
    - Engines accept DTOs, never ORM entities.
    - Every datetime on a DTO is timezone-aware (naive input is rejected).
    - Pay-rule windows are minutes 0-1439, weekdays 0-6, and holiday_only /
      exclude_holidays are mutually exclusive.

Failure modes:
    - ValueError on construction with naive datetimes, negative cents,
      out-of-range windows or contradictory holiday flags.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from shiftpay_kernel.models.contract import Contract as ContractModel
    from shiftpay_kernel.models.holiday import Holiday as HolidayModel
    from shiftpay_kernel.models.kpi_cache import KpiCache as KpiCacheModel
    from shiftpay_kernel.models.pay_rule import PayRule as PayRuleModel
    from shiftpay_kernel.models.shift import Shift as ShiftModel
    from shiftpay_kernel.models.user import User as UserModel

_MINUTES_PER_DAY = 24 * 60

# Matches AbsenceReason.SICKNESS on the shift model
SICKNESS_REASON = "sickness"


def _require_aware(name: str, value: datetime | None) -> None:
    if value is not None and value.tzinfo is None:
        raise ValueError(f"{name} must be timezone-aware, got naive {value!r}")


@dataclass(frozen=True)
class ContractTerms:
    """
    Employment contract terms as seen by the engines.

    Contract:
        valid_from / valid_until are inclusive calendar dates;
        valid_until None means open-ended.  Exactly one of hourly_rate_cents
        or (salary_monthly_cents + weekly_hours) is expected to be meaningful
        for deriving an hourly equivalent, but both may be present.
    """

    id: UUID | None
    valid_from: date | None
    valid_until: date | None = None
    hourly_rate_cents: int | None = None
    salary_monthly_cents: int | None = None
    weekly_hours: Decimal | None = None
    vacation_days_annual: Decimal | None = None
    vacation_bonus: Decimal | None = None
    christmas_bonus: Decimal | None = None

    def __post_init__(self) -> None:
        if self.hourly_rate_cents is not None and self.hourly_rate_cents < 0:
            raise ValueError("hourly_rate_cents cannot be negative")
        if self.salary_monthly_cents is not None and self.salary_monthly_cents < 0:
            raise ValueError("salary_monthly_cents cannot be negative")
        if self.weekly_hours is not None and self.weekly_hours < 0:
            raise ValueError("weekly_hours cannot be negative")

    def covers(self, on: date) -> bool:
        """Inclusive range check; a contract without valid_from covers nothing."""
        if self.valid_from is None:
            return False
        if on < self.valid_from:
            return False
        return self.valid_until is None or on <= self.valid_until

    @classmethod
    def from_model(cls, model: ContractModel) -> ContractTerms:
        return cls(
            id=model.id,
            valid_from=model.valid_from,
            valid_until=model.valid_until,
            hourly_rate_cents=model.hourly_rate_cents,
            salary_monthly_cents=model.salary_monthly_cents,
            weekly_hours=model.weekly_hours,
            vacation_days_annual=model.vacation_days_annual,
            vacation_bonus=model.vacation_bonus,
            christmas_bonus=model.christmas_bonus,
        )


@dataclass(frozen=True)
class PayRuleSpec:
    """
    A supplement rule: percentage premium for time inside a window.

    Contract:
        window_start_min / window_end_min are minutes since local midnight.
        Both None means the whole day.  window_end_min == 0 means 24:00.
        window_end_min <= window_start_min means the window wraps past
        local midnight.  days_of_week uses 0 = Sunday ... 6 = Saturday; an
        empty set means every day.  user_id None means the rule is global.
    """

    id: UUID
    name: str
    percent: Decimal | None
    window_start_min: int | None = None
    window_end_min: int | None = None
    days_of_week: frozenset[int] = field(default_factory=frozenset)
    holiday_only: bool = False
    exclude_holidays: bool = False
    valid_from: date | None = None
    valid_until: date | None = None
    user_id: UUID | None = None

    def __post_init__(self) -> None:
        if self.holiday_only and self.exclude_holidays:
            raise ValueError(
                f"Pay rule {self.name!r}: holiday_only and exclude_holidays are mutually exclusive"
            )
        for label, minute in (
            ("window_start_min", self.window_start_min),
            ("window_end_min", self.window_end_min),
        ):
            if minute is not None and not 0 <= minute < _MINUTES_PER_DAY:
                raise ValueError(f"Pay rule {self.name!r}: {label}={minute} outside 0-1439")
        bad_days = [d for d in self.days_of_week if not 0 <= d <= 6]
        if bad_days:
            raise ValueError(f"Pay rule {self.name!r}: invalid weekdays {sorted(bad_days)}")
        if not isinstance(self.days_of_week, frozenset):
            object.__setattr__(self, "days_of_week", frozenset(self.days_of_week))

    @property
    def is_all_day(self) -> bool:
        return self.window_start_min is None or self.window_end_min is None

    @classmethod
    def from_model(cls, model: PayRuleModel) -> PayRuleSpec:
        return cls(
            id=model.id,
            name=model.name,
            percent=model.percent,
            window_start_min=model.window_start_min,
            window_end_min=model.window_end_min,
            days_of_week=frozenset(model.days_of_week or ()),
            holiday_only=model.holiday_only,
            exclude_holidays=model.exclude_holidays,
            valid_from=model.valid_from,
            valid_until=model.valid_until,
            user_id=model.user_id,
        )


@dataclass(frozen=True)
class UserSnapshot:
    """An employee with the contracts and pay rules that apply to them.

    contracts are kept in the order supplied; selectors sort them by
    valid_from ascending.  pay_rules include global rules.
    """

    id: UUID
    first_name: str
    last_name: str
    is_active: bool = True
    employment_start: date | None = None
    termination_date: date | None = None
    contracts: tuple[ContractTerms, ...] = ()
    pay_rules: tuple[PayRuleSpec, ...] = ()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def from_model(
        cls,
        model: UserModel,
        contracts: tuple[ContractTerms, ...] = (),
        pay_rules: tuple[PayRuleSpec, ...] = (),
    ) -> UserSnapshot:
        return cls(
            id=model.id,
            first_name=model.first_name,
            last_name=model.last_name,
            is_active=model.is_active,
            employment_start=model.employment_start,
            termination_date=model.termination_date,
            contracts=contracts,
            pay_rules=pay_rules,
        )


@dataclass(frozen=True)
class AbsenceInfo:
    """Absence linked to a shift (sickness, ...), with its approval state."""

    reason: str
    approved: bool


@dataclass(frozen=True)
class ShiftRecord:
    """
    A planned shift with optional clock times.

    Contract:
        start/end are the planned interval; clock_in/clock_out the actual
        one.  code is the shift code key (None for uncoded placeholders);
        is_working_shift says whether that code counts toward worked time.
    """

    id: UUID
    user_id: UUID
    start: datetime
    end: datetime
    clock_in: datetime | None = None
    clock_out: datetime | None = None
    code: str | None = None
    is_working_shift: bool = False
    absence: AbsenceInfo | None = None

    def __post_init__(self) -> None:
        _require_aware("start", self.start)
        _require_aware("end", self.end)
        _require_aware("clock_in", self.clock_in)
        _require_aware("clock_out", self.clock_out)

    @property
    def has_approved_absence(self) -> bool:
        return self.absence is not None and self.absence.approved

    @property
    def has_unapproved_absence(self) -> bool:
        return self.absence is not None and not self.absence.approved

    @property
    def is_approved_sickness(self) -> bool:
        return self.has_approved_absence and self.absence.reason == SICKNESS_REASON

    @classmethod
    def from_model(cls, model: ShiftModel) -> ShiftRecord:
        absence = None
        if model.absence is not None:
            absence = AbsenceInfo(
                reason=getattr(model.absence.reason, "value", model.absence.reason),
                approved=model.absence.is_approved,
            )
        return cls(
            id=model.id,
            user_id=model.user_id,
            start=model.start,
            end=model.end,
            clock_in=model.clock_in,
            clock_out=model.clock_out,
            code=model.code.key if model.code is not None else None,
            is_working_shift=bool(model.code is not None and model.code.is_working_shift),
            absence=absence,
        )


@dataclass(frozen=True)
class HolidayRecord:
    day: date
    name: str

    @classmethod
    def from_model(cls, model: HolidayModel) -> HolidayRecord:
        return cls(day=model.day, name=model.name)


@dataclass(frozen=True)
class VacationDayRecord:
    user_id: UUID
    day: date


@dataclass(frozen=True)
class ManualAdjustmentRecord:
    """Manual yearly correction of a user's hour balance (may be negative)."""

    user_id: UUID
    year: int
    hours: Decimal


@dataclass(frozen=True)
class CacheEntry:
    """
    A KPI cache row as read from the store.

    Contract:
        payload is the JSON-compatible value written by the cache service.
        deps_updated_at may be None for rows written by older code; such
        rows are always stale.
    """

    kind: str
    year: int
    month_index: int
    payload: Any
    calculation_done_at: datetime
    deps_updated_at: datetime | None

    @classmethod
    def from_model(cls, model: KpiCacheModel) -> CacheEntry:
        return cls(
            kind=model.kind,
            year=model.year,
            month_index=model.month_index,
            payload=model.payload,
            calculation_done_at=model.calculation_done_at,
            deps_updated_at=model.deps_updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "year": self.year,
            "monthIndex": self.month_index,
            "payload": self.payload,
            "calculationDoneAt": self.calculation_done_at.isoformat(),
            "depsUpdatedAt": (
                self.deps_updated_at.isoformat() if self.deps_updated_at else None
            ),
        }
