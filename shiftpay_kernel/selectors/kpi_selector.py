"""
Module: shiftpay_kernel.selectors.kpi_selector
Responsibility: Read-only queries feeding the KPI computations: employees
    with their contracts and pay rules, shifts in a window, holidays,
    vacation days, manual adjustments, cached KPI entries, and the
    dependency timestamp that decides cache freshness.
Architecture position: Kernel > Selectors.  Returns domain DTOs only.

Invariants enforced:
    - Contracts are returned ascending by valid_from (the contract resolver
      relies on "last match wins").
    - A user's pay rules are their own rules followed by the global ones
      (user_id NULL).
    - The dependency timestamp is the latest updated_at over every row
      that can influence a KPI of the requested kind and period, and never
      earlier than the Unix epoch.

Failure modes:
    - Returns empty lists when nothing matches.
    - Deleted rows do not move the dependency timestamp; only inserts and
      updates do.  Entries still expire after the cache max age.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from shiftpay_kernel.domain.dtos import (
    CacheEntry,
    ContractTerms,
    HolidayRecord,
    PayRuleSpec,
    ShiftRecord,
    UserSnapshot,
    VacationDayRecord,
)
from shiftpay_kernel.domain.kpi import EPOCH, CacheKey, KpiKind
from shiftpay_kernel.models.contract import Contract
from shiftpay_kernel.models.holiday import Holiday, VacationDay
from shiftpay_kernel.models.kpi_cache import KpiCache
from shiftpay_kernel.models.manual_adjustment import ManualAdjustment
from shiftpay_kernel.models.pay_rule import PayRule
from shiftpay_kernel.models.shift import Shift, ShiftAbsence, ShiftCode
from shiftpay_kernel.models.user import User
from shiftpay_kernel.selectors.base import BaseSelector


def _local_midnight_utc(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time(0), tzinfo=tz).astimezone(UTC)


class KpiSelector(BaseSelector[KpiCache]):
    """
    Selector for KPI inputs and cache rows.

    Contract:
        Windows passed in are UTC instants ``[start, end)``; calendar ranges
        are inclusive local dates.

    Guarantees:
        - All methods are read-only and return DTOs.
        - Results are ordered deterministically.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    # ------------------------------------------------------------------
    # Employees
    # ------------------------------------------------------------------

    def users(self, active_only: bool = True, user_id: UUID | None = None) -> list[UserSnapshot]:
        """Employees with contracts (ascending valid_from) and applicable pay rules."""
        query = select(User).order_by(User.last_name, User.first_name, User.id)
        if active_only:
            query = query.where(User.is_active.is_(True))
        if user_id is not None:
            query = query.where(User.id == user_id)
        user_models = list(self.session.execute(query).scalars())
        if not user_models:
            return []

        user_ids = [u.id for u in user_models]
        contracts: dict[UUID, list[ContractTerms]] = defaultdict(list)
        for contract in self.session.execute(
            select(Contract)
            .where(Contract.user_id.in_(user_ids))
            .order_by(Contract.valid_from, Contract.id)
        ).scalars():
            contracts[contract.user_id].append(ContractTerms.from_model(contract))

        own_rules: dict[UUID, list[PayRuleSpec]] = defaultdict(list)
        global_rules: list[PayRuleSpec] = []
        for rule in self.session.execute(
            select(PayRule)
            .where(or_(PayRule.user_id.in_(user_ids), PayRule.user_id.is_(None)))
            .order_by(PayRule.name, PayRule.id)
        ).scalars():
            spec = PayRuleSpec.from_model(rule)
            if rule.user_id is None:
                global_rules.append(spec)
            else:
                own_rules[rule.user_id].append(spec)

        return [
            UserSnapshot.from_model(
                model,
                contracts=tuple(contracts.get(model.id, ())),
                pay_rules=tuple(own_rules.get(model.id, ())) + tuple(global_rules),
            )
            for model in user_models
        ]

    def user(self, user_id: UUID) -> UserSnapshot | None:
        """A single employee (active or not), or None if unknown."""
        found = self.users(active_only=False, user_id=user_id)
        return found[0] if found else None

    # ------------------------------------------------------------------
    # Shifts and calendars
    # ------------------------------------------------------------------

    def shifts_overlapping(
        self,
        window_start: datetime,
        window_end: datetime,
        user_id: UUID | None = None,
    ) -> list[ShiftRecord]:
        """Shifts with ``end >= window_start`` and ``start <= window_end``."""
        query = (
            select(Shift)
            .where(Shift.end >= window_start, Shift.start <= window_end)
            .order_by(Shift.start, Shift.id)
        )
        if user_id is not None:
            query = query.where(Shift.user_id == user_id)
        return [ShiftRecord.from_model(s) for s in self.session.execute(query).unique().scalars()]

    def holidays_between(self, from_day: date, to_day: date) -> list[HolidayRecord]:
        query = (
            select(Holiday)
            .where(Holiday.day >= from_day, Holiday.day <= to_day)
            .order_by(Holiday.day)
        )
        return [HolidayRecord.from_model(h) for h in self.session.execute(query).scalars()]

    def vacation_days_between(
        self,
        from_day: date,
        to_day: date,
        user_id: UUID | None = None,
    ) -> list[VacationDayRecord]:
        query = (
            select(VacationDay)
            .where(VacationDay.day >= from_day, VacationDay.day <= to_day)
            .order_by(VacationDay.user_id, VacationDay.day)
        )
        if user_id is not None:
            query = query.where(VacationDay.user_id == user_id)
        return [
            VacationDayRecord(user_id=v.user_id, day=v.day)
            for v in self.session.execute(query).scalars()
        ]

    def count_vacation_days(self, from_day: date, to_day: date) -> int:
        return self.session.execute(
            select(func.count(VacationDay.id)).where(
                VacationDay.day >= from_day, VacationDay.day <= to_day
            )
        ).scalar_one()

    def manual_adjustments(self, year: int) -> dict[UUID, Decimal]:
        """Yearly hour adjustments keyed by user id."""
        query = select(ManualAdjustment).where(ManualAdjustment.year == year)
        return {
            adj.user_id: Decimal(adj.hours_adjustment)
            for adj in self.session.execute(query).scalars()
        }

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def cache_entry(self, key: CacheKey) -> CacheEntry | None:
        model = self.session.execute(
            select(KpiCache).where(
                KpiCache.kind == key.kind.value,
                KpiCache.year == key.year,
                KpiCache.month_index == key.month_index,
            )
        ).scalar_one_or_none()
        return CacheEntry.from_model(model) if model is not None else None

    # ------------------------------------------------------------------
    # Dependency timestamps
    # ------------------------------------------------------------------

    def deps_updated_at(
        self,
        kind: KpiKind,
        year: int,
        month_index: int,
        tz: tzinfo,
    ) -> datetime:
        """Latest change to any input of ``kind`` for the period; epoch if none.

        PAYROLL and DASHBOARD look at the month (holidays from the day
        before it, since wrapping rules anchor there).  TIMEACCOUNT looks
        at the year to the end of the month and also at vacation days and
        manual adjustments.  DASHBOARD adds the year's vacation days.
        """
        month_first = date(year, month_index + 1, 1)
        next_first = (
            date(year + 1, 1, 1) if month_index == 11 else date(year, month_index + 2, 1)
        )
        window_first = date(year, 1, 1) if kind is KpiKind.TIMEACCOUNT else month_first
        window_start = _local_midnight_utc(window_first, tz)
        window_end = _local_midnight_utc(next_first, tz)
        shift_overlaps = (Shift.end >= window_start, Shift.start <= window_end)

        queries = [
            select(func.max(Shift.updated_at)).where(*shift_overlaps),
            select(func.max(ShiftAbsence.updated_at))
            .join(Shift, ShiftAbsence.shift_id == Shift.id)
            .where(*shift_overlaps),
            select(func.max(ShiftCode.updated_at)),
            select(func.max(PayRule.updated_at)),
            select(func.max(Contract.updated_at)),
            select(func.max(User.updated_at)),
            select(func.max(Holiday.updated_at)).where(
                Holiday.day >= window_first - timedelta(days=1),
                Holiday.day < next_first,
            ),
        ]
        if kind is KpiKind.TIMEACCOUNT:
            queries.append(
                select(func.max(VacationDay.updated_at)).where(
                    VacationDay.day >= date(year - 1, 1, 1),
                    VacationDay.day <= date(year, 12, 31),
                )
            )
            queries.append(
                select(func.max(ManualAdjustment.updated_at)).where(
                    ManualAdjustment.year == year
                )
            )
        elif kind is KpiKind.DASHBOARD:
            queries.append(
                select(func.max(VacationDay.updated_at)).where(
                    VacationDay.day >= date(year, 1, 1),
                    VacationDay.day <= date(year, 12, 31),
                )
            )

        latest = EPOCH
        for query in queries:
            value = self.session.execute(query).scalar_one_or_none()
            if value is not None and value > latest:
                latest = value
        return latest
