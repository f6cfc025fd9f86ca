"""
KpiCacheService -- monthly KPI aggregates with staleness-checked caching.

Responsibility:
    The single entry point for callers that need payroll, time-account or
    dashboard figures for a month.  Serves a stored aggregate while it is
    fresh, otherwise recomputes it from the store through the pure engines
    and replaces the stored row.

Architecture position:
    Kernel > Services -- imperative shell.
    Reads through ``KpiSelector``, computes with ``shiftpay_engines``,
    writes ``KpiCache`` rows.  Time comes from the injected Clock,
    settings from ``shiftpay_config``.

Invariants enforced:
    - Input is validated before anything is read: bad periods raise
      InvalidPeriodError, unknown kinds UnknownKpiKindError.
    - An entry is served only if it exists, is younger than the max age,
      carries a dependency timestamp and no input changed after it.
    - A cache write is all-or-nothing.  It runs in a SAVEPOINT; on failure
      the SAVEPOINT is rolled back, the previous entry stays readable and
      a FAILED result is returned instead of raising.
    - The dependency timestamp is read BEFORE the inputs, so a change that
      lands during a recomputation makes the new entry stale at once.
    - Single-flight per (kind, year, month_index) inside one process: a
      re-entrant lock per key, and the entry is re-read after the lock is
      acquired so waiting callers get the winner's result.
    - A dashboard's cost trend reaches earlier months through an explicit
      bounded loop.  Locks are taken from the target month towards earlier
      months only, so lock order never cycles.

Failure modes:
    - InvalidPeriodError / UnknownKpiKindError: rejected input.
    - KpiCacheResult(status=FAILED): cache write failed; see ``error``.
    - Any other exception from the store or the engines propagates.

Audit relevance:
    Cache hits, recalculations (with the staleness reason) and failed
    writes are logged with the cache key.  Engine runs emit
    SHIFTPAY_ENGINE_TRACE records.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shiftpay_config import EngineSettings, get_active_settings
from shiftpay_engines.dashboard import build_dashboard_base, cost_trend_point
from shiftpay_engines.payroll import PayrollRow, compute_payroll, rows_to_payload
from shiftpay_engines.time_account import (
    TimeAccountInput,
    WorkingStatsEntry,
    compute_working_stats,
    entries_to_payload,
)
from shiftpay_engines.time_windows import add_months, last_day_of_month, month_bounds_utc
from shiftpay_kernel.domain.clock import Clock, SystemClock
from shiftpay_kernel.domain.dtos import CacheEntry, HolidayRecord, ShiftRecord, UserSnapshot
from shiftpay_kernel.domain.kpi import CacheKey, KpiKind, staleness_reason
from shiftpay_kernel.domain.period import MIN_YEAR, validate_period
from shiftpay_kernel.logging_config import LogContext, get_logger
from shiftpay_kernel.models.kpi_cache import KpiCache
from shiftpay_kernel.selectors.kpi_selector import KpiSelector
from shiftpay_kernel.services.base import BaseService

logger = get_logger("services.kpi_cache")


class KpiCacheStatus(str, Enum):
    FRESH = "fresh"
    RECALCULATED = "recalculated"
    FAILED = "failed"


@dataclass(frozen=True)
class KpiCacheResult:
    """
    Outcome of a cache lookup or recalculation.

    Guarantees:
        - FRESH / RECALCULATED always carry an entry.
        - FAILED carries the previous entry when one existed, and the error.
    """

    key: CacheKey
    status: KpiCacheStatus
    entry: CacheEntry | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is not KpiCacheStatus.FAILED

    @property
    def payload(self) -> Any:
        return self.entry.payload if self.entry is not None else None


@dataclass(frozen=True)
class RecalcAllResult:
    payroll: KpiCacheResult
    dashboard: KpiCacheResult
    time_account: KpiCacheResult | None = None

    @property
    def ok(self) -> bool:
        results = [self.payroll, self.dashboard]
        if self.time_account is not None:
            results.append(self.time_account)
        return all(r.ok for r in results)


class KeyedLocks:
    """Re-entrant lock per cache key, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[CacheKey, threading.RLock] = {}

    def lock_for(self, key: CacheKey) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, key: CacheKey) -> Iterator[None]:
        lock = self.lock_for(key)
        with lock:
            yield


# Shared by every service instance in the process
_PROCESS_LOCKS = KeyedLocks()


@dataclass(frozen=True)
class _MonthInputs:
    users: list[UserSnapshot]
    shifts: list[ShiftRecord]
    holidays: list[HolidayRecord]


class KpiCacheService(BaseService[KpiCache]):
    """
    Cached monthly KPIs.

    Contract:
        ``get_or_recalc`` and ``recalc_all`` return KpiCacheResult values
        and only raise for invalid input or unexpected store/engine errors.
        ``compute_payroll`` and ``compute_time_account`` bypass the cache.

    Non-goals:
        - Does NOT commit; the caller owns the outer transaction.
        - Does NOT coordinate across processes; two processes may compute
          the same key, the later write wins.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: EngineSettings | None = None,
        locks: KeyedLocks | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._settings = settings or get_active_settings()
        self._locks = locks or _PROCESS_LOCKS
        self._selector = KpiSelector(session)

    # ------------------------------------------------------------------
    # Uncached computations
    # ------------------------------------------------------------------

    def compute_payroll(self, year: int, month_index: int) -> tuple[PayrollRow, ...]:
        """Payroll rows for the month, straight from the store."""
        validate_period(year, month_index)
        return self._payroll_rows(year, month_index, self._load_month(year, month_index))

    def compute_time_account(self, year: int, month_index: int) -> tuple[WorkingStatsEntry, ...]:
        """Time-account entries for the month and year to date."""
        validate_period(year, month_index)
        settings = self._settings
        year_start, _ = month_bounds_utc(year, 0, settings.tz)
        _, month_end = month_bounds_utc(year, month_index, settings.tz)

        users = self._selector.users()
        shifts_by_user: dict[UUID, list[ShiftRecord]] = {}
        for shift in self._selector.shifts_overlapping(year_start, month_end):
            shifts_by_user.setdefault(shift.user_id, []).append(shift)
        vacation_by_user: dict[UUID, list[date]] = {}
        for vacation in self._selector.vacation_days_between(
            date(year - 1, 1, 1), date(year, 12, 31)
        ):
            vacation_by_user.setdefault(vacation.user_id, []).append(vacation.day)
        adjustments = self._selector.manual_adjustments(year)

        accounts = [
            TimeAccountInput(
                user=user,
                shifts=tuple(shifts_by_user.get(user.id, ())),
                vacation_days=tuple(vacation_by_user.get(user.id, ())),
                hours_adjustment=adjustments.get(user.id, Decimal(0)),
            )
            for user in users
        ]
        return compute_working_stats(
            year,
            month_index,
            accounts,
            tz=settings.tz,
            planned_hours_factor=settings.planned_hours_factor,
            vacation_block_days=settings.vacation_block_days,
            trailing_vacation_cap=settings.trailing_vacation_cap,
        )

    # ------------------------------------------------------------------
    # Cached access
    # ------------------------------------------------------------------

    def get_or_recalc(
        self,
        kind: KpiKind | str,
        year: int,
        month_index: int,
        force_recalc: bool = False,
    ) -> KpiCacheResult:
        """
        Serve the cached aggregate for (kind, year, month_index) or rebuild it.

        Raises:
            UnknownKpiKindError: If kind names no KPI kind.
            InvalidPeriodError: If year/month_index are not a valid period.
        """
        key = CacheKey(KpiKind.parse(kind), *validate_period(year, month_index))
        with LogContext.bind(kpi_kind=key.kind.value, period=key.period_label):
            with self._locks.hold(key):
                return self._get_or_recalc_locked(key, force_recalc)

    def recalc_all(
        self,
        year: int,
        month_index: int,
        include_time_account: bool = False,
    ) -> RecalcAllResult:
        """
        Rebuild PAYROLL and DASHBOARD (and optionally TIMEACCOUNT) for a month.

        The payroll rows are computed once and feed both caches.  Each
        write is independent: one failing does not undo the others.
        """
        year, month_index = validate_period(year, month_index)
        payroll_key = CacheKey(KpiKind.PAYROLL, year, month_index)
        dashboard_key = CacheKey(KpiKind.DASHBOARD, year, month_index)

        with LogContext.bind(period=payroll_key.period_label):
            with self._locks.hold(payroll_key):
                deps = self._deps(payroll_key)
                previous = self._selector.cache_entry(payroll_key)
                inputs = self._load_month(year, month_index)
                rows = self._payroll_rows(year, month_index, inputs)
                payroll = self._store(payroll_key, rows_to_payload(rows), deps, previous)

            with self._locks.hold(dashboard_key):
                deps = self._deps(dashboard_key)
                previous = self._selector.cache_entry(dashboard_key)
                payload = self._dashboard_payload(year, month_index, inputs, rows)
                dashboard = self._store(dashboard_key, payload, deps, previous)

            time_account = None
            if include_time_account:
                time_key = CacheKey(KpiKind.TIMEACCOUNT, year, month_index)
                with self._locks.hold(time_key):
                    time_account = self._get_or_recalc_locked(time_key, force_recalc=True)

        logger.info(
            "kpi_recalc_all_completed",
            extra={
                "payroll_status": payroll.status.value,
                "dashboard_status": dashboard.status.value,
                "time_account_status": time_account.status.value if time_account else None,
            },
        )
        return RecalcAllResult(payroll=payroll, dashboard=dashboard, time_account=time_account)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @property
    def _max_age(self) -> timedelta:
        return self._settings.cache_max_age

    def _deps(self, key: CacheKey) -> datetime:
        return self._selector.deps_updated_at(key.kind, key.year, key.month_index, self._settings.tz)

    def _get_or_recalc_locked(self, key: CacheKey, force_recalc: bool) -> KpiCacheResult:
        deps = self._deps(key)
        entry = self._selector.cache_entry(key)

        if force_recalc:
            reason = "forced"
        else:
            reason = staleness_reason(
                entry,
                deps,
                self._clock.now_utc(),
                self._max_age,
                require_trend=key.kind is KpiKind.DASHBOARD,
            )
            if reason is None:
                logger.debug("kpi_cache_hit", extra={"cache_key": str(key)})
                return KpiCacheResult(key=key, status=KpiCacheStatus.FRESH, entry=entry)

        logger.info("kpi_cache_recalc_started", extra={"cache_key": str(key), "reason": reason})
        return self._store(key, self._build_payload(key), deps, entry)

    def _build_payload(self, key: CacheKey) -> Any:
        if key.kind is KpiKind.PAYROLL:
            inputs = self._load_month(key.year, key.month_index)
            return rows_to_payload(self._payroll_rows(key.year, key.month_index, inputs))
        if key.kind is KpiKind.TIMEACCOUNT:
            return entries_to_payload(self.compute_time_account(key.year, key.month_index))
        inputs = self._load_month(key.year, key.month_index)
        rows = self._payroll_rows(key.year, key.month_index, inputs)
        return self._dashboard_payload(key.year, key.month_index, inputs, rows)

    def _load_month(self, year: int, month_index: int) -> _MonthInputs:
        month_start, month_end = month_bounds_utc(year, month_index, self._settings.tz)
        first_day = date(year, month_index + 1, 1)
        return _MonthInputs(
            users=self._selector.users(),
            shifts=self._selector.shifts_overlapping(month_start, month_end),
            # From the day before: wrapping windows anchored there reach into day 1
            holidays=self._selector.holidays_between(
                first_day - timedelta(days=1), last_day_of_month(year, month_index)
            ),
        )

    def _payroll_rows(
        self,
        year: int,
        month_index: int,
        inputs: _MonthInputs,
    ) -> tuple[PayrollRow, ...]:
        settings = self._settings
        return compute_payroll(
            year,
            month_index,
            inputs.users,
            inputs.shifts,
            inputs.holidays,
            tz=settings.tz,
            representative_day=settings.representative_day,
            vacation_bonus_month_index=settings.vacation_bonus_month_index,
            christmas_bonus_month_index=settings.christmas_bonus_month_index,
        )

    def _dashboard_base(
        self,
        year: int,
        month_index: int,
        inputs: _MonthInputs,
        rows: tuple[PayrollRow, ...],
    ) -> dict[str, Any]:
        return build_dashboard_base(
            rows,
            inputs.users,
            inputs.shifts,
            year=year,
            month_index=month_index,
            used_vacation_days=self._selector.count_vacation_days(
                date(year, 1, 1), date(year, 12, 31)
            ),
            tz=self._settings.tz,
            representative_day=self._settings.representative_day,
        )

    def _dashboard_payload(
        self,
        year: int,
        month_index: int,
        inputs: _MonthInputs,
        rows: tuple[PayrollRow, ...],
    ) -> dict[str, Any]:
        payload = self._dashboard_base(year, month_index, inputs, rows)
        payload["costTrend"] = self._cost_trend(year, month_index, payload["summary"]["totalCost"])
        return payload

    def _cost_trend(self, year: int, month_index: int, current_cost: int) -> list[dict[str, Any]]:
        """Trend points for the preceding months (oldest first) plus the target month."""
        points: list[dict[str, Any]] = []
        for offset in range(self._settings.cost_trend_months - 1, 0, -1):
            trend_year, trend_index = add_months(year, month_index, -offset)
            if trend_year < MIN_YEAR:
                continue
            source = self._ensure_trend_source(CacheKey(KpiKind.DASHBOARD, trend_year, trend_index))
            if source is None:
                continue
            summary = source.payload.get("summary", {}) if isinstance(source.payload, dict) else {}
            points.append(cost_trend_point(trend_year, trend_index, summary.get("totalCost", 0)))
        points.append(cost_trend_point(year, month_index, current_cost))
        return points

    def _ensure_trend_source(self, key: CacheKey) -> CacheEntry | None:
        """A fresh dashboard entry for an earlier month, writing a base one if needed."""
        with self._locks.hold(key):
            deps = self._deps(key)
            entry = self._selector.cache_entry(key)
            reason = staleness_reason(entry, deps, self._clock.now_utc(), self._max_age)
            if reason is None:
                return entry

            logger.debug(
                "kpi_trend_source_recalc", extra={"cache_key": str(key), "reason": reason}
            )
            inputs = self._load_month(key.year, key.month_index)
            rows = self._payroll_rows(key.year, key.month_index, inputs)
            result = self._store(
                key, self._dashboard_base(key.year, key.month_index, inputs, rows), deps, entry
            )
            if not result.ok:
                logger.warning("kpi_trend_month_skipped", extra={"cache_key": str(key)})
                return None
            return result.entry

    def _store(
        self,
        key: CacheKey,
        payload: Any,
        deps_updated_at: datetime,
        previous: CacheEntry | None,
    ) -> KpiCacheResult:
        """Upsert one cache row inside a SAVEPOINT."""
        now = self._clock.now_utc()
        try:
            with self.session.begin_nested():
                model = self.session.execute(
                    select(KpiCache).where(
                        KpiCache.kind == key.kind.value,
                        KpiCache.year == key.year,
                        KpiCache.month_index == key.month_index,
                    )
                ).scalar_one_or_none()
                if model is None:
                    model = KpiCache(
                        kind=key.kind.value,
                        year=key.year,
                        month_index=key.month_index,
                        payload=payload,
                        calculation_done_at=now,
                        deps_updated_at=deps_updated_at,
                    )
                    self.session.add(model)
                else:
                    model.payload = payload
                    model.calculation_done_at = now
                    model.deps_updated_at = deps_updated_at
                self.session.flush()
        except SQLAlchemyError as exc:
            logger.error(
                "kpi_cache_write_failed",
                extra={"cache_key": str(key), "error": str(exc)},
            )
            return KpiCacheResult(
                key=key, status=KpiCacheStatus.FAILED, entry=previous, error=str(exc)
            )

        logger.info(
            "kpi_cache_written",
            extra={"cache_key": str(key), "deps_updated_at": deps_updated_at.isoformat()},
        )
        entry = CacheEntry(
            kind=key.kind.value,
            year=key.year,
            month_index=key.month_index,
            payload=payload,
            calculation_done_at=now,
            deps_updated_at=deps_updated_at,
        )
        return KpiCacheResult(key=key, status=KpiCacheStatus.RECALCULATED, entry=entry)
