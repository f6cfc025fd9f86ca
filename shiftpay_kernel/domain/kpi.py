"""
KPI -- Cache keys and the staleness predicate.

Responsibility:
    Names the cached aggregate kinds, the composite cache key, and decides
    whether a stored entry may still be served.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The cache service
    supplies ``now`` from its Clock and the fresh dependency timestamp from
    the selector.

Invariants enforced:
    - An entry is served only if it exists, is younger than max_age, carries
      a dependency timestamp, and no input changed after that timestamp.
    - A dashboard entry written as a cost-trend source (no ``costTrend``)
      is never served as a full dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from shiftpay_kernel.domain.dtos import CacheEntry
from shiftpay_kernel.exceptions import UnknownKpiKindError

# Dependency timestamp used when a month has no input rows at all
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class KpiKind(str, Enum):
    """Cached monthly aggregate kinds."""

    PAYROLL = "PAYROLL"
    TIMEACCOUNT = "TIMEACCOUNT"
    DASHBOARD = "DASHBOARD"

    @classmethod
    def parse(cls, value: object) -> KpiKind:
        """Accept a KpiKind or its (case-insensitive) name.

        Raises:
            UnknownKpiKindError: If value names no kind.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.upper())
            except ValueError:
                pass
        raise UnknownKpiKindError(value)


@dataclass(frozen=True)
class CacheKey:
    """Composite cache identity (kind, year, month_index)."""

    kind: KpiKind
    year: int
    month_index: int

    @property
    def period_label(self) -> str:
        return f"{self.year:04d}-{self.month_index + 1:02d}"

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.period_label}"


def staleness_reason(
    entry: CacheEntry | None,
    deps_updated_at: datetime,
    now: datetime,
    max_age: timedelta,
    *,
    require_trend: bool = False,
) -> str | None:
    """Return why ``entry`` must be recomputed, or None if it is fresh.

    Args:
        entry: Stored cache entry, or None if absent.
        deps_updated_at: Freshly computed dependency timestamp.
        now: Current time from the injected clock.
        max_age: Time-to-live of a cache entry.
        require_trend: Treat a dashboard payload without ``costTrend`` as stale.
    """
    if entry is None:
        return "absent"
    if now - entry.calculation_done_at > max_age:
        return "expired"
    if entry.deps_updated_at is None:
        return "missing_deps_timestamp"
    if deps_updated_at > entry.deps_updated_at:
        return "dependencies_changed"
    if require_trend and not (
        isinstance(entry.payload, dict) and "costTrend" in entry.payload
    ):
        return "missing_cost_trend"
    return None


def is_stale(
    entry: CacheEntry | None,
    deps_updated_at: datetime,
    now: datetime,
    max_age: timedelta,
    *,
    require_trend: bool = False,
) -> bool:
    """True if ``entry`` is absent, expired or older than its inputs."""
    return (
        staleness_reason(
            entry, deps_updated_at, now, max_age, require_trend=require_trend
        )
        is not None
    )
