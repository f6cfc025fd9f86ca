"""
Module: shiftpay_kernel.models.kpi_cache
Responsibility: ORM persistence for cached monthly aggregates.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One row per (kind, year, month_index) (uq_kpi_cache_key).  Rows are
      created on first computation and replaced in place afterwards; they
      are never deleted.
    - payload is opaque JSON to the store.  Its shape depends on kind.

Failure modes:
    - IntegrityError if two writers insert the same key concurrently; the
      cache service treats that as a failed write and the winner's row
      stays readable.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from shiftpay_kernel.db.base import TrackedBase, UTCDateTime


class KpiCache(TrackedBase):
    """Cached KPI payload for one kind and month."""

    __tablename__ = "kpi_cache"

    __table_args__ = (
        UniqueConstraint("kind", "year", "month_index", name="uq_kpi_cache_key"),
    )

    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    # Zero-based (0 = January)
    month_index: Mapped[int] = mapped_column(Integer, nullable=False)

    payload: Mapped[Any] = mapped_column(JSON, nullable=False)

    calculation_done_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    deps_updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    def __repr__(self) -> str:
        return f"<KpiCache {self.kind} {self.year}-{self.month_index + 1:02d}>"
