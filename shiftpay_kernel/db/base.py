"""
Module: shiftpay_kernel.db.base
Responsibility: Declarative base for the shiftpay tables: UUID primary keys,
    a timestamp type that always comes back as aware UTC, the annotation
    type map, and TrackedBase with created_at / updated_at.
Architecture position: Kernel > DB.  Every model imports from here; this
    module imports nothing from the rest of the kernel.

Invariants enforced:
    - Every row has a uuid4 primary key stored as String(36).
    - Timestamps are stored in UTC and loaded timezone-aware, SQLite
      included.
    - updated_at moves on every UPDATE.  The KPI cache takes the maximum
      updated_at over its inputs as its dependency timestamp.

Failure modes:
    - IntegrityError on a duplicate primary key.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class UTCDateTime(TypeDecorator):
    """
    Timestamp stored in UTC, loaded as an aware UTC datetime.

    Contract:
        Naive values are interpreted as UTC.  Aware values are converted to
        UTC before binding.  SQLite has no timezone column type, so the bound
        value is stripped to naive UTC there and re-tagged on load.

    Guarantees:
        - process_result_value never returns a naive datetime.
        - Comparisons in WHERE clauses see the same representation as stored
          values on every backend.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        value = value.astimezone(UTC)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is always a uuid4-generated UUID stored as String(36).
        - Decimal maps to Numeric(38, 9).
        - datetime maps to UTCDateTime.
        - int maps to BigInteger.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: UTCDateTime(),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base with change timestamps.

    Guarantees:
        - created_at is set to server NOW() on INSERT and never changes.
        - updated_at is set to server NOW() on INSERT and on every UPDATE.
        - Callers may set updated_at explicitly (imports, backfills, tests);
          an explicit value wins over onupdate.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
