"""
Module: shiftpay_kernel.models.shift
Responsibility: ORM persistence for shift codes, shifts and their linked
    absences.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - start/end are the planned interval, clock_in/clock_out the actual one.
      All four are stored in UTC.
    - A shift has at most one absence (uq_absence_shift).
    - Only APPROVED absences change how a shift is counted; PENDING and
      REJECTED absences exclude the shift from payroll until resolved.

Audit relevance:
    Shift.updated_at (and the updated_at of its code and absence) feed the
    KPI cache dependency timestamp for every month the shift overlaps.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shiftpay_kernel.db.base import TrackedBase, UTCDateTime, UUIDString


class AbsenceReason(str, Enum):
    SICKNESS = "sickness"
    OTHER = "other"


class AbsenceStatus(str, Enum):
    """Approval state of an absence.

    Contract: PENDING -> APPROVED | REJECTED.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ShiftCode(TrackedBase):
    """
    Shift code (early, late, night, vacation placeholder, ...).

    Guarantees:
        - key is unique.
        - is_working_shift False marks placeholders that never count as
          worked time.
    """

    __tablename__ = "shift_codes"

    __table_args__ = (
        UniqueConstraint("key", name="uq_shift_code_key"),
    )

    key: Mapped[str] = mapped_column(String(20), nullable=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    is_working_shift: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<ShiftCode {self.key} working={self.is_working_shift}>"


class Shift(TrackedBase):
    """A planned shift with optional clock times."""

    __tablename__ = "shifts"

    __table_args__ = (
        Index("idx_shift_user", "user_id"),
        Index("idx_shift_range", "start", "end"),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=False,
    )

    code_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("shift_codes.id"),
        nullable=True,
    )

    start: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    end: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    clock_in: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    clock_out: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    code: Mapped["ShiftCode | None"] = relationship(lazy="joined")
    absence: Mapped["ShiftAbsence | None"] = relationship(
        back_populates="shift",
        lazy="joined",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<Shift user={self.user_id} {self.start.isoformat()}..{self.end.isoformat()}>"


class ShiftAbsence(TrackedBase):
    """Absence (e.g. sickness) recorded against a planned shift."""

    __tablename__ = "shift_absences"

    __table_args__ = (
        UniqueConstraint("shift_id", name="uq_absence_shift"),
    )

    shift_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("shifts.id"),
        nullable=False,
    )

    reason: Mapped[AbsenceReason] = mapped_column(
        String(20),
        default=AbsenceReason.SICKNESS,
        nullable=False,
    )

    status: Mapped[AbsenceStatus] = mapped_column(
        String(20),
        default=AbsenceStatus.PENDING,
        nullable=False,
    )

    shift: Mapped["Shift"] = relationship(back_populates="absence")

    def __repr__(self) -> str:
        return f"<ShiftAbsence shift={self.shift_id} {self.reason} {self.status}>"

    @property
    def is_approved(self) -> bool:
        return self.status == AbsenceStatus.APPROVED
