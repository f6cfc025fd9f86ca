"""
Module: shiftpay_kernel.models.holiday
Responsibility: ORM persistence for public holidays and taken vacation days.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One holiday per calendar date (uq_holiday_day).  Rule evaluation
      compares dates only, never times.
    - One vacation day per user per date (uq_vacation_user_day).
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from shiftpay_kernel.db.base import TrackedBase, UUIDString


class Holiday(TrackedBase):
    """Public holiday."""

    __tablename__ = "holidays"

    __table_args__ = (
        UniqueConstraint("day", name="uq_holiday_day"),
    )

    day: Mapped[date] = mapped_column(Date, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Holiday {self.day.isoformat()} {self.name!r}>"


class VacationDay(TrackedBase):
    """A single day of vacation taken by a user."""

    __tablename__ = "vacation_days"

    __table_args__ = (
        UniqueConstraint("user_id", "day", name="uq_vacation_user_day"),
        Index("idx_vacation_day", "day"),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=False,
    )

    day: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        return f"<VacationDay user={self.user_id} {self.day.isoformat()}>"
