"""
Module: shiftpay_kernel.models.user
Responsibility: ORM persistence for employees.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Only active users receive payroll rows.
    - employment_start / termination_date bound which users the time-account
      calculation considers for a year.

Audit relevance:
    User.updated_at is one of the KPI cache dependency timestamps: renaming or
    deactivating an employee invalidates every cached month.
"""

from datetime import date

from sqlalchemy import Boolean, Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from shiftpay_kernel.db.base import TrackedBase


class User(TrackedBase):
    """
    Employee.

    Guarantees:
        - is_active defaults to True.
        - first_name / last_name are never null (may be empty).
    """

    __tablename__ = "users"

    __table_args__ = (
        Index("idx_user_active", "is_active"),
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    employment_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<User {self.first_name} {self.last_name} active={self.is_active}>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
