"""
Module: shiftpay_kernel.models.manual_adjustment
Responsibility: ORM persistence for manual yearly hour-balance corrections.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one adjustment per (user, year) (uq_adjustment_user_year);
      ContractService.set_manual_adjustment upserts.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from shiftpay_kernel.db.base import TrackedBase, UUIDString


class ManualAdjustment(TrackedBase):
    """Hours added to (or subtracted from) a user's yearly balance."""

    __tablename__ = "manual_adjustments"

    __table_args__ = (
        UniqueConstraint("user_id", "year", name="uq_adjustment_user_year"),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=False,
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    hours_adjustment: Mapped[Decimal] = mapped_column(
        Numeric(9, 2),
        nullable=False,
        default=Decimal("0"),
    )

    def __repr__(self) -> str:
        return f"<ManualAdjustment user={self.user_id} {self.year}: {self.hours_adjustment}h>"
