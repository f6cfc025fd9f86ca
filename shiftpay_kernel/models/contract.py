"""
Module: shiftpay_kernel.models.contract
Responsibility: ORM persistence for versioned employment contracts.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - valid_from / valid_until are inclusive dates, valid_until NULL means
      open-ended.
    - Non-overlap per user is enforced by ContractService at creation time,
      not by the schema; the resolver tolerates legacy overlaps.

Audit relevance:
    Superseded contracts are closed, never deleted: valid_until is set to the
    day before the successor's valid_from.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import BigInteger, Date, ForeignKey, Index, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from shiftpay_kernel.db.base import TrackedBase, UUIDString


class Contract(TrackedBase):
    """
    Employment contract terms for one user over a validity range.

    Guarantees:
        - Money fields are integer cents.
        - vacation_bonus / christmas_bonus are percentages of the monthly
          salary (e.g. 50 = half a monthly salary).
    """

    __tablename__ = "contracts"

    __table_args__ = (
        Index("idx_contract_user_valid_from", "user_id", "valid_from"),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=False,
    )

    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)

    hourly_rate_cents: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    salary_monthly_cents: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    weekly_hours: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)

    vacation_days_annual: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    vacation_bonus: Mapped[Decimal | None] = mapped_column(Numeric(7, 2), nullable=True)
    christmas_bonus: Mapped[Decimal | None] = mapped_column(Numeric(7, 2), nullable=True)

    def __repr__(self) -> str:
        until = self.valid_until.isoformat() if self.valid_until else "open"
        return f"<Contract user={self.user_id} {self.valid_from.isoformat()}..{until}>"

    def contains_date(self, check_date: date) -> bool:
        """Check if a date falls within this contract's validity range."""
        if check_date < self.valid_from:
            return False
        return self.valid_until is None or check_date <= self.valid_until
