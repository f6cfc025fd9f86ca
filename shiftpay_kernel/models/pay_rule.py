"""
Module: shiftpay_kernel.models.pay_rule
Responsibility: ORM persistence for pay-supplement rules.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - user_id NULL marks a global rule applying to every employee.
    - holiday_only and exclude_holidays are mutually exclusive (checked
      when the row is converted to a PayRuleSpec).
    - days_of_week is a JSON list of 0-6 with 0 = Sunday; empty = all days.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from shiftpay_kernel.db.base import TrackedBase, UUIDString


class PayRule(TrackedBase):
    """Percentage premium on time worked inside a window."""

    __tablename__ = "pay_rules"

    __table_args__ = (
        Index("idx_pay_rule_user", "user_id"),
    )

    user_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Minutes since local midnight; both NULL = all day
    window_start_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    window_end_min: Mapped[int | None] = mapped_column(Integer, nullable=True)

    days_of_week: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)

    holiday_only: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    exclude_holidays: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    percent: Mapped[Decimal | None] = mapped_column(Numeric(7, 2), nullable=True)

    valid_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        scope = self.user_id or "global"
        return f"<PayRule {self.name!r} {self.percent}% scope={scope}>"
