"""
ContractService -- employment contract maintenance and hour adjustments.

Responsibility:
    Adds contracts to an employee's history without creating overlaps,
    optionally closing the contract that is current on the new start date,
    and records the yearly manual hour adjustment used by the time account.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.

Invariants enforced:
    - valid_until, when set, is not before valid_from.
    - After an add, no two contracts of a user have overlapping inclusive
      date ranges.  The resolver tolerates overlaps in legacy data; this
      service never creates new ones.
    - At most one manual adjustment per (user, year).

Failure modes:
    - UserNotFoundError: unknown user.
    - InvalidContractError: missing valid_from or inverted range.
    - ContractOverlapError: the new range overlaps an existing contract
      (after the optional closing of the current one).

Audit relevance:
    Added contracts, closed contracts and adjustments are logged with the
    user id.  Every write moves updated_at, which invalidates cached KPIs.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftpay_engines.contracts import ranges_overlap
from shiftpay_kernel.domain.dtos import ContractTerms, ManualAdjustmentRecord
from shiftpay_kernel.domain.values import to_decimal
from shiftpay_kernel.exceptions import (
    ContractOverlapError,
    InvalidContractError,
    UserNotFoundError,
)
from shiftpay_kernel.logging_config import get_logger
from shiftpay_kernel.models.contract import Contract
from shiftpay_kernel.models.manual_adjustment import ManualAdjustment
from shiftpay_kernel.models.user import User
from shiftpay_kernel.services.base import BaseService

logger = get_logger("services.contract")


class ContractService(BaseService[Contract]):
    """
    Service for contract history and yearly hour adjustments.

    Contract:
        All methods flush within the caller's transaction and return DTOs.

    Non-goals:
        - Does NOT edit or delete existing contracts beyond closing the
          current one.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def _require_user(self, user_id: UUID) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))
        return user

    def contracts_for(self, user_id: UUID) -> list[ContractTerms]:
        """The user's contracts ascending by valid_from."""
        query = (
            select(Contract)
            .where(Contract.user_id == user_id)
            .order_by(Contract.valid_from, Contract.id)
        )
        return [ContractTerms.from_model(c) for c in self.session.execute(query).scalars()]

    def add_contract(
        self,
        user_id: UUID,
        terms: ContractTerms,
        close_current: bool = False,
    ) -> list[ContractTerms]:
        """
        Add a contract to a user's history.

        Args:
            user_id: Employee receiving the contract.
            terms: New contract terms (its id is ignored).
            close_current: End the contract covering terms.valid_from on
                the day before, instead of rejecting the overlap.

        Returns:
            The user's contracts ascending by valid_from.

        Raises:
            UserNotFoundError: If the user does not exist.
            InvalidContractError: If the range is missing or inverted.
            ContractOverlapError: If the new range overlaps another contract.
        """
        self._require_user(user_id)
        if terms.valid_from is None:
            raise InvalidContractError(str(user_id), "valid_from is required")
        if terms.valid_until is not None and terms.valid_until < terms.valid_from:
            raise InvalidContractError(
                str(user_id),
                f"valid_until {terms.valid_until} before valid_from {terms.valid_from}",
            )

        existing = list(
            self.session.execute(
                select(Contract)
                .where(Contract.user_id == user_id)
                .order_by(Contract.valid_from, Contract.id)
            ).scalars()
        )

        # Decide closings first so a rejected add leaves nothing modified
        closing: dict[UUID, date] = {}
        if close_current:
            day_before = terms.valid_from - timedelta(days=1)
            for contract in existing:
                if contract.contains_date(terms.valid_from) and contract.valid_from <= day_before:
                    closing[contract.id] = day_before

        for contract in existing:
            valid_until = closing.get(contract.id, contract.valid_until)
            if ranges_overlap(contract.valid_from, valid_until, terms.valid_from, terms.valid_until):
                raise ContractOverlapError(str(user_id), str(contract.id))

        for contract in existing:
            if contract.id in closing:
                contract.valid_until = closing[contract.id]
                logger.info(
                    "contract_closed",
                    extra={
                        "user_id": str(user_id),
                        "contract_id": str(contract.id),
                        "valid_until": contract.valid_until.isoformat(),
                    },
                )

        contract = Contract(
            user_id=user_id,
            valid_from=terms.valid_from,
            valid_until=terms.valid_until,
            hourly_rate_cents=terms.hourly_rate_cents,
            salary_monthly_cents=terms.salary_monthly_cents,
            weekly_hours=terms.weekly_hours,
            vacation_days_annual=terms.vacation_days_annual,
            vacation_bonus=terms.vacation_bonus,
            christmas_bonus=terms.christmas_bonus,
        )
        self.session.add(contract)
        self.session.flush()

        logger.info(
            "contract_added",
            extra={
                "user_id": str(user_id),
                "contract_id": str(contract.id),
                "valid_from": terms.valid_from.isoformat(),
                "valid_until": terms.valid_until.isoformat() if terms.valid_until else None,
            },
        )
        return self.contracts_for(user_id)

    def set_manual_adjustment(
        self,
        user_id: UUID,
        year: int,
        hours: Decimal | int | str,
    ) -> ManualAdjustmentRecord:
        """Create or replace the user's hour adjustment for ``year``."""
        self._require_user(user_id)
        amount = to_decimal(hours)

        adjustment = self.session.execute(
            select(ManualAdjustment).where(
                ManualAdjustment.user_id == user_id,
                ManualAdjustment.year == year,
            )
        ).scalar_one_or_none()
        if adjustment is None:
            adjustment = ManualAdjustment(user_id=user_id, year=year, hours_adjustment=amount)
            self.session.add(adjustment)
        else:
            adjustment.hours_adjustment = amount
        self.session.flush()

        logger.info(
            "manual_adjustment_set",
            extra={"user_id": str(user_id), "year": year, "hours": str(amount)},
        )
        return ManualAdjustmentRecord(user_id=user_id, year=year, hours=amount)
