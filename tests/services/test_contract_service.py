"""
Tests for ContractService: adding contracts without overlaps, closing the
current contract, and yearly hour adjustments.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from shiftpay_kernel.domain.dtos import ContractTerms
from shiftpay_kernel.exceptions import (
    ContractOverlapError,
    InvalidContractError,
    UserNotFoundError,
)
from shiftpay_kernel.models import Contract, ManualAdjustment
from shiftpay_kernel.services import ContractService


def terms(valid_from, valid_until=None, cents=2000):
    return ContractTerms(id=None, valid_from=valid_from, valid_until=valid_until, hourly_rate_cents=cents)


@pytest.fixture
def contract_service(session):
    return ContractService(session)


class TestAddContract:

    def test_first_contract(self, contract_service, db_factory):
        user = db_factory.user()

        contracts = contract_service.add_contract(user.id, terms(date(2025, 1, 1)))

        assert len(contracts) == 1
        assert contracts[0].id is not None
        assert contracts[0].hourly_rate_cents == 2000

    def test_history_is_returned_ascending(self, contract_service, db_factory):
        user = db_factory.user()
        contract_service.add_contract(user.id, terms(date(2025, 1, 1)))

        contracts = contract_service.add_contract(user.id, terms(date(2024, 1, 1), date(2024, 12, 31), 1800))

        assert [c.valid_from for c in contracts] == [date(2024, 1, 1), date(2025, 1, 1)]

    def test_overlap_is_rejected(self, session, contract_service, db_factory):
        user = db_factory.user()
        contract_service.add_contract(user.id, terms(date(2025, 1, 1)))

        with pytest.raises(ContractOverlapError):
            contract_service.add_contract(user.id, terms(date(2025, 6, 1)))

        assert len(session.execute(select(Contract)).scalars().all()) == 1

    def test_close_current_contract(self, contract_service, db_factory, captured_logs):
        user = db_factory.user()
        contract_service.add_contract(user.id, terms(date(2025, 1, 1)))

        contracts = contract_service.add_contract(user.id, terms(date(2025, 6, 1), cents=2500), close_current=True)

        assert [(c.valid_from, c.valid_until) for c in contracts] == [
            (date(2025, 1, 1), date(2025, 5, 31)),
            (date(2025, 6, 1), None),
        ]
        messages = [r["message"] for r in captured_logs()]
        assert "contract_closed" in messages
        assert messages.count("contract_added") == 2

    def test_close_current_cannot_close_contract_starting_same_day(self, session, contract_service, db_factory):
        user = db_factory.user()
        contract_service.add_contract(user.id, terms(date(2025, 6, 1)))

        with pytest.raises(ContractOverlapError):
            contract_service.add_contract(user.id, terms(date(2025, 6, 1)), close_current=True)

        (existing,) = session.execute(select(Contract)).scalars().all()
        assert existing.valid_until is None

    def test_close_current_still_rejects_later_overlaps(self, session, contract_service, db_factory):
        """Closing the current contract does not make room before a future one."""
        user = db_factory.user()
        contract_service.add_contract(user.id, terms(date(2025, 1, 1), date(2025, 5, 31)))
        contract_service.add_contract(user.id, terms(date(2025, 9, 1)))

        with pytest.raises(ContractOverlapError):
            contract_service.add_contract(user.id, terms(date(2025, 3, 1)), close_current=True)

        ranges = sorted((c.valid_from, c.valid_until) for c in session.execute(select(Contract)).scalars())
        assert ranges == [(date(2025, 1, 1), date(2025, 5, 31)), (date(2025, 9, 1), None)]

    def test_inverted_range(self, contract_service, db_factory):
        user = db_factory.user()

        with pytest.raises(InvalidContractError, match="before valid_from"):
            contract_service.add_contract(user.id, terms(date(2025, 6, 1), date(2025, 5, 31)))

    def test_missing_start(self, contract_service, db_factory):
        user = db_factory.user()

        with pytest.raises(InvalidContractError, match="valid_from is required"):
            contract_service.add_contract(user.id, terms(None))

    def test_unknown_user(self, contract_service, db_engine):
        with pytest.raises(UserNotFoundError):
            contract_service.add_contract(uuid4(), terms(date(2025, 1, 1)))


class TestManualAdjustment:

    def test_create_then_replace(self, session, contract_service, db_factory):
        user = db_factory.user()

        contract_service.set_manual_adjustment(user.id, 2025, "12.5")
        record = contract_service.set_manual_adjustment(user.id, 2025, -4)

        assert record.hours == Decimal("-4")
        (stored,) = session.execute(select(ManualAdjustment)).scalars().all()
        assert stored.hours_adjustment == Decimal("-4")

    def test_adjustments_are_per_year(self, session, contract_service, db_factory):
        user = db_factory.user()

        contract_service.set_manual_adjustment(user.id, 2024, "8")
        contract_service.set_manual_adjustment(user.id, 2025, "2")

        assert len(session.execute(select(ManualAdjustment)).scalars().all()) == 2

    def test_float_hours_are_refused(self, contract_service, db_factory):
        user = db_factory.user()

        with pytest.raises(TypeError):
            contract_service.set_manual_adjustment(user.id, 2025, 1.5)

    def test_unknown_user(self, contract_service, db_engine):
        with pytest.raises(UserNotFoundError):
            contract_service.set_manual_adjustment(uuid4(), 2025, "1")
