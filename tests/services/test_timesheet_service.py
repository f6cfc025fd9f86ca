"""
Tests for TimesheetService.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from shiftpay_kernel.exceptions import InvalidDateError, UserNotFoundError
from shiftpay_kernel.services import TimesheetService
from tests.factories import berlin


@pytest.fixture
def timesheet_service(session, settings):
    return TimesheetService(session, settings=settings)


@pytest.fixture
def employee(db_factory):
    user = db_factory.user("Anna", "Berg")
    db_factory.contract(user, valid_from=date(2024, 1, 1), hourly_rate_cents=2000)
    return user


class TestUserTimesheet:

    def test_overnight_shift(self, timesheet_service, db_factory, employee):
        db_factory.pay_rule("Abend", Decimal("25"), window_start_min=20 * 60, window_end_min=0)
        db_factory.shift(employee, berlin(2025, 3, 10, 18), berlin(2025, 3, 11, 2))

        tenth, eleventh = timesheet_service.user_timesheet(employee.id, "2025-03-10", "2025-03-11")

        assert tenth.supplements_cents == 2000
        assert [s.hours for s in tenth.segments] == [Decimal("6.00")]
        assert [s.hours for s in eleventh.segments] == [Decimal("2.00")]

    def test_only_the_users_shifts(self, timesheet_service, db_factory, employee):
        other = db_factory.user("Ben", "Adler")
        db_factory.shift(other, berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 16))

        (day,) = timesheet_service.user_timesheet(employee.id, date(2025, 3, 10), date(2025, 3, 10))

        assert day.segments == ()

    def test_holiday_before_range_anchors_night_rule(self, timesheet_service, db_factory, employee):
        db_factory.pay_rule(
            "Feiertagsnacht", Decimal("100"), window_start_min=22 * 60, window_end_min=6 * 60, holiday_only=True
        )
        db_factory.holiday(date(2025, 3, 9))
        db_factory.shift(employee, berlin(2025, 3, 10, 0), berlin(2025, 3, 10, 2))

        (day,) = timesheet_service.user_timesheet(employee.id, "2025-03-10", "2025-03-10")

        assert day.supplements_cents == 4000

    def test_logs_build(self, timesheet_service, employee, captured_logs):
        timesheet_service.user_timesheet(employee.id, "2025-03-01", "2025-03-31")

        (record,) = [r for r in captured_logs() if r["message"] == "timesheet_built"]
        assert record["user_id"] == str(employee.id)
        assert record["shift_count"] == 0

    def test_malformed_date(self, timesheet_service, employee):
        with pytest.raises(InvalidDateError, match="from_day"):
            timesheet_service.user_timesheet(employee.id, "10.03.2025", "2025-03-11")

    def test_inverted_range(self, timesheet_service, employee):
        with pytest.raises(InvalidDateError, match="date range"):
            timesheet_service.user_timesheet(employee.id, "2025-03-11", "2025-03-10")

    def test_unknown_user(self, timesheet_service, db_engine):
        with pytest.raises(UserNotFoundError):
            timesheet_service.user_timesheet(uuid4(), "2025-03-10", "2025-03-11")
