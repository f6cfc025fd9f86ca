"""
TimesheetService -- per-day shift and supplement view for one employee.

Responsibility:
    Resolves the date range and the employee, loads the shifts, contracts,
    pay rules and holidays the range needs, and hands them to the pure
    timesheet builder.

Failure modes:
    - InvalidDateError: from_day / to_day are not ISO dates, or the range
      is inverted.
    - UserNotFoundError: unknown user.
"""

from __future__ import annotations

from datetime import date, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from shiftpay_config import EngineSettings, get_active_settings
from shiftpay_engines.time_windows import day_bounds_utc
from shiftpay_engines.timesheet import TimesheetDay, build_timesheet
from shiftpay_kernel.domain.period import parse_day
from shiftpay_kernel.exceptions import InvalidDateError, UserNotFoundError
from shiftpay_kernel.logging_config import get_logger
from shiftpay_kernel.models.shift import Shift
from shiftpay_kernel.selectors.kpi_selector import KpiSelector
from shiftpay_kernel.services.base import BaseService

logger = get_logger("services.timesheet")


class TimesheetService(BaseService[Shift]):
    """Read-mostly service; never writes."""

    def __init__(self, session: Session, settings: EngineSettings | None = None):
        super().__init__(session)
        self._settings = settings or get_active_settings()
        self._selector = KpiSelector(session)

    def user_timesheet(
        self,
        user_id: UUID,
        from_day: date | str,
        to_day: date | str,
    ) -> list[TimesheetDay]:
        """
        One TimesheetDay per local day in ``[from_day, to_day]``.

        Raises:
            InvalidDateError: If a bound is malformed or to_day < from_day.
            UserNotFoundError: If the user does not exist.
        """
        first = parse_day(from_day, "from_day")
        last = parse_day(to_day, "to_day")
        if last < first:
            raise InvalidDateError(f"{first.isoformat()}..{last.isoformat()}", "date range")

        user = self._selector.user(user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))

        tz = self._settings.tz
        range_start, _ = day_bounds_utc(first, tz)
        _, range_end = day_bounds_utc(last, tz)
        shifts = self._selector.shifts_overlapping(range_start, range_end, user_id=user.id)
        holidays = self._selector.holidays_between(first - timedelta(days=1), last)

        days = build_timesheet(first, last, shifts, user.contracts, user.pay_rules, holidays, tz)
        logger.debug(
            "timesheet_built",
            extra={
                "user_id": str(user.id),
                "from_day": first.isoformat(),
                "to_day": last.isoformat(),
                "shift_count": len(shifts),
            },
        )
        return days
