"""
Period -- Input validation for calendar periods and dates.

Responsibility:
    Reject malformed (year, month_index) pairs and date strings before any
    store read or computation happens.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Failure modes:
    - InvalidPeriodError for non-integer (including bool) or out-of-range
      year / month_index.  month_index is zero-based (0 = January).
    - InvalidDateError for strings that are not ISO calendar dates.
"""

from __future__ import annotations

from datetime import date, datetime

from shiftpay_kernel.exceptions import InvalidDateError, InvalidPeriodError

MIN_YEAR = 1970
MAX_YEAR = 9999


def validate_period(year: object, month_index: object) -> tuple[int, int]:
    """Validate and return (year, month_index).

    Raises:
        InvalidPeriodError: If either value is not an int or out of range.
    """
    for value in (year, month_index):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidPeriodError(year, month_index, "year and month_index must be integers")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidPeriodError(year, month_index, f"year outside {MIN_YEAR}-{MAX_YEAR}")
    if not 0 <= month_index <= 11:
        raise InvalidPeriodError(year, month_index, "month_index outside 0-11")
    return year, month_index


def parse_day(value: object, field: str = "date") -> date:
    """Parse an ISO ``YYYY-MM-DD`` string (or pass a date through).

    Raises:
        InvalidDateError: If value is not a date or a parseable ISO date string.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        raise InvalidDateError(value, field)
    # Accept a full ISO timestamp, only its date part is used
    if len(value) > 10 and value[10] == "T":
        value = value[:10]
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidDateError(value, field) from exc
