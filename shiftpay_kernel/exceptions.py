"""
Typed Exception Hierarchy for the shiftpay kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from ShiftpayError:

    ShiftpayError (base)
    |
    +-- InputError
    |   +-- InvalidPeriodError
    |   +-- InvalidDateError
    |
    +-- UserError
    |   +-- UserNotFoundError
    |
    +-- ContractError
    |   +-- InvalidContractError
    |   +-- ContractOverlapError
    |
    +-- KpiCacheError
        +-- UnknownKpiKindError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Input           | INVALID_PERIOD              | Year/month not integers or out of range
                | INVALID_DATE                | Date string cannot be parsed
----------------|-----------------------------|-----------------------------------------
User            | USER_NOT_FOUND              | User ID doesn't exist
----------------|-----------------------------|-----------------------------------------
Contract        | INVALID_CONTRACT            | valid_until before valid_from
                | CONTRACT_OVERLAP            | New contract overlaps an existing one
----------------|-----------------------------|-----------------------------------------
KPI cache       | UNKNOWN_KPI_KIND            | Kind is not PAYROLL/TIMEACCOUNT/DASHBOARD

===============================================================================
HANDLING PATTERNS
===============================================================================

Invalid input is rejected before anything is read or computed:

    try:
        result = cache_service.get_or_recalc("PAYROLL", year, month_index)
    except InputError as e:
        return {"error": e.code, "detail": str(e)}

Missing contracts, missing hourly rates and rules without a percent are
NOT exceptions. They degrade a single employee's row to zero contributions
and are logged. Cache write failures are not raised either: the cache
service returns a FAILED result and the previous entry stays readable.
"""


class ShiftpayError(Exception):
    """
    Base exception for all shiftpay errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SHIFTPAY_ERROR"


# Input validation


class InputError(ShiftpayError):
    """Base exception for rejected caller input."""

    code: str = "INPUT_ERROR"


class InvalidPeriodError(InputError):
    """Year or month index is not a valid calendar period."""

    code: str = "INVALID_PERIOD"

    def __init__(self, year: object, month_index: object, reason: str):
        self.year = year
        self.month_index = month_index
        self.reason = reason
        super().__init__(
            f"Invalid period year={year!r} month_index={month_index!r}: {reason}"
        )


class InvalidDateError(InputError):
    """A date string could not be parsed."""

    code: str = "INVALID_DATE"

    def __init__(self, value: object, field: str = "date"):
        self.value = value
        self.field = field
        super().__init__(f"Invalid {field}: {value!r}")


# Users


class UserError(ShiftpayError):
    """Base exception for user-related errors."""

    code: str = "USER_ERROR"


class UserNotFoundError(UserError):
    """User with given ID was not found."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


# Contracts


class ContractError(ShiftpayError):
    """Base exception for contract maintenance errors."""

    code: str = "CONTRACT_ERROR"


class InvalidContractError(ContractError):
    """Contract terms are internally inconsistent."""

    code: str = "INVALID_CONTRACT"

    def __init__(self, user_id: str, reason: str):
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"Invalid contract for user {user_id}: {reason}")


class ContractOverlapError(ContractError):
    """
    New contract's validity range overlaps an existing contract.

    The resolver tolerates overlaps, but maintenance refuses to create them.
    """

    code: str = "CONTRACT_OVERLAP"

    def __init__(self, user_id: str, conflicting_contract_id: str):
        self.user_id = user_id
        self.conflicting_contract_id = conflicting_contract_id
        super().__init__(
            f"Contract for user {user_id} overlaps contract {conflicting_contract_id}"
        )


# KPI cache


class KpiCacheError(ShiftpayError):
    """Base exception for KPI cache errors."""

    code: str = "KPI_CACHE_ERROR"


class UnknownKpiKindError(KpiCacheError):
    """KPI kind is not one of the supported cache kinds."""

    code: str = "UNKNOWN_KPI_KIND"

    def __init__(self, kind: object):
        self.kind = kind
        super().__init__(f"Unknown KPI kind: {kind!r}")
