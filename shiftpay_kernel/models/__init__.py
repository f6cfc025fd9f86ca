"""Domain models for the shiftpay kernel."""

from shiftpay_kernel.models.contract import Contract
from shiftpay_kernel.models.holiday import Holiday, VacationDay
from shiftpay_kernel.models.kpi_cache import KpiCache
from shiftpay_kernel.models.manual_adjustment import ManualAdjustment
from shiftpay_kernel.models.pay_rule import PayRule
from shiftpay_kernel.models.shift import (
    AbsenceReason,
    AbsenceStatus,
    Shift,
    ShiftAbsence,
    ShiftCode,
)
from shiftpay_kernel.models.user import User

__all__ = [
    "AbsenceReason",
    "AbsenceStatus",
    "Contract",
    "Holiday",
    "KpiCache",
    "ManualAdjustment",
    "PayRule",
    "Shift",
    "ShiftAbsence",
    "ShiftCode",
    "User",
    "VacationDay",
]
