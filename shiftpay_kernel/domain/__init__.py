"""
Pure domain layer.

This module contains pure data transfer objects and domain logic
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.
"""

from shiftpay_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from shiftpay_kernel.domain.dtos import (
    AbsenceInfo,
    CacheEntry,
    ContractTerms,
    HolidayRecord,
    ManualAdjustmentRecord,
    PayRuleSpec,
    ShiftRecord,
    UserSnapshot,
    VacationDayRecord,
)
from shiftpay_kernel.domain.kpi import EPOCH, CacheKey, KpiKind, is_stale, staleness_reason
from shiftpay_kernel.domain.period import parse_day, validate_period
from shiftpay_kernel.domain.values import minutes_to_hours, round_half_up, round_hours

__all__ = [
    "AbsenceInfo",
    "CacheEntry",
    "CacheKey",
    "Clock",
    "ContractTerms",
    "DeterministicClock",
    "EPOCH",
    "HolidayRecord",
    "KpiKind",
    "ManualAdjustmentRecord",
    "PayRuleSpec",
    "ShiftRecord",
    "SystemClock",
    "UserSnapshot",
    "VacationDayRecord",
    "is_stale",
    "minutes_to_hours",
    "parse_day",
    "round_half_up",
    "round_hours",
    "staleness_reason",
    "validate_period",
]
