"""Kernel services (the write side and the KPI cache)."""

from shiftpay_kernel.services.base import BaseService
from shiftpay_kernel.services.contract_service import ContractService
from shiftpay_kernel.services.kpi_cache_service import (
    KeyedLocks,
    KpiCacheResult,
    KpiCacheService,
    KpiCacheStatus,
    RecalcAllResult,
)
from shiftpay_kernel.services.timesheet_service import TimesheetService

__all__ = [
    "BaseService",
    "ContractService",
    "KeyedLocks",
    "KpiCacheResult",
    "KpiCacheService",
    "KpiCacheStatus",
    "RecalcAllResult",
    "TimesheetService",
]
