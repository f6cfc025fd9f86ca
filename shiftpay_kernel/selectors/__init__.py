"""Read-only selectors (the query side of the kernel)."""

from shiftpay_kernel.selectors.base import BaseSelector
from shiftpay_kernel.selectors.kpi_selector import KpiSelector

__all__ = ["BaseSelector", "KpiSelector"]
