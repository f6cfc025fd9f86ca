"""
Shiftpay Kernel

Persistence, read selectors and services around the shiftpay engines:
- Monthly payroll rows from clock events, contracts and pay rules
- Time-account (worked vs. planned hours, vacation, sick days)
- Staleness-aware KPI cache keyed by (kind, year, month)
"""

__version__ = "0.1.0"
