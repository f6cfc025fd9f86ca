"""
Module: shiftpay_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the import surface for the services layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import shiftpay_kernel.domain (and sibling engine modules).
    MUST NOT import shiftpay_kernel.services or shiftpay_kernel.selectors.

Invariants enforced:
    - Purity: engines never read the clock.  The business timezone, the
      target period and every "now" are explicit parameters.
    - Integer cents and Decimal arithmetic; no floats.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Payroll and time-account runs are traced via ``@traced_engine`` (see
    ``shiftpay_engines.tracer``), emitting SHIFTPAY_ENGINE_TRACE records
    with engine name, version, input fingerprint and duration.

Usage:
    from shiftpay_engines.payroll import compute_payroll
    from shiftpay_engines.time_account import compute_working_stats
    from shiftpay_engines.time_windows import windows_for_day_utc
"""

from shiftpay_engines.contracts import (
    Bonus,
    fixed_salary_cents,
    hourly_rate_cents,
    pick_contract_for_date,
    ranges_overlap,
    seasonal_bonus,
)
from shiftpay_engines.dashboard import (
    build_dashboard_base,
    build_dashboard_summary,
    build_hours_by_day,
    cost_trend_point,
)
from shiftpay_engines.pay_rules import (
    RuleHit,
    evaluate_segment,
    rule_active_on_day,
    rule_intervals_for_day,
    supplement_cents,
)
from shiftpay_engines.payroll import (
    PayrollRow,
    SupplementLine,
    SupplementTrigger,
    compute_payroll,
    rows_to_payload,
)
from shiftpay_engines.time_account import (
    TimeAccountInput,
    WorkingStatsEntry,
    compute_working_stats,
    entries_to_payload,
    trailing_vacation_chain,
)
from shiftpay_engines.time_windows import (
    DaySegment,
    month_bounds_utc,
    overlap_minutes,
    split_by_local_day,
    windows_for_day_utc,
)
from shiftpay_engines.timesheet import TimesheetDay, TimesheetSegment, build_timesheet
from shiftpay_engines.tracer import traced_engine

__all__ = [
    "Bonus",
    "DaySegment",
    "PayrollRow",
    "RuleHit",
    "SupplementLine",
    "SupplementTrigger",
    "TimeAccountInput",
    "TimesheetDay",
    "TimesheetSegment",
    "WorkingStatsEntry",
    "build_dashboard_base",
    "build_dashboard_summary",
    "build_hours_by_day",
    "build_timesheet",
    "compute_payroll",
    "compute_working_stats",
    "cost_trend_point",
    "entries_to_payload",
    "evaluate_segment",
    "fixed_salary_cents",
    "hourly_rate_cents",
    "month_bounds_utc",
    "overlap_minutes",
    "pick_contract_for_date",
    "ranges_overlap",
    "rows_to_payload",
    "rule_active_on_day",
    "rule_intervals_for_day",
    "seasonal_bonus",
    "split_by_local_day",
    "supplement_cents",
    "traced_engine",
    "trailing_vacation_chain",
    "windows_for_day_utc",
]
