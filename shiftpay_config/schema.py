"""
Settings schema (``shiftpay_config.schema``).

Responsibility
--------------
Frozen dataclass describing every tunable of the calculation and cache
engines.  Engines receive plain values pulled from it (timezone, factors);
they never import this module.

Invariants enforced
-------------------
* Frozen: settings cannot change after load.
* ``__post_init__`` rejects unknown timezones and out-of-range values, so a
  bad YAML file fails at startup instead of mid-payroll.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from functools import cached_property
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass(frozen=True)
class EngineSettings:
    """
    Runtime settings for payroll, time-account and KPI cache computation.

    Contract:
        Defaults reproduce the production behaviour: Europe/Berlin business
        time, one-hour cache TTL, six-month cost trend, contract resolution
        on the 15th of the month.
    """

    config_id: str = "default"
    config_version: int = 1
    business_timezone: str = "Europe/Berlin"
    cache_max_age_seconds: int = 3600
    cost_trend_months: int = 6
    representative_day: int = 15
    planned_hours_factor: Decimal = Decimal("4.35")
    vacation_block_days: int = 5
    trailing_vacation_cap: int = 4
    vacation_bonus_month_index: int = 5
    christmas_bonus_month_index: int = 10

    def __post_init__(self) -> None:
        try:
            ZoneInfo(self.business_timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown business_timezone: {self.business_timezone!r}") from exc
        if self.cache_max_age_seconds <= 0:
            raise ValueError("cache_max_age_seconds must be positive")
        if not 1 <= self.cost_trend_months <= 24:
            raise ValueError("cost_trend_months must be between 1 and 24")
        if not 1 <= self.representative_day <= 28:
            raise ValueError("representative_day must be between 1 and 28")
        if self.planned_hours_factor <= 0:
            raise ValueError("planned_hours_factor must be positive")
        if self.vacation_block_days <= 0:
            raise ValueError("vacation_block_days must be positive")
        if self.trailing_vacation_cap < 0:
            raise ValueError("trailing_vacation_cap cannot be negative")
        for label, month in (
            ("vacation_bonus_month_index", self.vacation_bonus_month_index),
            ("christmas_bonus_month_index", self.christmas_bonus_month_index),
        ):
            if not 0 <= month <= 11:
                raise ValueError(f"{label} must be between 0 and 11")

    @cached_property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.business_timezone)

    @property
    def cache_max_age(self) -> timedelta:
        return timedelta(seconds=self.cache_max_age_seconds)
