"""
Clock -- injectable source of "now".

Responsibility:
    The KPI cache stamps ``calculation_done_at`` and checks an entry's age
    against a Clock handed to it, never against ``datetime.now()``.  The
    engines do not read the time at all.

Architecture position:
    Kernel > Domain.  SystemClock is the only place that reads the real
    time.

Audit relevance:
    With a DeterministicClock, TTL decisions in tests are exact to the
    second.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta


class Clock(ABC):
    """
    Source of the current instant.

    Guarantees:
        ``now_utc()`` is timezone-aware and in UTC.
    """

    @abstractmethod
    def now_utc(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall-clock time of the host."""

    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Starts at ``start`` (2024-01-01 12:00 UTC if omitted); ``advance()``
    moves it forward by whole seconds.
    """

    def __init__(self, start: datetime | None = None):
        if start is not None and start.tzinfo is None:
            raise ValueError("DeterministicClock needs an aware start time")
        self._now = (start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)).astimezone(UTC)

    def now_utc(self) -> datetime:
        return self._now

    def advance(self, seconds: int = 1) -> datetime:
        self._now += timedelta(seconds=seconds)
        return self._now
