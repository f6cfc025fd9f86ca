"""
Property-based tests for the calculation engines.

Properties checked here:
- Interval overlap is symmetric, non-negative and bounded by both intervals
- Splitting at local midnights neither loses nor invents minutes
- Rule windows cover (end - start) mod 24h of wall-clock time
- Half-up rounding is symmetric around zero
- Payroll rows add up and do not depend on input order
"""

import random
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from shiftpay_engines.payroll import compute_payroll, rows_to_payload
from shiftpay_engines.pay_rules import supplement_cents
from shiftpay_engines.time_windows import (
    interval_minutes,
    overlap_minutes,
    split_by_local_day,
    windows_for_day_utc,
)
from shiftpay_kernel.domain.values import round_half_up
from tests.factories import BERLIN, berlin, hourly_contract, make_shift, make_user, pay_rule

MARCH_START = berlin(2025, 3, 1)
MARCH_MINUTES = 31 * 24 * 60

FUZZ_SETTINGS = settings(
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)

minute_offsets = st.integers(min_value=-2 * 24 * 60, max_value=MARCH_MINUTES + 2 * 24 * 60)
durations = st.integers(min_value=0, max_value=3 * 24 * 60)
window_minutes = st.integers(min_value=0, max_value=24 * 60 - 1)


def interval(offset, duration):
    start = MARCH_START + timedelta(minutes=offset)
    return start, start + timedelta(minutes=duration)


class TestIntervalProperties:

    @given(a=st.tuples(minute_offsets, durations), b=st.tuples(minute_offsets, durations))
    @FUZZ_SETTINGS
    def test_overlap_is_symmetric_and_bounded(self, a, b):
        a_start, a_end = interval(*a)
        b_start, b_end = interval(*b)

        shared = overlap_minutes(a_start, a_end, b_start, b_end)

        assert shared == overlap_minutes(b_start, b_end, a_start, a_end)
        assert 0 <= shared <= min(interval_minutes(a_start, a_end), interval_minutes(b_start, b_end))

    @given(offset=minute_offsets, duration=durations)
    @FUZZ_SETTINGS
    def test_split_preserves_minutes(self, offset, duration):
        start, end = interval(offset, duration)

        segments = split_by_local_day(start, end, BERLIN)

        assert sum(interval_minutes(s.start, s.end) for s in segments) == duration
        assert all(s.start < s.end for s in segments)
        assert [s.day for s in segments] == sorted({s.day for s in segments})

    @given(start=window_minutes, end=window_minutes, day_offset=st.integers(min_value=0, max_value=20))
    @FUZZ_SETTINGS
    def test_window_length_on_regular_day(self, start, end, day_offset):
        """Early March has no DST change, so wall-clock length equals real length."""
        day = date(2025, 3, 1) + timedelta(days=day_offset)
        wall_end = 24 * 60 if end == 0 else end
        expected = (wall_end - start) % (24 * 60) or 24 * 60

        windows = windows_for_day_utc(day, start, end, BERLIN)

        assert sum(interval_minutes(s, e) for s, e in windows) == expected
        assert len(windows) == (2 if wall_end <= start else 1)


class TestRoundingProperties:

    @given(value=st.decimals(min_value=-10**9, max_value=10**9, places=3, allow_nan=False, allow_infinity=False))
    @FUZZ_SETTINGS
    def test_half_up_is_symmetric(self, value):
        assert round_half_up(-value) == -round_half_up(value)
        assert round_half_up(value) == int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))
        assert abs(Decimal(round_half_up(value)) - value) <= Decimal("0.5")

    @given(
        minutes=st.integers(min_value=0, max_value=10_000),
        hourly=st.integers(min_value=0, max_value=20_000),
        percent=st.decimals(min_value=0, max_value=200, places=2, allow_nan=False, allow_infinity=False),
    )
    @FUZZ_SETTINGS
    def test_supplement_is_within_half_a_cent(self, minutes, hourly, percent):
        exact = Decimal(minutes) * hourly * percent / 6000

        assert abs(supplement_cents(minutes, hourly, percent) - exact) <= Decimal("0.5")


shift_specs = st.lists(st.tuples(minute_offsets, st.integers(min_value=1, max_value=16 * 60)), max_size=12)


class TestPayrollProperties:

    @given(specs=shift_specs, seed=st.integers(min_value=0, max_value=10_000))
    @FUZZ_SETTINGS
    def test_rows_add_up_and_ignore_order(self, specs, seed):
        rules = [
            pay_rule("Nacht", Decimal("25"), start=22 * 60, end=6 * 60),
            pay_rule("Sonntag", Decimal("50"), days_of_week={0}),
        ]
        user = make_user([hourly_contract(1999)], rules)
        shifts = [make_shift(user, *interval(offset, duration)) for offset, duration in specs]
        shuffled = list(shifts)
        random.Random(seed).shuffle(shuffled)

        (row,) = compute_payroll(2025, 2, [user], shifts, [], tz=BERLIN)
        (again,) = compute_payroll(2025, 2, [user], shuffled, [], tz=BERLIN)

        assert rows_to_payload([row]) == rows_to_payload([again])
        assert row.supplements_total_cents == sum(s.amount_cents for s in row.supplements)
        assert row.bonus is None
        assert row.gross_cents == row.base_salary_cents + row.base_from_hours_cents + row.supplements_total_cents
        for line in row.supplements:
            assert line.minutes == sum(t.minutes for t in line.triggers)
            assert line.amount_cents == sum(
                supplement_cents(t.minutes, 1999, line.percent) for t in line.triggers
            )
