"""
Tests for the time-account calculator.

Covers:
- Planned hours per contract month
- The trailing vacation rule and its carry into the next month
- Sick days, approved and pending absences
- Overtime and the manual hour adjustment
- Vacation entitlement and the prior-year remainder
- Which employees are considered
"""

from datetime import date, timedelta
from decimal import Decimal

from shiftpay_engines.time_account import (
    TimeAccountInput,
    compute_working_stats,
    entries_to_payload,
    monthly_planned_hours,
    prorated_vacation_entitlement,
    trailing_vacation_chain,
)
from tests.factories import (
    APPROVED_OTHER,
    APPROVED_SICKNESS,
    BERLIN,
    PENDING_SICKNESS,
    berlin,
    hourly_contract,
    make_shift,
    make_user,
)


def full_time(valid_from=date(2024, 1, 1), valid_until=None, weekly=Decimal("40"), annual=Decimal("30")):
    return hourly_contract(
        2000,
        valid_from=valid_from,
        valid_until=valid_until,
        weekly_hours=weekly,
        vacation_days_annual=annual,
    )


def days(first, count):
    return tuple(first + timedelta(days=i) for i in range(count))


def stats(account, year=2025, month_index=2):
    (entry,) = compute_working_stats(year, month_index, [account], tz=BERLIN)
    return entry


class TestTrailingVacationChain:
    """trailing_vacation_chain."""

    def test_run_ending_on_last_day(self):
        chain = trailing_vacation_chain(days(date(2025, 2, 25), 4), 2025, 1)

        assert chain == list(days(date(2025, 2, 25), 4))

    def test_last_day_not_on_vacation(self):
        assert trailing_vacation_chain(days(date(2025, 2, 20), 4), 2025, 1) == []

    def test_run_longer_than_cap_yields_nothing(self):
        assert trailing_vacation_chain(days(date(2025, 2, 24), 5), 2025, 1) == []

    def test_gap_ends_the_run(self):
        vacation = (date(2025, 2, 24), date(2025, 2, 26), date(2025, 2, 27), date(2025, 2, 28))

        assert len(trailing_vacation_chain(vacation, 2025, 1)) == 3


class TestTrailingVacationRule:
    """Vacation blocks credited as worked hours."""

    def test_five_days_ending_on_last_day_add_a_week(self):
        user = make_user([full_time()])
        entry = stats(TimeAccountInput(user, vacation_days=days(date(2025, 3, 27), 5)))

        assert entry.m_vacation == 5
        assert entry.m_hours == Decimal("40.00")
        assert entry.y_hours == Decimal("40.00")

    def test_long_trailing_run_carries_nothing(self):
        """Five days ending on 31 March were credited in March; April gets no carry."""
        user = make_user([full_time()])
        entry = stats(TimeAccountInput(user, vacation_days=days(date(2025, 3, 27), 5)), month_index=3)

        assert entry.m_vacation == 0
        assert entry.m_hours == Decimal("0.00")

    def test_run_not_ending_on_last_day_carries_nothing(self):
        user = make_user([full_time()])
        entry = stats(TimeAccountInput(user, vacation_days=days(date(2025, 3, 10), 5)), month_index=3)

        assert entry.m_hours == Decimal("0.00")

    def test_short_trailing_run_completes_a_block_next_month(self):
        """Four days ending on 28 Feb plus one day in March make one block in March."""
        user = make_user([full_time()])
        vacation = days(date(2025, 2, 25), 4) + (date(2025, 3, 3),)

        february = stats(TimeAccountInput(user, vacation_days=vacation), month_index=1)
        march = stats(TimeAccountInput(user, vacation_days=vacation), month_index=2)

        assert february.m_hours == Decimal("0.00")
        assert march.m_vacation == 1
        assert march.m_hours == Decimal("40.00")
        assert march.y_vacation == 5
        assert march.y_hours == Decimal("40.00")

    def test_block_credit_uses_weekly_hours(self):
        user = make_user([full_time(weekly=Decimal("20"))])
        entry = stats(TimeAccountInput(user, vacation_days=days(date(2025, 3, 3), 10)))

        assert entry.m_hours == Decimal("40.00")


class TestPlannedHours:

    def test_full_time_month(self):
        assert monthly_planned_hours(full_time(), Decimal("4.35")) == 174

    def test_fractional_plan_rounds(self):
        assert monthly_planned_hours(full_time(weekly=Decimal("38.5")), Decimal("4.35")) == 167

    def test_year_plan_sums_contract_months(self):
        user = make_user([full_time()])
        entry = stats(TimeAccountInput(user))

        assert entry.m_hours_plan == 174
        assert entry.y_hours_plan == 3 * 174

    def test_contract_change_mid_year(self):
        first = full_time(valid_until=date(2025, 2, 28))
        second = full_time(valid_from=date(2025, 3, 1), weekly=Decimal("20"))
        user = make_user([first, second])

        entry = stats(TimeAccountInput(user))

        assert entry.m_hours_plan == 87
        assert entry.y_hours_plan == 2 * 174 + 87

    def test_contract_change_mid_month_counts_month_once(self):
        """A contract superseded on the 15th: March is planned and counted once."""
        first = full_time(valid_until=date(2025, 3, 14))
        second = full_time(valid_from=date(2025, 3, 15))
        user = make_user([first, second])
        shift = make_shift(user, berlin(2025, 3, 20, 8), berlin(2025, 3, 20, 16))

        entry = stats(TimeAccountInput(user, shifts=(shift,), vacation_days=(date(2025, 3, 3),)))

        assert entry.m_hours == Decimal("8.00")
        assert entry.y_hours == Decimal("8.00")
        assert entry.m_vacation == 1
        assert entry.y_vacation == 1
        assert entry.m_hours_plan == 174
        assert entry.y_hours_plan == 3 * 174

    def test_later_contract_plans_the_shared_month(self):
        first = full_time(valid_until=date(2025, 3, 14))
        second = full_time(valid_from=date(2025, 3, 15), weekly=Decimal("20"))
        user = make_user([first, second])

        entry = stats(TimeAccountInput(user))

        assert entry.m_hours_plan == 87
        assert entry.y_hours_plan == 2 * 174 + 87

    def test_shared_month_vacation_block_credited_once(self):
        first = full_time(valid_until=date(2025, 3, 14))
        second = full_time(valid_from=date(2025, 3, 15))
        user = make_user([first, second])

        entry = stats(TimeAccountInput(user, vacation_days=days(date(2025, 3, 17), 5)))

        assert entry.m_hours == Decimal("40.00")
        assert entry.y_hours == Decimal("40.00")


class TestWorkedHours:

    def test_clocked_shift_counts(self):
        user = make_user([full_time()])
        shift = make_shift(user, berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 16, 30))

        entry = stats(TimeAccountInput(user, shifts=(shift,)))

        assert entry.m_hours == Decimal("8.50")
        assert entry.y_hours == Decimal("8.50")

    def test_earlier_months_count_toward_year_only(self):
        user = make_user([full_time()])
        shifts = (
            make_shift(user, berlin(2025, 1, 10, 8), berlin(2025, 1, 10, 16)),
            make_shift(user, berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 12)),
        )

        entry = stats(TimeAccountInput(user, shifts=shifts))

        assert entry.m_hours == Decimal("4.00")
        assert entry.y_hours == Decimal("12.00")

    def test_non_working_code_never_counts(self):
        user = make_user([full_time()])
        shift = make_shift(user, berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 16), code="U", working=False)

        assert stats(TimeAccountInput(user, shifts=(shift,))).m_hours == Decimal("0.00")

    def test_sick_days_are_distinct_days_with_approved_absence(self):
        user = make_user([full_time()])
        shifts = (
            make_shift(user, berlin(2025, 1, 20, 8), berlin(2025, 1, 20, 16), clocked=False, absence=APPROVED_SICKNESS),
            make_shift(user, berlin(2025, 3, 3, 8), berlin(2025, 3, 3, 16), clocked=False, absence=APPROVED_SICKNESS),
            make_shift(user, berlin(2025, 3, 4, 8), berlin(2025, 3, 4, 16), clocked=False, absence=APPROVED_SICKNESS),
            make_shift(user, berlin(2025, 3, 5, 8), berlin(2025, 3, 5, 16), clocked=False, absence=PENDING_SICKNESS),
        )

        entry = stats(TimeAccountInput(user, shifts=shifts))

        assert entry.m_sick_days == 2
        assert entry.y_sick_days == 3
        assert entry.m_hours == Decimal("16.00")
        assert entry.y_hours == Decimal("24.00")

    def test_approved_other_absence_is_not_a_sick_day(self):
        user = make_user([full_time()])
        shift = make_shift(user, berlin(2025, 3, 12, 8), berlin(2025, 3, 12, 16), clocked=False, absence=APPROVED_OTHER)

        entry = stats(TimeAccountInput(user, shifts=(shift,)))

        assert entry.m_sick_days == 0
        assert entry.y_sick_days == 0
        assert entry.m_hours == Decimal("8.00")

    def test_overtime_and_adjustment(self):
        user = make_user([full_time()])
        shift = make_shift(user, berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 16))

        entry = stats(TimeAccountInput(user, shifts=(shift,), hours_adjustment=Decimal("10")))

        assert entry.overtime == Decimal("-514.00")
        assert entry.hours_adjustment == Decimal("10.00")
        assert entry.overtime_balance == Decimal("-504.00")


class TestVacationEntitlement:

    def test_full_year_entitlement(self):
        user = make_user([full_time(annual=Decimal("24"))])

        assert stats(TimeAccountInput(user)).y_vacation_plan == Decimal("24.00")

    def test_prorated_for_partial_year(self):
        contract = full_time(valid_from=date(2024, 7, 1), annual=Decimal("24"))

        assert prorated_vacation_entitlement([contract], 2024) == Decimal("12")

    def test_prior_year_remainder(self):
        user = make_user([full_time(valid_from=date(2024, 7, 1), annual=Decimal("24"))])
        entry = stats(TimeAccountInput(user, vacation_days=days(date(2024, 7, 1), 5)))

        assert entry.r_vacation_prev_year == Decimal("7.00")

    def test_prior_year_remainder_never_negative(self):
        user = make_user([full_time(valid_from=date(2024, 7, 1), annual=Decimal("24"))])
        entry = stats(TimeAccountInput(user, vacation_days=days(date(2024, 7, 1), 20)))

        assert entry.r_vacation_prev_year == Decimal("0.00")


class TestConsideredEmployees:

    def test_inactive_user_is_left_out(self):
        user = make_user([full_time()], is_active=False)

        assert compute_working_stats(2025, 2, [TimeAccountInput(user)], tz=BERLIN) == ()

    def test_user_hired_after_target_month_is_left_out(self):
        user = make_user([full_time()], employment_start=date(2025, 4, 1))

        assert compute_working_stats(2025, 2, [TimeAccountInput(user)], tz=BERLIN) == ()

    def test_user_terminated_before_the_year_is_left_out(self):
        user = make_user([full_time()], termination_date=date(2024, 12, 31))

        assert compute_working_stats(2025, 2, [TimeAccountInput(user)], tz=BERLIN) == ()

    def test_user_without_contract_gets_zero_entry(self):
        entry = stats(TimeAccountInput(make_user([])))

        assert entry.m_hours_plan == 0
        assert entry.y_hours == Decimal("0.00")


class TestPayload:

    def test_payload_keys(self):
        user = make_user([full_time()], first_name="Anna", last_name="Berg")
        shift = make_shift(user, berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 16))

        (payload,) = entries_to_payload(
            compute_working_stats(2025, 2, [TimeAccountInput(user, shifts=(shift,))], tz=BERLIN)
        )

        assert payload["user"] == {"id": str(user.id), "firstName": "Anna", "lastName": "Berg"}
        assert payload["mHours"] == "8.00"
        assert payload["mHoursPlan"] == 174
        assert payload["yHoursPlan"] == 522
        assert payload["overtime"] == "-514.00"
        assert payload["yVacationPlan"] == "30.00"
