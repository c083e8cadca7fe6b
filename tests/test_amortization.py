from datetime import date
from decimal import Decimal

import pytest

from app.modules.current_accounts.amortization import (
    MAX_SIMULATED_INSTALLMENTS, calculate_new_installment, calculate_next_due_date, calculate_payment_dates,
    french_schedule, get_periods_per_year, periodic_rate, simple_periodic_rate, simulate_payoff
)


def test_zero_rate_schedule_rounds_up_and_closes_on_last_installment():
    schedule = french_schedule(1000, 0, 3, "MONTHLY")

    assert [e.amortization for e in schedule] == [334, 334, 332]
    assert [e.interest_for_period for e in schedule] == [0, 0, 0]
    assert schedule[-1].capital_at_period_end == 0


def test_schedule_with_interest_amortizes_whole_principal():
    schedule = french_schedule(100000, 60, 12, "MONTHLY")

    assert len(schedule) == 12
    assert sum(e.amortization for e in schedule) == 100000
    assert schedule[-1].capital_at_period_end == 0
    assert all(e.interest_for_period == int(e.interest_for_period) for e in schedule)
    # Cuota fija en todas menos la última
    assert len({e.calculated_installment_amount for e in schedule[:-1]}) == 1
    assert schedule[0].interest_for_period > schedule[-1].interest_for_period


@pytest.mark.parametrize("principal,rate,installments", [(0, 10, 3), (1000, 10, 0), (1000, -1, 3)])
def test_schedule_invalid_inputs(principal, rate, installments):
    assert french_schedule(principal, rate, installments, "MONTHLY") == []


def test_periodic_rates():
    assert periodic_rate(0, "MONTHLY") == 0
    assert periodic_rate(12, "ANNUALLY") == pytest.approx(Decimal("0.12"))
    assert (1 + periodic_rate(12, "MONTHLY")) ** 12 == pytest.approx(Decimal("1.12"))
    assert simple_periodic_rate(12, "MONTHLY") == Decimal("0.01")
    assert simple_periodic_rate(None, "MONTHLY") == 0


def test_unknown_frequency_falls_back_to_monthly():
    assert get_periods_per_year("DAILY") == 12
    assert get_periods_per_year("BIWEEKLY") == 26


def test_new_installment():
    assert calculate_new_installment(1000, 0, 4, "MONTHLY") == 250
    assert calculate_new_installment(1001, 0, 4, "MONTHLY") == 251
    assert calculate_new_installment(0, 10, 4, "MONTHLY") == 0
    assert calculate_new_installment(1000, 10, 0, "MONTHLY") == 0
    assert calculate_new_installment(1000, 12, 12, "MONTHLY") > 1000 / 12


def test_payment_dates_end_on_last_installment():
    assert calculate_payment_dates(date(2026, 1, 31), 3, "MONTHLY") == (date(2026, 2, 28), date(2026, 4, 30))
    assert calculate_payment_dates(date(2026, 1, 31), 1, "MONTHLY") == (date(2026, 1, 31), date(2026, 1, 31))
    assert calculate_payment_dates(date(2026, 1, 31), 0, "MONTHLY") == (None, None)
    assert calculate_payment_dates(date(2026, 1, 1), 2, "WEEKLY") == (date(2026, 1, 8), date(2026, 1, 15))


def test_next_due_date():
    assert calculate_next_due_date(date(2026, 1, 10), "QUARTERLY", 0, 4) == date(2026, 4, 10)
    assert calculate_next_due_date(date(2026, 1, 10), "QUARTERLY", 2, 4) == date(2026, 10, 10)
    assert calculate_next_due_date(date(2026, 1, 10), "QUARTERLY", 4, 4) is None
    assert calculate_next_due_date(date(2026, 1, 10), "MONTHLY", 0, 1) == date(2026, 1, 10)


def test_simulate_payoff():
    assert simulate_payoff(1000, 400, 0) == (3, 200)


def test_simulate_payoff_stops_when_installment_does_not_cover_interest():
    count, last_amount = simulate_payoff(1000, 5, 0.01)

    assert count == MAX_SIMULATED_INSTALLMENTS + 1
    assert last_amount == 0


def test_amounts_are_decimal():
    schedule = french_schedule(Decimal("1000.50"), 0, 2, "MONTHLY")

    assert schedule[0].amortization == Decimal("501")
    assert schedule[1].amortization == Decimal("499.50")
    assert all(isinstance(e.capital_at_period_end, Decimal) for e in schedule)
    assert calculate_new_installment(Decimal("1000.50"), 0.0, 2, "MONTHLY") == Decimal("501")


def test_end_date_matches_last_installment_due_date():
    start = date(2026, 1, 10)
    _, end_date = calculate_payment_dates(start, 4, "QUARTERLY")

    assert end_date == calculate_next_due_date(start, "QUARTERLY", 3, 4) == date(2027, 1, 10)
