# tests/unit/logic/test_returns.py
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from portfolio_goals_engine.logic import returns
from portfolio_goals_engine.logic.returns import (
    XirrCalculator,
    build_cashflows,
    calculate_annualized_return,
    calculate_cagr,
    finite_or_zero,
    year_fraction,
)


@pytest.fixture
def calculator() -> XirrCalculator:
    """Provides a clean instance of the XirrCalculator."""
    return XirrCalculator()


# --- CAGR ---

def test_calculate_cagr_two_years():
    """100 growing to 121 over exactly two 365-day years is 10% a year."""
    result = calculate_cagr(Decimal("100"), Decimal("121"), date(2023, 6, 1), date(2025, 5, 31))
    assert result == pytest.approx(Decimal("10"))


def test_calculate_annualized_return_one_year():
    result = calculate_annualized_return(Decimal("2000"), Decimal("2200"), date(2024, 6, 1), date(2025, 6, 1))
    assert result == pytest.approx(Decimal("10"))


@pytest.mark.parametrize(
    "buy_rate, present_rate",
    [(Decimal("0"), Decimal("100")), (Decimal("-5"), Decimal("100")), (Decimal("100"), Decimal("-1"))],
)
def test_calculate_annualized_return_guards_return_zero(buy_rate, present_rate):
    assert calculate_annualized_return(buy_rate, present_rate, date(2024, 1, 1), date(2025, 1, 1)) == Decimal(0)


def test_same_day_trade_uses_minimum_year_fraction():
    """
    GIVEN a trade valued on its own trade date
    WHEN the annualized return is computed
    THEN the elapsed time is one day, not zero, and the result is finite
    """
    assert year_fraction(date(2025, 1, 1), date(2025, 1, 1)) == Decimal(1) / Decimal(365)

    result = calculate_annualized_return(Decimal("100"), Decimal("101"), date(2025, 1, 1), date(2025, 1, 1))
    assert result.is_finite()
    assert result > Decimal(0)


def test_unchanged_price_gives_zero_return():
    result = calculate_annualized_return(Decimal("100"), Decimal("100"), date(2024, 1, 1), date(2025, 1, 1))
    assert result == Decimal(0)


@pytest.mark.parametrize("value", [None, Decimal("NaN"), Decimal("Infinity"), Decimal("-Infinity")])
def test_finite_or_zero_clamps_non_finite(value):
    assert finite_or_zero(value) == Decimal(0)


# --- Cashflows ---

def test_build_cashflows_uses_investor_sign():
    flows = build_cashflows(
        [(date(2024, 1, 1), Decimal("1000")), (date(2024, 2, 1), Decimal("500"))],
        Decimal("1800"),
        date(2025, 1, 1),
    )
    assert flows == [
        (date(2024, 1, 1), Decimal("-1000")),
        (date(2024, 2, 1), Decimal("-500")),
        (date(2025, 1, 1), Decimal("1800")),
    ]


def test_build_cashflows_omits_zero_terminal_value():
    flows = build_cashflows([(date(2024, 1, 1), Decimal("1000"))], Decimal("0"), date(2025, 1, 1))
    assert flows == [(date(2024, 1, 1), Decimal("-1000"))]


# --- XIRR ---

def test_xirr_single_year_ten_percent(calculator: XirrCalculator):
    """-100 invested, 110 back exactly 365 days later: 10%."""
    cashflows = [(date(2024, 6, 1), Decimal("-100")), (date(2025, 6, 1), Decimal("110"))]

    solution = calculator.solve(cashflows)

    assert solution.converged
    assert solution.rate == pytest.approx(Decimal("0.1"))
    assert calculator.xirr_percent(cashflows) == pytest.approx(Decimal("10"))


def test_xirr_multiple_flows(calculator: XirrCalculator):
    cashflows = [
        (date(2024, 1, 1), Decimal("-1000")),
        (date(2024, 4, 1), Decimal("-500")),
        (date(2024, 8, 15), Decimal("300")),
        (date(2025, 1, 1), Decimal("1300")),
    ]
    result = calculator.xirr_percent(cashflows)
    assert float(result) == pytest.approx(7.90865455, rel=1e-4)


def test_xirr_order_of_input_does_not_matter(calculator: XirrCalculator):
    cashflows = [(date(2025, 6, 1), Decimal("110")), (date(2024, 6, 1), Decimal("-100"))]
    assert calculator.xirr_percent(cashflows) == pytest.approx(Decimal("10"))


def test_xirr_same_day_flows_are_coalesced(calculator: XirrCalculator):
    """
    GIVEN a buy of A and a terminal value of A on the same date
    WHEN XIRR is computed
    THEN the flows cancel out and the result is 0
    """
    cashflows = [(date(2025, 6, 1), Decimal("-500")), (date(2025, 6, 1), Decimal("500"))]
    assert calculator.xirr_percent(cashflows) == Decimal(0)


@pytest.mark.parametrize(
    "cashflows",
    [
        [],
        [(date(2024, 1, 1), Decimal("-100"))],
        [(date(2024, 1, 1), Decimal("100")), (date(2024, 6, 1), Decimal("200"))],
        [(date(2024, 1, 1), Decimal("-100")), (date(2024, 6, 1), Decimal("-200"))],
    ],
)
def test_xirr_degenerate_input_returns_zero(calculator: XirrCalculator, cashflows):
    assert calculator.xirr_percent(cashflows) == Decimal(0)


def test_xirr_stops_when_iterate_leaves_domain(calculator: XirrCalculator):
    """
    A near-total loss makes the first Newton step jump below -100%; the
    solver stops with the last valid rate instead of raising.
    """
    cashflows = [(date(2024, 1, 1), Decimal("-100")), (date(2025, 1, 1), Decimal("1"))]

    solution = calculator.solve(cashflows)

    assert not solution.converged
    assert solution.rate.is_finite()
    assert Decimal(1) + solution.rate > 0


def test_xirr_non_convergence_is_counted():
    calculator = XirrCalculator(max_iter=1)
    cashflows = [
        (date(2024, 1, 1), Decimal("-1000")),
        (date(2024, 4, 1), Decimal("-500")),
        (date(2025, 1, 1), Decimal("1700")),
    ]

    with patch.object(returns, "XIRR_NON_CONVERGENCE_TOTAL") as counter:
        result = calculator.xirr_percent(cashflows)

    counter.inc.assert_called_once()
    assert result.is_finite()
