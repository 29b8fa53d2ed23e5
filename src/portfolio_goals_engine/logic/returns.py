# src/portfolio_goals_engine/logic/returns.py
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, getcontext
from typing import Iterable, List, Optional, Sequence, Tuple

from ..constants import (
    DAYS_PER_YEAR,
    MIN_YEAR_FRACTION,
    XIRR_INITIAL_GUESS,
    XIRR_MAX_ITERATIONS,
    XIRR_TOLERANCE,
)
from ..monitoring import XIRR_NON_CONVERGENCE_TOTAL, XIRR_SOLVER_ITERATIONS

logger = logging.getLogger(__name__)

# Set precision for Decimal calculations
getcontext().prec = 28

Cashflow = Tuple[date, Decimal]


def finite_or_zero(value: Optional[Decimal]) -> Decimal:
    """Clamps None, NaN and Infinity to zero before a value reaches a result object."""
    if value is None or not value.is_finite():
        return Decimal(0)
    return value


def year_fraction(start_date: date, end_date: date) -> Decimal:
    """Elapsed years on a 365-day year, never below one day."""
    days = Decimal((end_date - start_date).days)
    return max(days / DAYS_PER_YEAR, MIN_YEAR_FRACTION)


def calculate_cagr(start_value: Decimal, end_value: Decimal, start_date: date, as_of: date) -> Decimal:
    """
    Compound annual growth rate, in percent, of start_value growing to
    end_value between start_date and as_of.
    Returns 0 when start_value is not positive or the power is undefined.
    """
    if start_value <= 0 or end_value < 0:
        return Decimal(0)
    years = year_fraction(start_date, as_of)
    try:
        growth = (end_value / start_value) ** (Decimal(1) / years)
    except ArithmeticError:
        logger.debug(f"CAGR undefined for {start_value} -> {end_value} over {years} years.")
        return Decimal(0)
    return finite_or_zero((growth - Decimal(1)) * Decimal(100))


def calculate_annualized_return(buy_rate: Decimal, present_rate: Decimal, trade_date: date, as_of: date) -> Decimal:
    """Annualized return (CAGR, percent) of a single trade from its buy rate to the present rate."""
    return calculate_cagr(buy_rate, present_rate, trade_date, as_of)


def build_cashflows(outflows: Iterable[Cashflow], terminal_value: Decimal, as_of: date) -> List[Cashflow]:
    """
    Builds an investor-sign timeline: each invested amount becomes a negative
    flow at its date and the current valuation a positive flow at as_of.
    """
    timeline: List[Cashflow] = [(flow_date, -amount) for flow_date, amount in outflows]
    if terminal_value > 0:
        timeline.append((as_of, terminal_value))
    return timeline


@dataclass(frozen=True)
class XirrSolution:
    rate: Decimal
    iterations: int
    converged: bool


class XirrCalculator:
    """
    Calculates the money-weighted return of irregularly dated cashflows
    using Newton-Raphson iteration on the NPV function (XIRR).
    """
    def __init__(
        self,
        initial_guess: Decimal = XIRR_INITIAL_GUESS,
        max_iter: int = XIRR_MAX_ITERATIONS,
        tol: Decimal = XIRR_TOLERANCE,
    ):
        self._initial_guess = initial_guess
        self._max_iter = max_iter
        self._tol = tol

    def _npv(self, rate: Decimal, dates: Sequence[date], cashflows: Sequence[Decimal]) -> Decimal:
        """Calculates the Net Present Value for a given rate."""
        total = Decimal(0)
        start_date = dates[0]
        for i in range(len(cashflows)):
            exponent = Decimal((dates[i] - start_date).days) / DAYS_PER_YEAR
            total += cashflows[i] / ((Decimal(1) + rate) ** exponent)
        return total

    def _npv_derivative(self, rate: Decimal, dates: Sequence[date], cashflows: Sequence[Decimal]) -> Decimal:
        """Calculates the derivative of the NPV function."""
        total = Decimal(0)
        start_date = dates[0]
        for i in range(len(cashflows)):
            days_diff = Decimal((dates[i] - start_date).days)
            if days_diff == 0:
                continue
            exponent = days_diff / DAYS_PER_YEAR
            total -= cashflows[i] * exponent / ((Decimal(1) + rate) ** (exponent + 1))
        return total

    def solve(self, cashflows: Sequence[Cashflow]) -> XirrSolution:
        """
        Runs the solver on at least two cashflows (any order; exponents are
        measured from the earliest date).
        A vanishing derivative, an iterate at or below -100% or an exhausted
        iteration budget all end the search with converged=False and the
        last usable rate.
        """
        sorted_flows = sorted(cashflows, key=lambda x: x[0])
        dates, amounts = zip(*sorted_flows)

        rate = self._initial_guess
        last_valid = rate
        for iteration in range(1, self._max_iter + 1):
            if Decimal(1) + rate <= 0:
                return XirrSolution(rate=last_valid, iterations=iteration - 1, converged=False)
            try:
                npv_val = self._npv(rate, dates, amounts)
                derivative_val = self._npv_derivative(rate, dates, amounts)
            except ArithmeticError:
                return XirrSolution(rate=last_valid, iterations=iteration - 1, converged=False)

            last_valid = rate
            if abs(npv_val) < self._tol:
                return XirrSolution(rate=rate, iterations=iteration, converged=True)
            if abs(derivative_val) < self._tol:
                return XirrSolution(rate=rate, iterations=iteration, converged=False)

            rate = rate - (npv_val / derivative_val)

        final_rate = rate if rate.is_finite() and Decimal(1) + rate > 0 else last_valid
        return XirrSolution(rate=final_rate, iterations=self._max_iter, converged=False)

    def xirr_percent(self, cashflows: Iterable[Cashflow]) -> Decimal:
        """
        Returns the XIRR as a percentage, or 0 for degenerate input: fewer than
        two distinct dates, nothing invested, or no change of sign.
        """
        # Coalesce flows on the same day
        coalesced: dict[date, Decimal] = {}
        for flow_date, amount in cashflows:
            coalesced[flow_date] = coalesced.get(flow_date, Decimal(0)) + amount
        flows = list(coalesced.items())

        if len(flows) < 2:
            return Decimal(0)

        total_invested = -sum((amount for _, amount in flows if amount < 0), Decimal(0))
        if total_invested == 0:
            return Decimal(0)

        if all(amount >= 0 for _, amount in flows) or all(amount <= 0 for _, amount in flows):
            return Decimal(0)

        solution = self.solve(flows)
        XIRR_SOLVER_ITERATIONS.observe(solution.iterations)
        if not solution.converged:
            XIRR_NON_CONVERGENCE_TOTAL.inc()
            logger.warning(
                f"XIRR did not converge after {solution.iterations} iterations; "
                f"using last estimate {solution.rate}."
            )
        return finite_or_zero(solution.rate * Decimal(100))
