# src/portfolio_goals_engine/services/summary_composer.py
import datetime as dt
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from ..config import PERFORMER_COUNT
from ..core.enums import InvestmentType
from ..core.models.results import Summary
from ..core.models.trade import ValuedTrade
from ..logic.returns import XirrCalculator, build_cashflows, finite_or_zero

logger = logging.getLogger(__name__)


class SummaryComposer:
    """
    Builds portfolio-wide totals over a (possibly filtered) list of valued
    trades. Buys and sells are summed alike; this is a per-trade view, not
    the FIFO holdings view.
    """
    def __init__(self, xirr_calculator: Optional[XirrCalculator] = None):
        self._xirr_calculator = xirr_calculator or XirrCalculator()

    def compose(
        self,
        valued_trades: Sequence[ValuedTrade],
        *,
        as_of: dt.date,
        performer_count: int = PERFORMER_COUNT,
    ) -> Summary:
        if not valued_trades:
            return Summary()

        total_investment = sum((t.buy_amount for t in valued_trades), Decimal(0))
        current_value = sum((t.present_amount for t in valued_trades), Decimal(0))
        total_profit = current_value - total_investment
        total_profit_percent = (
            total_profit / total_investment * Decimal(100) if total_investment > 0 else Decimal(0)
        )

        total_annualized_return = sum(
            (t.annualized_return for t in valued_trades), Decimal(0)
        ) / Decimal(len(valued_trades))

        asset_allocation: Dict[InvestmentType, Decimal] = {}
        for t in valued_trades:
            asset_allocation[t.investment_type] = asset_allocation.get(t.investment_type, Decimal(0)) + t.present_amount

        ranked: List[ValuedTrade] = sorted(valued_trades, key=lambda t: t.profit_percent, reverse=True)
        top_performers = ranked[:performer_count]
        bottom_performers = list(reversed(ranked[-performer_count:])) if performer_count > 0 else []

        logger.debug(f"Composed summary over {len(valued_trades)} trades.")
        return Summary(
            total_investment=total_investment,
            current_value=current_value,
            total_profit=total_profit,
            total_profit_percent=finite_or_zero(total_profit_percent),
            total_annualized_return=finite_or_zero(total_annualized_return),
            xirr=self._portfolio_xirr(valued_trades, as_of),
            asset_allocation=asset_allocation,
            top_performers=top_performers,
            bottom_performers=bottom_performers,
        )

    def _portfolio_xirr(self, valued_trades: Sequence[ValuedTrade], as_of: dt.date) -> Decimal:
        """
        One XIRR over every buy: its amount leaves at its date and the present
        value of all buys comes back at `as_of`.
        """
        buys = [t for t in valued_trades if t.is_buy]
        outflows = [(t.date, t.buy_amount) for t in buys]
        terminal_value = sum((t.present_amount for t in buys), Decimal(0))
        return self._xirr_calculator.xirr_percent(build_cashflows(outflows, terminal_value, as_of))


def compose(
    valued_trades: Sequence[ValuedTrade],
    *,
    as_of: dt.date,
    performer_count: int = PERFORMER_COUNT,
) -> Summary:
    """Convenience wrapper around a default SummaryComposer."""
    return SummaryComposer().compose(valued_trades, as_of=as_of, performer_count=performer_count)
