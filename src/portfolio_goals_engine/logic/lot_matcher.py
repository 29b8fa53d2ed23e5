# src/portfolio_goals_engine/logic/lot_matcher.py
import datetime as dt
import logging
from collections import deque
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Deque, Dict, List, Optional, Sequence, Tuple

from ..core.enums import BucketId, InvestmentType, TransactionType
from ..core.models.results import Holding, OpenLot
from ..core.models.trade import Trade
from ..monitoring import (
    EXCLUDED_TRADES_TOTAL,
    HOLDINGS_RECALCULATION_DEPTH,
    HOLDINGS_RECALCULATION_DURATION_SECONDS,
)
from .bucket_tags import resolve_bucket_tags
from .cost_objects import Lot
from .error_reporter import OVERSELL, ErrorReporter
from .price_resolution import PriceLookup, resolve_price
from .returns import XirrCalculator, build_cashflows, calculate_cagr, finite_or_zero
from .sorter import TradeSorter
from .trade_validation import EMPTY_NAME, NON_POSITIVE_QUANTITY, NON_POSITIVE_RATE

logger = logging.getLogger(__name__)


class FIFOLotQueue:
    """
    Open buy lots of one instrument, consumed oldest first (First-In, First-Out).
    """
    def __init__(self):
        self._open_lots: Deque[Lot] = deque()

    def add_buy_lot(self, trade: Trade):
        if trade.quantity <= Decimal(0):
            return
        self._open_lots.append(
            Lot(trade_id=trade.id, quantity=trade.quantity, price=trade.buy_rate, acquired_on=trade.date)
        )

    def consume_sell_quantity(self, sell_quantity: Decimal) -> Tuple[Decimal, Decimal]:
        """
        Consumes up to `sell_quantity` units from the oldest lots.

        Returns:
            (matched cost at the consumed lots' prices, quantity actually consumed).
            The consumed quantity is lower than requested when the lots run out.
        """
        required_quantity = sell_quantity
        total_matched_cost = Decimal(0)
        consumed_quantity = Decimal(0)

        while required_quantity > 0 and self._open_lots:
            current_lot = self._open_lots[0]
            taken = current_lot.consume(required_quantity)
            total_matched_cost += taken * current_lot.price
            consumed_quantity += taken
            required_quantity -= taken
            if current_lot.is_exhausted:
                self._open_lots.popleft()

        return total_matched_cost, consumed_quantity

    def open_lots(self) -> List[OpenLot]:
        return [lot.to_open_lot() for lot in self._open_lots]


@dataclass
class InstrumentPosition:
    """Running state of one instrument while its trades are replayed."""
    name: str
    investment_type: InvestmentType
    net_quantity: Decimal = Decimal(0)
    invested_amount: Decimal = Decimal(0)
    first_buy_date: Optional[dt.date] = None
    lots: FIFOLotQueue = field(default_factory=FIFOLotQueue)


class LotMatcher:
    """
    Turns the trade ledger into holdings by replaying every instrument's
    trades in date order and matching sells against the oldest open buys.
    Each call recomputes from scratch in O(trades); nothing is cached.
    """
    def __init__(self, sorter: Optional[TradeSorter] = None, xirr_calculator: Optional[XirrCalculator] = None):
        self._sorter = sorter or TradeSorter()
        self._xirr_calculator = xirr_calculator or XirrCalculator()

    def _exclusion_reason(self, trade: Trade) -> Optional[str]:
        if not trade.name or not trade.name.strip():
            return EMPTY_NAME
        if trade.quantity <= Decimal(0):
            return NON_POSITIVE_QUANTITY
        if trade.buy_rate <= Decimal(0):
            return NON_POSITIVE_RATE
        return None

    def match(self, trades: Sequence[Trade], error_reporter: Optional[ErrorReporter] = None) -> List[InstrumentPosition]:
        """
        Runs FIFO matching for every instrument and returns the raw positions,
        including closed or oversold ones.
        """
        grouped: Dict[str, List[Trade]] = {}
        for trade in trades:
            reason = self._exclusion_reason(trade)
            if reason:
                EXCLUDED_TRADES_TOTAL.labels(reason=reason).inc()
                logger.debug(f"Excluding trade {trade.id} from holdings: {reason}")
                if error_reporter:
                    error_reporter.report(trade.id, reason, f"Excluded from holdings: {reason}")
                continue
            grouped.setdefault(trade.name, []).append(trade)

        positions: List[InstrumentPosition] = []
        for name, instrument_trades in grouped.items():
            position = InstrumentPosition(name=name, investment_type=instrument_trades[0].investment_type)
            for trade in self._sorter.sort_trades(instrument_trades):
                if trade.transaction_type == TransactionType.BUY:
                    position.lots.add_buy_lot(trade)
                    position.net_quantity += trade.quantity
                    position.invested_amount += trade.buy_amount
                    if position.first_buy_date is None:
                        position.first_buy_date = trade.date
                else:
                    matched_cost, consumed = position.lots.consume_sell_quantity(trade.quantity)
                    position.invested_amount -= matched_cost
                    position.net_quantity -= trade.quantity
                    if consumed < trade.quantity:
                        message = (
                            f"Sell quantity ({trade.quantity}) exceeds open lots ({consumed}) for {name}; "
                            f"excess of {trade.quantity - consumed} has no cost basis."
                        )
                        logger.warning(f"Oversell in trade {trade.id}: {message}")
                        if error_reporter:
                            error_reporter.report(trade.id, OVERSELL, message)
            positions.append(position)
        return positions

    def compute_holdings(
        self,
        trades: Sequence[Trade],
        price_lookup: PriceLookup,
        *,
        as_of: Optional[dt.date] = None,
        error_reporter: Optional[ErrorReporter] = None,
    ) -> List[Holding]:
        as_of = as_of or dt.date.today()
        HOLDINGS_RECALCULATION_DEPTH.observe(len(trades))
        with HOLDINGS_RECALCULATION_DURATION_SECONDS.time():
            bucket_tags = resolve_bucket_tags(trades)
            holdings = [
                self._to_holding(position, price_lookup, bucket_tags.get(position.name), as_of)
                for position in self.match(trades, error_reporter)
                if position.net_quantity > 0 and position.invested_amount > 0
            ]
        logger.info(f"Recomputed {len(holdings)} holdings from {len(trades)} trades.")
        return sorted(holdings, key=lambda h: h.current_value, reverse=True)

    def _to_holding(
        self,
        position: InstrumentPosition,
        price_lookup: PriceLookup,
        bucket: Optional[BucketId],
        as_of: dt.date,
    ) -> Holding:
        invested = position.invested_amount
        average_buy_price = invested / position.net_quantity
        priced = resolve_price(price_lookup, position.name, position.investment_type, fallback=average_buy_price)

        current_value = position.net_quantity * priced.price
        gain_loss_amount = current_value - invested
        gain_loss_percent = gain_loss_amount / invested * Decimal(100)

        first_buy_date = position.first_buy_date or as_of
        annual_yield = calculate_cagr(invested, current_value, first_buy_date, as_of)

        open_lots = position.lots.open_lots()
        outflows = [(lot.acquired_on, lot.quantity * lot.price) for lot in open_lots]
        xirr = self._xirr_calculator.xirr_percent(build_cashflows(outflows, current_value, as_of))

        return Holding(
            name=position.name,
            investment_type=position.investment_type,
            bucket_allocation=bucket,
            net_quantity=position.net_quantity,
            average_buy_price=average_buy_price,
            invested_amount=invested,
            current_price=priced.price,
            price_is_fallback=priced.is_fallback,
            current_value=current_value,
            gain_loss_amount=gain_loss_amount,
            gain_loss_percent=finite_or_zero(gain_loss_percent),
            annual_yield=annual_yield,
            xirr=xirr,
            first_buy_date=position.first_buy_date,
            open_lots=open_lots,
        )


def compute_holdings(
    trades: Sequence[Trade],
    price_lookup: PriceLookup,
    *,
    as_of: Optional[dt.date] = None,
    error_reporter: Optional[ErrorReporter] = None,
) -> List[Holding]:
    """Convenience wrapper around a default LotMatcher."""
    return LotMatcher().compute_holdings(trades, price_lookup, as_of=as_of, error_reporter=error_reporter)
