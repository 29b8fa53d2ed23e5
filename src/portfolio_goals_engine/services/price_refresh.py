# src/portfolio_goals_engine/services/price_refresh.py
import asyncio
import datetime as dt
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Tuple

from tenacity import (
    AsyncRetrying,
    before_log,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from ..config import PRICE_BATCH_DELAY_SECONDS, PRICE_BATCH_SIZE, PRICE_FETCH_ATTEMPTS
from ..core.enums import InvestmentType
from ..core.models.trade import Trade, ValuedTrade
from ..exceptions import PriceUnavailableError
from ..logic.price_resolution import PriceLookup, resolve_price
from ..logic.returns import calculate_annualized_return, finite_or_zero
from .pricing import PriceCache, cache_key

logger = logging.getLogger(__name__)

PriceOracle = Callable[[str, InvestmentType], Awaitable[Optional[Decimal]]]
Instrument = Tuple[str, InvestmentType]


@dataclass
class RefreshReport:
    refreshed: List[str] = field(default_factory=list)
    skipped_fresh: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def unique_instruments(trades: Iterable[Trade]) -> List[Instrument]:
    """Distinct (name, investment type) pairs in first-seen order."""
    seen = {}
    for trade in trades:
        if trade.name and trade.name.strip():
            seen.setdefault((trade.name, trade.investment_type), None)
    return list(seen)


class PriceRefresher:
    """
    Refreshes the price cache from an async price oracle. Instruments are
    fetched concurrently in fixed-size batches with a pause between batches;
    each fetch is retried before it is given up on. A failed fetch leaves the
    last cached price in place.
    """
    def __init__(
        self,
        oracle: PriceOracle,
        cache: PriceCache,
        batch_size: int = PRICE_BATCH_SIZE,
        batch_delay: float = PRICE_BATCH_DELAY_SECONDS,
        attempts: int = PRICE_FETCH_ATTEMPTS,
        retry_wait: float = PRICE_BATCH_DELAY_SECONDS,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._oracle = oracle
        self._cache = cache
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._attempts = max(1, attempts)
        self._retry_wait = retry_wait

    async def _fetch_with_retry(self, name: str, investment_type: InvestmentType) -> Decimal:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_fixed(self._retry_wait),
            retry=retry_if_not_exception_type(PriceUnavailableError),
            before=before_log(logger, logging.DEBUG),
            reraise=True,
        ):
            with attempt:
                raw_price = await self._oracle(name, investment_type)

        if raw_price is None:
            raise PriceUnavailableError(f"No quote for {name} ({investment_type.value}).")
        try:
            price = Decimal(str(raw_price))
        except InvalidOperation:
            raise PriceUnavailableError(f"Unusable quote {raw_price!r} for {name}.") from None
        if not price.is_finite() or price <= 0:
            raise PriceUnavailableError(f"Non-positive quote {price} for {name}.")
        return price

    async def _refresh_batch(self, batch: Sequence[Instrument], report: RefreshReport) -> None:
        results = await asyncio.gather(
            *(self._fetch_with_retry(name, investment_type) for name, investment_type in batch),
            return_exceptions=True,
        )
        for (name, investment_type), result in zip(batch, results):
            key = cache_key(name, investment_type)
            if isinstance(result, PriceUnavailableError):
                logger.warning(f"No price for {key}: {result.message}. Keeping last cached value.")
                report.failed.append(key)
            elif isinstance(result, BaseException):
                logger.error(f"Price fetch failed for {key}; keeping last cached value.", exc_info=result)
                report.failed.append(key)
            else:
                self._cache.put(name, investment_type, result)
                report.refreshed.append(key)

    async def refresh_prices(self, trades: Iterable[Trade]) -> RefreshReport:
        report = RefreshReport()
        stale: List[Instrument] = []
        for name, investment_type in unique_instruments(trades):
            if self._cache.is_fresh(name, investment_type):
                report.skipped_fresh.append(cache_key(name, investment_type))
            else:
                stale.append((name, investment_type))

        batches = [stale[i:i + self._batch_size] for i in range(0, len(stale), self._batch_size)]
        for index, batch in enumerate(batches):
            if index > 0 and self._batch_delay > 0:
                await asyncio.sleep(self._batch_delay)
            await self._refresh_batch(batch, report)

        logger.info(
            f"Price refresh done: {len(report.refreshed)} refreshed, "
            f"{len(report.skipped_fresh)} fresh, {len(report.failed)} failed."
        )
        return report


def value_trade(trade: Trade, price_lookup: PriceLookup, as_of: dt.date) -> ValuedTrade:
    """Marks one trade to market, falling back to its own buy rate when no price exists."""
    priced = resolve_price(price_lookup, trade.name, trade.investment_type, fallback=trade.buy_rate)
    present_amount = trade.quantity * priced.price
    buy_amount = trade.buy_amount
    profit_percent = (present_amount - buy_amount) / buy_amount * Decimal(100) if buy_amount > 0 else Decimal(0)

    return ValuedTrade(
        **trade.model_dump(include=set(Trade.model_fields)),
        present_rate=priced.price,
        profit_percent=finite_or_zero(profit_percent),
        annualized_return=calculate_annualized_return(trade.buy_rate, priced.price, trade.date, as_of),
        price_is_fallback=priced.is_fallback,
    )


def value_trades(trades: Iterable[Trade], price_lookup: PriceLookup, as_of: dt.date) -> List[ValuedTrade]:
    return [value_trade(trade, price_lookup, as_of) for trade in trades]
