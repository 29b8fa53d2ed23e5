# src/portfolio_goals_engine/services/portfolio_engine.py
import datetime as dt
import logging
from typing import Callable, List, Optional, Sequence

from ..core.models.results import BucketSummary, ErroredTrade, Holding, PortfolioSnapshot, Summary
from ..core.models.trade import Trade
from ..logging_utils import correlation_id_var, generate_correlation_id
from ..logic.allocation import calculate_asset_allocation, calculate_concentration
from ..logic.bucket_tags import resolve_bucket_tags
from ..logic.error_reporter import ErrorReporter
from ..logic.filters import TradeFilter
from ..logic.lot_matcher import LotMatcher
from ..logic.price_resolution import PriceLookup
from .bucket_aggregator import summarize
from .bucket_config import BucketConfig
from .goal_analysis import project_goals, weighted_xirr
from .price_refresh import value_trades
from .summary_composer import SummaryComposer

logger = logging.getLogger(__name__)

DateClock = Callable[[], dt.date]


class PortfolioEngine:
    """
    Orchestrates a full recomputation of the portfolio views from the trade
    list. Holdings and buckets always cover every trade; the summary covers
    the filtered view only. Nothing is cached between calls.
    """
    def __init__(
        self,
        price_lookup: PriceLookup,
        bucket_config: Optional[BucketConfig] = None,
        *,
        clock: Optional[DateClock] = None,
        lot_matcher: Optional[LotMatcher] = None,
        summary_composer: Optional[SummaryComposer] = None,
    ):
        self._price_lookup = price_lookup
        self._bucket_config = bucket_config or BucketConfig.default()
        self._clock = clock or dt.date.today
        self._lot_matcher = lot_matcher or LotMatcher()
        self._summary_composer = summary_composer or SummaryComposer()

    @property
    def bucket_config(self) -> BucketConfig:
        return self._bucket_config

    def compute_holdings(
        self, trades: Sequence[Trade], error_reporter: Optional[ErrorReporter] = None
    ) -> List[Holding]:
        return self._lot_matcher.compute_holdings(
            trades, self._price_lookup, as_of=self._clock(), error_reporter=error_reporter
        )

    def summarize_buckets(self, holdings: Sequence[Holding], trades: Sequence[Trade]) -> List[BucketSummary]:
        return summarize(
            holdings,
            resolve_bucket_tags(trades),
            self._bucket_config.targets,
            self._bucket_config.purposes,
        )

    def compose_summary(self, trades: Sequence[Trade], trade_filter: Optional[TradeFilter] = None) -> Summary:
        return self._compose_summary(trades, trade_filter, self._clock())

    def _compose_summary(
        self, trades: Sequence[Trade], trade_filter: Optional[TradeFilter], as_of: dt.date
    ) -> Summary:
        view = trade_filter.apply(trades) if trade_filter else list(trades)
        return self._summary_composer.compose(value_trades(view, self._price_lookup, as_of), as_of=as_of)

    def snapshot(self, trades: Sequence[Trade], trade_filter: Optional[TradeFilter] = None) -> PortfolioSnapshot:
        token = correlation_id_var.set(generate_correlation_id("SNAP"))
        try:
            return self._snapshot(trades, trade_filter)
        finally:
            correlation_id_var.reset(token)

    def _snapshot(self, trades: Sequence[Trade], trade_filter: Optional[TradeFilter]) -> PortfolioSnapshot:
        as_of = self._clock()
        error_reporter = ErrorReporter()
        logger.info(f"Computing portfolio snapshot for {len(trades)} trades as of {as_of}.")

        holdings = self._lot_matcher.compute_holdings(
            trades, self._price_lookup, as_of=as_of, error_reporter=error_reporter
        )
        buckets = self.summarize_buckets(holdings, trades)

        summary = self._compose_summary(trades, trade_filter, as_of)

        errored_trades: List[ErroredTrade] = error_reporter.get_errors()
        if errored_trades:
            logger.warning(f"{len(errored_trades)} trades were excluded or flagged during the snapshot.")

        return PortfolioSnapshot(
            as_of=as_of,
            holdings=holdings,
            buckets=buckets,
            summary=summary,
            allocation=calculate_asset_allocation(holdings),
            concentration=calculate_concentration(holdings),
            goal_projections=project_goals(buckets, weighted_xirr(holdings)),
            errored_trades=errored_trades,
        )
