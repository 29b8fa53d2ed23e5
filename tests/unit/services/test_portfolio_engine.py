# tests/unit/services/test_portfolio_engine.py
import datetime as dt
from decimal import Decimal

import pytest

from portfolio_goals_engine.core.enums import BucketId, InvestmentType, TransactionType
from portfolio_goals_engine.logging_utils import correlation_id_var
from portfolio_goals_engine.logic.filters import TradeFilter
from portfolio_goals_engine.services.bucket_config import BucketConfig
from portfolio_goals_engine.services.portfolio_engine import PortfolioEngine


@pytest.fixture
def trades(make_trade):
    return [
        make_trade(name="RELIANCE", date=dt.date(2024, 6, 1), quantity="10", buy_rate="2000", bucket_allocation="bucket1a"),
        make_trade(name="SGB", date=dt.date(2024, 6, 1), quantity="2", buy_rate="5000",
                   investment_type=InvestmentType.GOLD, bucket_allocation="bucket3"),
        make_trade(name="RELIANCE", date=dt.date(2024, 9, 1), quantity="5", buy_rate="2100",
                   transaction_type=TransactionType.SELL),
        make_trade(name="", quantity="1", buy_rate="1"),
    ]


@pytest.fixture
def engine(price_table, as_of) -> PortfolioEngine:
    """Provides a PortfolioEngine with fixed prices, two configured buckets and a pinned clock."""
    config = BucketConfig.from_mappings({"bucket1a": 20000, "bucket3": 10000})
    prices = price_table({"RELIANCE": Decimal("2200"), "SGB": Decimal("6000")})
    return PortfolioEngine(prices, config, clock=lambda: as_of)


def test_snapshot_recomputes_every_view(engine: PortfolioEngine, trades, as_of):
    snapshot = engine.snapshot(trades)

    assert snapshot.as_of == as_of
    assert [h.name for h in snapshot.holdings] == ["SGB", "RELIANCE"]
    reliance = snapshot.holdings[1]
    assert reliance.net_quantity == Decimal("5")
    assert reliance.invested_amount == Decimal("10000")
    assert reliance.current_value == Decimal("11000")
    assert reliance.xirr == pytest.approx(Decimal("10"))

    buckets = {b.bucket_name: b for b in snapshot.buckets}
    assert set(buckets) == {BucketId.BUCKET_1A, BucketId.BUCKET_3}
    assert buckets[BucketId.BUCKET_1A].progress_percent == Decimal("55")
    assert buckets[BucketId.BUCKET_3].current_value == Decimal("12000")
    assert buckets[BucketId.BUCKET_3].shortfall_amount == Decimal("0")

    assert [a.asset_type for a in snapshot.allocation] == [InvestmentType.GOLD, InvestmentType.STOCK]
    assert snapshot.concentration.single_position_weight == pytest.approx(12000 / 23000)
    assert [g.bucket_name for g in snapshot.goal_projections] == [BucketId.BUCKET_3, BucketId.BUCKET_1A]
    assert [e.trade_id for e in snapshot.errored_trades] == [trades[3].id]


def test_summary_covers_the_filtered_view_only(engine: PortfolioEngine, trades):
    """
    GIVEN a filter on gold
    WHEN a snapshot is taken
    THEN holdings and buckets still cover everything but the summary covers gold only
    """
    snapshot = engine.snapshot(trades, TradeFilter(investment_type=InvestmentType.GOLD))

    assert len(snapshot.holdings) == 2
    assert snapshot.summary.total_investment == Decimal("10000")
    assert snapshot.summary.current_value == Decimal("12000")
    assert snapshot.summary.total_profit_percent == Decimal("20")
    assert snapshot.summary.xirr == pytest.approx(Decimal("20"))
    assert list(snapshot.summary.asset_allocation) == [InvestmentType.GOLD]


def test_compose_summary_matches_snapshot(engine: PortfolioEngine, trades):
    assert engine.compose_summary(trades) == engine.snapshot(trades).summary


def test_snapshot_sets_and_restores_correlation_id(trades, as_of):
    seen = []

    def lookup(name, investment_type):
        seen.append(correlation_id_var.get())
        return None

    PortfolioEngine(lookup, clock=lambda: as_of).snapshot(trades)

    assert seen and all(cid.startswith("SNAP:") for cid in seen)
    assert correlation_id_var.get() == "<not-set>"


def test_snapshot_of_empty_ledger(engine: PortfolioEngine, as_of):
    snapshot = engine.snapshot([])

    assert snapshot.holdings == []
    assert all(b.current_value == Decimal("0") for b in snapshot.buckets)
    assert snapshot.summary.total_investment == Decimal("0")
    assert snapshot.allocation == []
    assert snapshot.errored_trades == []


def test_default_engine_uses_default_buckets(price_table, as_of):
    engine = PortfolioEngine(price_table({}), clock=lambda: as_of)
    assert len(engine.summarize_buckets([], [])) == len(BucketId)
