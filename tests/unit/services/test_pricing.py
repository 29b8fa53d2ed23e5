# tests/unit/services/test_pricing.py
import datetime as dt
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from portfolio_goals_engine.core.enums import InvestmentType
from portfolio_goals_engine.services.pricing import MarketHours, PriceCache, cache_key

IST = ZoneInfo("Asia/Kolkata")
STOCK = InvestmentType.STOCK


class FakeClock:
    def __init__(self, now: dt.datetime):
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += dt.timedelta(**kwargs)


@pytest.fixture
def market_hours() -> MarketHours:
    return MarketHours("Asia/Kolkata", "09:15", "15:30")


def _cache(now: dt.datetime, market_hours: MarketHours):
    clock = FakeClock(now)
    return PriceCache(ttl_seconds=300, market_hours=market_hours, clock=clock), clock


def test_cache_key_combines_name_and_type():
    assert cache_key("RELIANCE", STOCK) == "RELIANCE-stock"


@pytest.mark.parametrize(
    "local_time, expected",
    [
        (dt.datetime(2025, 6, 2, 9, 15), True),    # Monday open
        (dt.datetime(2025, 6, 2, 15, 29), True),
        (dt.datetime(2025, 6, 2, 15, 30), False),  # close is exclusive
        (dt.datetime(2025, 6, 2, 9, 14), False),
        (dt.datetime(2025, 6, 1, 11, 0), False),   # Sunday
    ],
)
def test_market_hours_is_open(market_hours, local_time, expected):
    assert market_hours.is_open(local_time.replace(tzinfo=IST)) is expected


def test_next_open_skips_the_weekend(market_hours):
    friday_evening = dt.datetime(2025, 6, 6, 16, 0, tzinfo=IST)
    assert market_hours.next_open(friday_evening) == dt.datetime(2025, 6, 9, 9, 15, tzinfo=IST)


def test_next_open_same_day_before_session(market_hours):
    early = dt.datetime(2025, 6, 3, 8, 0, tzinfo=IST)
    assert market_hours.next_open(early) == dt.datetime(2025, 6, 3, 9, 15, tzinfo=IST)


def test_entry_expires_after_ttl_during_market_hours(market_hours):
    cache, clock = _cache(dt.datetime(2025, 6, 2, 10, 0, tzinfo=IST), market_hours)
    cache.put("RELIANCE", STOCK, Decimal("2800"))

    clock.advance(minutes=4)
    assert cache.is_fresh("RELIANCE", STOCK)

    clock.advance(minutes=2)
    assert not cache.is_fresh("RELIANCE", STOCK)


def test_stale_entry_is_still_served(market_hours):
    cache, clock = _cache(dt.datetime(2025, 6, 2, 10, 0, tzinfo=IST), market_hours)
    cache.put("RELIANCE", STOCK, Decimal("2800"))

    clock.advance(hours=1)

    assert not cache.is_fresh("RELIANCE", STOCK)
    assert cache.get_price("RELIANCE", STOCK) == Decimal("2800")


def test_after_hours_price_stays_fresh_until_next_open(market_hours):
    """
    GIVEN a price fetched on Friday evening, after the close
    WHEN it is checked over the weekend
    THEN it is still fresh, and goes stale once Monday's session is open
    """
    cache, clock = _cache(dt.datetime(2025, 6, 6, 16, 0, tzinfo=IST), market_hours)
    cache.put("INFY", STOCK, Decimal("1500"))

    clock.now = dt.datetime(2025, 6, 8, 12, 0, tzinfo=IST)
    assert cache.is_fresh("INFY", STOCK)

    clock.now = dt.datetime(2025, 6, 9, 9, 20, tzinfo=IST)
    assert not cache.is_fresh("INFY", STOCK)


def test_intraday_price_goes_stale_after_the_close(market_hours):
    cache, clock = _cache(dt.datetime(2025, 6, 6, 15, 0, tzinfo=IST), market_hours)
    cache.put("INFY", STOCK, Decimal("1500"))

    clock.now = dt.datetime(2025, 6, 6, 18, 0, tzinfo=IST)

    assert not cache.is_fresh("INFY", STOCK)


def test_unknown_instrument_is_not_fresh(market_hours):
    cache, _ = _cache(dt.datetime(2025, 6, 2, 10, 0, tzinfo=IST), market_hours)

    assert not cache.is_fresh("UNKNOWN", STOCK)
    assert cache.get_price("UNKNOWN", STOCK) is None


def test_purge_older_than(market_hours):
    cache, clock = _cache(dt.datetime(2025, 6, 2, 10, 0, tzinfo=IST), market_hours)
    cache.put("OLD", STOCK, Decimal("1"))
    clock.advance(hours=2)
    cache.put("NEW", STOCK, Decimal("2"))

    removed = cache.purge_older_than(3600)

    assert removed == 1
    assert list(cache.snapshot()) == ["NEW-stock"]
    assert len(cache) == 1
