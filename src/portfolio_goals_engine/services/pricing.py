# src/portfolio_goals_engine/services/pricing.py
import datetime as dt
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Optional
from zoneinfo import ZoneInfo

from dateutil.relativedelta import MO, relativedelta

from ..config import (
    MARKET_CLOSE,
    MARKET_OPEN,
    MARKET_TIMEZONE,
    PRICE_CACHE_MAX_AGE_SECONDS,
    PRICE_CACHE_TTL_SECONDS,
)
from ..core.enums import InvestmentType

logger = logging.getLogger(__name__)

Clock = Callable[[], dt.datetime]


def cache_key(name: str, investment_type: InvestmentType) -> str:
    return f"{name}-{investment_type.value}"


@dataclass(frozen=True)
class CachedPrice:
    price: Decimal
    fetched_at: dt.datetime


class MarketHours:
    """Weekday trading session of one exchange, in its own timezone."""
    def __init__(
        self,
        timezone: str = MARKET_TIMEZONE,
        open_time: str = MARKET_OPEN,
        close_time: str = MARKET_CLOSE,
    ):
        self.tz = ZoneInfo(timezone)
        self.open_time = dt.time.fromisoformat(open_time)
        self.close_time = dt.time.fromisoformat(close_time)

    def is_open(self, at: dt.datetime) -> bool:
        local = at.astimezone(self.tz)
        if local.weekday() >= 5:
            return False
        return self.open_time <= local.time() < self.close_time

    def next_open(self, after: dt.datetime) -> dt.datetime:
        """First session open strictly after `after`."""
        local = after.astimezone(self.tz)
        candidate = local.replace(
            hour=self.open_time.hour, minute=self.open_time.minute, second=0, microsecond=0
        )
        if candidate <= local:
            candidate += relativedelta(days=+1)
        if candidate.weekday() >= 5:
            candidate += relativedelta(weekday=MO)
        return candidate


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class PriceCache:
    """
    Last known price per instrument. Entries are fresh for `ttl_seconds`
    while the market is open, and an intraday price goes stale the same
    way after the close. A price fetched outside the session stays fresh
    until the next session opens.
    Stale entries are still served by `get_price`.
    """
    def __init__(
        self,
        ttl_seconds: int = PRICE_CACHE_TTL_SECONDS,
        market_hours: Optional[MarketHours] = None,
        clock: Optional[Clock] = None,
    ):
        self._ttl = dt.timedelta(seconds=ttl_seconds)
        self._market_hours = market_hours or MarketHours()
        self._clock = clock or _utc_now
        self._entries: Dict[str, CachedPrice] = {}

    def put(self, name: str, investment_type: InvestmentType, price: Decimal) -> None:
        self._entries[cache_key(name, investment_type)] = CachedPrice(price=price, fetched_at=self._clock())

    def get(self, name: str, investment_type: InvestmentType) -> Optional[CachedPrice]:
        return self._entries.get(cache_key(name, investment_type))

    def get_price(self, name: str, investment_type: InvestmentType) -> Optional[Decimal]:
        entry = self.get(name, investment_type)
        return entry.price if entry else None

    def is_fresh(self, name: str, investment_type: InvestmentType) -> bool:
        entry = self.get(name, investment_type)
        if entry is None:
            return False
        now = self._clock()
        if self._market_hours.is_open(now) or self._market_hours.is_open(entry.fetched_at):
            return now - entry.fetched_at < self._ttl
        return now < self._market_hours.next_open(entry.fetched_at)

    def purge_older_than(self, max_age_seconds: int = PRICE_CACHE_MAX_AGE_SECONDS) -> int:
        """Drops entries fetched more than `max_age_seconds` ago; returns how many."""
        cutoff = self._clock() - dt.timedelta(seconds=max_age_seconds)
        expired = [key for key, entry in self._entries.items() if entry.fetched_at < cutoff]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} cached prices.")
        return len(expired)

    def snapshot(self) -> Dict[str, CachedPrice]:
        return dict(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
