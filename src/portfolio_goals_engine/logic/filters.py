# src/portfolio_goals_engine/logic/filters.py

import datetime as dt
from typing import Callable, Iterable, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.enums import BucketId, InvestmentType, TransactionType
from ..core.models.trade import Trade

T = TypeVar("T", bound=Trade)


class TradeFilter(BaseModel):
    """
    The dashboard's filter bar. Empty criteria match everything; the set
    criteria are AND-ed together.
    """
    investment_type: Optional[InvestmentType] = Field(None, alias="investmentType")
    bucket: Optional[BucketId] = Field(None, alias="buckets")
    transaction_type: Optional[TransactionType] = Field(None, alias="transactionType")
    search: str = ""
    date_from: Optional[dt.date] = Field(None, alias="dateFrom")
    date_to: Optional[dt.date] = Field(None, alias="dateTo")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("investment_type", "transaction_type", "date_from", "date_to", mode="before")
    @classmethod
    def blank_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("bucket", mode="before")
    @classmethod
    def parse_bucket(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return BucketId.parse(v)

    def _predicates(self) -> List[Callable[[Trade], bool]]:
        predicates: List[Callable[[Trade], bool]] = []
        if self.investment_type:
            predicates.append(lambda t: t.investment_type == self.investment_type)
        if self.bucket:
            predicates.append(lambda t: t.bucket_allocation == self.bucket)
        if self.transaction_type:
            predicates.append(lambda t: t.transaction_type == self.transaction_type)
        if self.search:
            term = self.search.lower()
            predicates.append(lambda t: matches_search(t, term))
        if self.date_from:
            predicates.append(lambda t: t.date >= self.date_from)
        if self.date_to:
            predicates.append(lambda t: t.date <= self.date_to)
        return predicates

    def apply(self, trades: Iterable[T]) -> List[T]:
        predicates = self._predicates()
        return [trade for trade in trades if all(p(trade) for p in predicates)]


def matches_search(trade: Trade, term: str) -> bool:
    """Case-insensitive free-text match over the fields shown in the trades table."""
    haystack = (
        trade.name.lower(),
        trade.investment_type.value,
        trade.transaction_type.value,
        trade.bucket_allocation.value if trade.bucket_allocation else "",
        trade.date.isoformat(),
        str(trade.quantity),
        str(trade.buy_rate),
        str(trade.buy_amount),
    )
    return any(term in field for field in haystack)
