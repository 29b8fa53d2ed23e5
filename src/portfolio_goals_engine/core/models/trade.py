# src/portfolio_goals_engine/core/models/trade.py

import datetime as dt
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from ..enums import BucketId, InvestmentType, TransactionType
from ...exceptions import UnknownBucketError


class Trade(BaseModel):
    """
    Represents a single buy or sell event recorded by the user.
    Records are immutable; the ledger replaces them wholesale on update.
    """
    id: str = Field(..., description="Unique, stable identifier for the trade")
    date: dt.date = Field(..., description="Calendar date of the transaction")
    investment_type: InvestmentType = Field(..., alias="investmentType", description="Asset class of the instrument")
    name: str = Field(..., description="Instrument display key; also the FIFO grouping key")
    isin: Optional[str] = Field(None, description="ISIN, required for mutual funds")
    transaction_type: TransactionType = Field(..., alias="transactionType", description="buy or sell")
    quantity: Decimal = Field(..., description="Units bought or sold")
    buy_rate: Decimal = Field(..., alias="buyRate", description="Unit price at the transaction")
    broker_bank: str = Field(default="", alias="brokerBank", description="Broker or bank, free text")
    bucket_allocation: Optional[BucketId] = Field(None, alias="bucketAllocation", description="Goal bucket tag")
    interest_rate: Optional[Decimal] = Field(None, alias="interestRate", description="Coupon/interest for fixed income")

    @computed_field(alias="buyAmount")
    @property
    def buy_amount(self) -> Decimal:
        """Always quantity x buy_rate; never read from input."""
        return self.quantity * self.buy_rate

    @property
    def is_buy(self) -> bool:
        return self.transaction_type == TransactionType.BUY

    @field_validator("date", mode="before")
    @classmethod
    def standardize_date(cls, v: Any) -> Any:
        """Accept plain dates, datetimes and ISO date or datetime strings."""
        if isinstance(v, dt.datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            if v.endswith("Z"):
                v = v[:-1] + "+00:00"
            return dt.datetime.fromisoformat(v).date()
        return v

    @field_validator("bucket_allocation", mode="before")
    @classmethod
    def parse_bucket(cls, v: Any) -> Any:
        try:
            return BucketId.parse(v)
        except UnknownBucketError as e:
            raise ValueError(e.message) from None

    @field_validator("isin", mode="before")
    @classmethod
    def normalize_isin(cls, v: Any) -> Any:
        if v is None:
            return None
        v = str(v).strip().upper()
        return v or None

    @field_validator("broker_bank", mode="before")
    @classmethod
    def default_broker(cls, v: Any) -> Any:
        return "" if v is None else v

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class ValuedTrade(Trade):
    """
    A trade enriched by a price refresh pass with its mark-to-market figures.
    """
    present_rate: Decimal = Field(..., alias="presentRate", description="Current unit price used for valuation")
    profit_percent: Decimal = Field(default=Decimal(0), alias="profitPercent")
    annualized_return: Decimal = Field(default=Decimal(0), alias="annualizedReturn")
    price_is_fallback: bool = Field(default=False, alias="priceIsFallback")

    @computed_field(alias="presentAmount")
    @property
    def present_amount(self) -> Decimal:
        return self.quantity * self.present_rate
