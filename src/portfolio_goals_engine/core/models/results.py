# src/portfolio_goals_engine/core/models/results.py

import datetime as dt
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..enums import BucketId, InvestmentType
from .trade import ValuedTrade


class PricedValue(BaseModel):
    """A unit price together with whether it is a real quote or a fallback."""
    price: Decimal
    is_fallback: bool = False
    source: str = Field(default="quote", description="'quote', or the fallback reason")

    model_config = ConfigDict(frozen=True)


class OpenLot(BaseModel):
    """Snapshot of a FIFO lot still open after matching."""
    quantity: Decimal
    price: Decimal
    acquired_on: dt.date

    model_config = ConfigDict(frozen=True)


class Holding(BaseModel):
    """Net, currently open position in one instrument."""
    name: str
    investment_type: InvestmentType
    bucket_allocation: Optional[BucketId] = None
    net_quantity: Decimal
    average_buy_price: Decimal
    invested_amount: Decimal
    current_price: Decimal
    price_is_fallback: bool = False
    current_value: Decimal
    gain_loss_amount: Decimal
    gain_loss_percent: Decimal
    annual_yield: Decimal
    xirr: Decimal
    first_buy_date: Optional[dt.date] = None
    open_lots: List[OpenLot] = Field(default_factory=list)


class BucketSummary(BaseModel):
    """Goal progress of one savings bucket."""
    bucket_name: BucketId
    purpose: str = ""
    target_amount: Decimal
    current_value: Decimal = Decimal(0)
    invested_amount: Decimal = Decimal(0)
    gain_loss_amount: Decimal = Decimal(0)
    gain_loss_percent: Decimal = Decimal(0)
    progress_percent: Decimal = Decimal(0)
    shortfall_amount: Decimal = Decimal(0)
    holdings_count: int = 0
    annual_yield: Decimal = Decimal(0)
    xirr: Decimal = Decimal(0)


class Summary(BaseModel):
    """Portfolio-wide totals over the filtered trade view."""
    total_investment: Decimal = Decimal(0)
    current_value: Decimal = Decimal(0)
    total_profit: Decimal = Decimal(0)
    total_profit_percent: Decimal = Decimal(0)
    total_annualized_return: Decimal = Decimal(0)
    xirr: Decimal = Decimal(0)
    asset_allocation: Dict[InvestmentType, Decimal] = Field(default_factory=dict)
    top_performers: List[ValuedTrade] = Field(default_factory=list)
    bottom_performers: List[ValuedTrade] = Field(default_factory=list)


class ErroredTrade(BaseModel):
    """
    Represents a trade that was excluded from computation, along with the reason.
    """
    trade_id: str = Field(..., description="The ID of the excluded trade.")
    reason_codes: List[str] = Field(default_factory=list, description="Issue codes, in the order reported.")
    error_reason: str = Field(..., description="Why the trade was excluded or flagged.")


class AssetAllocation(BaseModel):
    asset_type: InvestmentType
    value: Decimal
    percentage: float
    count: int


class ConcentrationMetrics(BaseModel):
    single_position_weight: float = 0.0
    top_n_weights: Dict[str, float] = Field(default_factory=dict)
    hhi: float = 0.0


class GoalProjection(BaseModel):
    bucket_name: BucketId
    current_progress: Decimal
    months_to_goal: Optional[int] = None
    years_to_goal: Optional[int] = None
    feasibility: str
    recommended_monthly_contribution: Decimal = Decimal(0)


class PortfolioSnapshot(BaseModel):
    """Everything the presentation layer needs, recomputed in one pass."""
    as_of: dt.date
    holdings: List[Holding] = Field(default_factory=list)
    buckets: List[BucketSummary] = Field(default_factory=list)
    summary: Summary = Field(default_factory=Summary)
    allocation: List[AssetAllocation] = Field(default_factory=list)
    concentration: ConcentrationMetrics = Field(default_factory=ConcentrationMetrics)
    goal_projections: List[GoalProjection] = Field(default_factory=list)
    errored_trades: List[ErroredTrade] = Field(default_factory=list)
