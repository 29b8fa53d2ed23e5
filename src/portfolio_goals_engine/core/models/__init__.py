from .trade import Trade, ValuedTrade
from .results import (
    AssetAllocation,
    BucketSummary,
    ConcentrationMetrics,
    ErroredTrade,
    GoalProjection,
    Holding,
    OpenLot,
    PortfolioSnapshot,
    PricedValue,
    Summary,
)

__all__ = [
    "Trade",
    "ValuedTrade",
    "AssetAllocation",
    "BucketSummary",
    "ConcentrationMetrics",
    "ErroredTrade",
    "GoalProjection",
    "Holding",
    "OpenLot",
    "PortfolioSnapshot",
    "PricedValue",
    "Summary",
]
