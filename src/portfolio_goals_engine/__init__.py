"""Goal-based portfolio analytics: FIFO holdings, returns, buckets and summaries."""

from .core.enums import BucketId, InvestmentType, TransactionType
from .core.models import (
    BucketSummary,
    ErroredTrade,
    GoalProjection,
    Holding,
    PortfolioSnapshot,
    Summary,
    Trade,
    ValuedTrade,
)
from .exceptions import (
    BucketConfigurationError,
    PortfolioEngineError,
    PriceUnavailableError,
    TradeNotFoundError,
    TradeValidationError,
    TradeValidationIssue,
    UnknownBucketError,
)
from .logic.filters import TradeFilter
from .logic.lot_matcher import LotMatcher, compute_holdings
from .logic.returns import XirrCalculator, calculate_annualized_return
from .repositories.key_value_store import InMemoryKeyValueStore, KeyValueStore
from .services.bucket_config import BucketConfig, BucketConfigRepository
from .services.portfolio_engine import PortfolioEngine
from .services.price_refresh import PriceRefresher, value_trades
from .services.pricing import PriceCache
from .services.trade_ledger import TradeLedger

__all__ = [
    "BucketId",
    "InvestmentType",
    "TransactionType",
    "BucketSummary",
    "ErroredTrade",
    "GoalProjection",
    "Holding",
    "PortfolioSnapshot",
    "Summary",
    "Trade",
    "ValuedTrade",
    "BucketConfigurationError",
    "PortfolioEngineError",
    "PriceUnavailableError",
    "TradeNotFoundError",
    "TradeValidationError",
    "TradeValidationIssue",
    "UnknownBucketError",
    "TradeFilter",
    "LotMatcher",
    "compute_holdings",
    "XirrCalculator",
    "calculate_annualized_return",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "BucketConfig",
    "BucketConfigRepository",
    "PortfolioEngine",
    "PriceRefresher",
    "value_trades",
    "PriceCache",
    "TradeLedger",
]
