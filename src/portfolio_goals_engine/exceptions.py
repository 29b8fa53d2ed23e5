# src/portfolio_goals_engine/exceptions.py
from dataclasses import dataclass
from typing import Iterable


class PortfolioEngineError(Exception):
    """Base exception for all portfolio engine errors."""
    def __init__(self, message="An unspecified error occurred in the portfolio engine."):
        self.message = message
        super().__init__(self.message)


@dataclass(frozen=True)
class TradeValidationIssue:
    code: str
    field: str
    message: str


class TradeValidationError(PortfolioEngineError):
    """Raised when a trade submitted to the ledger fails validation."""
    def __init__(self, issues: Iterable[TradeValidationIssue]):
        self.issues = list(issues)
        message = "; ".join(f"{i.code}: {i.field}" for i in self.issues)
        super().__init__(message or "Trade validation failed.")


class TradeNotFoundError(PortfolioEngineError):
    """Raised when a ledger operation references an unknown trade id."""
    def __init__(self, trade_id: str):
        self.trade_id = trade_id
        super().__init__(f"Trade '{trade_id}' not found in ledger.")


class BucketConfigurationError(PortfolioEngineError):
    """Raised when bucket targets or purposes are invalid."""
    def __init__(self, message="Invalid bucket configuration."):
        super().__init__(message)


class UnknownBucketError(BucketConfigurationError):
    """Raised when a bucket key does not name a configured goal bucket."""
    def __init__(self, raw_value: str):
        self.raw_value = raw_value
        super().__init__(f"Unknown bucket '{raw_value}'.")


class PriceUnavailableError(PortfolioEngineError):
    """Raised by price oracles when no quote can be produced for an instrument."""
    def __init__(self, message="No price available for instrument."):
        super().__init__(message)
