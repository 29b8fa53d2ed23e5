# src/portfolio_goals_engine/core/enums.py
from enum import Enum
from typing import Optional

from ..exceptions import UnknownBucketError


class InvestmentType(str, Enum):
    """Asset class of an instrument."""
    STOCK = "stock"
    MUTUAL_FUND = "mutual_fund"
    BOND = "bond"
    FIXED_DEPOSIT = "fixed_deposit"
    GOLD = "gold"
    SILVER = "silver"
    NPS = "nps"
    ETF = "etf"
    INDEX_FUND = "index_fund"  # accepted for older ledgers


class TransactionType(str, Enum):
    BUY = "buy"
    SELL = "sell"


class BucketId(str, Enum):
    """Closed set of goal buckets a trade can be allocated to."""
    BUCKET_1A = "bucket1a"
    BUCKET_1B = "bucket1b"
    BUCKET_1C = "bucket1c"
    BUCKET_1D = "bucket1d"
    BUCKET_1E = "bucket1e"
    BUCKET_2 = "bucket2"
    BUCKET_3 = "bucket3"

    @property
    def has_fixed_purpose(self) -> bool:
        return self in (BucketId.BUCKET_2, BucketId.BUCKET_3)

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["BucketId"]:
        """
        Maps a raw bucket key to a member. Blank values mean "no bucket";
        anything else that is not a known bucket raises UnknownBucketError.
        """
        if raw is None:
            return None
        if isinstance(raw, cls):
            return raw
        normalized = str(raw).strip().lower().replace(" ", "")
        if not normalized:
            return None
        try:
            return cls(normalized)
        except ValueError:
            raise UnknownBucketError(str(raw)) from None
