# src/portfolio_goals_engine/services/bucket_aggregator.py
import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from ..core.enums import BucketId
from ..core.models.results import BucketSummary, Holding
from ..logic.returns import finite_or_zero

logger = logging.getLogger(__name__)


class _BucketTotals:
    def __init__(self):
        self.current_value = Decimal(0)
        self.invested_amount = Decimal(0)
        self.holdings_count = 0
        self.weighted_yield = Decimal(0)
        self.weighted_xirr = Decimal(0)

    def add(self, holding: Holding) -> None:
        self.current_value += holding.current_value
        self.invested_amount += holding.invested_amount
        self.holdings_count += 1
        self.weighted_yield += holding.annual_yield * holding.current_value
        self.weighted_xirr += holding.xirr * holding.current_value


def summarize(
    holdings: Sequence[Holding],
    tags: Mapping[str, BucketId],
    targets: Mapping[BucketId, Decimal],
    purposes: Optional[Mapping[BucketId, str]] = None,
) -> List[BucketSummary]:
    """
    Rolls holdings up into their goal buckets.

    Every bucket in `targets` is reported, with zero figures when nothing is
    allocated to it. Holdings without a tag, or tagged with a bucket that is
    not configured, are left out.

    Args:
        holdings: Open positions as produced by the lot matcher.
        tags: Instrument name to bucket, see `resolve_bucket_tags`.
        targets: Goal amount per configured bucket.
        purposes: Optional free-text purpose per bucket.

    Returns:
        One BucketSummary per configured bucket, ordered by bucket name.
    """
    purposes = purposes or {}
    totals: Dict[BucketId, _BucketTotals] = {bucket: _BucketTotals() for bucket in targets}

    for holding in holdings:
        bucket = tags.get(holding.name)
        if bucket is None:
            continue
        if bucket not in totals:
            logger.warning(f"Holding {holding.name} is tagged {bucket.value}, which has no configured target.")
            continue
        totals[bucket].add(holding)

    summaries = [
        _to_summary(bucket, bucket_totals, targets[bucket], purposes.get(bucket, ""))
        for bucket, bucket_totals in totals.items()
    ]
    return sorted(summaries, key=lambda s: s.bucket_name.value)


def _to_summary(bucket: BucketId, totals: _BucketTotals, target: Decimal, purpose: str) -> BucketSummary:
    current_value = totals.current_value
    invested = totals.invested_amount
    gain_loss_amount = current_value - invested

    gain_loss_percent = gain_loss_amount / invested * Decimal(100) if invested > 0 else Decimal(0)
    progress_percent = current_value / target * Decimal(100) if target > 0 else Decimal(0)

    if current_value > 0:
        annual_yield = totals.weighted_yield / current_value
        xirr = totals.weighted_xirr / current_value
    else:
        annual_yield = Decimal(0)
        xirr = Decimal(0)

    return BucketSummary(
        bucket_name=bucket,
        purpose=purpose,
        target_amount=target,
        current_value=current_value,
        invested_amount=invested,
        gain_loss_amount=gain_loss_amount,
        gain_loss_percent=finite_or_zero(gain_loss_percent),
        progress_percent=finite_or_zero(progress_percent),
        shortfall_amount=max(Decimal(0), target - current_value),
        holdings_count=totals.holdings_count,
        annual_yield=finite_or_zero(annual_yield),
        xirr=finite_or_zero(xirr),
    )
