# src/portfolio_goals_engine/services/goal_analysis.py
import logging
import math
from decimal import Decimal
from typing import List, Optional, Sequence

from ..constants import FEASIBILITY_FALLBACK, FEASIBILITY_THRESHOLDS, GOAL_HORIZON_MONTHS
from ..core.models.results import BucketSummary, GoalProjection, Holding
from ..logic.returns import finite_or_zero

logger = logging.getLogger(__name__)


def weighted_xirr(holdings: Sequence[Holding]) -> Decimal:
    """Holding XIRRs weighted by current value; 0 for a portfolio without value."""
    total_value = sum((h.current_value for h in holdings), Decimal(0))
    if total_value <= 0:
        return Decimal(0)
    return finite_or_zero(sum((h.xirr * h.current_value for h in holdings), Decimal(0)) / total_value)


def classify_feasibility(progress_percent: Decimal) -> str:
    for threshold, label in FEASIBILITY_THRESHOLDS:
        if progress_percent > threshold:
            return label
    return FEASIBILITY_FALLBACK


def months_to_goal(current_value: Decimal, target_amount: Decimal, annual_rate_percent: Decimal) -> Optional[Decimal]:
    """
    Months of monthly compounding at `annual_rate_percent` needed for
    current_value to reach target_amount, or None when it never does.
    """
    if not (target_amount > current_value > 0) or annual_rate_percent <= 0:
        return None
    monthly_growth = Decimal(1) + annual_rate_percent / Decimal(1200)
    try:
        months = (target_amount / current_value).ln() / monthly_growth.ln()
    except ArithmeticError:
        return None
    return months if months.is_finite() else None


def _project(bucket: BucketSummary, portfolio_xirr: Decimal) -> GoalProjection:
    months = months_to_goal(bucket.current_value, bucket.target_amount, portfolio_xirr)
    shortfall = bucket.target_amount - bucket.current_value
    return GoalProjection(
        bucket_name=bucket.bucket_name,
        current_progress=bucket.progress_percent,
        months_to_goal=math.ceil(months) if months is not None else None,
        years_to_goal=math.ceil(months / Decimal(12)) if months is not None else None,
        feasibility=classify_feasibility(bucket.progress_percent),
        recommended_monthly_contribution=shortfall / Decimal(GOAL_HORIZON_MONTHS) if shortfall > 0 else Decimal(0),
    )


def project_goals(buckets: Sequence[BucketSummary], portfolio_xirr: Decimal) -> List[GoalProjection]:
    """
    Projects, for every bucket, how long the portfolio's current XIRR takes
    to close the gap to its target and what monthly saving would close it
    over a five-year horizon. Ordered by progress, furthest along first.
    """
    projections = [_project(bucket, portfolio_xirr) for bucket in buckets]
    logger.debug(f"Projected goals for {len(projections)} buckets at XIRR {portfolio_xirr}%.")
    return sorted(projections, key=lambda p: p.current_progress, reverse=True)
