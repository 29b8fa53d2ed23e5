# src/portfolio_goals_engine/logic/allocation.py
from decimal import Decimal
from typing import Iterable, List, Sequence

import pandas as pd

from ..core.models.results import AssetAllocation, ConcentrationMetrics, Holding


def _holdings_frame(holdings: Iterable[Holding]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"name": h.name, "investment_type": h.investment_type, "market_value": h.current_value}
            for h in holdings
        ],
        columns=["name", "investment_type", "market_value"],
    )


def calculate_asset_allocation(holdings: Sequence[Holding]) -> List[AssetAllocation]:
    """
    Groups holdings by investment type.

    Returns:
        One entry per investment type with its value, share of the portfolio
        (percent) and number of holdings, largest first. Empty when the
        portfolio has no value.
    """
    df = _holdings_frame(holdings)
    if df.empty:
        return []

    total_market_value = df["market_value"].sum()
    if total_market_value == Decimal("0"):
        return []

    allocation = (
        df.groupby("investment_type", sort=False)
        .agg(value=("market_value", "sum"), count=("name", "count"))
        .reset_index()
    )
    allocation["percentage"] = allocation["value"].apply(lambda v: float(v / total_market_value * 100))
    allocation = allocation.sort_values(by="percentage", ascending=False, kind="stable")

    return [
        AssetAllocation(
            asset_type=row["investment_type"],
            value=row["value"],
            percentage=row["percentage"],
            count=int(row["count"]),
        )
        for _, row in allocation.iterrows()
    ]


def calculate_concentration(holdings: Sequence[Holding], top_n_config: Sequence[int] = (1, 5)) -> ConcentrationMetrics:
    """
    Calculates single-position weight, Top-N weights and the
    Herfindahl-Hirschman index over holding values.
    """
    df = _holdings_frame(holdings)
    empty = ConcentrationMetrics(
        single_position_weight=0.0,
        top_n_weights={str(n): 0.0 for n in top_n_config},
        hhi=0.0,
    )
    if df.empty:
        return empty

    total_market_value = df["market_value"].sum()
    if total_market_value == Decimal("0"):
        return empty

    weights = df["market_value"].apply(lambda v: float(v / total_market_value))
    sorted_weights = weights.sort_values(ascending=False)

    return ConcentrationMetrics(
        single_position_weight=float(sorted_weights.iloc[0]),
        top_n_weights={str(n): float(sorted_weights.head(n).sum()) for n in top_n_config},
        hhi=float((sorted_weights ** 2).sum()),
    )
