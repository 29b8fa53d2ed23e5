# src/portfolio_goals_engine/monitoring.py
from prometheus_client import Counter, Histogram

HOLDINGS_RECALCULATION_DEPTH = Histogram(
    "portfolio_holdings_recalculation_depth",
    "Number of trades replayed during a single holdings recalculation.",
    buckets=(1, 5, 10, 25, 50, 100, 250, 500, 1000)
)

HOLDINGS_RECALCULATION_DURATION_SECONDS = Histogram(
    "portfolio_holdings_recalculation_duration_seconds",
    "Wall-clock time spent recomputing holdings from the full trade list.",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5)
)

XIRR_SOLVER_ITERATIONS = Histogram(
    "portfolio_xirr_solver_iterations",
    "Newton-Raphson iterations used per XIRR solve.",
    buckets=(1, 2, 5, 10, 25, 50, 100)
)

XIRR_NON_CONVERGENCE_TOTAL = Counter(
    "portfolio_xirr_non_convergence_total",
    "Number of XIRR solves that stopped without converging."
)

PRICE_FALLBACK_TOTAL = Counter(
    "portfolio_price_fallback_total",
    "Number of valuations that fell back to a non-quote price.",
    labelnames=("reason",),
)

EXCLUDED_TRADES_TOTAL = Counter(
    "portfolio_excluded_trades_total",
    "Number of trades excluded from holdings computation.",
    labelnames=("reason",),
)
