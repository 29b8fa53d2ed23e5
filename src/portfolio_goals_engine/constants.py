# src/portfolio_goals_engine/constants.py
from decimal import Decimal

# --- Return calculation ---
DAYS_PER_YEAR = Decimal("365")
MIN_YEAR_FRACTION = Decimal(1) / DAYS_PER_YEAR

XIRR_INITIAL_GUESS = Decimal("0.1")
XIRR_MAX_ITERATIONS = 100
XIRR_TOLERANCE = Decimal("1e-6")

# --- Store keys (shared with the presentation layer) ---
TRADES_STORE_KEY = "portfolio_trades"
BUCKET_TARGETS_STORE_KEY = "portfolio_bucket_targets"
BUCKET_PURPOSES_STORE_KEY = BUCKET_TARGETS_STORE_KEY + "_purposes"

# --- Default bucket configuration ---
DEFAULT_BUCKET_TARGETS = {
    "bucket1a": Decimal("500000"),
    "bucket1b": Decimal("300000"),
    "bucket1c": Decimal("200000"),
    "bucket1d": Decimal("150000"),
    "bucket1e": Decimal("100000"),
    "bucket2": Decimal("400000"),
    "bucket3": Decimal("250000"),
}

DEFAULT_BUCKET_PURPOSES = {
    "bucket1a": "",
    "bucket1b": "",
    "bucket1c": "",
    "bucket1d": "",
    "bucket1e": "",
    "bucket2": "Monthly income for financial freedom",
    "bucket3": "Get rich with compounding power",
}

# --- Goal analysis ---
GOAL_HORIZON_MONTHS = 60
FEASIBILITY_THRESHOLDS = (
    (Decimal("80"), "Highly Achievable"),
    (Decimal("50"), "Achievable"),
    (Decimal("25"), "Challenging"),
)
FEASIBILITY_FALLBACK = "Requires Action"

# --- Price fallback reasons (metric labels) ---
FALLBACK_MISSING = "missing"
FALLBACK_NON_POSITIVE = "non_positive"
FALLBACK_LOOKUP_ERROR = "lookup_error"
