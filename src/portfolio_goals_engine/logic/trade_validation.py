# src/portfolio_goals_engine/logic/trade_validation.py
import re
from decimal import Decimal
from typing import Optional

from ..core.enums import InvestmentType
from ..core.models.trade import Trade
from ..exceptions import TradeValidationIssue

EMPTY_NAME = "EMPTY_NAME"
NON_POSITIVE_QUANTITY = "NON_POSITIVE_QUANTITY"
NON_POSITIVE_RATE = "NON_POSITIVE_RATE"
MISSING_ISIN = "MISSING_ISIN"
INVALID_ISIN = "INVALID_ISIN"
NEGATIVE_INTEREST_RATE = "NEGATIVE_INTEREST_RATE"

_ISIN_PATTERN = re.compile(r"^[A-Z]{2}[A-Z0-9]{9}[0-9]$")


def is_valid_isin(isin: Optional[str]) -> bool:
    """
    Checks the ISIN shape (country prefix, 9 alphanumerics, check digit) and
    its Luhn check digit computed over the letters expanded to numbers.
    """
    if not isin or not _ISIN_PATTERN.match(isin):
        return False
    digits = "".join(str(int(ch, 36)) for ch in isin)
    total = 0
    for position, ch in enumerate(reversed(digits)):
        value = int(ch)
        if position % 2 == 1:
            value *= 2
            if value > 9:
                value -= 9
        total += value
    return total % 10 == 0


def validate_trade(trade: Trade) -> list[TradeValidationIssue]:
    issues: list[TradeValidationIssue] = []

    if not trade.name or not trade.name.strip():
        issues.append(
            TradeValidationIssue(
                code=EMPTY_NAME,
                field="name",
                message="name is required; it identifies the instrument.",
            )
        )

    if trade.quantity <= Decimal(0):
        issues.append(
            TradeValidationIssue(
                code=NON_POSITIVE_QUANTITY,
                field="quantity",
                message="quantity must be greater than zero.",
            )
        )

    if trade.buy_rate <= Decimal(0):
        issues.append(
            TradeValidationIssue(
                code=NON_POSITIVE_RATE,
                field="buy_rate",
                message="buy_rate must be greater than zero.",
            )
        )

    if trade.investment_type == InvestmentType.MUTUAL_FUND and not trade.isin:
        issues.append(
            TradeValidationIssue(
                code=MISSING_ISIN,
                field="isin",
                message="isin is required for mutual funds.",
            )
        )
    elif trade.isin and not is_valid_isin(trade.isin):
        issues.append(
            TradeValidationIssue(
                code=INVALID_ISIN,
                field="isin",
                message=f"isin '{trade.isin}' is not a valid ISIN.",
            )
        )

    if trade.interest_rate is not None and trade.interest_rate < Decimal(0):
        issues.append(
            TradeValidationIssue(
                code=NEGATIVE_INTEREST_RATE,
                field="interest_rate",
                message="interest_rate must not be negative.",
            )
        )

    return issues
