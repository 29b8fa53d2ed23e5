# tests/conftest.py
import datetime as dt
from decimal import Decimal
from typing import Callable, Dict, Optional

import pytest

from portfolio_goals_engine.core.enums import InvestmentType, TransactionType
from portfolio_goals_engine.core.models import Trade

AS_OF = dt.date(2025, 6, 1)


@pytest.fixture
def as_of() -> dt.date:
    """Fixed valuation date so no test depends on the wall clock."""
    return AS_OF


@pytest.fixture
def make_trade() -> Callable[..., Trade]:
    """
    Provides a factory for Trade objects with sensible defaults.
    Any field can be overridden by keyword (snake_case names).
    """
    counter = {"n": 0}

    def _make(
        name: str = "RELIANCE",
        date: dt.date = dt.date(2024, 1, 15),
        quantity: str = "10",
        buy_rate: str = "100",
        transaction_type: TransactionType = TransactionType.BUY,
        investment_type: InvestmentType = InvestmentType.STOCK,
        **overrides,
    ) -> Trade:
        counter["n"] += 1
        data = {
            "id": f"T{counter['n']:03d}",
            "date": date,
            "name": name,
            "quantity": Decimal(quantity),
            "buy_rate": Decimal(buy_rate),
            "transaction_type": transaction_type,
            "investment_type": investment_type,
        }
        data.update(overrides)
        return Trade(**data)

    return _make


@pytest.fixture
def price_table() -> Callable[[Dict[str, Decimal]], Callable[[str, InvestmentType], Optional[Decimal]]]:
    """Builds a synchronous price lookup backed by a name -> price dict."""
    def _build(prices: Dict[str, Decimal]):
        def _lookup(name: str, investment_type: InvestmentType) -> Optional[Decimal]:
            return prices.get(name)
        return _lookup
    return _build
