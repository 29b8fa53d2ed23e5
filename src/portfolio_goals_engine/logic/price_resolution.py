# src/portfolio_goals_engine/logic/price_resolution.py
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Protocol

from ..constants import FALLBACK_LOOKUP_ERROR, FALLBACK_MISSING, FALLBACK_NON_POSITIVE
from ..core.enums import InvestmentType
from ..core.models.results import PricedValue
from ..monitoring import PRICE_FALLBACK_TOTAL

logger = logging.getLogger(__name__)


class PriceLookup(Protocol):
    """Synchronous price capability injected into the engine."""
    def __call__(self, name: str, investment_type: InvestmentType) -> Optional[Decimal]: ...


def resolve_price(
    price_lookup: PriceLookup,
    name: str,
    investment_type: InvestmentType,
    fallback: Decimal,
) -> PricedValue:
    """
    Asks the lookup for a quote and degrades to `fallback` when there is none.
    Never raises: a failing lookup is logged and treated as unavailable.
    """
    try:
        raw_price = price_lookup(name, investment_type)
    except Exception as e:
        logger.warning(f"Price lookup failed for {name} ({investment_type.value}): {e}")
        PRICE_FALLBACK_TOTAL.labels(reason=FALLBACK_LOOKUP_ERROR).inc()
        return PricedValue(price=fallback, is_fallback=True, source=FALLBACK_LOOKUP_ERROR)

    if raw_price is None:
        PRICE_FALLBACK_TOTAL.labels(reason=FALLBACK_MISSING).inc()
        return PricedValue(price=fallback, is_fallback=True, source=FALLBACK_MISSING)

    try:
        price = Decimal(str(raw_price))
    except InvalidOperation:
        logger.warning(f"Unusable price {raw_price!r} for {name}; using fallback.")
        PRICE_FALLBACK_TOTAL.labels(reason=FALLBACK_LOOKUP_ERROR).inc()
        return PricedValue(price=fallback, is_fallback=True, source=FALLBACK_LOOKUP_ERROR)

    if not price.is_finite() or price <= 0:
        PRICE_FALLBACK_TOTAL.labels(reason=FALLBACK_NON_POSITIVE).inc()
        return PricedValue(price=fallback, is_fallback=True, source=FALLBACK_NON_POSITIVE)

    return PricedValue(price=price)
