# src/portfolio_goals_engine/logic/cost_objects.py

import datetime as dt
from decimal import Decimal

from ..core.models.results import OpenLot

class Lot:
    """
    An open buy-side slice tracked while matching sells against buys.
    Owned by a single matching run; never persisted.
    """
    def __init__(self, trade_id: str, quantity: Decimal, price: Decimal, acquired_on: dt.date):
        self.trade_id = trade_id
        self.remaining_quantity = quantity
        self.price = price
        self.acquired_on = acquired_on

    def consume(self, quantity: Decimal) -> Decimal:
        """
        Removes up to `quantity` units from the lot and returns how many were taken.
        """
        taken = min(quantity, self.remaining_quantity)
        self.remaining_quantity -= taken
        return taken

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_quantity <= Decimal(0)

    def to_open_lot(self) -> OpenLot:
        return OpenLot(quantity=self.remaining_quantity, price=self.price, acquired_on=self.acquired_on)

    def __repr__(self) -> str:
        return (f"Lot(trade_id='{self.trade_id}', "
                f"rem_qty={self.remaining_quantity:.2f}, "
                f"price={self.price:.4f}, "
                f"acquired_on={self.acquired_on.isoformat()})")
