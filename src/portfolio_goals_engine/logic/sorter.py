# src/portfolio_goals_engine/logic/sorter.py

from ..core.models.trade import Trade

class TradeSorter:
    """
    Orders trades for lot matching.
    """
    def sort_trades(self, trades: list[Trade]) -> list[Trade]:
        """
        Returns a new list sorted by trade date ascending.
        The sort is stable: trades on the same date keep their ledger order,
        which decides FIFO matching for same-day buys and sells.
        """
        return sorted(trades, key=lambda trade: trade.date)
