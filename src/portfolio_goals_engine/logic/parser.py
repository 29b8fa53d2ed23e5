# src/portfolio_goals_engine/logic/parser.py

import logging
from typing import Any
from pydantic import ValidationError, TypeAdapter

from ..core.models.trade import Trade
from .error_reporter import UNPARSEABLE, ErrorReporter

logger = logging.getLogger(__name__)

class TradeParser:
    """
    Parses raw trade dictionaries (as held by the key-value store) into
    validated Trade objects. Rows that fail validation are reported and handed
    back untouched so the caller can keep them.
    """
    def __init__(self, error_reporter: ErrorReporter):
        self._single_trade_adapter = TypeAdapter(Trade)
        self._error_reporter = error_reporter

    def parse_trades(self, raw_trades_data: list[dict[str, Any]]) -> tuple[list[Trade], list[dict[str, Any]]]:
        """Returns (parsed trades, rejected raw rows), each in input order."""
        parsed_trades: list[Trade] = []
        rejected_rows: list[dict[str, Any]] = []
        for raw_trade in raw_trades_data:
            trade_id = str(raw_trade.get("id", "UNKNOWN_ID_BEFORE_PARSE"))
            try:
                parsed_trades.append(self._single_trade_adapter.validate_python(raw_trade))
            except ValidationError as e:
                error_messages = "; ".join([f"{err.get('loc', ['unknown'])[0]}: {err['msg']}" for err in e.errors()])
                error_reason = f"Validation error: {error_messages}"
                logger.warning(f"Skipping unparseable trade {trade_id}: {error_reason}")
                self._error_reporter.report(trade_id, UNPARSEABLE, error_reason)
                rejected_rows.append(raw_trade)
        return parsed_trades, rejected_rows
