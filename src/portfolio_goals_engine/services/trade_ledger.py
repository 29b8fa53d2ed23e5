# src/portfolio_goals_engine/services/trade_ledger.py
import logging
import uuid
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..constants import TRADES_STORE_KEY
from ..core.models.results import ErroredTrade
from ..core.models.trade import Trade
from ..exceptions import TradeNotFoundError, TradeValidationError, TradeValidationIssue
from ..logic.error_reporter import ErrorReporter
from ..logic.parser import TradeParser
from ..logic.trade_validation import validate_trade
from ..repositories.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

INVALID_FIELD = "INVALID_FIELD"
DUPLICATE_ID = "DUPLICATE_ID"

# Derived or identifying keys a caller can never set through a payload
_DERIVED_KEYS = {"buy_amount", "buyAmount"}

_ALIAS_TO_FIELD = {
    info.alias: name for name, info in Trade.model_fields.items() if info.alias
}


def _normalize_keys(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Maps camelCase aliases to field names and drops derived keys."""
    return {
        _ALIAS_TO_FIELD.get(key, key): value
        for key, value in payload.items()
        if key not in _DERIVED_KEYS
    }


def _build_trade(data: Dict[str, Any]) -> Trade:
    try:
        trade = Trade.model_validate(data)
    except ValidationError as e:
        issues = [
            TradeValidationIssue(
                code=INVALID_FIELD,
                field=str(err.get("loc", ["unknown"])[0]),
                message=err["msg"],
            )
            for err in e.errors()
        ]
        raise TradeValidationError(issues) from None

    issues = validate_trade(trade)
    if issues:
        raise TradeValidationError(issues)
    return trade


class TradeLedger:
    """
    The user's trade list in insertion order. Every mutation validates the
    record first and, when a store is attached, writes the whole list back.
    Stored rows that fail to parse are kept as they are and written back
    after the parsed trades, so a mutation never drops them from the store.
    """
    def __init__(self, store: Optional[KeyValueStore] = None):
        self._store = store
        self._trades: List[Trade] = []
        self._unparsed_rows: List[Dict[str, Any]] = []
        self._load_reporter = ErrorReporter()
        if store is not None:
            self._load()

    def _load(self) -> None:
        raw_trades = self._store.get(TRADES_STORE_KEY) or []
        self._trades, self._unparsed_rows = TradeParser(self._load_reporter).parse_trades(raw_trades)
        if self._unparsed_rows:
            logger.warning(
                f"Kept {len(self._unparsed_rows)} stored trades that failed validation out of the ledger."
            )
        logger.info(f"Loaded {len(self._trades)} trades from store.")

    def _persist(self) -> None:
        if self._store is None:
            return
        self._store.set(
            TRADES_STORE_KEY,
            [trade.model_dump(mode="json", by_alias=True) for trade in self._trades] + self._unparsed_rows,
        )

    def _index_of(self, trade_id: str) -> int:
        for index, trade in enumerate(self._trades):
            if trade.id == trade_id:
                return index
        raise TradeNotFoundError(trade_id)

    @property
    def load_errors(self) -> List[ErroredTrade]:
        """Stored rows that could not be parsed when the ledger was loaded."""
        return self._load_reporter.get_errors()

    @property
    def trades(self) -> Tuple[Trade, ...]:
        return tuple(self._trades)

    def get(self, trade_id: str) -> Trade:
        return self._trades[self._index_of(trade_id)]

    def add(self, payload: Mapping[str, Any]) -> Trade:
        data = _normalize_keys(payload)
        if not data.get("id"):
            data["id"] = uuid.uuid4().hex
        taken_ids = {t.id for t in self._trades} | {str(row.get("id")) for row in self._unparsed_rows}
        if data["id"] in taken_ids:
            raise TradeValidationError(
                [TradeValidationIssue(code=DUPLICATE_ID, field="id", message=f"id '{data['id']}' already exists.")]
            )

        trade = _build_trade(data)
        self._trades.append(trade)
        self._persist()
        logger.info(f"Added trade {trade.id} ({trade.transaction_type.value} {trade.quantity} {trade.name}).")
        return trade

    def update(self, trade_id: str, **changes: Any) -> Trade:
        """
        Replaces a trade with a copy carrying `changes`. The id and the
        position in the ledger stay the same.
        """
        index = self._index_of(trade_id)
        data = self._trades[index].model_dump(exclude={"buy_amount"})
        data.update(_normalize_keys(changes))
        data["id"] = trade_id

        trade = _build_trade(data)
        self._trades[index] = trade
        self._persist()
        logger.info(f"Updated trade {trade_id}.")
        return trade

    def delete(self, trade_id: str) -> None:
        index = self._index_of(trade_id)
        del self._trades[index]
        self._persist()
        logger.info(f"Deleted trade {trade_id}.")

    def __len__(self) -> int:
        return len(self._trades)

    def __iter__(self) -> Iterator[Trade]:
        return iter(tuple(self._trades))
