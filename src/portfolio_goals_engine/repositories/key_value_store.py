# src/portfolio_goals_engine/repositories/key_value_store.py
import copy
import logging
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """
    Persistence boundary of the engine: browser local storage, a remote
    document store, or anything else with last-write-wins get/set.
    """
    def get(self, key: str, default: Any = None) -> Any: ...
    def set(self, key: str, value: Any) -> None: ...


class InMemoryKeyValueStore:
    """Process-local store; values are deep-copied in and out."""
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        logger.debug(f"Writing key '{key}' to in-memory store.")
        self._data[key] = copy.deepcopy(value)
