# src/portfolio_goals_engine/logging_utils.py
"""
Correlation ids for engine logs. The engine sets one per snapshot; an
embedding application adds `CorrelationIdFilter` to its own handler and puts
`%(correlation_id)s` in the format to see it.
"""
import logging
import uuid
from contextvars import ContextVar

# Correlation ID of the snapshot computation currently in progress.
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="<not-set>")

class CorrelationIdFilter(logging.Filter):
    """
    A logging filter that injects the current correlation ID from a ContextVar
    into the log record.
    """
    def filter(self, record):
        record.correlation_id = correlation_id_var.get()
        return True

def generate_correlation_id(prefix: str) -> str:
    return f"{prefix}:{uuid.uuid4()}"
