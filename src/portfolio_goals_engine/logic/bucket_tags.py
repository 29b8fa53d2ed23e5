# src/portfolio_goals_engine/logic/bucket_tags.py
from typing import Dict, Iterable

from ..core.enums import BucketId
from ..core.models.trade import Trade


def resolve_bucket_tags(trades: Iterable[Trade]) -> Dict[str, BucketId]:
    """
    Maps each instrument name to its goal bucket: the tag of the first trade,
    in ledger order, that carries one. Later trades for the same name never
    override it, whatever their date or tag.
    """
    tags: Dict[str, BucketId] = {}
    for trade in trades:
        if trade.bucket_allocation is not None and trade.name not in tags:
            tags[trade.name] = trade.bucket_allocation
    return tags
