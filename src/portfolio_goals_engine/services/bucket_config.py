# src/portfolio_goals_engine/services/bucket_config.py
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..constants import (
    BUCKET_PURPOSES_STORE_KEY,
    BUCKET_TARGETS_STORE_KEY,
    DEFAULT_BUCKET_PURPOSES,
    DEFAULT_BUCKET_TARGETS,
)
from ..core.enums import BucketId
from ..exceptions import BucketConfigurationError, UnknownBucketError
from ..repositories.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

BucketKey = Union[BucketId, str]


def _require_bucket(raw: BucketKey) -> BucketId:
    bucket = BucketId.parse(raw)
    if bucket is None:
        raise UnknownBucketError(str(raw))
    return bucket


def _to_amount(bucket: BucketId, raw: Any) -> Decimal:
    try:
        amount = Decimal(str(raw))
    except InvalidOperation:
        raise BucketConfigurationError(f"Target for {bucket.value} is not a number: {raw!r}.") from None
    if not amount.is_finite() or amount < 0:
        raise BucketConfigurationError(f"Target for {bucket.value} must be a non-negative amount, got {raw!r}.")
    return amount


class BucketConfig(BaseModel):
    """
    Goal targets and purposes keyed by bucket. Every bucket present in
    `targets` is reported by the aggregator, even with no holdings.
    """
    targets: Dict[BucketId, Decimal] = Field(default_factory=dict)
    purposes: Dict[BucketId, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def default(cls) -> "BucketConfig":
        return cls.from_mappings(DEFAULT_BUCKET_TARGETS, DEFAULT_BUCKET_PURPOSES)

    @classmethod
    def from_mappings(
        cls,
        raw_targets: Optional[Mapping[str, Any]] = None,
        raw_purposes: Optional[Mapping[str, Any]] = None,
    ) -> "BucketConfig":
        """
        Validates raw string-keyed mappings. Unknown bucket keys raise
        UnknownBucketError so a typo never creates an orphan bucket.
        Fixed purposes always take their default text.
        """
        raw_targets = DEFAULT_BUCKET_TARGETS if raw_targets is None else raw_targets
        raw_purposes = raw_purposes or {}

        targets: Dict[BucketId, Decimal] = {}
        for raw_key, raw_amount in raw_targets.items():
            bucket = _require_bucket(raw_key)
            targets[bucket] = _to_amount(bucket, raw_amount)

        purposes: Dict[BucketId, str] = {}
        for raw_key, purpose in raw_purposes.items():
            bucket = _require_bucket(raw_key)
            purposes[bucket] = "" if purpose is None else str(purpose)

        for bucket in targets:
            if bucket.has_fixed_purpose:
                purposes[bucket] = DEFAULT_BUCKET_PURPOSES[bucket.value]
            else:
                purposes.setdefault(bucket, "")

        return cls(targets=targets, purposes=purposes)

    def purpose_for(self, bucket: BucketId) -> str:
        return self.purposes.get(bucket, "")


class BucketConfigRepository:
    """
    Reads and writes bucket targets and purposes through a key-value store
    (last write wins).
    """
    def __init__(self, store: KeyValueStore):
        self._store = store

    def load(self) -> BucketConfig:
        raw_targets = self._store.get(BUCKET_TARGETS_STORE_KEY)
        raw_purposes = self._store.get(BUCKET_PURPOSES_STORE_KEY)
        config = BucketConfig.from_mappings(raw_targets, raw_purposes)
        logger.debug(f"Loaded bucket configuration for {len(config.targets)} buckets.")
        return config

    def _save(self, config: BucketConfig) -> None:
        self._store.set(
            BUCKET_TARGETS_STORE_KEY,
            {bucket.value: str(amount) for bucket, amount in config.targets.items()},
        )
        self._store.set(
            BUCKET_PURPOSES_STORE_KEY,
            {bucket.value: purpose for bucket, purpose in config.purposes.items()},
        )

    def update_target(self, bucket: BucketKey, target_amount: Any) -> BucketConfig:
        bucket_id = _require_bucket(bucket)
        config = self.load()
        targets = dict(config.targets)
        targets[bucket_id] = _to_amount(bucket_id, target_amount)
        updated = BucketConfig.from_mappings(
            {b.value: a for b, a in targets.items()},
            {b.value: p for b, p in config.purposes.items()},
        )
        self._save(updated)
        logger.info(f"Target for {bucket_id.value} set to {targets[bucket_id]}.")
        return updated

    def update_purpose(self, bucket: BucketKey, purpose: str) -> BucketConfig:
        bucket_id = _require_bucket(bucket)
        if bucket_id.has_fixed_purpose:
            raise BucketConfigurationError(f"The purpose of {bucket_id.value} is fixed and cannot be edited.")
        config = self.load()
        purposes = dict(config.purposes)
        purposes[bucket_id] = purpose
        updated = BucketConfig(targets=dict(config.targets), purposes=purposes)
        self._save(updated)
        logger.info(f"Purpose for {bucket_id.value} updated.")
        return updated
