"""
Cache publisher: write size-checked snapshots to the edge cache.

A snapshot is written wholesale. The size check runs before any write, so
an oversized snapshot leaves the previous one in place. The value and its
timestamp are two separate upserts; readers may briefly see a new value
with the previous timestamp.
"""

from datetime import datetime, timezone
from typing import Any

from catalog_sync.config import (
    DEFAULT_SNAPSHOT_MAX_BYTES,
    LAST_UPDATED_KEY,
    LIVENESS_STATUS_KEY,
    PRIMARY_SNAPSHOT_KEY,
)
from catalog_sync.core.errors import CacheWriteError, SnapshotTooLargeError
from catalog_sync.core.models import LivenessSnapshot, PublishResult
from catalog_sync.observability import metrics
from catalog_sync.observability.logger import get_logger

from .edge_cache import EdgeCache, json_size

logger = get_logger("cache.publisher")

# Dashboard record keys kept in the cached snapshot
ESSENTIAL_FIELDS = (
    "product",
    "division",
    "department",
    "budget",
    "licenseType",
    "licenses",
    "category",
    "spend",
    "renewalDate",
    "dateAdded",
    "enterprise",
    "audience",
    "gradeLevels",
    "website",
    "isOrgWide",
)


def trim_record(record: dict[str, Any]) -> dict[str, Any]:
    """Keep only the essential keys of one dashboard record."""
    return {key: record[key] for key in ESSENTIAL_FIELDS if key in record}


def optimize_catalog(bundle: dict[str, Any]) -> dict[str, Any]:
    """
    Trim every product record in every bucket to ESSENTIAL_FIELDS.

    A bucket is any top-level mapping; every list of records inside it is
    trimmed. Everything else (names, stats, department indexes) is kept
    as is. The input is not modified.

    Args:
        bundle: Full catalog bundle

    Returns:
        Trimmed copy of the bundle
    """
    optimized: dict[str, Any] = {}
    for key, section in bundle.items():
        if not isinstance(section, dict):
            optimized[key] = section
            continue

        trimmed_section = {}
        for field, value in section.items():
            if isinstance(value, list) and all(isinstance(item, dict) for item in value):
                trimmed_section[field] = [trim_record(item) for item in value]
            else:
                trimmed_section[field] = value
        optimized[key] = trimmed_section
    return optimized


def reduction_percent(before: int, after: int) -> float:
    if before <= 0:
        return 0.0
    return round((1 - after / before) * 100, 1)


class CachePublisher:
    """
    Publishes catalog and liveness snapshots.

    Args:
        cache: Edge cache backend
        max_bytes: Per-item ceiling; larger values are rejected before writing
    """

    def __init__(self, cache: EdgeCache, max_bytes: int = DEFAULT_SNAPSHOT_MAX_BYTES):
        self.cache = cache
        self.max_bytes = max_bytes

    def publish(
        self,
        key: str,
        value: Any,
        stamp_key: str | None = LAST_UPDATED_KEY,
        size_before: int | None = None,
    ) -> PublishResult:
        """
        Write one value, then its timestamp.

        Args:
            key: Cache key for the value
            value: JSON-serializable value
            stamp_key: Key for the ISO timestamp (None to skip the second upsert)
            size_before: Pre-trim size to report (defaults to the value's size)

        Returns:
            PublishResult with byte sizes and the timestamp

        Raises:
            SnapshotTooLargeError: If the value exceeds max_bytes (nothing is written)
            CacheWriteError: If the cache rejects either upsert
        """
        size = json_size(value)
        if size > self.max_bytes:
            metrics.increment_counter(metrics.cache_writes_total, 1, key=key, status="rejected")
            logger.error(
                "Snapshot exceeds cache item ceiling",
                extra={"key": key, "size_bytes": size, "max_bytes": self.max_bytes},
            )
            raise SnapshotTooLargeError(key, size, self.max_bytes)

        timestamp = datetime.now(timezone.utc)
        self._upsert(key, value)
        if stamp_key:
            self._upsert(stamp_key, timestamp.isoformat())

        before = size if size_before is None else size_before
        metrics.set_gauge(metrics.snapshot_bytes, size, key=key, stage="published")
        logger.info("Published snapshot", extra={"key": key, "size_bytes": size})

        return PublishResult(
            key=key,
            byte_size=size,
            byte_size_before=before,
            reduction_pct=reduction_percent(before, size),
            timestamp=timestamp,
        )

    def _upsert(self, key: str, value: Any) -> None:
        try:
            self.cache.upsert(key, value)
        except CacheWriteError:
            metrics.increment_counter(metrics.cache_writes_total, 1, key=key, status="failure")
            raise
        metrics.increment_counter(metrics.cache_writes_total, 1, key=key, status="success")

    def publish_catalog(self, full_bundle: dict[str, Any]) -> PublishResult:
        """
        Trim the catalog bundle to essential fields and publish it.

        Returns:
            PublishResult with before/after sizes and the percentage saved
        """
        before = json_size(full_bundle)
        optimized = optimize_catalog(full_bundle)
        metrics.set_gauge(metrics.snapshot_bytes, before, key=PRIMARY_SNAPSHOT_KEY, stage="before_trim")

        result = self.publish(PRIMARY_SNAPSHOT_KEY, optimized, size_before=before)
        logger.info(
            "Catalog snapshot trimmed",
            extra={
                "size_before": result.byte_size_before,
                "size_after": result.byte_size,
                "reduction_pct": result.reduction_pct,
            },
        )
        return result

    def publish_liveness(self, snapshot: LivenessSnapshot) -> PublishResult:
        """Publish the liveness snapshot; its lastChecked field is its timestamp."""
        value = snapshot.model_dump(mode="json", by_alias=True)
        return self.publish(LIVENESS_STATUS_KEY, value, stamp_key=None)
