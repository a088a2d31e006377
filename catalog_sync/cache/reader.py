"""
Cache reader: serve cached snapshots to the dashboard.

The reader never triggers a refresh. A missing key is answered with a
structured "not populated" payload and a read failure with the same payload
marked uncacheable, so the dashboard always receives renderable JSON.
"""

from typing import Any

from pydantic import BaseModel, Field

from catalog_sync.config import LAST_UPDATED_KEY, LIVENESS_STATUS_KEY, PRIMARY_SNAPSHOT_KEY
from catalog_sync.core.errors import CacheReadError
from catalog_sync.core.models import LivenessSummary
from catalog_sync.observability import metrics
from catalog_sync.observability.logger import get_logger

from .edge_cache import EdgeCache

logger = get_logger("cache.reader")

NOT_POPULATED = "not populated"


class CacheReadResult(BaseModel):
    """HTTP-ready answer to one read."""

    status_code: int
    body: dict[str, Any]
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def found(self) -> bool:
        return self.status_code == 200 and "error" not in self.body


def empty_snapshot_payload(message: str) -> dict[str, Any]:
    return {
        "error": NOT_POPULATED,
        "message": message,
        "summary": {"total": 0, "orgWideCount": 0, "orphanCount": 0},
        "lastUpdated": None,
    }


def empty_status_payload(message: str) -> dict[str, Any]:
    return {
        "error": NOT_POPULATED,
        "message": message,
        "statuses": {},
        "summary": LivenessSummary().model_dump(by_alias=True),
        "lastChecked": None,
    }


class CacheReader:
    """
    Reads snapshots with stale-while-revalidate caching headers.

    Args:
        cache: Edge cache backend
        max_age_seconds: s-maxage for shared caches
        stale_seconds: stale-while-revalidate window
    """

    def __init__(self, cache: EdgeCache, max_age_seconds: int = 60, stale_seconds: int = 300):
        self.cache = cache
        self.max_age_seconds = max_age_seconds
        self.stale_seconds = stale_seconds

    @property
    def cache_control(self) -> str:
        return f"public, s-maxage={self.max_age_seconds}, stale-while-revalidate={self.stale_seconds}"

    def _headers(self, source: str, cache_control: str | None = None) -> dict[str, str]:
        return {"Cache-Control": cache_control or self.cache_control, "X-Data-Source": source}

    def read(self, key: str) -> CacheReadResult:
        """
        Read one key.

        Returns:
            200 with the stored value (catalog reads add lastUpdated);
            404 for an unpopulated catalog snapshot, 200 for unpopulated
            liveness; 503 when the cache fails, with s-maxage=0 so shared
            caches keep serving their last good copy inside the stale window
        """
        is_catalog = key == PRIMARY_SNAPSHOT_KEY
        empty = empty_snapshot_payload if is_catalog else empty_status_payload

        try:
            value = self.cache.get(key)
            last_updated = self.cache.get(LAST_UPDATED_KEY) if is_catalog and value is not None else None
        except CacheReadError as e:
            metrics.increment_counter(metrics.cache_reads_total, 1, key=key, status="error")
            metrics.record_error(e.error_type, "cache.reader")
            logger.error("Edge cache read failed", extra={"key": key, "error_message": str(e)})
            return CacheReadResult(
                status_code=503,
                body=empty("Cached data is temporarily unavailable."),
                headers=self._headers(
                    "error",
                    f"public, s-maxage=0, stale-while-revalidate={self.stale_seconds}",
                ),
            )

        if value is None:
            metrics.increment_counter(metrics.cache_reads_total, 1, key=key, status="miss")
            logger.info("Edge cache key not populated", extra={"key": key})
            return CacheReadResult(
                status_code=404 if is_catalog else 200,
                body=empty("The scheduled refresh has not run yet."),
                headers=self._headers("empty"),
            )

        metrics.increment_counter(metrics.cache_reads_total, 1, key=key, status="hit")
        body = value if isinstance(value, dict) else {"value": value}
        if is_catalog:
            body = {**body, "lastUpdated": last_updated}
        return CacheReadResult(status_code=200, body=body, headers=self._headers("edge-config"))

    def read_snapshot(self) -> CacheReadResult:
        return self.read(PRIMARY_SNAPSHOT_KEY)

    def read_status(self) -> CacheReadResult:
        return self.read(LIVENESS_STATUS_KEY)
