"""
Unit tests for the cache reader.
"""

from catalog_sync.cache import CacheReader, InMemoryEdgeCache
from catalog_sync.config import LAST_UPDATED_KEY, LIVENESS_STATUS_KEY, PRIMARY_SNAPSHOT_KEY
from catalog_sync.core.errors import CacheReadError


class FailingCache:
    """Edge cache whose reads always fail"""

    def get(self, key):
        raise CacheReadError(f"[{key}] edge config read failed: HTTP 500")

    def upsert(self, key, value):
        raise AssertionError("reader must not write")


class TestSnapshotReads:
    """Tests for the catalog snapshot endpoint"""

    def test_not_populated(self):
        """Test an empty cache answers 404 with a renderable payload"""
        result = CacheReader(InMemoryEdgeCache()).read_snapshot()

        assert result.status_code == 404
        assert result.body["error"] == "not populated"
        assert result.body["summary"]["total"] == 0
        assert result.body["lastUpdated"] is None
        assert result.headers["X-Data-Source"] == "empty"
        assert not result.found

    def test_hit_adds_last_updated(self):
        """Test a populated snapshot is served with its timestamp"""
        cache = InMemoryEdgeCache()
        cache.upsert(PRIMARY_SNAPSHOT_KEY, {"stats": {"totalApps": 3}})
        cache.upsert(LAST_UPDATED_KEY, "2025-01-06T12:00:00+00:00")

        result = CacheReader(cache).read_snapshot()

        assert result.status_code == 200
        assert result.found
        assert result.body["stats"] == {"totalApps": 3}
        assert result.body["lastUpdated"] == "2025-01-06T12:00:00+00:00"
        assert result.headers["X-Data-Source"] == "edge-config"

    def test_stale_while_revalidate_headers(self):
        """Test shared-cache headers carry the configured windows"""
        cache = InMemoryEdgeCache()
        cache.upsert(PRIMARY_SNAPSHOT_KEY, {"stats": {}})

        result = CacheReader(cache, max_age_seconds=30, stale_seconds=600).read_snapshot()

        assert result.headers["Cache-Control"] == "public, s-maxage=30, stale-while-revalidate=600"

    def test_empty_answer_is_cacheable_too(self):
        """Test the not-populated answer also permits stale serving"""
        result = CacheReader(InMemoryEdgeCache()).read_snapshot()
        assert "stale-while-revalidate" in result.headers["Cache-Control"]

    def test_read_failure(self):
        """Test a failing cache answers 503 without caching it but keeps the stale window"""
        result = CacheReader(FailingCache()).read_snapshot()

        assert result.status_code == 503
        assert result.body["error"] == "not populated"
        assert result.headers["Cache-Control"] == "public, s-maxage=0, stale-while-revalidate=300"
        assert result.headers["X-Data-Source"] == "error"


class TestStatusReads:
    """Tests for the liveness status endpoint"""

    def test_not_populated(self):
        """Test an empty status cache answers 200 with zeroed summary"""
        result = CacheReader(InMemoryEdgeCache()).read_status()

        assert result.status_code == 200
        assert result.body["statuses"] == {}
        assert result.body["summary"] == {"total": 0, "up": 0, "down": 0, "upPct": 0, "avgLatencyMs": 0}
        assert result.body["lastChecked"] is None

    def test_hit(self):
        """Test the stored snapshot is served unchanged"""
        cache = InMemoryEdgeCache()
        stored = {"statuses": {"Seesaw": 1}, "summary": {"total": 1}, "lastChecked": "2025-01-06T12:00:00Z"}
        cache.upsert(LIVENESS_STATUS_KEY, stored)

        result = CacheReader(cache).read_status()

        assert result.status_code == 200
        assert result.body == stored

    def test_read_failure(self):
        result = CacheReader(FailingCache()).read_status()
        assert result.status_code == 503
