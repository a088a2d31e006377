"""
Unit tests for the cache publisher.
"""

from datetime import datetime, timezone

import pytest

from catalog_sync.cache import CachePublisher, InMemoryEdgeCache, json_size, optimize_catalog
from catalog_sync.cache.publisher import ESSENTIAL_FIELDS, reduction_percent, trim_record
from catalog_sync.config import DEFAULT_SNAPSHOT_MAX_BYTES, LAST_UPDATED_KEY, LIVENESS_STATUS_KEY, PRIMARY_SNAPSHOT_KEY
from catalog_sync.core.errors import CacheWriteError, SnapshotTooLargeError
from catalog_sync.core.models import LivenessSnapshot, LivenessSummary


def _view_record(idx: int, description_size: int = 0) -> dict:
    return {
        "product": f"App {idx:03d}",
        "division": "Whole School",
        "department": "Technology",
        "licenseType": "Site License",
        "spend": "Free",
        "website": f"https://app{idx}.example.org",
        "isOrgWide": True,
        "description": "x" * description_size,
        "logoUrl": "data:image/png;base64,iVBORw0KGgo=",
        "tutorialLink": "https://help.example.org",
        "supportEmail": "help@example.org",
    }


@pytest.fixture
def heavy_bundle():
    """Catalog bundle whose descriptions alone total 600KB"""
    apps = [_view_record(i, description_size=6000) for i in range(100)]
    return {
        "wholeSchool": {
            "name": "Whole School",
            "apps": apps,
            "enterpriseApps": apps[:5],
            "everyoneApps": [],
            "byDepartment": {"Technology": [a["product"] for a in apps]},
        },
        "stats": {"totalApps": 100, "orgWideCount": 100, "subUnitCounts": {}, "orphans": []},
    }


class TestTrimming:
    """Tests for the essential-fields allow-list"""

    def test_trim_record(self):
        """Test only allow-listed keys survive"""
        trimmed = trim_record(_view_record(1, description_size=10))

        assert set(trimmed) <= set(ESSENTIAL_FIELDS)
        assert "description" not in trimmed
        assert "logoUrl" not in trimmed
        assert "tutorialLink" not in trimmed
        assert trimmed["product"] == "App 001"
        assert trimmed["isOrgWide"] is True

    def test_optimize_keeps_structure(self, heavy_bundle):
        """Test names, stats and department indexes are kept as they are"""
        optimized = optimize_catalog(heavy_bundle)

        assert optimized["stats"] == heavy_bundle["stats"]
        assert optimized["wholeSchool"]["name"] == "Whole School"
        assert optimized["wholeSchool"]["byDepartment"] == heavy_bundle["wholeSchool"]["byDepartment"]
        assert len(optimized["wholeSchool"]["apps"]) == 100
        assert optimized["wholeSchool"]["everyoneApps"] == []

    def test_optimize_does_not_modify_input(self, heavy_bundle):
        """Test the full bundle is left untouched"""
        optimize_catalog(heavy_bundle)
        assert "description" in heavy_bundle["wholeSchool"]["apps"][0]

    def test_reduction_percent(self):
        assert reduction_percent(1000, 250) == 75.0
        assert reduction_percent(0, 0) == 0.0


class TestCachePublisher:
    """Tests for CachePublisher"""

    def test_publish_catalog_trims_below_ceiling(self, heavy_bundle):
        """Test a 600KB bundle is trimmed under the ceiling and the saving reported"""
        cache = InMemoryEdgeCache(max_item_bytes=DEFAULT_SNAPSHOT_MAX_BYTES)
        publisher = CachePublisher(cache, max_bytes=DEFAULT_SNAPSHOT_MAX_BYTES)

        assert json_size(heavy_bundle) > 600 * 1000

        result = publisher.publish_catalog(heavy_bundle)

        assert result.key == PRIMARY_SNAPSHOT_KEY
        assert result.byte_size < DEFAULT_SNAPSHOT_MAX_BYTES
        assert result.byte_size_before == json_size(heavy_bundle)
        assert result.reduction_pct > 0
        assert "description" not in cache.get(PRIMARY_SNAPSHOT_KEY)["wholeSchool"]["apps"][0]

    def test_value_then_timestamp(self):
        """Test the value is written before its timestamp"""
        cache = InMemoryEdgeCache()
        result = CachePublisher(cache).publish(PRIMARY_SNAPSHOT_KEY, {"stats": {"totalApps": 0}})

        assert cache.write_log == [PRIMARY_SNAPSHOT_KEY, LAST_UPDATED_KEY]
        assert cache.get(LAST_UPDATED_KEY) == result.timestamp.isoformat()
        assert result.timestamp.tzinfo is not None

    def test_oversize_rejected_before_any_write(self):
        """Test a value over the ceiling raises and leaves the previous snapshot"""
        cache = InMemoryEdgeCache()
        publisher = CachePublisher(cache, max_bytes=1024)
        publisher.publish(PRIMARY_SNAPSHOT_KEY, {"version": 1})
        cache.write_log.clear()

        with pytest.raises(SnapshotTooLargeError) as exc_info:
            publisher.publish(PRIMARY_SNAPSHOT_KEY, {"blob": "x" * 2048})

        assert exc_info.value.size_bytes > 1024
        assert exc_info.value.max_bytes == 1024
        assert cache.write_log == []
        assert cache.get(PRIMARY_SNAPSHOT_KEY) == {"version": 1}

    def test_oversize_is_a_cache_write_error(self):
        """Test callers catching CacheWriteError also see size rejections"""
        publisher = CachePublisher(InMemoryEdgeCache(), max_bytes=10)

        with pytest.raises(CacheWriteError):
            publisher.publish(PRIMARY_SNAPSHOT_KEY, {"blob": "x" * 100})

    def test_republish_identical_data(self):
        """Test re-publishing the same value only moves the timestamp"""
        cache = InMemoryEdgeCache()
        publisher = CachePublisher(cache)

        publisher.publish(PRIMARY_SNAPSHOT_KEY, {"a": [1, 2, 3]})
        publisher.publish(PRIMARY_SNAPSHOT_KEY, {"a": [1, 2, 3]})

        assert cache.get(PRIMARY_SNAPSHOT_KEY) == {"a": [1, 2, 3]}
        assert cache.write_log.count(PRIMARY_SNAPSHOT_KEY) == 2

    def test_cache_rejection_propagates(self):
        """Test a write rejected by the store surfaces as CacheWriteError"""
        publisher = CachePublisher(InMemoryEdgeCache(max_item_bytes=5), max_bytes=DEFAULT_SNAPSHOT_MAX_BYTES)

        with pytest.raises(CacheWriteError) as exc_info:
            publisher.publish(PRIMARY_SNAPSHOT_KEY, {"a": "bcdefg"})

        assert exc_info.value.key == PRIMARY_SNAPSHOT_KEY

    def test_publish_liveness(self):
        """Test the liveness snapshot is stored camelCase with no separate timestamp key"""
        cache = InMemoryEdgeCache()
        snapshot = LivenessSnapshot(
            statuses={"Seesaw": 1, "Kami": 0},
            summary=LivenessSummary(total=2, up=1, down=1, up_pct=50, avg_latency_ms=120),
            last_checked=datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc),
        )

        CachePublisher(cache).publish_liveness(snapshot)

        assert cache.write_log == [LIVENESS_STATUS_KEY]
        stored = cache.get(LIVENESS_STATUS_KEY)
        assert stored["statuses"] == {"Seesaw": 1, "Kami": 0}
        assert stored["summary"]["upPct"] == 50
        assert stored["lastChecked"].startswith("2025-01-06T12:00:00")
