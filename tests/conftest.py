"""
Pytest configuration and fixtures for catalog-sync tests

This module provides shared fixtures for unit and integration tests.
"""
import json
from typing import Any

import httpx
import pytest

from catalog_sync.cache import InMemoryEdgeCache
from catalog_sync.config import Settings
from catalog_sync.core.models import NormalizedProduct
from catalog_sync.core.rules import ClassificationRules, default_rules
from catalog_sync.sources import LegacySourceClient


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Tests that wire several components together"
    )


# =======================
# SETTINGS FIXTURES
# =======================

CRON_SECRET = "test-secret"


@pytest.fixture
def settings(tmp_path) -> Settings:
    """
    Settings for an in-process pipeline: memory cache, short probe timeouts

    Returns:
        Settings with a known cron secret
    """
    return Settings(
        legacy_api_url="https://legacy.example.test/exec",
        legacy_api_key="legacy-key",
        cron_secret=CRON_SECRET,
        edge_cache_backend="memory",
        probe_timeout_ms=500,
        probe_batch_size=10,
        classification_rules_path=str(tmp_path / "missing-rules.yaml"),
    )


@pytest.fixture
def rules() -> ClassificationRules:
    """Built-in school hierarchy"""
    return default_rules()


# =======================
# DATA FIXTURES
# =======================

@pytest.fixture
def make_product():
    """
    Factory for NormalizedProduct with sensible defaults

    Usage:
        product = make_product("Seesaw", units="Elementary")
    """
    def _make(name: str = "Seesaw", **fields: Any) -> NormalizedProduct:
        return NormalizedProduct(name=name, **fields)

    return _make


@pytest.fixture
def legacy_records() -> list[dict[str, Any]]:
    """
    Rows as the legacy sheet serves them, including the messy ones

    Covers: site license, sentinel department, multi-division tags, an orphan,
    a duplicate, an inactive row and a row with an unparseable date.
    """
    return [
        {
            "product": "Google Workspace",
            "division": "Whole School",
            "department": "Technology",
            "licenseType": "Site License",
            "licenses": "1500",
            "spend": "Free",
            "website": "https://workspace.google.com",
            "dateAdded": 45292,
            "renewalDate": "2025-07-31",
            "enterprise": "TRUE",
            "audience": "Teachers, Students, Staff",
            "description": "Docs, Sheets and Drive",
        },
        {
            "product": "Seesaw",
            "division": "Elementary",
            "department": "Technology",
            "licenseType": "Per User",
            "licenses": 800,
            "spend": "$4,250.00",
            "website": "https://web.seesaw.me",
            "enterprise": False,
            "audience": '["Teachers", "Students"]',
        },
        {
            "product": "Finalsite",
            "division": "Middle School",
            "department": "School Operations",
            "licenseType": "Individual",
            "spend": 12000,
            "website": "https://www.finalsite.com",
        },
        {
            "product": "Desmos",
            "division": "MS, HS",
            "department": "Math",
            "licenseType": "Per Teacher",
            "spend": 0,
            "website": "https://www.desmos.com",
        },
        {
            "product": "Orphaned Tool",
            "division": "",
            "department": "Science",
            "licenseType": "Individual",
            "website": "#",
        },
        {
            "product": "Seesaw",
            "division": "High School",
            "department": "Art",
        },
        {
            "product": "Retired App",
            "division": "High School",
            "active": "FALSE",
        },
        {
            "product": "Broken Dates",
            "division": "High School",
            "renewalDate": "sometime next year",
        },
        {
            "division": "Elementary",
            "department": "No name at all",
        },
    ]


# =======================
# CACHE AND SOURCE FIXTURES
# =======================

@pytest.fixture
def memory_cache(settings) -> InMemoryEdgeCache:
    """In-memory edge cache with the configured item ceiling"""
    return InMemoryEdgeCache(max_item_bytes=settings.snapshot_max_bytes)


class FakeLegacySource:
    """
    Stand-in for LegacySourceClient serving a fixed record list

    Set `error` to make every call raise it.
    """

    def __init__(self, records: list[dict[str, Any]]):
        self.records = records
        self.error: Exception | None = None
        self.updates: list[dict[str, Any]] = []
        self.fetch_calls = 0

    def fetch_all(self) -> list[dict[str, Any]]:
        self.fetch_calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)

    def bulk_update(self, updates: list[dict[str, Any]]) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        self.updates.extend(updates)
        return {"success": True, "updated": len(updates)}


@pytest.fixture
def fake_source(legacy_records) -> FakeLegacySource:
    return FakeLegacySource(legacy_records)


@pytest.fixture
def legacy_transport(legacy_records):
    """
    MockTransport imitating the legacy API

    Returns:
        (transport, requests) where requests collects every request seen
    """
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.params.get("key") != "legacy-key":
            return httpx.Response(200, json={"error": "Invalid API key"})

        action = request.url.params.get("action")
        if action == "fetchAll":
            return httpx.Response(200, json={"success": True, "data": legacy_records})
        if action == "bulkUpdate":
            body = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "updated": len(body["updates"])})
        return httpx.Response(400, json={"error": f"Unknown action {action}"})

    return httpx.MockTransport(handler), requests


@pytest.fixture
def legacy_client(legacy_transport) -> LegacySourceClient:
    transport, _ = legacy_transport
    return LegacySourceClient(
        "https://legacy.example.test/exec",
        "legacy-key",
        client=httpx.Client(transport=transport),
    )
