"""
Edge cache clients.

The edge cache is a small key/value store with a per-item size ceiling. The
pipeline only needs two calls: get(key) and upsert(key, value). Values are
JSON documents and an upsert replaces the whole value.
"""

import json
from typing import Any, Protocol

import httpx

from catalog_sync.core.errors import CacheReadError, CacheWriteError
from catalog_sync.utils.validation import validate_cache_key


class EdgeCache(Protocol):
    """Read/write contract shared by every backend."""

    def get(self, key: str) -> Any | None:
        """Stored value, or None when the key has never been written."""
        ...

    def upsert(self, key: str, value: Any) -> None:
        """Replace the value under key. Raises CacheWriteError on rejection."""
        ...


def encode(value: Any) -> str:
    """Serialize a value exactly as it is sent to the cache."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def json_size(value: Any) -> int:
    """UTF-8 byte size of the serialized value."""
    return len(encode(value).encode("utf-8"))


class InMemoryEdgeCache:
    """
    Process-local backend for development and tests.

    Values are stored serialized, so readers get a fresh copy and writers
    cannot mutate what was stored.

    Args:
        max_item_bytes: Reject values larger than this, like the real store
    """

    def __init__(self, max_item_bytes: int | None = None):
        self.max_item_bytes = max_item_bytes
        self._items: dict[str, str] = {}
        self.write_log: list[str] = []

    def get(self, key: str) -> Any | None:
        raw = self._items.get(key)
        return None if raw is None else json.loads(raw)

    def upsert(self, key: str, value: Any) -> None:
        validate_cache_key(key)
        encoded = encode(value)
        size = len(encoded.encode("utf-8"))
        if self.max_item_bytes is not None and size > self.max_item_bytes:
            raise CacheWriteError(key, f"item of {size} bytes exceeds store limit of {self.max_item_bytes}")
        self._items[key] = encoded
        self.write_log.append(key)

    def keys(self) -> list[str]:
        return list(self._items)


class HttpEdgeCache:
    """
    Backend for a hosted edge config store.

    Writes go through PATCH /v1/edge-config/{id}/items with one upsert
    operation; reads through GET /v1/edge-config/{id}/item/{key}.

    Args:
        config_id: Store id
        token: API bearer token
        api_url: API base URL
        timeout_seconds: Timeout for every call
        client: Pre-built httpx.Client (tests inject one with a MockTransport)
    """

    def __init__(
        self,
        config_id: str,
        token: str,
        api_url: str = "https://api.vercel.com",
        timeout_seconds: float = 10.0,
        client: httpx.Client | None = None,
    ):
        self.config_id = config_id
        self.api_url = api_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout_seconds)
        self._token = token

    @property
    def _base(self) -> str:
        return f"{self.api_url}/v1/edge-config/{self.config_id}"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    def get(self, key: str) -> Any | None:
        validate_cache_key(key)
        try:
            response = self._client.get(f"{self._base}/item/{key}", headers=self._headers())
        except httpx.HTTPError as e:
            raise CacheReadError(f"[{key}] edge config read failed: {e}")

        if response.status_code == 404:
            return None
        if response.is_error:
            raise CacheReadError(f"[{key}] edge config read failed: HTTP {response.status_code}")

        try:
            item = response.json()
        except json.JSONDecodeError:
            raise CacheReadError(f"[{key}] edge config returned a non-JSON body")

        if isinstance(item, dict) and "value" in item and item.get("key", key) == key:
            return item["value"]
        return item

    def upsert(self, key: str, value: Any) -> None:
        validate_cache_key(key)
        body = {"items": [{"operation": "upsert", "key": key, "value": value}]}
        try:
            response = self._client.patch(
                f"{self._base}/items",
                content=encode(body),
                headers={**self._headers(), "Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            raise CacheWriteError(key, f"edge config update failed: {e}")

        if response.is_error:
            raise CacheWriteError(key, f"edge config update failed: {response.status_code} - {response.text[:200]}")

    def close(self) -> None:
        self._client.close()


def build_edge_cache(settings) -> EdgeCache:
    """Backend selected by settings.edge_cache_backend."""
    if settings.edge_cache_backend == "http":
        config_id, token = settings.require_edge_config()
        return HttpEdgeCache(config_id, token, api_url=settings.edge_config_api_url)
    return InMemoryEdgeCache(max_item_bytes=settings.snapshot_max_bytes)
