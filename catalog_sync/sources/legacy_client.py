"""
Client for the legacy spreadsheet API, the catalog's source of truth.

Reads return flat row dictionaries exactly as the sheet serves them; the
field mapper turns them into NormalizedProduct. Any transport failure,
non-2xx status or error payload is an UpstreamUnavailableError, which aborts
the refresh before anything is categorized or published.
"""

import json
from typing import Any

import httpx

from catalog_sync.core.errors import UpstreamUnavailableError
from catalog_sync.observability.logger import get_logger
from catalog_sync.utils.validation import validate_product_name

logger = get_logger("sources.legacy")

_ENVELOPE_KEYS = ("apps", "data", "records", "rows")


class LegacySourceClient:
    """
    Legacy source API client.

    Args:
        base_url: Endpoint URL
        api_key: Shared key sent as the "key" query parameter
        timeout_seconds: Timeout for every call
        client: Pre-built httpx.Client (tests inject one with a MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._client = client

    def _send(self, method: str, action: str, body: dict | None = None) -> Any:
        params = {"action": action, "key": self.api_key}
        client = self._client or httpx.Client(timeout=self.timeout_seconds, follow_redirects=True)
        try:
            response = client.request(method, self.base_url, params=params, json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException:
            raise UpstreamUnavailableError(f"Legacy API timed out after {self.timeout_seconds}s ({action})")
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise UpstreamUnavailableError(f"Legacy API returned HTTP {status} ({action})", status_code=status)
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(f"Legacy API request failed ({action}): {e}")
        except json.JSONDecodeError:
            raise UpstreamUnavailableError(f"Legacy API returned a non-JSON body ({action})")
        finally:
            if self._client is None:
                client.close()

        if isinstance(payload, dict) and payload.get("error"):
            raise UpstreamUnavailableError(f"Legacy API error: {payload['error']}")

        return payload

    def fetch_all(self) -> list[dict[str, Any]]:
        """
        Fetch every catalog row.

        Accepts a bare JSON array, an {"apps"|"data": [...]} envelope, or the
        legacy grouped payload ({"<tab>": {"apps": [...]}, ...}), which is
        flattened in tab order.

        Returns:
            List of raw row dictionaries

        Raises:
            UpstreamUnavailableError: On timeout, HTTP error or error payload
        """
        payload = self._send("GET", "fetchAll")
        records = unwrap_payload(payload)
        logger.info("Fetched legacy records", extra={"records": len(records)})
        return records

    def bulk_update(self, updates: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Send partial field updates ({"product", "field", "value"} items).

        Returns:
            The API's response body

        Raises:
            UpstreamUnavailableError: On timeout, HTTP error or error payload
            ValidationError: If an update names no product
        """
        if not updates:
            return {"success": True, "updated": 0}

        updates = [{**item, "product": validate_product_name(item.get("product"))} for item in updates]
        payload = self._send("POST", "bulkUpdate", body={"updates": updates})
        logger.info("Sent legacy updates", extra={"updates": len(updates)})
        return payload if isinstance(payload, dict) else {"success": True, "result": payload}


def unwrap_payload(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, list):
        return payload

    if isinstance(payload, dict):
        for key in _ENVELOPE_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]

        grouped = [
            value["apps"]
            for value in payload.values()
            if isinstance(value, dict) and isinstance(value.get("apps"), list)
        ]
        if grouped:
            return [row for rows in grouped for row in rows]

    raise UpstreamUnavailableError(
        f"Legacy API returned an unexpected payload ({type(payload).__name__})"
    )
