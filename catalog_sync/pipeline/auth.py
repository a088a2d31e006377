"""
Caller authentication for the refresh endpoints.
"""

import hmac
from typing import Mapping

from catalog_sync.config import Settings
from catalog_sync.core.errors import AuthenticationError, ConfigurationError

BEARER_PREFIX = "bearer "


def authenticate(headers: Mapping[str, str], settings: Settings) -> str:
    """
    Check that a refresh caller is allowed to trigger work.

    Accepts "Authorization: Bearer <CRON_SECRET>" (compared in constant time)
    or the scheduler's marker header.

    Args:
        headers: Request headers (any key case)
        settings: Settings carrying the secret and scheduler header

    Returns:
        "bearer" or "scheduler", naming the credential that matched

    Raises:
        ConfigurationError: If no secret is configured
        AuthenticationError: If neither credential matches
    """
    if not settings.cron_secret:
        raise ConfigurationError("CRON_SECRET not configured")

    lowered = {str(k).lower(): v for k, v in headers.items()}

    authorization = lowered.get("authorization") or ""
    if authorization[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
        token = authorization[len(BEARER_PREFIX):].strip()
        if hmac.compare_digest(token.encode("utf-8"), settings.cron_secret.encode("utf-8")):
            return "bearer"

    if lowered.get(settings.scheduler_header.lower()) == settings.scheduler_header_value:
        return "scheduler"

    raise AuthenticationError("Unauthorized. Provide CRON_SECRET in Authorization header.")
