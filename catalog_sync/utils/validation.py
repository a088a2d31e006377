"""
Input validation utilities for the refresh pipeline.

Reusable checks for the values that cross a trust boundary: URLs about to
be probed, product names used as join keys, cache keys and operator-supplied
tuning knobs.
"""

import re
from urllib.parse import urlsplit


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


MAX_NAME_LENGTH = 255
MAX_URL_LENGTH = 2048

_CACHE_KEY = re.compile(r"^[A-Za-z0-9_\-]+$")


def validate_probe_url(url: str | None, field_name: str = "url") -> str:
    """
    Validate a URL before probing it.

    Only absolute http(s) URLs with a host are probed; anything else is
    reported as "Invalid URL" without a network call.

    Args:
        url: The URL to validate
        field_name: Name of the field (for error messages)

    Returns:
        The URL stripped of surrounding whitespace

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> validate_probe_url(" https://web.seesaw.me ")
        'https://web.seesaw.me'
        >>> validate_probe_url("ftp://files.example.org")  # doctest: +SKIP
        ValidationError: url must start with http:// or https://
    """
    if not url or not isinstance(url, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    url = url.strip()
    if not url.lower().startswith(("http://", "https://")):
        raise ValidationError(f"{field_name} must start with http:// or https://")

    if len(url) > MAX_URL_LENGTH:
        raise ValidationError(f"{field_name} exceeds maximum length of {MAX_URL_LENGTH} characters")

    try:
        netloc = urlsplit(url).netloc
    except ValueError as e:
        raise ValidationError(f"{field_name} is malformed: {e}") from e

    if not netloc:
        raise ValidationError(f"{field_name} has no host")

    return url


def validate_product_name(name: str | None, field_name: str = "product") -> str:
    """
    Validate a product name used as a join key.

    Examples:
        >>> validate_product_name("  Google Classroom ")
        'Google Classroom'
    """
    if not name or not isinstance(name, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    name = name.strip()
    if not name:
        raise ValidationError(f"{field_name} cannot be empty or whitespace-only")

    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"{field_name} exceeds maximum length of {MAX_NAME_LENGTH} characters")

    return name


def validate_cache_key(key: str, field_name: str = "key") -> str:
    """
    Validate an edge cache key.

    Edge config keys allow only alphanumerics, underscores and hyphens.

    Examples:
        >>> validate_cache_key("primary_snapshot")
        'primary_snapshot'
        >>> validate_cache_key("bad key")  # doctest: +SKIP
        ValidationError: key contains invalid characters
    """
    if not key or not isinstance(key, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    if not _CACHE_KEY.match(key):
        raise ValidationError(
            f"{field_name} contains invalid characters. "
            "Only alphanumeric, hyphens and underscores are allowed."
        )

    if len(key) > 256:
        raise ValidationError(f"{field_name} exceeds maximum length of 256 characters")

    return key


def validate_batch_size(batch_size: int, max_size: int = 100, field_name: str = "batch_size") -> int:
    """
    Validate a probe batch size.

    Examples:
        >>> validate_batch_size(10)
        10
        >>> validate_batch_size(0)  # doctest: +SKIP
        ValidationError: batch_size must be at least 1
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int):
        raise ValidationError(f"{field_name} must be an integer")

    if batch_size < 1:
        raise ValidationError(f"{field_name} must be at least 1")

    if batch_size > max_size:
        raise ValidationError(f"{field_name} exceeds maximum of {max_size}")

    return batch_size
