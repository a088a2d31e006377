"""
Typed coercion functions shared by every record shape.

Source records arrive with heterogeneous encodings: lists as real lists,
JSON strings or comma-separated strings; booleans as booleans or "TRUE"/"Yes";
costs as numbers, currency strings or the "Free" sentinel; dates as
spreadsheet serial numbers or ISO strings. Each concern is handled once here
and applied uniformly by the field mapper.

All coercers raise ValueError on input they cannot interpret; the field
mapper turns that into a MalformedRecordError naming the field.
"""

import json
import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any

# Spreadsheet day zero (Lotus 1-2-3 leap-year bug included)
SPREADSHEET_EPOCH = date(1899, 12, 30)

FREE_SENTINEL = "Free"
UNKNOWN_COST = "N/A"

# Display placeholders written by the dashboard view shape
PLACEHOLDER_VALUES = {"", "n/a", "#", "none", "null"}

TRUE_STRINGS = {"true", "yes", "y", "1"}

_CURRENCY_CHARS = re.compile(r"[,$€£¥\s]")
_NUMERIC = re.compile(r"^-?\d+(\.\d+)?$")
_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
_DATE_FORMATS = ("%m/%d/%Y", "%Y/%m/%d", "%d %B %Y", "%d %b %Y", "%B %d, %Y", "%b %d, %Y")


def is_placeholder(value: Any) -> bool:
    """True for None and for the empty/placeholder strings the view shape emits."""
    if value is None:
        return True
    return isinstance(value, str) and value.strip().lower() in PLACEHOLDER_VALUES


def coerce_text(value: Any) -> str | None:
    """
    Coerce a free-text field.

    Examples:
        >>> coerce_text("  Technology ")
        'Technology'
        >>> coerce_text("N/A") is None
        True
    """
    if is_placeholder(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def coerce_string_list(value: Any) -> list[str]:
    """
    Coerce a multi-value field to a list of strings.

    Accepts a real list, a JSON-encoded list, or a comma-separated string.

    Examples:
        >>> coerce_string_list(["Teachers", " Students "])
        ['Teachers', 'Students']
        >>> coerce_string_list('["Teachers", "Students"]')
        ['Teachers', 'Students']
        >>> coerce_string_list("Teachers, Students")
        ['Teachers', 'Students']
        >>> coerce_string_list(None)
        []
    """
    if value is None:
        return []

    if isinstance(value, (list, tuple, set)):
        items = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        items = None
        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                items = parsed
        if items is None:
            items = text.split(",")
    else:
        items = [value]

    result = []
    for item in items:
        if item is None:
            continue
        text = str(item).strip()
        if text:
            result.append(text)
    return result


def coerce_bool(value: Any) -> bool:
    """
    Coerce a flag. Absent values are False.

    Examples:
        >>> coerce_bool("TRUE"), coerce_bool("Yes"), coerce_bool(None), coerce_bool("no")
        (True, True, False, False)
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return False


def coerce_number(value: Any) -> float | None:
    """
    Coerce a numeric field. "Free" is zero; empty and placeholder values are None.

    Examples:
        >>> coerce_number("Free")
        0.0
        >>> coerce_number("$1,250.50")
        1250.5
        >>> coerce_number("") is None
        True

    Raises:
        ValueError: If the value is not a number
    """
    if isinstance(value, bool):
        raise ValueError(f"boolean {value!r} is not a number")
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        return float(value)
    if is_placeholder(value):
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.lower() == FREE_SENTINEL.lower():
            return 0.0
        cleaned = _CURRENCY_CHARS.sub("", text)
        try:
            return float(cleaned)
        except ValueError:
            raise ValueError(f"cannot parse {value!r} as a number")
    raise ValueError(f"cannot parse {type(value).__name__} as a number")


def coerce_int(value: Any) -> int | None:
    """Coerce a count field, rounding fractional values."""
    number = coerce_number(value)
    return None if number is None else int(round(number))


def coerce_date(value: Any) -> date | None:
    """
    Coerce a date field to a calendar date.

    Spreadsheet serial numbers (days since 1899-12-30, fractional part is the
    time of day) and ISO strings representing the same day give the same date.
    ISO timestamps with an offset are read as the UTC calendar day.

    Examples:
        >>> coerce_date(45292)
        datetime.date(2024, 1, 1)
        >>> coerce_date("2024-01-01")
        datetime.date(2024, 1, 1)
        >>> coerce_date("2024-01-01T00:00:00Z")
        datetime.date(2024, 1, 1)

    Raises:
        ValueError: If the value is not a recognizable date
    """
    if isinstance(value, datetime):
        return _datetime_to_date(value)
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise ValueError(f"boolean {value!r} is not a date")
    if isinstance(value, (int, float)):
        return _from_serial(value)
    if is_placeholder(value):
        return None
    if not isinstance(value, str):
        raise ValueError(f"cannot parse {type(value).__name__} as a date")

    text = value.strip()
    if _NUMERIC.match(text):
        return _from_serial(float(text))

    if _ISO_DATE_PREFIX.match(text):
        if len(text) == 10:
            try:
                return date.fromisoformat(text)
            except ValueError:
                raise ValueError(f"invalid ISO date {value!r}")
        try:
            return _datetime_to_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            raise ValueError(f"invalid ISO timestamp {value!r}")

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    raise ValueError(f"cannot parse {value!r} as a date")


def _from_serial(serial: float) -> date | None:
    if math.isnan(serial):
        return None
    # A zero serial is an empty spreadsheet cell
    if serial == 0:
        return None
    if serial < 0:
        raise ValueError(f"negative date serial {serial}")
    return SPREADSHEET_EPOCH + timedelta(days=math.floor(serial))


def _datetime_to_date(value: datetime) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def format_cost(annual_cost: float | None) -> str | int | float:
    """
    Display form of a cost.

    Examples:
        >>> format_cost(0), format_cost(None), format_cost(1200.0), format_cost(19.99)
        ('Free', 'N/A', 1200, 19.99)
    """
    if annual_cost is None:
        return UNKNOWN_COST
    if annual_cost == 0:
        return FREE_SENTINEL
    return _plain_number(annual_cost)


def _plain_number(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def storage_number(value: float | None) -> int | float | None:
    """Numeric form written back to stores: whole numbers as int, never the "Free" string."""
    if value is None:
        return None
    return _plain_number(value)


def json_list(values: list[str]) -> str | None:
    """JSON-encode a list for single-cell storage; empty lists are None."""
    return json.dumps(values) if values else None


def joined_list(values: list[str]) -> str | None:
    """Comma-join a list for human-edited cells; empty lists are None."""
    return ", ".join(values) if values else None


def iso_date(value: date | None) -> str | None:
    return value.isoformat() if value else None
