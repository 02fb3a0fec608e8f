"""
Small, pure helpers for validating request input.

None of these raise on bad input: they return ``None`` (or a caller supplied
default) so that the handlers can decide which client error to report.
"""

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

OBJECT_ID_PATTERN = re.compile(r"[0-9a-fA-F]{24}")
LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")
EPOCH = datetime(1970, 1, 1)


def is_valid_object_id(value: Any) -> bool:
    """Return True if value is a 24 character hexadecimal string."""
    if not value or not isinstance(value, str):
        return False
    return OBJECT_ID_PATTERN.fullmatch(value) is not None


def safe_parse_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """
    Parse value as an integer, falling back to default.

    Strings are parsed by their leading integer ("12abc" -> 12), floats are
    truncated, and anything else yields default.
    """
    if value is None or value == "" or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return default
        return int(value)
    if isinstance(value, str):
        match = LEADING_INT_PATTERN.match(value)
        return int(match.group(1)) if match else default
    return default


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision, which BSON dates cannot hold."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def normalize_datetime(value: datetime) -> datetime:
    """Convert to naive UTC with millisecond precision."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return truncate_to_millis(value)


def utcnow() -> datetime:
    """Current time as stored in the database."""
    return normalize_datetime(datetime.now(timezone.utc))


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 date or datetime string, or a number of milliseconds
    since the Unix epoch; None if it cannot be parsed.
    """
    if isinstance(value, datetime):
        return normalize_datetime(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        try:
            return truncate_to_millis(EPOCH + timedelta(milliseconds=value))
        except OverflowError:
            return None
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return normalize_datetime(parsed)


def sanitize_string(value: Any) -> Optional[str]:
    """Return the trimmed string, or None when it is empty or not a string."""
    if not value or not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed if trimmed else None


def build_pagination_meta(page: int, limit: int, total_items: int) -> Dict[str, Any]:
    """Describe where a page of results sits within the full result set."""
    total_pages = math.ceil(total_items / limit) if limit > 0 else 0
    has_next = page < total_pages
    has_prev = page > 1

    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total_items,
        "limit": limit,
        "hasNextPage": has_next,
        "hasPrevPage": has_prev,
        "nextPage": page + 1 if has_next else None,
        "prevPage": page - 1 if has_prev else None,
    }
