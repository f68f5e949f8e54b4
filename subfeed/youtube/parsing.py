"""Helpers for pulling typed values out of raw YouTube API resources."""

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

# Preferred thumbnail sizes for feed cards, best fit first
FEED_THUMBNAIL_ORDER = ("medium", "high", "default", "standard", "maxres")


def parse_timestamp(value: Any) -> datetime:
    """Parse an RFC 3339 timestamp such as ``2024-01-15T10:30:00Z``.

    Raises:
        ValueError: If the value is missing, not a string, or has no UTC offset
    """
    if not isinstance(value, str) or not value:
        raise ValueError(f"Missing timestamp: {value!r}")

    # Convert Z to +00:00 for fromisoformat
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp has no UTC offset: {value!r}")
    return parsed


def as_mapping(value: Any) -> Mapping[str, Any]:
    """Return ``value`` if it is a mapping, otherwise an empty dict."""
    return value if isinstance(value, Mapping) else {}


def pick_thumbnail(
    thumbnails: Any,
    order: Iterable[str] = FEED_THUMBNAIL_ORDER,
) -> str:
    """Return the first available thumbnail URL in ``order``, or ``""``.

    Sizes that are not objects or carry a non-string URL are skipped.
    """
    thumbnails = as_mapping(thumbnails)
    for size in order:
        url = as_mapping(thumbnails.get(size)).get("url")
        if url and isinstance(url, str):
            return url
    return ""
