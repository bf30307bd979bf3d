"""Normalization helpers.

Centralizes defensive parsing of backend rows: coordinates, timestamps and
free-form status text.
"""

from __future__ import annotations

import math
import re
from datetime import UTC, date, datetime, tzinfo
from typing import Any

# Epoch values below this are seconds, at or above it milliseconds.
_MS_THRESHOLD = 1e12

_SEPARATORS = re.compile(r"[_-]+")
_WHITESPACE = re.compile(r"\s+")


def safe_float(value: Any) -> float | None:
    """Parse *value* as a finite float, or ``None``.

    ``None``, ``""``, booleans, non-numeric strings, NaN and infinities all
    normalize to ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def normalize_coordinate(value: Any) -> float | None:
    return safe_float(value)


def normalize_lat_lng_pair(lat_value: Any, lng_value: Any) -> tuple[float, float] | None:
    """Normalize a stored point (e.g. a violation log), or ``None``.

    Some records were saved with latitude and longitude swapped; when the
    latitude is out of range but the longitude would be a valid latitude the
    pair is swapped back. Out-of-range pairs are rejected.
    """
    lat = normalize_coordinate(lat_value)
    lng = normalize_coordinate(lng_value)
    if lat is None or lng is None:
        return None
    if abs(lat) > 90 and abs(lng) <= 90:
        lat, lng = lng, lat
    if abs(lat) > 90 or abs(lng) > 180:
        return None
    return lat, lng


def is_within_bounds(lat: float, lng: float, bounds: tuple[float, float, float, float]) -> bool:
    """``bounds`` is ``(min_lat, max_lat, min_lng, max_lng)``."""
    min_lat, max_lat, min_lng, max_lng = bounds
    return min_lat <= lat <= max_lat and min_lng <= lng <= max_lng


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a backend timestamp into a datetime.

    - ``datetime`` values are returned unchanged
    - numbers are epoch seconds or milliseconds (UTC)
    - strings are ISO 8601 (``Z`` suffix accepted) or numeric epochs

    ISO strings without an offset stay naive and are interpreted as local
    wall-clock time by :func:`local_date`.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return _from_epoch(float(value))

    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    numeric = safe_float(text)
    if numeric is None:
        return None
    return _from_epoch(numeric)


def _from_epoch(value: float) -> datetime | None:
    if not math.isfinite(value) or value <= 0:
        return None
    if value >= _MS_THRESHOLD:
        value /= 1000.0
    try:
        return datetime.fromtimestamp(value, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def local_date(moment: datetime, tz: tzinfo | None = None) -> date:
    """Calendar day of *moment* in *tz* (host local time when ``None``)."""
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(tz).date()


def normalize_status_text(value: Any) -> str:
    """Lowercase, trim, turn ``_``/``-`` runs into spaces, collapse whitespace."""
    if value is None:
        return ""
    text = str(value).strip().lower()
    text = _SEPARATORS.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()
