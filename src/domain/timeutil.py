"""
Timestamp normalization for stored invite fields.

Expiry values reach us in several shapes: native datetimes, plain dates,
ISO-8601 strings, epoch numbers, exported document-store timestamps
({"seconds": ..., "nanos": ...}) and timestamp objects exposing a
conversion method. Everything is normalized to an aware UTC datetime.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, date, datetime, time
from typing import Any

# Epoch values above this are read as milliseconds (JS Date convention).
_MS_THRESHOLD = 100_000_000_000

_CONVERTERS = ("to_datetime", "ToDatetime", "toDate")


def _from_epoch(value: float) -> datetime:
    if abs(value) > _MS_THRESHOLD:
        value = value / 1000
    try:
        return datetime.fromtimestamp(value, UTC)
    except (OverflowError, OSError) as e:
        raise ValueError(f"Epoch value out of range: {value!r}") from e


def to_utc_instant(value: Any) -> datetime | None:
    """
    Normalize `value` to an aware UTC datetime.

    Returns None for missing values. Naive datetimes are treated as UTC.
    Raises ValueError for values that cannot be read as an instant.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)

    if isinstance(value, bool):
        raise ValueError(f"Not a timestamp: {value!r}")

    if isinstance(value, int | float):
        return _from_epoch(value)

    if isinstance(value, str):
        text = value.strip()
        # Eight digits is a basic-format ISO date (YYYYMMDD), not an epoch value.
        if not (len(text) == 8 and text.isdigit()):
            try:
                return _from_epoch(float(text))
            except ValueError:
                pass
        try:
            return to_utc_instant(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError as e:
            raise ValueError(f"Unreadable timestamp string: {value!r}") from e

    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            raise ValueError(f"Timestamp mapping without seconds: {value!r}")
        nanos = value.get("nanos", value.get("nanoseconds", value.get("_nanoseconds", 0))) or 0
        return datetime.fromtimestamp(int(seconds) + int(nanos) / 1_000_000_000, UTC)

    for name in _CONVERTERS:
        converter = getattr(value, name, None)
        if callable(converter):
            return to_utc_instant(converter())

    raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")


def to_iso(value: Any) -> str | None:
    """ISO-8601 (UTC, millisecond precision, `Z` suffix) or None if absent/unreadable."""
    try:
        instant = to_utc_instant(value)
    except ValueError:
        return None
    if instant is None:
        return None
    return instant.isoformat(timespec="milliseconds").replace("+00:00", "Z")
