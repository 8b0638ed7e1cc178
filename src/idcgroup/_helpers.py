"""Shared helper functions."""

from __future__ import annotations

from datetime import UTC, datetime


def now_iso() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def blank(value: object) -> bool:
    """True when *value* is not a string or is empty after trimming.

    Examples:
        >>> blank("  ")
        True
        >>> blank(42)
        True
        >>> blank("alice")
        False
    """
    return not isinstance(value, str) or not value.strip()
