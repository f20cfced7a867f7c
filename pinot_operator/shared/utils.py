"""
Pinot Operator - Shared Utilities
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    """Current UTC time as an RFC 3339 timestamp with a ``Z`` suffix."""
    return utcnow().strftime("%Y-%m-%dT%H:%M:%SZ")
