"""Timestamps for stored rows.

All ``created_at`` / ``updated_at`` columns are ``DateTime(timezone=True)``
and take their value from ``utc_now``.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
