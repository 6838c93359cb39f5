"""
Time helpers shared by storage models and chat messages.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)
