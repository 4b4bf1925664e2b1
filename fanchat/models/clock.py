"""
Server-side clock for persisted timestamps
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC with microseconds, so same-second messages still order by arrival"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
