from datetime import datetime, timezone
from typing import Optional


def now_iso8601(now: Optional[datetime] = None) -> str:
    """UTC timestamp with second precision, e.g. ``2025-01-31T12:00:05Z``."""
    moment = now or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
