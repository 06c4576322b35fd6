"""Time and timestamp helpers for YouTube API payloads."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


def parse_rfc3339(timestamp: Optional[str]) -> Optional[datetime]:
    """Parse an API timestamp into an aware UTC datetime, or None if unusable."""
    if not timestamp:
        return None
    try:
        cleaned = timestamp.strip().replace("Z", "+00:00")
        parsed = datetime.fromisoformat(cleaned)
    except ValueError:
        logger.warning("Failed to parse timestamp %s", timestamp)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


__all__ = ["parse_rfc3339"]
