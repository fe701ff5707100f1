"""Notification event broadcast to dashboard subscribers."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Pipeline lifecycle events."""

    SCRAPING_STARTED = "scraping_started"
    DATA_SCRAPED = "data_scraped"
    ANALYSIS_STARTED = "analysis_started"
    NEW_ANALYSIS = "new_analysis"
    CONNECTED = "connected"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class NotificationEvent(BaseModel):
    """An ephemeral event: never persisted, never replayed.

    Serialized on the SSE stream as:
        {"type": "new_analysis", "message": "...",
         "timestamp": "2024-03-01T10:05:00.123456Z", "data": {...}}
    """

    type: EventType
    message: str
    timestamp: str = Field(default_factory=_utc_now_iso)
    data: dict[str, Any] = Field(default_factory=dict)
