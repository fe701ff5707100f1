"""HTTP client that publishes pipeline events to the notification server.

Used by the analyzer process, which does not own the subscriber registry.
Notification is a side channel: every failure is logged and swallowed so it
never breaks the analysis it reports on.
"""

import logging
from typing import Any

import aiohttp

from shared.models.event import EventType

logger = logging.getLogger(__name__)


class NotificationClient:
    """POSTs ``{type, message, data}`` to ``{api_url}/api/notify``."""

    def __init__(self, api_url: str = "http://localhost:3001", timeout: float = 5.0) -> None:
        self.api_url = api_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def publish(
        self,
        event_type: EventType | str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> dict | None:
        body = {
            "type": EventType(event_type).value,
            "message": message,
            "data": data or {},
        }
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(f"{self.api_url}/api/notify", json=body) as resp:
                    resp.raise_for_status()
                    result = await resp.json()
            logger.info("Notification sent: %s - %s", body["type"], message)
            return result
        except Exception as e:
            logger.warning("Failed to send notification %s: %s", body["type"], e)
            return None

    async def notify_analysis_started(self, filename: str) -> dict | None:
        return await self.publish(
            EventType.ANALYSIS_STARTED,
            f"Starting analysis of: {filename}",
            {"filename": filename},
        )

    async def notify_analysis_completed(
        self,
        filename: str,
        risk_level: str,
        flagged: bool,
        retained: bool,
    ) -> dict | None:
        return await self.publish(
            EventType.NEW_ANALYSIS,
            f"Analysis completed: {filename}",
            {
                "filename": filename,
                "riskLevel": risk_level,
                "flagged": flagged,
                "retained": retained,
            },
        )
