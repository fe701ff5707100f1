"""Live notification stream (SSE) and the publish endpoint used by the tools."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from api.deps import get_registry
from shared.models.event import EventType
from shared.notify.registry import SubscriberRegistry, Subscription

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])

KEEPALIVE_SECONDS = 15.0


class NotifyRequest(BaseModel):
    """Request body for publishing an event."""

    type: EventType
    message: str
    data: dict[str, Any] = Field(default_factory=dict)


def _sse(data: dict) -> str:
    return f"data: {json.dumps(data, ensure_ascii=False)}\n\n"


async def event_stream(
    registry: SubscriberRegistry,
    subscription: Subscription,
    keepalive_seconds: float = KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Yield SSE frames for one subscription until the client goes away."""
    try:
        while True:
            try:
                event = await asyncio.wait_for(subscription.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield _sse(event.model_dump(mode="json"))
    finally:
        registry.unsubscribe(subscription)


@router.get("/notifications")
async def notifications() -> StreamingResponse:
    """Server-sent events: ``connected`` first, then every published event."""
    registry = get_registry()
    subscription = registry.subscribe()
    return StreamingResponse(
        event_stream(registry, subscription),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/notify")
async def notify(body: NotifyRequest) -> dict:
    """Broadcast an event to every connected dashboard."""
    await get_registry().publish(body.type, body.message, body.data)
    return {"success": True, "message": "Notification sent"}
