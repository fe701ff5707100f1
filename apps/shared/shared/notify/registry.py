"""In-process fan-out of notification events to live subscribers.

The registry is owned by the API server (created in the app lifespan) and
handed to whatever needs to publish. Delivery is best-effort:

- a new subscription immediately holds a ``connected`` event
- ``publish`` timestamps the event and offers it to every open subscription
- a subscription that is closed or cannot keep up is dropped silently
- nothing is stored: a client that reconnects does not see missed events
"""

import asyncio
import logging
from typing import Any

from shared.models.event import EventType, NotificationEvent

logger = logging.getLogger(__name__)

# Per-subscriber queue bound; a subscriber this far behind is dropped.
MAX_PENDING_EVENTS = 100


class Subscription:
    """One long-lived subscriber connection."""

    def __init__(self, max_pending: int = MAX_PENDING_EVENTS) -> None:
        self._queue: asyncio.Queue[NotificationEvent] = asyncio.Queue(maxsize=max_pending)
        self.closed = False

    def deliver(self, event: NotificationEvent) -> None:
        if self.closed:
            raise ConnectionError("subscription closed")
        self._queue.put_nowait(event)

    async def get(self) -> NotificationEvent:
        return await self._queue.get()

    def pending(self) -> list[NotificationEvent]:
        """Drain and return whatever is queued without waiting."""
        events = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    def close(self) -> None:
        self.closed = True


class SubscriberRegistry:
    """Set of open subscriptions plus the publish operation."""

    def __init__(self, max_pending: int = MAX_PENDING_EVENTS) -> None:
        self._subscriptions: list[Subscription] = []
        self._max_pending = max_pending

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> Subscription:
        subscription = Subscription(self._max_pending)
        subscription.deliver(
            NotificationEvent(type=EventType.CONNECTED, message="Connected to notifications")
        )
        self._subscriptions.append(subscription)
        logger.debug("Subscriber connected (total=%d)", len(self._subscriptions))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.close()
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug("Subscriber disconnected (total=%d)", len(self._subscriptions))

    async def publish(
        self,
        event_type: EventType | str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> NotificationEvent:
        """Broadcast an event to every open subscription. Never raises on delivery."""
        event = NotificationEvent(type=EventType(event_type), message=message, data=data or {})
        for subscription in list(self._subscriptions):
            try:
                subscription.deliver(event)
            except (asyncio.QueueFull, ConnectionError) as e:
                logger.warning("Dropping subscriber after failed delivery: %s", e or type(e).__name__)
                self.unsubscribe(subscription)
        logger.info("Broadcast %s to %d subscriber(s): %s", event.type.value, len(self._subscriptions), message)
        return event

    async def close(self) -> None:
        for subscription in list(self._subscriptions):
            self.unsubscribe(subscription)
