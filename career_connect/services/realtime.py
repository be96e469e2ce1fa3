"""
Realtime Fan-out - push new messages and request changes to live viewers.

Topics:
- conversation:<id>                 -> message.created
- interview_requests:<participant>  -> interview_request.created / .updated

Each Subscription owns a queue bound to the event loop it was opened on.
publish() never waits on a consumer: it schedules delivery onto each
subscriber's loop with call_soon_threadsafe, so it may be called from any
thread right after a commit. Per subscriber, events of one topic arrive in
publish order.
"""
import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from career_connect.schemas.schemas import RealtimeEvent

logger = logging.getLogger(__name__)

MESSAGE_CREATED = "message.created"
REQUEST_CREATED = "interview_request.created"
REQUEST_UPDATED = "interview_request.updated"

_CLOSED = object()


def conversation_topic(conversation_id: int) -> str:
    return f"conversation:{conversation_id}"


def interview_topic(participant_id: int) -> str:
    return f"interview_requests:{participant_id}"


class Subscription:
    """
    One live view of a topic. Async-iterate it to receive events; close() to
    stop delivery immediately.
    """

    def __init__(self, broker: "RealtimeBroker", topic: str, loop: asyncio.AbstractEventLoop):
        self.topic = topic
        self._broker = broker
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def _deliver(self, item) -> None:
        # Runs on the subscriber's loop
        if item is _CLOSED:
            while not self._queue.empty():
                self._queue.get_nowait()
            self._queue.put_nowait(_CLOSED)
            return
        if not self.closed:
            self._queue.put_nowait(item)

    def _schedule(self, item) -> bool:
        try:
            self._loop.call_soon_threadsafe(self._deliver, item)
            return True
        except RuntimeError:
            # Loop already closed; the view is gone
            return False

    async def next_event(self) -> Optional[RealtimeEvent]:
        """Wait for the next event. Returns None once the subscription is closed."""
        if self.closed:
            return None
        item = await self._queue.get()
        if item is _CLOSED or self.closed:
            return None
        return item

    def __aiter__(self):
        return self

    async def __anext__(self) -> RealtimeEvent:
        event = await self.next_event()
        if event is None:
            raise StopAsyncIteration
        return event

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._broker.unsubscribe(self)
        # Drops anything already queued and wakes a waiting consumer
        self._schedule(_CLOSED)


class RealtimeBroker:
    """In-process subscriber registry keyed by topic."""

    def __init__(self):
        self._subscribers: Dict[str, Set[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topic: str, loop: Optional[asyncio.AbstractEventLoop] = None) -> Subscription:
        """Register a new subscription. Must be called with a loop running (or given)."""
        subscription = Subscription(self, topic, loop or asyncio.get_running_loop())
        with self._lock:
            self._subscribers.setdefault(topic, set()).add(subscription)
        logger.debug("Subscribed to %s", topic)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.topic)
            if not subscribers:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[subscription.topic]
        logger.debug("Unsubscribed from %s", subscription.topic)

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, ()))

    def publish(self, topic: str, event_type: str, payload: Dict[str, Any]) -> int:
        """
        Fan an event out to every live subscriber of topic.

        Returns the number of subscribers the event was scheduled for.
        """
        event = RealtimeEvent(
            type=event_type,
            topic=topic,
            payload=payload,
            published_at=datetime.now(timezone.utc),
        )
        with self._lock:
            targets: List[Subscription] = list(self._subscribers.get(topic, ()))

        delivered = 0
        for subscription in targets:
            if subscription._schedule(event):
                delivered += 1
            else:
                logger.warning("Dropping subscriber on %s: event loop is closed", topic)
                subscription.closed = True
                self.unsubscribe(subscription)
        return delivered


# Singleton instance
_broker: RealtimeBroker = None


def get_broker() -> RealtimeBroker:
    """Get or create the process-wide broker (singleton pattern)"""
    global _broker
    if _broker is None:
        _broker = RealtimeBroker()
    return _broker
