"""
Event bus for decoupled combat system communication.

Combat subsystems never call each other's listeners directly. They publish
events here and interested parties (the log manager, ability triggers,
presentation adapters) subscribe to the event types they care about.
"""

import threading
from collections import Counter, defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .events import GameEvent, EventType


class EventPriority(Enum):
    """Event processing priorities. Lower values are delivered first."""
    CRITICAL = 0
    HIGH = 1
    NORMAL = 2
    LOW = 3


@dataclass
class QueuedEvent:
    """An event waiting for delivery, with its publish metadata."""
    event: "GameEvent"
    priority: EventPriority = EventPriority.NORMAL
    sequence: int = 0
    source: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __lt__(self, other: "QueuedEvent") -> bool:
        # Same priority keeps publish order
        return (self.priority.value, self.sequence) < (other.priority.value, other.sequence)


EventSubscriber = Callable[["GameEvent"], None]


@dataclass
class Subscription:
    callback: EventSubscriber
    name: str


def _subscriber_name(subscriber: EventSubscriber, name: Optional[str]) -> str:
    return name or getattr(subscriber, "__qualname__", None) or getattr(
        subscriber, "__name__", "anonymous"
    )


class EventManager:
    """Priority-ordered event bus owned by one battle session.

    Events are queued by ``publish`` and delivered in priority then publish
    order by ``process_events``. ``publish_immediate`` bypasses the queue
    for listeners that must run before the publisher continues. A failing
    subscriber is counted and traced but never stops delivery to the rest.

    Args:
        enable_debug_logging: Trace publishes and deliveries to the debug callback
        history_size: Number of delivered events kept for inspection
    """

    def __init__(self, enable_debug_logging: bool = False, history_size: int = 1000):
        self.enable_debug_logging = enable_debug_logging

        self._subscriptions: dict["EventType", list[Subscription]] = defaultdict(list)
        self._universal: list[Subscription] = []
        self._queue: deque[QueuedEvent] = deque()
        self._history: deque[QueuedEvent] = deque(maxlen=history_size)

        self._published = 0
        self._processed = 0
        self._subscriber_errors = 0
        self._published_by_type: Counter[str] = Counter()

        self._lock = threading.RLock()
        self._debug_callback: Optional[Callable[[str], None]] = None

    def set_debug_callback(self, callback: Optional[Callable[[str], None]]) -> None:
        self._debug_callback = callback

    def _debug_log(self, message: str) -> None:
        if self.enable_debug_logging and self._debug_callback:
            self._debug_callback(f"[EVENT] {message}")

    # ============== Subscriptions ==============

    def subscribe(
        self,
        event_type: "EventType",
        subscriber: EventSubscriber,
        subscriber_name: Optional[str] = None
    ) -> Subscription:
        """Deliver events of one type to ``subscriber``.

        Args:
            event_type: The type of events to receive
            subscriber: Callback taking the event
            subscriber_name: Name used in debug traces and error reports

        Returns:
            The subscription record
        """
        subscription = Subscription(subscriber, _subscriber_name(subscriber, subscriber_name))
        with self._lock:
            self._subscriptions[event_type].append(subscription)
        self._debug_log(f"Subscribed {subscription.name} to {event_type.name} events")
        return subscription

    def subscribe_all(
        self,
        subscriber: EventSubscriber,
        subscriber_name: Optional[str] = None
    ) -> Subscription:
        """Deliver every event to ``subscriber``, after the typed subscribers."""
        subscription = Subscription(subscriber, _subscriber_name(subscriber, subscriber_name))
        with self._lock:
            self._universal.append(subscription)
        self._debug_log(f"Subscribed {subscription.name} to ALL events")
        return subscription

    def unsubscribe(self, event_type: "EventType", subscriber: EventSubscriber) -> bool:
        """Stop delivering one event type to ``subscriber``.

        Returns:
            True if a subscription was found and removed
        """
        with self._lock:
            subscriptions = self._subscriptions.get(event_type, [])
            for index, subscription in enumerate(subscriptions):
                if subscription.callback == subscriber:
                    del subscriptions[index]
                    self._debug_log(f"Unsubscribed {subscription.name} from {event_type.name} events")
                    return True
        return False

    def subscriber_count(self, event_type: Optional["EventType"] = None) -> int:
        with self._lock:
            if event_type is not None:
                return len(self._subscriptions.get(event_type, []))
            return sum(len(subs) for subs in self._subscriptions.values())

    # ============== Publishing ==============

    def _stamp(self, event: "GameEvent", priority: EventPriority, source: str) -> QueuedEvent:
        with self._lock:
            self._published += 1
            self._published_by_type[event.event_type.name] += 1
            return QueuedEvent(event=event, priority=priority,
                               sequence=self._published, source=source)

    def publish(
        self,
        event: "GameEvent",
        priority: EventPriority = EventPriority.NORMAL,
        source: Optional[str] = None
    ) -> None:
        """Queue an event for the next ``process_events`` call.

        Args:
            event: The event to publish
            priority: Delivery priority
            source: Publisher name for debug traces
        """
        queued = self._stamp(event, priority, source or "unknown")
        with self._lock:
            self._queue.append(queued)
        self._debug_log(
            f"Published {event.__class__.__name__} "
            f"(priority: {priority.name}, source: {queued.source})"
        )

    def publish_immediate(self, event: "GameEvent", source: Optional[str] = None) -> None:
        """Deliver an event synchronously, ahead of anything queued.

        Used where subscribers must observe an event before the publisher
        continues, e.g. damage listeners running ahead of the defeat check.
        """
        self._deliver(self._stamp(event, EventPriority.CRITICAL, source or "immediate"))

    def process_events(self, max_events: Optional[int] = None) -> int:
        """Deliver queued events in priority order.

        Events published by subscribers while processing are delivered in
        the same call.

        Args:
            max_events: Maximum number of events to deliver (None for all)

        Returns:
            Number of events delivered
        """
        delivered = 0

        while True:
            with self._lock:
                if not self._queue:
                    break
                batch = sorted(self._queue)
                self._queue.clear()

            for index, queued in enumerate(batch):
                if max_events is not None and delivered >= max_events:
                    with self._lock:
                        self._queue.extendleft(reversed(batch[index:]))
                    return delivered
                self._deliver(queued)
                delivered += 1

        return delivered

    def _deliver(self, queued: QueuedEvent) -> None:
        event = queued.event

        with self._lock:
            self._history.append(queued)
            self._processed += 1
            targets = list(self._subscriptions.get(event.event_type, [])) + list(self._universal)

        self._debug_log(
            f"Processing {event.__class__.__name__} from {queued.source} (turn: {event.turn})"
        )

        for subscription in targets:
            try:
                subscription.callback(event)
            except Exception as e:
                with self._lock:
                    self._subscriber_errors += 1
                self._debug_log(
                    f"Error in subscriber {subscription.name} "
                    f"handling {event.__class__.__name__}: {e}"
                )

    # ============== Queue and diagnostics ==============

    def clear_queue(self) -> int:
        """Drop all queued events.

        Returns:
            Number of events that were dropped
        """
        with self._lock:
            count = len(self._queue)
            self._queue.clear()
        self._debug_log(f"Cleared {count} queued events")
        return count

    def has_queued_events(self) -> bool:
        with self._lock:
            return bool(self._queue)

    def get_statistics(self) -> dict[str, Any]:
        with self._lock:
            return {
                'events_published': self._published,
                'events_processed': self._processed,
                'events_queued': len(self._queue),
                'subscriber_errors': self._subscriber_errors,
                'subscribers_count': sum(len(subs) for subs in self._subscriptions.values()),
                'universal_subscribers_count': len(self._universal),
                'published_by_type': dict(self._published_by_type),
                'event_history_size': len(self._history),
            }

    def get_recent_events(self, count: int = 10) -> list[dict[str, Any]]:
        """Summaries of the most recently delivered events, oldest first."""
        with self._lock:
            recent = list(self._history)[-count:]
        return [
            {
                'event_type': queued.event.__class__.__name__,
                'turn': queued.event.turn,
                'priority': queued.priority.name,
                'source': queued.source,
                'timestamp': queued.timestamp.isoformat(),
            }
            for queued in recent
        ]

    def shutdown(self) -> None:
        """Drop every subscriber, queued event and history entry."""
        with self._lock:
            self._subscriptions.clear()
            self._universal.clear()
            self._queue.clear()
            self._history.clear()
        self._debug_log("Event manager shutdown complete")
