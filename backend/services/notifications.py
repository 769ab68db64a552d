"""
in-process publish/subscribe hub for live dashboard updates.

viewers of a sharing session subscribe and receive vitals_update events as
new readings are recorded. delivery is best-effort and at-most-once: an event
is dropped for a subscriber whose queue is full, and a viewer that is not
connected when an event is published never sees it.
"""

import json
import logging
import queue
import threading
from datetime import datetime, UTC
from typing import Any, Dict, Iterable, List, Optional

from backend.services.alert_engine import Alert

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


class Subscription:
    """
    one viewer's connection to a sharing session.

    events are read from the subscription's own bounded queue.
    """

    def __init__(self, session_id: str, max_queue_size: int = DEFAULT_QUEUE_SIZE):
        self.session_id = session_id
        self.queue: "queue.Queue[Dict[str, Any]]" = queue.Queue(maxsize=max_queue_size)

    def get(self, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """
        wait for the next event.

        args:
            timeout: seconds to wait, none blocks until an event arrives

        returns:
            the event, or none if the timeout expired
        """
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None


class NotificationHub:
    """
    fan-out of events to the subscribers of each sharing session.

    usage:
        hub = NotificationHub()
        subscription = hub.subscribe(session_id)
        hub.publish(session_id, event)
        event = subscription.get(timeout=15)
        hub.unsubscribe(subscription)
    """

    def __init__(self, max_queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self.max_queue_size = max_queue_size
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, session_id: str) -> Subscription:
        """register a new viewer for a session."""
        subscription = Subscription(session_id, self.max_queue_size)
        with self._lock:
            self._subscribers.setdefault(session_id, []).append(subscription)
        logger.info("viewer joined session %s", session_id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """remove a viewer; unknown subscriptions are ignored."""
        with self._lock:
            subscribers = self._subscribers.get(subscription.session_id, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscribers.pop(subscription.session_id, None)
        logger.info("viewer left session %s", subscription.session_id)

    def subscriber_count(self, session_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(session_id, []))

    def publish(self, session_id: str, event: Dict[str, Any]) -> int:
        """
        deliver an event to every current subscriber of a session.

        args:
            session_id: target sharing session
            event: json-serializable event payload

        returns:
            number of subscribers the event was queued for
        """
        with self._lock:
            subscribers = list(self._subscribers.get(session_id, []))

        delivered = 0
        for subscription in subscribers:
            try:
                subscription.queue.put_nowait(event)
                delivered += 1
            except queue.Full:
                logger.warning(
                    "dropping %s event for a slow viewer of session %s",
                    event.get("event", "unknown"), session_id
                )

        return delivered

    def publish_many(self, session_ids: Iterable[str], event: Dict[str, Any]) -> int:
        """
        deliver an event to the subscribers of several sessions.

        returns:
            total number of subscribers reached
        """
        return sum(self.publish(session_id, event) for session_id in session_ids)

    def clear(self) -> None:
        """
        drop every subscriber.

        useful for testing cleanup.
        """
        with self._lock:
            self._subscribers.clear()


def build_reading_event(reading: Any, alerts: Iterable[Alert]) -> Dict[str, Any]:
    """
    build the vitals_update event broadcast when a reading is recorded.

    args:
        reading: stored reading instance
        alerts: alerts evaluated for the reading

    returns:
        dict with event, id, date, time_slot, vitals, alerts and timestamp
    """
    return {
        "event": "vitals_update",
        "id": reading.id,
        "date": reading.date.isoformat() if reading.date else None,
        "time_slot": reading.time_slot,
        "vitals": reading.vitals(),
        "alerts": [alert.to_dict() for alert in alerts],
        "timestamp": datetime.now(UTC).isoformat(),
    }


def format_sse(event: Dict[str, Any]) -> str:
    """
    render an event as a server-sent-events frame.

    args:
        event: event payload; its "event" key names the sse event

    returns:
        frame text terminated by a blank line
    """
    name = event.get("event", "message")
    return f"event: {name}\ndata: {json.dumps(event)}\n\n"
