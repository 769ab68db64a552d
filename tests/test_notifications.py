"""
tests for the notification hub.
"""

import json
import threading
from datetime import date
from types import SimpleNamespace

from backend.services.alert_engine import Alert
from backend.services.notifications import (
    NotificationHub,
    build_reading_event,
    format_sse,
)


def test_publish_reaches_only_session_subscribers():
    """
    test that events are scoped to a session.

    verifies:
        - every subscriber of the session receives the event
        - subscribers of other sessions receive nothing
    """
    hub = NotificationHub()
    first = hub.subscribe("session-a")
    second = hub.subscribe("session-a")
    other = hub.subscribe("session-b")

    delivered = hub.publish("session-a", {"event": "vitals_update", "id": 1})

    assert delivered == 2
    assert first.get(timeout=1)["id"] == 1
    assert second.get(timeout=1)["id"] == 1
    assert other.get(timeout=0.01) is None


def test_publish_without_subscribers_is_a_no_op():
    hub = NotificationHub()

    assert hub.publish("nobody", {"event": "vitals_update"}) == 0


def test_events_arrive_in_publish_order():
    hub = NotificationHub()
    subscription = hub.subscribe("s")

    for i in range(5):
        hub.publish("s", {"event": "vitals_update", "id": i})

    assert [subscription.get(timeout=1)["id"] for _ in range(5)] == [0, 1, 2, 3, 4]


def test_full_queue_drops_events_for_slow_viewer():
    """
    test at-most-once delivery to a slow viewer.

    verifies:
        - events beyond the queue size are dropped, not blocked on
        - other viewers still receive them
    """
    hub = NotificationHub(max_queue_size=2)
    slow = hub.subscribe("s")

    assert hub.publish("s", {"id": 1}) == 1
    assert hub.publish("s", {"id": 2}) == 1

    fast = hub.subscribe("s")
    assert hub.publish("s", {"id": 3}) == 1

    assert [slow.get(timeout=1)["id"], slow.get(timeout=1)["id"]] == [1, 2]
    assert slow.get(timeout=0.01) is None
    assert fast.get(timeout=1)["id"] == 3


def test_unsubscribed_viewer_misses_events():
    hub = NotificationHub()
    subscription = hub.subscribe("s")
    hub.unsubscribe(subscription)

    assert hub.publish("s", {"id": 1}) == 0
    assert hub.subscriber_count("s") == 0

    # unsubscribing twice is harmless
    hub.unsubscribe(subscription)


def test_publish_many_counts_all_sessions():
    hub = NotificationHub()
    hub.subscribe("a")
    hub.subscribe("b")
    hub.subscribe("b")

    assert hub.publish_many(["a", "b", "c"], {"id": 1}) == 3


def test_subscriber_blocks_until_event_arrives():
    """
    test cross-thread delivery.
    """
    hub = NotificationHub()
    subscription = hub.subscribe("s")
    received = []

    listener = threading.Thread(target=lambda: received.append(subscription.get(timeout=5)))
    listener.start()
    hub.publish("s", {"id": 99})
    listener.join(timeout=5)

    assert received == [{"id": 99}]


def test_build_reading_event():
    """
    test the vitals_update event payload.
    """
    reading = SimpleNamespace(
        id=5,
        date=date(2026, 10, 19),
        time_slot="evening",
        vitals=lambda: {"systolic": 150, "diastolic": 95, "oxygen_level": None,
                        "blood_sugar": None, "urine_output": None},
    )
    alerts = [Alert(type="blood_pressure", severity="high",
                    message="High blood pressure detected: 150/95 mmHg", reading_id=5)]

    event = build_reading_event(reading, alerts)

    assert event["event"] == "vitals_update"
    assert event["id"] == 5
    assert event["date"] == "2026-10-19"
    assert event["time_slot"] == "evening"
    assert event["vitals"]["systolic"] == 150
    assert event["alerts"] == [alerts[0].to_dict()]
    assert event["timestamp"]


def test_format_sse():
    frame = format_sse({"event": "vitals_update", "id": 1})

    lines = frame.split("\n")
    assert lines[0] == "event: vitals_update"
    assert json.loads(lines[1][len("data: "):]) == {"event": "vitals_update", "id": 1}
    assert frame.endswith("\n\n")
