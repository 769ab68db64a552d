"""
tests for the reading submission workflow.

tests payload validation, storage of readings with alerts and the live
update broadcast.
"""

from datetime import date
from unittest.mock import Mock

import pytest
from backend.exceptions import ValidationError, StorageError
from backend.models.vitals import HealthAlert
from backend.repositories.sharing_repository import SharingRepository
from backend.repositories.vitals_repository import VitalsRepository
from backend.services.notifications import NotificationHub
from backend.services.vitals_service import validate_reading_payload, record_reading


def _payload(**overrides) -> dict:
    """
    build a valid submission payload.

    returns:
        dict with date, time_slot and normal vitals, updated with overrides
    """
    data = {
        "date": "2026-10-19",
        "time_slot": "morning",
        "systolic": 120,
        "diastolic": 80,
        "oxygen_level": 97,
        "blood_sugar": 110,
        "urine_output": 400,
        "notes": "after breakfast",
    }
    data.update(overrides)
    return data


def test_validate_reading_payload_normalizes_fields():
    """
    test that a valid payload is parsed.

    verifies:
        - date becomes a date object
        - numeric strings become integers
        - empty values become none
    """
    fields = validate_reading_payload(_payload(systolic="125", blood_sugar="", notes=""))

    assert fields["date"] == date(2026, 10, 19)
    assert fields["time_slot"] == "morning"
    assert fields["systolic"] == 125
    assert fields["blood_sugar"] is None
    assert fields["notes"] is None


@pytest.mark.parametrize("data,message", [
    (["not", "an", "object"], "json object"),
    (_payload(date=None), "date is required"),
    (_payload(date="19/10/2026"), "YYYY-MM-DD"),
    (_payload(time_slot="  "), "time_slot is required"),
    (_payload(systolic=-5), "systolic must be a non-negative integer"),
    (_payload(oxygen_level="ninety"), "oxygen_level must be a non-negative integer"),
    (_payload(blood_sugar=98.6), "blood_sugar must be a non-negative integer"),
    (_payload(diastolic=True), "diastolic must be a non-negative integer"),
    (_payload(blood_sugar="²"), "blood_sugar must be a non-negative integer"),
    (_payload(systolic=10 ** 30), "systolic must not exceed 300"),
    (_payload(oxygen_level="101"), "oxygen_level must not exceed 100"),
    (_payload(notes=12), "notes must be a string"),
])
def test_validate_reading_payload_rejects_malformed_input(data, message):
    with pytest.raises(ValidationError, match=message):
        validate_reading_payload(data)


def test_validate_reading_payload_rejects_empty_reading():
    """
    test that a reading without any vital is rejected.
    """
    data = _payload(systolic=None, diastolic=None, oxygen_level=None,
                    blood_sugar=None, urine_output=None)

    with pytest.raises(ValidationError, match="at least one vital"):
        validate_reading_payload(data)


def test_record_reading_stores_and_broadcasts(db_session):
    """
    test the full submission workflow.

    verifies:
        - reading and alerts are stored
        - every active session's viewers receive the event
        - revoked sessions are not notified
    """
    sharing_repo = SharingRepository(db_session)
    active = sharing_repo.create_session("Ada", "dr@example.com")
    revoked = sharing_repo.create_session("Ada", "other@example.com")
    sharing_repo.deactivate_session(revoked.id)

    hub = NotificationHub()
    viewer = hub.subscribe(active.id)
    revoked_viewer = hub.subscribe(revoked.id)

    reading, alerts = record_reading(
        VitalsRepository(db_session),
        sharing_repo,
        _payload(systolic=150, diastolic=95, oxygen_level=93),
        hub
    )

    assert reading.id is not None
    assert [(a.type, a.severity) for a in alerts] == [("blood_pressure", "high"), ("oxygen", "moderate")]
    assert db_session.query(HealthAlert).count() == 2

    event = viewer.get(timeout=1)
    assert event["event"] == "vitals_update"
    assert event["id"] == reading.id
    assert event["date"] == "2026-10-19"
    assert event["time_slot"] == "morning"
    assert event["vitals"]["systolic"] == 150
    assert [a["severity"] for a in event["alerts"]] == ["high", "moderate"]
    assert "timestamp" in event

    assert revoked_viewer.get(timeout=0.01) is None


def test_record_reading_rejects_before_storing(db_session):
    """
    test that invalid payloads store nothing and notify nobody.
    """
    vitals_repo = VitalsRepository(db_session)
    hub = Mock(spec=NotificationHub)

    with pytest.raises(ValidationError):
        record_reading(vitals_repo, SharingRepository(db_session), {"date": "2026-10-19", "time_slot": "am"}, hub)

    assert vitals_repo.count_readings() == 0
    hub.publish_many.assert_not_called()


def test_record_reading_propagates_storage_error():
    vitals_repo = Mock(spec=VitalsRepository)
    vitals_repo.add_reading.side_effect = StorageError("disk full")
    hub = Mock(spec=NotificationHub)

    with pytest.raises(StorageError):
        record_reading(vitals_repo, Mock(spec=SharingRepository), _payload(), hub)

    hub.publish_many.assert_not_called()


def test_record_reading_survives_session_lookup_failure(db_session):
    """
    test that a failed session lookup does not fail a stored submission.
    """
    sharing_repo = Mock(spec=SharingRepository)
    sharing_repo.list_active_session_ids.side_effect = StorageError("timeout")
    hub = Mock(spec=NotificationHub)

    reading, alerts = record_reading(VitalsRepository(db_session), sharing_repo, _payload(), hub)

    assert reading.id is not None
    assert alerts == []
    hub.publish_many.assert_not_called()
