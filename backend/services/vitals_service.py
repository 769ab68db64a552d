"""
reading submission workflow.

validates a submitted reading, evaluates its alerts, stores both and
broadcasts the result to the live viewers of every active sharing session.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from backend.exceptions import ValidationError, StorageError
from backend.models.vitals import Reading, VITAL_FIELDS
from backend.repositories.sharing_repository import SharingRepository
from backend.repositories.vitals_repository import VitalsRepository
from backend.services.alert_engine import Alert, evaluate_reading
from backend.services.notifications import NotificationHub, build_reading_event

logger = logging.getLogger(__name__)


# upper bound accepted for each vital; anything above is a typo or garbage
VITAL_MAXIMUMS = {
    "systolic": 300,
    "diastolic": 250,
    "oxygen_level": 100,
    "blood_sugar": 2000,
    "urine_output": 10000,
}


def _parse_vital(name: str, value: Any) -> Optional[int]:
    """
    parse one vital value from a submitted payload.

    empty values mean "not measured". numeric strings are accepted since
    html forms submit text.

    raises:
        ValidationError: if the value is not an integer between 0 and the
            vital's maximum
    """
    if value is None or value == "":
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a non-negative integer")

    if isinstance(value, str):
        value = value.strip()
        # isdigit() alone accepts characters like "²" that int() rejects
        if not (value.isascii() and value.isdigit()):
            raise ValidationError(f"{name} must be a non-negative integer")
        value = int(value)

    if not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer")

    if value > VITAL_MAXIMUMS[name]:
        raise ValidationError(f"{name} must not exceed {VITAL_MAXIMUMS[name]}")

    return value


def validate_reading_payload(data: Any) -> Dict[str, Any]:
    """
    check a submitted reading and normalize its fields.

    args:
        data: decoded json body

    returns:
        dict of Reading column values (date parsed, vitals as ints or none)

    raises:
        ValidationError: if the payload is malformed or carries no vitals
    """
    if not isinstance(data, dict):
        raise ValidationError("request body must be a json object")

    raw_date = data.get("date")
    if not raw_date or not isinstance(raw_date, str):
        raise ValidationError("date is required")
    try:
        reading_date = date.fromisoformat(raw_date)
    except ValueError:
        raise ValidationError("date must be in YYYY-MM-DD format")

    time_slot = data.get("time_slot")
    if not isinstance(time_slot, str) or not time_slot.strip():
        raise ValidationError("time_slot is required")

    vitals = {name: _parse_vital(name, data.get(name)) for name in VITAL_FIELDS}
    if all(value is None for value in vitals.values()):
        raise ValidationError("at least one vital sign measurement is required")

    notes = data.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")

    return {
        "date": reading_date,
        "time_slot": time_slot.strip(),
        **vitals,
        "notes": notes or None,
    }


def record_reading(
    vitals_repo: VitalsRepository,
    sharing_repo: SharingRepository,
    data: Any,
    hub: NotificationHub,
) -> Tuple[Reading, List[Alert]]:
    """
    orchestrate a reading submission.

    args:
        vitals_repo: reading store
        sharing_repo: source of the sessions to notify
        data: submitted payload
        hub: notification fan-out

    returns:
        tuple of (stored reading, alerts stamped with its id)

    raises:
        ValidationError: if the payload is rejected (nothing is stored)
        StorageError: if the reading cannot be stored
    """
    fields = validate_reading_payload(data)
    reading = Reading(**fields)

    alerts = list(evaluate_reading(reading))
    stored_alerts = vitals_repo.add_reading(reading, alerts)

    for alert in stored_alerts:
        logger.warning("reading %s: %s (%s)", reading.id, alert.message, alert.severity)

    # the reading is committed at this point; notification is best-effort
    try:
        session_ids = sharing_repo.list_active_session_ids()
    except StorageError as e:
        logger.warning("skipping live update for reading %s: %s", reading.id, e)
        return reading, stored_alerts

    event = build_reading_event(reading, stored_alerts)
    delivered = hub.publish_many(session_ids, event)
    logger.info("reading %s recorded, live update sent to %d viewers", reading.id, delivered)

    return reading, stored_alerts
