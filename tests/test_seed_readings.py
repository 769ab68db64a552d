"""
tests for the synthetic readings seeding script.
"""

from datetime import date, timedelta
from unittest.mock import patch

from backend.models.vitals import HealthAlert, Reading
from scripts.seed_readings import generate_synthetic_readings, seed_readings, TIME_SLOTS


def test_generate_synthetic_readings_shape():
    """
    test generated readings.

    verifies:
        - three readings per day over the requested days
        - dates end on end_date
        - values stay in realistic bounds
    """
    end = date(2026, 10, 19)

    readings = generate_synthetic_readings(days=10, end_date=end, seed=7)

    assert len(readings) == 10 * len(TIME_SLOTS)
    assert readings[0].date == end - timedelta(days=9)
    assert readings[-1].date == end
    for reading in readings:
        assert 85 <= reading.systolic <= 190
        assert reading.systolic > reading.diastolic
        assert 86 <= reading.oxygen_level <= 100


def test_generate_synthetic_readings_is_reproducible():
    first = generate_synthetic_readings(days=5, end_date=date(2026, 10, 19), seed=1)
    second = generate_synthetic_readings(days=5, end_date=date(2026, 10, 19), seed=1)

    assert [r.vitals() for r in first] == [r.vitals() for r in second]


def test_seed_readings_stores_readings_and_alerts(session_factory, db_session):
    """
    test the seeding workflow against the test database.
    """
    with patch("scripts.seed_readings.get_db_session", session_factory), \
            patch("scripts.seed_readings.init_db"):
        inserted = seed_readings(days=4, seed=3)

    assert inserted == 12
    assert db_session.query(Reading).count() == 12
    # every stored alert belongs to a stored reading
    reading_ids = {r.id for r in db_session.query(Reading).all()}
    assert all(a.vital_id in reading_ids for a in db_session.query(HealthAlert).all())
