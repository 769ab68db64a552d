"""
synthetic home vitals generator and database seeding script.

generates a few weeks of realistic readings (three time slots a day) with a
slow upward drift in blood pressure and blood sugar, evaluates alerts for
each reading and stores both.
"""

import logging
import random
from datetime import date, timedelta
from typing import List, Optional

from backend.config import configure_logging, get_db_session, init_db
from backend.models.vitals import Reading
from backend.repositories.vitals_repository import VitalsRepository
from backend.services.alert_engine import evaluate_reading

logger = logging.getLogger(__name__)

TIME_SLOTS = ("morning", "afternoon", "evening")

BASELINE = {
    "systolic": 124.0,
    "diastolic": 80.0,
    "oxygen_level": 97.0,
    "blood_sugar": 115.0,
    "urine_output": 450.0,
}


def generate_synthetic_readings(
    days: int = 30,
    end_date: Optional[date] = None,
    seed: Optional[int] = None
) -> List[Reading]:
    """
    generate synthetic readings with a slow drift.

    uses a random walk per metric. blood pressure and blood sugar drift up
    over time so the later days show an increasing trend and some alerts.

    args:
        days: number of days to generate (default 30)
        end_date: last day (defaults to today)
        seed: random seed for reproducible data

    returns:
        list of reading instances ready for storage, oldest first
    """
    rng = random.Random(seed)
    end_date = end_date or date.today()
    start_date = end_date - timedelta(days=days - 1)

    current = dict(BASELINE)

    # drift per reading
    systolic_trend = 0.25
    sugar_trend = 0.6

    readings = []
    for day_offset in range(days):
        reading_date = start_date + timedelta(days=day_offset)

        for time_slot in TIME_SLOTS:
            current["systolic"] += rng.gauss(systolic_trend, 3.0)
            current["diastolic"] += rng.gauss(0.05, 2.0)
            current["oxygen_level"] += rng.gauss(0, 0.8)
            current["blood_sugar"] += rng.gauss(sugar_trend, 8.0)
            current["urine_output"] += rng.gauss(0, 40.0)

            # clamp to physiologically realistic bounds
            current["systolic"] = max(85, min(190, current["systolic"]))
            current["diastolic"] = max(55, min(120, current["diastolic"]))
            current["oxygen_level"] = max(86, min(100, current["oxygen_level"]))
            current["blood_sugar"] = max(60, min(260, current["blood_sugar"]))
            current["urine_output"] = max(100, min(900, current["urine_output"]))

            # keep a realistic pulse pressure
            if current["systolic"] < current["diastolic"] + 20:
                current["systolic"] = current["diastolic"] + 20

            # not every metric is measured every time
            readings.append(Reading(
                date=reading_date,
                time_slot=time_slot,
                systolic=int(round(current["systolic"])),
                diastolic=int(round(current["diastolic"])),
                oxygen_level=int(round(current["oxygen_level"])),
                blood_sugar=int(round(current["blood_sugar"])) if time_slot != "afternoon" else None,
                urine_output=int(round(current["urine_output"])) if time_slot == "evening" else None,
            ))

    return readings


def seed_readings(days: int = 30, seed: Optional[int] = None) -> int:
    """
    main seeding function: generate readings, evaluate alerts, store both.

    args:
        days: number of days of readings to generate
        seed: random seed for reproducible data

    returns:
        number of readings inserted
    """
    logger.info("creating database tables...")
    init_db()

    readings = generate_synthetic_readings(days=days, seed=seed)
    logger.info("generated %d readings over %d days", len(readings), days)

    session = get_db_session()
    try:
        repo = VitalsRepository(session)
        alert_count = 0
        for reading in readings:
            alerts = list(evaluate_reading(reading))
            alert_count += len(repo.add_reading(reading, alerts))
    finally:
        session.close()

    logger.info("inserted %d readings and %d alerts", len(readings), alert_count)
    return len(readings)


if __name__ == "__main__":
    configure_logging()
    num_inserted = seed_readings(days=30)
    print(f"seeding complete! {num_inserted} readings in database.")
