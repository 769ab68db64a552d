"""
repository for storing and querying home vitals readings and alerts.

provides data access methods for the vitals and health_alerts tables.
date windows are passed as typed parameters, never built into query strings.
"""

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from backend.exceptions import StorageError
from backend.models.vitals import Reading, HealthAlert, utcnow
from backend.services.alert_engine import Alert

logger = logging.getLogger(__name__)


class VitalsRepository:
    """
    data access layer for vitals readings and their alerts.

    every sqlalchemy failure is re-raised as StorageError.
    """

    def __init__(self, db_session: Session):
        """
        initialize repository with database session.

        args:
            db_session: sqlalchemy session for database operations
        """
        self.session = db_session

    def add_reading(self, reading: Reading, alerts: Sequence[Alert] = ()) -> List[Alert]:
        """
        persist a reading together with its alerts in one transaction.

        args:
            reading: new reading instance (not yet added to a session)
            alerts: alerts evaluated for the reading

        returns:
            the alerts stamped with the stored reading's id

        raises:
            StorageError: if the write fails (nothing is stored)
        """
        try:
            self.session.add(reading)
            self.session.flush()

            stored = [replace(alert, reading_id=reading.id) for alert in alerts]
            self.session.add_all([
                HealthAlert(
                    vital_id=reading.id,
                    alert_type=alert.type,
                    severity=alert.severity,
                    message=alert.message
                )
                for alert in stored
            ])
            self.session.commit()
        except (SQLAlchemyError, OverflowError, ValueError) as e:
            self.session.rollback()
            logger.error("failed to store reading: %s", e)
            raise StorageError(f"failed to store reading: {e}") from e

        return stored

    def get_recent_readings(
        self, window_days: int = 30, today: Optional[date] = None
    ) -> List[Reading]:
        """
        fetch readings dated within the last n days.

        args:
            window_days: trailing window in days (default 30)
            today: reference day (defaults to the current date)

        returns:
            list of readings ordered by date descending, then time_slot
        """
        cutoff = (today or date.today()) - timedelta(days=window_days)

        try:
            return (
                self.session.query(Reading)
                .filter(Reading.date >= cutoff)
                .order_by(Reading.date.desc(), Reading.time_slot.asc(), Reading.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error("failed to query readings: %s", e)
            raise StorageError(f"failed to query readings: {e}") from e

    def get_readings_with_alerts(
        self, window_days: int = 30, today: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        """
        fetch readings in the window, each with its structured alerts.

        returns:
            list of reading dicts with an "alerts" list of alert dicts,
            in the same order as get_recent_readings()
        """
        cutoff = (today or date.today()) - timedelta(days=window_days)

        try:
            readings = (
                self.session.query(Reading)
                .options(selectinload(Reading.alerts))
                .filter(Reading.date >= cutoff)
                .order_by(Reading.date.desc(), Reading.time_slot.asc(), Reading.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error("failed to query shared readings: %s", e)
            raise StorageError(f"failed to query readings: {e}") from e

        return [
            {**r.to_dict(), "alerts": [a.to_dict() for a in r.alerts]}
            for r in readings
        ]

    def get_recent_alerts(
        self, recency_days: int = 7, limit: int = 10, now: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """
        fetch the newest alerts raised within the last n days.

        args:
            recency_days: how far back to look (default 7)
            limit: maximum number of alerts (default 10)
            now: reference time (defaults to current utc time)

        returns:
            list of alert dicts joined with the reading's date and time_slot,
            newest first
        """
        cutoff = (now or utcnow()) - timedelta(days=recency_days)

        try:
            rows = (
                self.session.query(HealthAlert, Reading.date, Reading.time_slot)
                .join(Reading, HealthAlert.vital_id == Reading.id)
                .filter(HealthAlert.created_at >= cutoff)
                .order_by(HealthAlert.created_at.desc(), HealthAlert.id.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error("failed to query alerts: %s", e)
            raise StorageError(f"failed to query alerts: {e}") from e

        return [
            {
                **alert.to_dict(),
                "date": reading_date.isoformat() if reading_date else None,
                "time_slot": time_slot,
            }
            for alert, reading_date, time_slot in rows
        ]

    def get_daily_averages(
        self, window_days: int = 30, today: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        """
        compute per-day averages of every vital for charting.

        args:
            window_days: trailing window in days (default 30)
            today: reference day (defaults to the current date)

        returns:
            list of dicts (date, avg_systolic, avg_diastolic, avg_oxygen,
            avg_sugar, avg_urine), oldest day first
        """
        cutoff = (today or date.today()) - timedelta(days=window_days)

        try:
            rows = (
                self.session.query(
                    Reading.date,
                    func.avg(Reading.systolic),
                    func.avg(Reading.diastolic),
                    func.avg(Reading.oxygen_level),
                    func.avg(Reading.blood_sugar),
                    func.avg(Reading.urine_output),
                )
                .filter(Reading.date >= cutoff)
                .group_by(Reading.date)
                .order_by(Reading.date.asc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error("failed to compute daily averages: %s", e)
            raise StorageError(f"failed to compute daily averages: {e}") from e

        return [
            {
                "date": day.isoformat(),
                "avg_systolic": _as_float(systolic),
                "avg_diastolic": _as_float(diastolic),
                "avg_oxygen": _as_float(oxygen),
                "avg_sugar": _as_float(sugar),
                "avg_urine": _as_float(urine),
            }
            for day, systolic, diastolic, oxygen, sugar, urine in rows
        ]

    def get_latest_reading(self) -> Optional[Reading]:
        """
        fetch the most recent reading.

        returns:
            single reading (most recent) or none if no data exists
        """
        try:
            return (
                self.session.query(Reading)
                .order_by(Reading.date.desc(), Reading.created_at.desc(), Reading.id.desc())
                .first()
            )
        except SQLAlchemyError as e:
            raise StorageError(f"failed to query latest reading: {e}") from e

    def count_readings(self) -> int:
        """
        count total number of stored readings.

        returns:
            number of readings
        """
        try:
            return self.session.query(Reading).count()
        except SQLAlchemyError as e:
            raise StorageError(f"failed to count readings: {e}") from e


def _as_float(value: Any) -> Optional[float]:
    """sql avg() of an all-null group is null."""
    return float(value) if value is not None else None
