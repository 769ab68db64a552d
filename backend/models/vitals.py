"""
vitals data models for storing home vital-sign readings and their alerts.

defines the sqlalchemy orm models for the vitals and health_alerts tables.
"""

from datetime import datetime, UTC
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# vital fields a reading may carry, in display order
VITAL_FIELDS = ("systolic", "diastolic", "oxygen_level", "blood_sugar", "urine_output")


def utcnow() -> datetime:
    """naive utc timestamp, as stored by sqlite."""
    return datetime.now(UTC).replace(tzinfo=None)


class Reading(Base):
    """
    represents a single home vital signs reading.

    attributes:
        id: primary key
        date: calendar day the reading belongs to
        time_slot: free-form label (e.g. "morning", "evening")
        systolic: systolic blood pressure (mmhg)
        diastolic: diastolic blood pressure (mmhg)
        oxygen_level: oxygen saturation percentage (0-100)
        blood_sugar: blood glucose (mg/dl)
        urine_output: urine output (ml), recorded for display only
        notes: optional free text
        created_at: when the reading was stored (utc)
    """

    __tablename__ = "vitals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False, index=True)
    time_slot = Column(String, nullable=False)

    # vital signs, all optional
    systolic = Column(Integer, nullable=True)
    diastolic = Column(Integer, nullable=True)
    oxygen_level = Column(Integer, nullable=True)
    blood_sugar = Column(Integer, nullable=True)
    urine_output = Column(Integer, nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    alerts = relationship(
        "HealthAlert",
        back_populates="reading",
        order_by="HealthAlert.id"
    )

    def __repr__(self) -> str:
        """string representation of reading record."""
        return (
            f"<Reading(date='{self.date}', "
            f"time_slot='{self.time_slot}', "
            f"bp={self.systolic}/{self.diastolic}, "
            f"o2={self.oxygen_level})>"
        )

    def vitals(self) -> dict:
        """return only the vital values of this reading."""
        return {name: getattr(self, name) for name in VITAL_FIELDS}

    def to_dict(self) -> dict:
        """
        convert reading record to dictionary.

        returns:
            dict representation of the reading
        """
        return {
            "id": self.id,
            "date": self.date.isoformat() if self.date else None,
            "time_slot": self.time_slot,
            **self.vitals(),
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class HealthAlert(Base):
    """
    persisted alert raised by the alert engine for one reading.

    attributes:
        id: primary key
        vital_id: reading the alert was raised for
        alert_type: "blood_pressure", "oxygen" or "blood_sugar"
        severity: "low", "moderate", "high" or "critical"
        message: human readable description
        created_at: when the alert was stored (utc)
    """

    __tablename__ = "health_alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vital_id = Column(Integer, ForeignKey("vitals.id"), nullable=False, index=True)
    alert_type = Column(String, nullable=False)
    severity = Column(String, nullable=False)
    message = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    reading = relationship("Reading", back_populates="alerts")

    def __repr__(self) -> str:
        return f"<HealthAlert(vital_id={self.vital_id}, type='{self.alert_type}', severity='{self.severity}')>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "reading_id": self.vital_id,
            "type": self.alert_type,
            "severity": self.severity,
            "message": self.message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
