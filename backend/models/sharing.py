"""
sharing session model for read-only caregiver/doctor access.
"""

from sqlalchemy import Column, String, DateTime, Boolean

from backend.models.vitals import Base, utcnow


class SharingSession(Base):
    """
    an opaque identifier granting read-only access to the reading history.

    attributes:
        id: uuid4 string, used as the share link token
        patient_name: name shown on the shared dashboard
        doctor_email: who the link was issued for (informational)
        created_at: when the session was issued (utc)
        last_accessed: last time the session was opened (utc)
        is_active: false once the patient revokes the link
    """

    __tablename__ = "sharing_sessions"

    id = Column(String, primary_key=True)
    patient_name = Column(String, nullable=True)
    doctor_email = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    last_accessed = Column(DateTime, nullable=False, default=utcnow)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<SharingSession(id='{self.id}', active={self.is_active})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "patient_name": self.patient_name,
            "doctor_email": self.doctor_email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "last_accessed": self.last_accessed.isoformat() if self.last_accessed else None,
            "is_active": self.is_active,
        }
