"""
repository for sharing sessions.

sessions live in the database rather than process memory so any server
instance can validate a share link.
"""

import logging
import uuid
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.exceptions import StorageError
from backend.models.sharing import SharingSession
from backend.models.vitals import utcnow

logger = logging.getLogger(__name__)


class SharingRepository:
    """data access layer for sharing sessions."""

    def __init__(self, db_session: Session):
        self.session = db_session

    def create_session(
        self, patient_name: Optional[str] = None, doctor_email: Optional[str] = None
    ) -> SharingSession:
        """
        issue a new sharing session.

        args:
            patient_name: name shown on the shared dashboard
            doctor_email: recipient of the link

        returns:
            the stored session with a fresh uuid4 id
        """
        sharing_session = SharingSession(
            id=str(uuid.uuid4()),
            patient_name=patient_name,
            doctor_email=doctor_email,
            is_active=True
        )

        try:
            self.session.add(sharing_session)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("failed to create sharing session: %s", e)
            raise StorageError(f"failed to create sharing session: {e}") from e

        logger.info("sharing session %s created", sharing_session.id)
        return sharing_session

    def get_active_session(self, session_id: str, touch: bool = True) -> Optional[SharingSession]:
        """
        look up an active session.

        args:
            session_id: session identifier from the share link
            touch: update last_accessed when found

        returns:
            the session, or none if unknown or deactivated
        """
        try:
            sharing_session = (
                self.session.query(SharingSession)
                .filter(SharingSession.id == session_id)
                .filter(SharingSession.is_active.is_(True))
                .first()
            )

            if sharing_session is not None and touch:
                sharing_session.last_accessed = utcnow()
                self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"failed to load sharing session: {e}") from e

        return sharing_session

    def deactivate_session(self, session_id: str) -> bool:
        """
        revoke a session.

        returns:
            true if an active session was deactivated
        """
        try:
            sharing_session = self.get_active_session(session_id, touch=False)
            if sharing_session is None:
                return False

            sharing_session.is_active = False
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"failed to deactivate sharing session: {e}") from e

        logger.info("sharing session %s deactivated", session_id)
        return True

    def list_active_session_ids(self) -> List[str]:
        """return ids of every active session."""
        try:
            rows = (
                self.session.query(SharingSession.id)
                .filter(SharingSession.is_active.is_(True))
                .all()
            )
        except SQLAlchemyError as e:
            raise StorageError(f"failed to list sharing sessions: {e}") from e

        return [row[0] for row in rows]
