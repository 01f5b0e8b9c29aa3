"""
Participant DAO

Purpose
-------
Data-access layer for `CaseParticipant`:
- Add a user to a case with a role
- Fetch the participants of a case together with their profile
- Set the signing flag

Error Handling
--------------
- Methods log the failure and re-raise.
"""

from sqlalchemy.orm import Session
from sqlalchemy import asc
from mediator.database.entities.participants import CaseParticipant
from mediator.database.entities.user import User
from uuid import UUID
from datetime import datetime
from typing import List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class ParticipantDao:
    """
    Data Access Object (DAO) for managing case participants.
    """

    def createParticipant(self, session: Session, participant: CaseParticipant) -> CaseParticipant:
        """Stage a new participant row."""
        try:
            session.add(participant)
            return participant
        except Exception as e:
            logger.error(f"Error in ParticipantDao.createParticipant. Error: {e}")
            raise e

    def fetchParticipant(self, session: Session, case_id: UUID, user_id: UUID) -> Optional[CaseParticipant]:
        """Fetch the membership of `user_id` in `case_id`, or None."""
        try:
            return (
                session.query(CaseParticipant)
                .filter(CaseParticipant.case_id == case_id)
                .filter(CaseParticipant.user_id == user_id)
                .one_or_none()
            )
        except Exception as e:
            logger.error(f"Error in ParticipantDao.fetchParticipant. Error: {e}")
            raise e

    def fetchParticipantsWithUsers(self, session: Session, case_id: UUID) -> List[Tuple[CaseParticipant, User]]:
        """
        Fetch all participants of a case with their user rows, in join order.

        Returns
        -------
        list[tuple[CaseParticipant, User]]
        """
        try:
            return (
                session.query(CaseParticipant, User)
                .join(User, User.id == CaseParticipant.user_id)
                .filter(CaseParticipant.case_id == case_id)
                .order_by(asc(CaseParticipant.joined_at))
                .all()
            )
        except Exception as e:
            logger.error(f"Error in ParticipantDao.fetchParticipantsWithUsers. Error: {e}")
            raise e

    def markSigned(self, session: Session, participant: CaseParticipant, signed_at: datetime) -> CaseParticipant:
        """Set the signing flag and timestamp."""
        try:
            participant.has_signed_agreement = True
            participant.signed_at = signed_at
            return participant
        except Exception as e:
            logger.error(f"Error in ParticipantDao.markSigned. Error: {e}")
            raise e
