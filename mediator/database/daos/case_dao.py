"""
Case DAO

Purpose
-------
Data-access layer for the `Case` ORM entity:
- Create cases and look them up by id, invite token, or participating user
- Update invite details, AI summary and lifecycle status
- Lock a case row for the signing transaction
- Resolve a case with a single conditional update once every participant signed

Design
------
- Requires an active SQLAlchemy `Session` supplied by the caller; transaction
  boundaries stay in the service layer.
- Status transitions are conditional updates (`WHERE status = :from`) so the
  database, not application code, decides whether a transition applies.

Usage
-----
.. code-block:: python

    dao = CaseDao()
    case = dao.fetchCaseById(session, case_id)
    if dao.resolveCaseIfAllSigned(session, case_id):
        ...

Error Handling
--------------
- Methods log the failure and re-raise.
"""

from sqlalchemy.orm import Session
from sqlalchemy import desc, update, select
from mediator.database.entities.cases import Case
from mediator.database.entities.participants import CaseParticipant
from uuid import UUID
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


class CaseDao:
    """
    Data Access Object (DAO) for managing Case entities.
    """

    def createCase(self, session: Session, case: Case) -> Case:
        """Stage a new case record."""
        try:
            session.add(case)
            return case
        except Exception as e:
            logger.error(f"Error in CaseDao.createCase. Error: {e}")
            raise e

    def fetchCaseById(self, session: Session, case_id: UUID) -> Optional[Case]:
        """Fetch a case by primary key, or None."""
        try:
            return session.get(Case, case_id)
        except Exception as e:
            logger.error(f"Error in CaseDao.fetchCaseById. Error: {e}")
            raise e

    def fetchCaseForUpdate(self, session: Session, case_id: UUID) -> Optional[Case]:
        """
        Fetch a case and hold a row lock on it until the transaction ends.

        Signatures take this lock first, so concurrent signers of one case run
        one after the other and the last one sees every earlier signature.
        Dialects without `FOR UPDATE` (SQLite) already serialize writers.
        """
        try:
            return session.get(Case, case_id, with_for_update=True, populate_existing=True)
        except Exception as e:
            logger.error(f"Error in CaseDao.fetchCaseForUpdate. Error: {e}")
            raise e

    def fetchCaseByInviteToken(self, session: Session, invite_token: str) -> Optional[Case]:
        """Fetch the case an invite token belongs to, or None."""
        try:
            return session.query(Case).filter(Case.invite_token == invite_token).one_or_none()
        except Exception as e:
            logger.error(f"Error in CaseDao.fetchCaseByInviteToken. Error: {e}")
            raise e

    def fetchCasesByUserId(self, session: Session, user_id: UUID) -> List[Case]:
        """
        Fetch every case the user participates in, newest first.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        user_id : UUID
            Participating user.

        Returns
        -------
        list[Case]
        """
        try:
            return (
                session.query(Case)
                .join(CaseParticipant, CaseParticipant.case_id == Case.id)
                .filter(CaseParticipant.user_id == user_id)
                .order_by(desc(Case.created_at))
                .all()
            )
        except Exception as e:
            logger.error(f"Error in CaseDao.fetchCasesByUserId. Error: {e}")
            raise e

    def updateInvite(self, session: Session, case: Case, invite_token: str, invite_email: Optional[str]) -> Case:
        """Store a fresh invite token (and optional email) on the case."""
        try:
            case.invite_token = invite_token
            case.invite_email = invite_email
            return case
        except Exception as e:
            logger.error(f"Error in CaseDao.updateInvite. Error: {e}")
            raise e

    def updateSummary(self, session: Session, case: Case, ai_summary: str) -> Case:
        """Replace the AI summary of a case."""
        try:
            case.ai_summary = ai_summary
            return case
        except Exception as e:
            logger.error(f"Error in CaseDao.updateSummary. Error: {e}")
            raise e

    def updateStatus(self, session: Session, case_id: UUID, from_status: str, to_status: str) -> bool:
        """
        Move a case from `from_status` to `to_status`.

        Returns
        -------
        bool
            True if the row was in `from_status` and has been updated.
        """
        try:
            result = session.execute(
                update(Case)
                .where(Case.id == case_id, Case.status == from_status)
                .values(status=to_status)
                .execution_options(synchronize_session="fetch")
            )
            return result.rowcount == 1
        except Exception as e:
            logger.error(f"Error in CaseDao.updateStatus. Error: {e}")
            raise e

    def resolveCaseIfAllSigned(self, session: Session, case_id: UUID) -> bool:
        """
        Mark an active case resolved when no participant is left unsigned.

        Callers must hold the case row lock (`fetchCaseForUpdate`). Without it,
        under READ COMMITTED two concurrent signers each still see the other as
        unsigned and neither resolves the case.

        Returns
        -------
        bool
            True if this call moved the case to `resolved`.
        """
        try:
            unsigned = (
                select(CaseParticipant.id)
                .where(
                    CaseParticipant.case_id == case_id,
                    CaseParticipant.has_signed_agreement.is_(False),
                )
                .exists()
            )
            result = session.execute(
                update(Case)
                .where(Case.id == case_id, Case.status == "active", ~unsigned)
                .values(status="resolved")
                .execution_options(synchronize_session="fetch")
            )
            return result.rowcount == 1
        except Exception as e:
            logger.error(f"Error in CaseDao.resolveCaseIfAllSigned. Error: {e}")
            raise e
