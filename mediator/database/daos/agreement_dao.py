"""
Agreement DAO

Purpose
-------
Data-access layer for the `Agreement` ORM entity:
- Fetch the agreement of a case
- Create it on the first draft, then overwrite the draft in place
- Freeze it on finalization

Design
------
- Draft writes bump `version`. When the caller passes `expected_version` the
  write is a conditional UPDATE that only matches the row at that version, so
  a stale editor cannot overwrite a newer draft.
- Writes never touch a finalized row; the conditional UPDATE filters on
  `status = 'draft'`.

Error Handling
--------------
- Methods log the failure and re-raise.
"""

from sqlalchemy.orm import Session
from sqlalchemy import update
from mediator.database.entities.agreements import Agreement
from uuid import UUID
from datetime import datetime
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class AgreementDao:
    """
    Data Access Object (DAO) for case agreements.
    """

    def fetchAgreementByCaseId(self, session: Session, case_id: UUID) -> Optional[Agreement]:
        """Fetch the agreement of a case, or None if no draft exists yet."""
        try:
            return session.query(Agreement).filter(Agreement.case_id == case_id).one_or_none()
        except Exception as e:
            logger.error(f"Error in AgreementDao.fetchAgreementByCaseId. Error: {e}")
            raise e

    def createAgreement(self, session: Session, agreement: Agreement) -> Agreement:
        """Stage the first draft of a case."""
        try:
            session.add(agreement)
            return agreement
        except Exception as e:
            logger.error(f"Error in AgreementDao.createAgreement. Error: {e}")
            raise e

    def updateDraft(
        self,
        session: Session,
        agreement_id: UUID,
        draft_text: str,
        updated_at: datetime,
        expected_version: Optional[int] = None,
    ) -> bool:
        """
        Overwrite the draft of a non-finalized agreement.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        agreement_id : UUID
            Agreement primary key.
        draft_text : str
            New draft text.
        updated_at : datetime
            Write timestamp.
        expected_version : int, optional
            When given, the write only applies if the stored version matches.

        Returns
        -------
        bool
            True if a row was updated.
        """
        try:
            stmt = update(Agreement).where(Agreement.id == agreement_id, Agreement.status == "draft")
            if expected_version is not None:
                stmt = stmt.where(Agreement.version == expected_version)
            result = session.execute(
                stmt.values(
                    draft_text=draft_text,
                    version=Agreement.version + 1,
                    updated_at=updated_at,
                ).execution_options(synchronize_session="fetch")
            )
            return result.rowcount == 1
        except Exception as e:
            logger.error(f"Error in AgreementDao.updateDraft. Error: {e}")
            raise e

    def finalizeAgreement(self, session: Session, agreement_id: UUID, finalized_at: datetime) -> bool:
        """
        Copy the draft into `finalized_text` and freeze the agreement.

        Returns
        -------
        bool
            True if the agreement was still a draft and is now finalized.
        """
        try:
            result = session.execute(
                update(Agreement)
                .where(Agreement.id == agreement_id, Agreement.status == "draft")
                .values(
                    finalized_text=Agreement.draft_text,
                    status="finalized",
                    finalized_at=finalized_at,
                    version=Agreement.version + 1,
                    updated_at=finalized_at,
                )
                .execution_options(synchronize_session="fetch")
            )
            return result.rowcount == 1
        except Exception as e:
            logger.error(f"Error in AgreementDao.finalizeAgreement. Error: {e}")
            raise e
