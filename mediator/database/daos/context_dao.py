"""
Context DAO

Data-access layer for `CaseContext`. Contexts are written once per participant
and only read afterwards, so the DAO exposes create and fetch operations only.
"""

from sqlalchemy.orm import Session
from sqlalchemy import asc
from mediator.database.entities.contexts import CaseContext
from uuid import UUID
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


class ContextDao:
    """
    Data Access Object (DAO) for participant contexts.
    """

    def createContext(self, session: Session, context: CaseContext) -> CaseContext:
        try:
            session.add(context)
            return context
        except Exception as e:
            logger.error(f"Error in ContextDao.createContext. Error: {e}")
            raise e

    def fetchContext(self, session: Session, case_id: UUID, user_id: UUID) -> Optional[CaseContext]:
        try:
            return (
                session.query(CaseContext)
                .filter(CaseContext.case_id == case_id)
                .filter(CaseContext.user_id == user_id)
                .one_or_none()
            )
        except Exception as e:
            logger.error(f"Error in ContextDao.fetchContext. Error: {e}")
            raise e

    def fetchContextsByCaseId(self, session: Session, case_id: UUID) -> List[CaseContext]:
        try:
            return (
                session.query(CaseContext)
                .filter(CaseContext.case_id == case_id)
                .order_by(asc(CaseContext.created_at))
                .all()
            )
        except Exception as e:
            logger.error(f"Error in ContextDao.fetchContextsByCaseId. Error: {e}")
            raise e
