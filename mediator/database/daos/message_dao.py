"""
Case Messages DAO

Purpose
-------
Data-access layer for the `CaseMessage` ORM entity. Provides:
- Message creation (append-only)
- Retrieval by case in chronological order

Design
------
- Requires an active SQLAlchemy `Session` provided by the caller.
- Keeps business rules (auth, validation, rate limits) in higher layers.
- Retrieval orders by `created_at` ascending.

Usage
-----
.. code-block:: python

    dao = CaseMessagesDao()
    dao.createMessage(session, CaseMessage(case_id=..., sender_user_id=..., ...))
    transcript = dao.fetchMessagesByCaseId(session, case_id)
"""

from sqlalchemy.orm import Session
from mediator.database.entities.messages import CaseMessage
from uuid import UUID
from sqlalchemy import asc
from typing import List
import logging

logger = logging.getLogger(__name__)


class CaseMessagesDao:
    """
    Data Access Object (DAO) for case messages.
    """

    def createMessage(self, session: Session, message: CaseMessage) -> CaseMessage:
        """
        Create a new message record.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        message : CaseMessage
            Message entity instance to be added.

        Returns
        -------
        CaseMessage
            The message object that was added.
        """
        try:
            session.add(message)
            return message
        except Exception as e:
            logger.error(f"Error in CaseMessagesDao.createMessage. Error Message: {e}")
            raise e

    def fetchMessagesByCaseId(self, session: Session, case_id: UUID) -> List[CaseMessage]:
        """
        Fetch all messages of a case, ordered by creation time (ascending).

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        case_id : UUID
            Unique identifier of the case.

        Returns
        -------
        list[CaseMessage]
        """
        try:
            return (
                session.query(CaseMessage)
                .filter(CaseMessage.case_id == case_id)
                .order_by(asc(CaseMessage.created_at))
                .all()
            )
        except Exception as e:
            logger.error(f"Error in CaseMessagesDao.fetchMessagesByCaseId. Error Message: {e}")
            raise e
