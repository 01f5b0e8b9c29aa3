"""
Rate Limit DAO

Persists the per-user timestamp list used by the sliding-window limiter.
"""

from sqlalchemy.orm import Session
from mediator.database.entities.rate_limits import RateLimit
from uuid import UUID
from typing import List
import logging

logger = logging.getLogger(__name__)


class RateLimitDao:

    def fetchTimestamps(self, session: Session, user_id: UUID) -> List[float]:
        """Return the stored timestamps of a user, or an empty list."""
        try:
            row = session.get(RateLimit, user_id)
            return list(row.timestamps) if row is not None else []
        except Exception as e:
            logger.error(f"Error in RateLimitDao.fetchTimestamps. Error: {e}")
            raise e

    def saveTimestamps(self, session: Session, user_id: UUID, timestamps: List[float]) -> RateLimit:
        """Insert or replace the timestamp list of a user."""
        try:
            row = session.get(RateLimit, user_id)
            if row is None:
                row = RateLimit(user_id=user_id, timestamps=timestamps)
                session.add(row)
            else:
                # JSON columns do not track in-place mutation
                row.timestamps = list(timestamps)
            return row
        except Exception as e:
            logger.error(f"Error in RateLimitDao.saveTimestamps. Error: {e}")
            raise e
