"""
RateLimit ORM Model
===================

Per-user list of AI-assist call timestamps (epoch seconds) inside the
trailing window. Read, pruned, appended and written back on every assist
attempt.
"""

from mediator.database.config.connection_engine import declarativeBase
from sqlalchemy import JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
from typing import List


class RateLimit(declarativeBase):
    """ORM model for the `rate_limits` table."""

    __tablename__ = "rate_limits"

    user_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    timestamps: Mapped[List[float]] = mapped_column(JSON, nullable=False, default=list)

    def __init__(self, user_id: UUID, timestamps: List[float]):
        self.user_id = user_id
        self.timestamps = list(timestamps)

    def __str__(self) -> str:
        return f"RateLimit: user_id:{self.user_id}, calls: {len(self.timestamps)}"
