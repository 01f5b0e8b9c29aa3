"""
CaseParticipant ORM Model
=========================

Links a user to a case with a fixed role and tracks whether that user has
signed the agreement. Stored in the ``case_participants`` table; a user can
appear at most once per case.
"""

from mediator.database.config.connection_engine import declarativeBase
from sqlalchemy import ForeignKey, DateTime, Boolean, VARCHAR, Uuid, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
import uuid
from datetime import datetime, timezone
from typing import Optional

PARTICIPANT_ROLES = ("initiator", "invited_party")


class CaseParticipant(declarativeBase):
    """
    ORM model for the `case_participants` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    case_id : UUID
        Foreign key to `cases.id`.
    user_id : UUID
        Foreign key to `app_user.id`.
    role_in_case : str
        ``initiator`` or ``invited_party``; never changed after insert.
    has_signed_agreement : bool
        Signing flag.
    signed_at : datetime | None
        When the flag was set.
    joined_at : datetime
        When the participant row was created.
    """

    __tablename__ = "case_participants"
    __table_args__ = (UniqueConstraint("case_id", "user_id", name="uq_case_participant"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    case_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("cases.id"), nullable=False, index=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)
    role_in_case: Mapped[str] = mapped_column(VARCHAR(32), nullable=False)
    has_signed_agreement: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    def __init__(self, case_id: UUID, user_id: UUID, role_in_case: str, joined_at):
        self.id = uuid.uuid4()
        self.case_id = case_id
        self.user_id = user_id
        self.role_in_case = role_in_case
        self.has_signed_agreement = False
        self.signed_at = None
        if isinstance(joined_at, str):
            self.joined_at = datetime.fromisoformat(joined_at)
        else:
            self.joined_at = joined_at

    def __str__(self) -> str:
        return (
            f"Participant: id:{self.id}, case_id: {self.case_id}, "
            f"user_id: {self.user_id}, role: {self.role_in_case}, signed: {self.has_signed_agreement}"
        )
