"""
Case ORM Model
==============

The ``Case`` ORM model represents a mediation matter between two parties,
stored in the ``cases`` table.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Title, free-text description and case type (``personal``, ``workplace``, ``agreement``)
- Lifecycle ``status``: ``draft`` → ``active`` → ``resolved``
- Optional AI-generated summary (``ai_summary``)
- Invite token and email used by the second party to join
- Foreign key to the creating user (``created_by`` → ``app_user.id``)
"""

from mediator.database.config.connection_engine import declarativeBase
from sqlalchemy import ForeignKey, DateTime, TEXT, VARCHAR, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
from datetime import datetime, timezone
from typing import Optional

CASE_TYPES = ("personal", "workplace", "agreement")
CASE_STATUSES = ("draft", "active", "resolved")


class Case(declarativeBase):
    """
    ORM model for the `cases` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    title : str
        Human-readable title of the case.
    description : str | None
        Free-text description entered by the initiator.
    type : str
        One of ``CASE_TYPES``.
    status : str
        One of ``CASE_STATUSES``.
    ai_summary : str | None
        Latest neutral summary produced by the mediator.
    invite_token : str | None
        Token the invited party uses to join.
    invite_email : str | None
        Address the invitation was meant for.
    created_by : UUID
        Owner of the case (`app_user.id`).
    created_at : datetime
        Creation timestamp (UTC).
    """

    __tablename__ = "cases"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    title: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    type: Mapped[str] = mapped_column(VARCHAR(32), nullable=False)
    status: Mapped[str] = mapped_column(VARCHAR(16), nullable=False, default="draft")
    ai_summary: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    invite_token: Mapped[Optional[str]] = mapped_column(VARCHAR(64), nullable=True, unique=True)
    invite_email: Mapped[Optional[str]] = mapped_column(VARCHAR(255), nullable=True)
    created_by: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    def __init__(self, case_id: UUID, title: str, description: Optional[str], case_type: str, created_by: UUID, created_at):
        self.id = case_id
        self.title = title
        self.description = description
        self.type = case_type
        self.status = "draft"
        self.created_by = created_by
        if isinstance(created_at, str):
            self.created_at = datetime.fromisoformat(created_at)
        else:
            self.created_at = created_at

    def __str__(self) -> str:
        return f"Case: id:{self.id}, title: {self.title}, status: {self.status}"
