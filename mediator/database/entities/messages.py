"""
CaseMessage ORM Model
=====================

The ``CaseMessage`` ORM model represents a single chat message in a case's
transcript. Messages are append-only: rows are inserted and never updated or
deleted.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Foreign key reference to ``cases.id`` (``case_id``)
- Sender user (``sender_user_id``), null for messages written by the AI mediator
- ``sender_type`` (``user`` | ``ai``) and ``message_type`` (``plain`` | ``ai_suggestion``)
- Timezone-aware ``created_at`` timestamp (UTC), the transcript order
"""

from mediator.database.config.connection_engine import declarativeBase
from sqlalchemy import ForeignKey, DateTime, TEXT, VARCHAR, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
import uuid
from datetime import datetime, timezone
from typing import Optional

SENDER_TYPES = ("user", "ai")
MESSAGE_TYPES = ("plain", "ai_suggestion")


class CaseMessage(declarativeBase):
    """
    ORM model for the `messages` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    case_id : UUID
        Foreign key to the case this message belongs to.
    sender_user_id : UUID | None
        Author of the message; None for AI messages.
    sender_type : str
        ``user`` or ``ai``.
    content : str
        Text content of the message.
    message_type : str
        ``plain`` for chat, ``ai_suggestion`` for assist output.
    created_at : datetime
        Creation timestamp (UTC).
    """

    __tablename__ = "messages"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    case_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("cases.id"), nullable=False, index=True)
    sender_user_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=True)
    sender_type: Mapped[str] = mapped_column(VARCHAR(8), nullable=False)
    content: Mapped[str] = mapped_column(TEXT, nullable=False)
    message_type: Mapped[str] = mapped_column(VARCHAR(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    def __init__(
        self,
        case_id: UUID,
        sender_user_id: Optional[UUID],
        sender_type: str,
        content: str,
        message_type: str,
        created_at,
    ):
        self.id = uuid.uuid4()
        self.case_id = case_id
        self.sender_user_id = sender_user_id
        self.sender_type = sender_type
        self.content = content
        self.message_type = message_type
        if isinstance(created_at, str):
            self.created_at = datetime.fromisoformat(created_at)
        else:
            self.created_at = created_at

    def __str__(self) -> str:
        return (
            f"Message: case_id:{self.case_id}, "
            f"sender_type: {self.sender_type}, "
            f"message_type: {self.message_type}, "
            f"time_created: {self.created_at}"
        )
