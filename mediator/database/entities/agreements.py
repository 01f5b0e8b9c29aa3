"""
Agreement ORM Model
===================

One settlement agreement per case (``agreements`` table). Created lazily on
the first generated draft, edited in place while ``status == 'draft'`` and
frozen once finalized. ``version`` is bumped on every write so callers can
opt into compare-and-swap updates.
"""

from mediator.database.config.connection_engine import declarativeBase
from sqlalchemy import ForeignKey, DateTime, TEXT, VARCHAR, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
import uuid
from datetime import datetime, timezone
from typing import Optional

AGREEMENT_STATUSES = ("draft", "finalized")


class Agreement(declarativeBase):
    """
    ORM model for the `agreements` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    case_id : UUID
        Foreign key to `cases.id` (unique).
    draft_text : str
        Current working draft.
    finalized_text : str | None
        Frozen copy of the draft, set once on finalization.
    status : str
        ``draft`` or ``finalized``.
    finalized_at : datetime | None
        When the agreement was finalized.
    version : int
        Incremented on every write.
    updated_at : datetime
        Last write timestamp.
    """

    __tablename__ = "agreements"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    case_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("cases.id"), nullable=False, unique=True)
    draft_text: Mapped[str] = mapped_column(TEXT, nullable=False)
    finalized_text: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    status: Mapped[str] = mapped_column(VARCHAR(16), nullable=False, default="draft")
    finalized_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    def __init__(self, case_id: UUID, draft_text: str, updated_at):
        self.id = uuid.uuid4()
        self.case_id = case_id
        self.draft_text = draft_text
        self.finalized_text = None
        self.status = "draft"
        self.finalized_at = None
        self.version = 1
        if isinstance(updated_at, str):
            self.updated_at = datetime.fromisoformat(updated_at)
        else:
            self.updated_at = updated_at

    def __str__(self) -> str:
        return f"Agreement: case_id:{self.case_id}, status: {self.status}, version: {self.version}"
