"""
CaseContext ORM Model
=====================

A participant's private statement about the dispute: background, goals,
acceptable outcome and constraints, plus a sensitivity level. One row per
participant per case, written once during onboarding (``case_context`` table).
"""

from mediator.database.config.connection_engine import declarativeBase
from sqlalchemy import ForeignKey, DateTime, TEXT, VARCHAR, Uuid, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
import uuid
from datetime import datetime, timezone
from typing import Optional

SENSITIVITY_LEVELS = ("low", "normal", "high")


class CaseContext(declarativeBase):
    """ORM model for the `case_context` table."""

    __tablename__ = "case_context"
    __table_args__ = (UniqueConstraint("case_id", "user_id", name="uq_case_context"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    case_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("cases.id"), nullable=False, index=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)
    background_text: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    goals_text: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    acceptable_outcome_text: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    constraints_text: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    sensitivity_level: Mapped[str] = mapped_column(VARCHAR(16), nullable=False, default="normal")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    def __init__(
        self,
        case_id: UUID,
        user_id: UUID,
        background_text: Optional[str],
        goals_text: Optional[str],
        acceptable_outcome_text: Optional[str],
        constraints_text: Optional[str],
        sensitivity_level: str,
        created_at,
    ):
        self.id = uuid.uuid4()
        self.case_id = case_id
        self.user_id = user_id
        self.background_text = background_text
        self.goals_text = goals_text
        self.acceptable_outcome_text = acceptable_outcome_text
        self.constraints_text = constraints_text
        self.sensitivity_level = sensitivity_level
        if isinstance(created_at, str):
            self.created_at = datetime.fromisoformat(created_at)
        else:
            self.created_at = created_at

    def __str__(self) -> str:
        return f"Context: case_id:{self.case_id}, user_id: {self.user_id}, sensitivity: {self.sensitivity_level}"
