"""
CaseFile ORM Model
==================

Metadata for a document a participant uploaded to a case. The bytes live in
S3 under ``file_path``; this row is what the API lists and presigns.
"""

from mediator.database.config.connection_engine import declarativeBase
from sqlalchemy import ForeignKey, DateTime, TEXT, VARCHAR, BigInteger, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
import uuid
from datetime import datetime, timezone
from typing import Optional


class CaseFile(declarativeBase):
    """ORM model for the `case_files` table."""

    __tablename__ = "case_files"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    case_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("cases.id"), nullable=False, index=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)
    file_name: Mapped[str] = mapped_column(TEXT, nullable=False)
    file_path: Mapped[str] = mapped_column(TEXT, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[Optional[str]] = mapped_column(VARCHAR(255), nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    def __init__(
        self,
        case_id: UUID,
        user_id: UUID,
        file_name: str,
        file_path: str,
        file_size: int,
        mime_type: Optional[str],
        uploaded_at,
    ):
        self.id = uuid.uuid4()
        self.case_id = case_id
        self.user_id = user_id
        self.file_name = file_name
        self.file_path = file_path
        self.file_size = file_size
        self.mime_type = mime_type
        if isinstance(uploaded_at, str):
            self.uploaded_at = datetime.fromisoformat(uploaded_at)
        else:
            self.uploaded_at = uploaded_at

    def __str__(self) -> str:
        return f"CaseFile: case_id:{self.case_id}, file_name: {self.file_name}, size: {self.file_size}"
