"""
Typed records for the state of one case.

These are the shapes the orchestrator and the synchronizer work with and the
shapes pushed to live viewers. They are built from the plain dicts returned by
`mediator.database.core.funcs`.
"""

from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime, timezone
from uuid import UUID
from typing import Literal, Optional, Union


def _utc(value):
    # SQLite hands back naive datetimes; every stored timestamp is UTC.
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    @field_validator("*", mode="after")
    @classmethod
    def _normalize_datetimes(cls, value):
        return _utc(value)


class CaseRecord(_Record):
    id: UUID
    title: str
    description: Optional[str] = None
    type: str
    status: str
    ai_summary: Optional[str] = None
    invite_token: Optional[str] = None
    invite_email: Optional[str] = None
    created_by: UUID
    created_at: datetime


class ParticipantRecord(_Record):
    id: UUID
    case_id: UUID
    user_id: UUID
    role_in_case: str
    has_signed_agreement: bool = False
    signed_at: Optional[datetime] = None
    joined_at: Optional[datetime] = None
    display_name: Optional[str] = None


class ContextRecord(_Record):
    id: UUID
    case_id: UUID
    user_id: UUID
    background_text: Optional[str] = None
    goals_text: Optional[str] = None
    acceptable_outcome_text: Optional[str] = None
    constraints_text: Optional[str] = None
    sensitivity_level: str = "normal"
    created_at: Optional[datetime] = None


class MessageRecord(_Record):
    id: UUID
    case_id: UUID
    sender_user_id: Optional[UUID] = None
    sender_type: str
    content: str
    message_type: str
    created_at: datetime


class AgreementRecord(_Record):
    id: UUID
    case_id: UUID
    draft_text: str
    finalized_text: Optional[str] = None
    status: str
    finalized_at: Optional[datetime] = None
    version: int = 1
    updated_at: Optional[datetime] = None


class CaseFileRecord(_Record):
    id: UUID
    case_id: UUID
    user_id: UUID
    file_name: str
    file_path: str
    file_size: int
    mime_type: Optional[str] = None
    uploaded_at: datetime
    download_url: Optional[str] = None


TABLE_RECORDS = {
    "cases": CaseRecord,
    "case_participants": ParticipantRecord,
    "case_context": ContextRecord,
    "messages": MessageRecord,
    "agreements": AgreementRecord,
}


class Change(BaseModel):
    """One INSERT or UPDATE notification for a row of a case."""

    table: Literal["cases", "case_participants", "case_context", "messages", "agreements"]
    event: Literal["INSERT", "UPDATE"]
    record: Union[CaseRecord, ParticipantRecord, ContextRecord, MessageRecord, AgreementRecord]

    @property
    def case_id(self) -> UUID:
        if isinstance(self.record, CaseRecord):
            return self.record.id
        return self.record.case_id

    @classmethod
    def of(cls, table: str, event: str, data: dict) -> "Change":
        return cls(table=table, event=event, record=TABLE_RECORDS[table].model_validate(data))


class CaseSnapshot(BaseModel):
    case: CaseRecord
    participants: list[ParticipantRecord] = []
    contexts: list[ContextRecord] = []
    messages: list[MessageRecord] = []
    agreement: Optional[AgreementRecord] = None
