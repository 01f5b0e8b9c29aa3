"""
Case store: the persistence boundary of the mediation core.

Wraps the transactional service functions, turns their dicts into typed
records and publishes a `Change` on the feed for every row a write touched.
Publishing happens after the service call returns, i.e. after commit, so a
viewer never sees a change that was rolled back.
"""

from mediator.database.core import funcs
from mediator.mediation.change_feed import ChangeFeed
from mediator.mediation.records import (
    AgreementRecord,
    CaseFileRecord,
    CaseRecord,
    CaseSnapshot,
    Change,
    ContextRecord,
    MessageRecord,
    ParticipantRecord,
)
from mediator.mediation.synchronizer import SessionSynchronizer
from typing import List, Optional, Tuple


class CaseStore:

    def __init__(self, feed: Optional[ChangeFeed] = None):
        self.feed = feed or ChangeFeed()

    def _publish(self, table: str, event: str, data: dict) -> None:
        self.feed.publish(Change.of(table, event, data))

    # reads

    def snapshot(self, case_id, user_id) -> CaseSnapshot:
        return CaseSnapshot.model_validate(funcs.fetch_case_snapshot(case_id=case_id, user_id=user_id))

    def load_session(self, case_id, user_id) -> SessionSynchronizer:
        """Mirror of the case as `user_id` sees it; raises if they are not a participant."""
        snapshot = self.snapshot(case_id, user_id)
        synchronizer = SessionSynchronizer(snapshot.case.id)
        synchronizer.load(snapshot)
        return synchronizer

    def require_participant(self, case_id, user_id) -> ParticipantRecord:
        return ParticipantRecord.model_validate(funcs.fetch_participant(case_id=case_id, user_id=user_id))

    def list_cases(self, user_id) -> List[CaseRecord]:
        return [CaseRecord.model_validate(c) for c in funcs.list_cases(user_id=user_id)]

    def fetch_invite(self, invite_token: str) -> dict:
        return funcs.fetch_invite_case(invite_token=invite_token)

    def list_files(self, case_id, user_id) -> List[CaseFileRecord]:
        return [CaseFileRecord.model_validate(f) for f in funcs.list_case_files(case_id=case_id, user_id=user_id)]

    # case lifecycle

    def create_case(self, user_id, title: str, description: Optional[str], case_type: str) -> CaseRecord:
        result = funcs.create_case(user_id=user_id, title=title, description=description, case_type=case_type)
        self._publish("cases", "INSERT", result["case"])
        self._publish("case_participants", "INSERT", result["participant"])
        return CaseRecord.model_validate(result["case"])

    def generate_invite(self, case_id, user_id, invite_email: Optional[str] = None) -> CaseRecord:
        case = funcs.generate_invite(case_id=case_id, user_id=user_id, invite_email=invite_email)
        self._publish("cases", "UPDATE", case)
        return CaseRecord.model_validate(case)

    def join_case(self, invite_token: str, user_id) -> ParticipantRecord:
        result = funcs.join_case(invite_token=invite_token, user_id=user_id)
        self._publish("case_participants", "INSERT", result["participant"])
        return ParticipantRecord.model_validate(result["participant"])

    def insert_context(self, case_id, user_id, **fields) -> ContextRecord:
        context = funcs.insert_context(case_id=case_id, user_id=user_id, **fields)
        self._publish("case_context", "INSERT", context)
        return ContextRecord.model_validate(context)

    def activate_case(self, case_id, user_id) -> CaseRecord:
        case = funcs.activate_case(case_id=case_id, user_id=user_id)
        self._publish("cases", "UPDATE", case)
        return CaseRecord.model_validate(case)

    # conversation

    def post_message(self, case_id, user_id, content: str) -> MessageRecord:
        message = funcs.create_message(case_id=case_id, user_id=user_id, content=content)
        self._publish("messages", "INSERT", message)
        return MessageRecord.model_validate(message)

    def post_ai_message(self, case_id, content: str) -> MessageRecord:
        message = funcs.create_ai_message(case_id=case_id, content=content)
        self._publish("messages", "INSERT", message)
        return MessageRecord.model_validate(message)

    def record_summary(self, case_id, summary: str, message_content: str) -> MessageRecord:
        result = funcs.record_summary(case_id=case_id, summary=summary, message_content=message_content)
        self._publish("cases", "UPDATE", result["case"])
        self._publish("messages", "INSERT", result["message"])
        return MessageRecord.model_validate(result["message"])

    # agreement

    def save_draft(
        self,
        case_id,
        draft_text: str,
        message_content: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Tuple[AgreementRecord, Optional[MessageRecord]]:
        result = funcs.save_agreement_draft(
            case_id=case_id,
            draft_text=draft_text,
            message_content=message_content,
            expected_version=expected_version,
        )
        agreement = result["agreement"]
        self._publish("agreements", "INSERT" if agreement["version"] == 1 else "UPDATE", agreement)
        message = None
        if result["message"] is not None:
            self._publish("messages", "INSERT", result["message"])
            message = MessageRecord.model_validate(result["message"])
        return AgreementRecord.model_validate(agreement), message

    def finalize_agreement(
        self, case_id, user_id, draft_text: Optional[str] = None, expected_version: Optional[int] = None
    ) -> AgreementRecord:
        agreement = funcs.finalize_agreement(
            case_id=case_id, user_id=user_id, draft_text=draft_text, expected_version=expected_version
        )
        self._publish("agreements", "UPDATE", agreement)
        return AgreementRecord.model_validate(agreement)

    def sign_agreement(self, case_id, user_id, typed_name: str) -> dict:
        """
        Returns
        -------
        dict
            {'participant': ParticipantRecord, 'case': CaseRecord, 'resolved': bool}
        """
        result = funcs.sign_agreement(case_id=case_id, user_id=user_id, typed_name=typed_name)
        self._publish("case_participants", "UPDATE", result["participant"])
        if result["resolved"]:
            self._publish("cases", "UPDATE", result["case"])
        return {
            "participant": ParticipantRecord.model_validate(result["participant"]),
            "case": CaseRecord.model_validate(result["case"]),
            "resolved": result["resolved"],
        }

    # files

    def add_file(self, case_id, user_id, file_name: str, file_path: str, file_size: int, mime_type: Optional[str]) -> CaseFileRecord:
        case_file = funcs.create_case_file(
            case_id=case_id,
            user_id=user_id,
            file_name=file_name,
            file_path=file_path,
            file_size=file_size,
            mime_type=mime_type,
        )
        return CaseFileRecord.model_validate(case_file)
