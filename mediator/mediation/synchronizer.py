"""
In-memory mirror of one case.

`SessionSynchronizer` holds the case row, its participants, contexts,
messages and agreement. It is filled from a snapshot and then kept current by
feeding it INSERT/UPDATE changes. Merges are keyed by primary key, so a change
that arrives twice (or an insert that was already part of the snapshot) is
harmless. Rows are never removed.
"""

from mediator.mediation.records import (
    AgreementRecord,
    CaseRecord,
    CaseSnapshot,
    Change,
    ContextRecord,
    MessageRecord,
    ParticipantRecord,
)
from mediator.mediation.prompt_builder import DEFAULT_MESSAGE_WINDOW
from typing import Dict, List, Optional, Tuple
from uuid import UUID
from datetime import datetime, timezone
import bisect
import threading

AI_SENDER_LABEL = "AI Mediator"
ROLE_LABELS = {"initiator": "Party A", "invited_party": "Party B"}
UNKNOWN_SENDER_LABEL = "Unknown"
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class SessionSynchronizer:
    """
    Parameters
    ----------
    case_id : UUID
        The case this mirror belongs to; changes for other cases are ignored.
    """

    def __init__(self, case_id: UUID):
        self.case_id = UUID(str(case_id))
        self.case: Optional[CaseRecord] = None
        self.participants: Dict[UUID, ParticipantRecord] = {}
        self.contexts: Dict[UUID, ContextRecord] = {}
        self.agreement: Optional[AgreementRecord] = None
        self._messages: List[MessageRecord] = []
        self._message_keys: List[Tuple] = []
        self._message_index: Dict[UUID, int] = {}
        self._arrival = 0
        self._lock = threading.RLock()

    # loading

    def load(self, snapshot: CaseSnapshot) -> None:
        """Bulk-load a snapshot on top of whatever is already mirrored."""
        with self._lock:
            self._merge_case(snapshot.case)
            for participant in snapshot.participants:
                self._merge_participant(participant)
            for context in snapshot.contexts:
                self._merge_context(context)
            for message in snapshot.messages:
                self._merge_message(message)
            if snapshot.agreement is not None:
                self._merge_agreement(snapshot.agreement)

    def apply(self, change: Change) -> bool:
        """
        Merge one change.

        Returns
        -------
        bool
            True if the mirror changed.
        """
        if change.case_id != self.case_id:
            return False
        with self._lock:
            record = change.record
            if isinstance(record, CaseRecord):
                return self._merge_case(record)
            if isinstance(record, ParticipantRecord):
                return self._merge_participant(record)
            if isinstance(record, ContextRecord):
                return self._merge_context(record)
            if isinstance(record, MessageRecord):
                return self._merge_message(record)
            if isinstance(record, AgreementRecord):
                return self._merge_agreement(record)
            return False

    def _merge_case(self, record: CaseRecord) -> bool:
        if record.id != self.case_id or self.case == record:
            return False
        self.case = record
        return True

    def _merge_participant(self, record: ParticipantRecord) -> bool:
        if record.case_id != self.case_id:
            return False
        current = self.participants.get(record.id)
        if current == record:
            return False
        if current is not None and record.display_name is None:
            record = record.model_copy(update={"display_name": current.display_name})
        self.participants[record.id] = record
        return True

    def _merge_context(self, record: ContextRecord) -> bool:
        if record.case_id != self.case_id or self.contexts.get(record.user_id) == record:
            return False
        self.contexts[record.user_id] = record
        return True

    def _merge_agreement(self, record: AgreementRecord) -> bool:
        if record.case_id != self.case_id or self.agreement == record:
            return False
        self.agreement = record
        return True

    def _merge_message(self, record: MessageRecord) -> bool:
        if record.case_id != self.case_id:
            return False
        position = self._message_index.get(record.id)
        if position is not None:
            if self._messages[position] == record:
                return False
            # messages are append-only; an update keeps its slot
            self._messages[position] = record
            return True
        key = (record.created_at, self._arrival)
        self._arrival += 1
        slot = bisect.bisect_right(self._message_keys, key)
        self._message_keys.insert(slot, key)
        self._messages.insert(slot, record)
        self._message_index = {m.id: i for i, m in enumerate(self._messages)}
        return True

    # reads

    @property
    def messages(self) -> List[MessageRecord]:
        with self._lock:
            return list(self._messages)

    def recent_messages(self, window: int = DEFAULT_MESSAGE_WINDOW) -> List[MessageRecord]:
        with self._lock:
            return list(self._messages[-window:]) if window else []

    def participant_for_user(self, user_id) -> Optional[ParticipantRecord]:
        user_id = UUID(str(user_id))
        with self._lock:
            for participant in self.participants.values():
                if participant.user_id == user_id:
                    return participant
        return None

    def party_label(self, user_id) -> str:
        participant = self.participant_for_user(user_id)
        if participant is None:
            return UNKNOWN_SENDER_LABEL
        return ROLE_LABELS.get(participant.role_in_case, UNKNOWN_SENDER_LABEL)

    def sender_label(self, message: MessageRecord) -> str:
        """`AI Mediator`, `Party A`, `Party B` or `Unknown`."""
        if message.sender_type == "ai":
            return AI_SENDER_LABEL
        if message.sender_user_id is None:
            return UNKNOWN_SENDER_LABEL
        return self.party_label(message.sender_user_id)

    def display_name(self, user_id) -> Optional[str]:
        participant = self.participant_for_user(user_id)
        return participant.display_name if participant else None

    def recent_lines(self, window: int = DEFAULT_MESSAGE_WINDOW) -> List[Tuple[str, str]]:
        """Recent messages as ``(sender label, content)`` pairs."""
        return [(self.sender_label(m), m.content) for m in self.recent_messages(window)]

    def party_contexts(self) -> List[dict]:
        """Contexts in submission order, labelled by party."""
        with self._lock:
            contexts = sorted(self.contexts.values(), key=lambda c: c.created_at or _EPOCH)
        contexts_out = []
        for c in contexts:
            participant = self.participant_for_user(c.user_id)
            party = "Party A" if participant is not None and participant.role_in_case == "initiator" else "Party B"
            contexts_out.append(
                {
                    "party": party,
                    "background": c.background_text,
                    "goals": c.goals_text,
                    "acceptableOutcome": c.acceptable_outcome_text,
                    "constraints": c.constraints_text,
                }
            )
        return contexts_out

    def case_meta(self) -> dict:
        if self.case is None:
            return {}
        return {"title": self.case.title, "type": self.case.type}

    def last_user_message(self, user_id) -> Optional[MessageRecord]:
        """The most recent message `user_id` sent, if any."""
        user_id = UUID(str(user_id))
        with self._lock:
            for message in reversed(self._messages):
                if message.sender_type == "user" and message.sender_user_id == user_id:
                    return message
        return None

    def snapshot(self) -> CaseSnapshot:
        with self._lock:
            return CaseSnapshot(
                case=self.case,
                participants=list(self.participants.values()),
                contexts=list(self.contexts.values()),
                messages=list(self._messages),
                agreement=self.agreement,
            )
