"""
Service-layer operations for users, cases, the mediated conversation and
the settlement agreement.

All public functions are wrapped with the `@transactional` decorator, which
manages SQLAlchemy sessions and transactions automatically. Each function
accepts (and uses) an injected `session: Session` provided by the decorator,
so callers pass every other argument by keyword.

Results are plain dicts built inside the transaction; ORM instances never
leave this module. Rule violations raise the errors from
`mediator.mediation.errors` and roll the transaction back.
"""

from mediator.database.helpers.transactionManagement import transactional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from uuid import UUID
import uuid
from mediator.database.daos.user_dao import UserDao
from mediator.database.daos.case_dao import CaseDao
from mediator.database.daos.participant_dao import ParticipantDao
from mediator.database.daos.context_dao import ContextDao
from mediator.database.daos.message_dao import CaseMessagesDao
from mediator.database.daos.agreement_dao import AgreementDao
from mediator.database.daos.rate_limit_dao import RateLimitDao
from mediator.database.daos.case_file_dao import CaseFileDao
from mediator.crypt.encrypt_decrypt import EncryptionDec
from mediator.database.entities.user import User
from mediator.database.entities.cases import Case, CASE_TYPES
from mediator.database.entities.participants import CaseParticipant
from mediator.database.entities.contexts import CaseContext, SENSITIVITY_LEVELS
from mediator.database.entities.messages import CaseMessage
from mediator.database.entities.agreements import Agreement
from mediator.database.entities.case_files import CaseFile
from mediator.mediation.errors import Conflict, Forbidden, InvalidInput, NotFound, Unauthenticated
from datetime import datetime, timezone
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


def _as_uuid(value) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise NotFound("Case not found")


def _user_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "display_name": user.display_name,
        "created_on": user.created_on,
    }


def _case_dict(case: Case) -> dict:
    return {
        "id": case.id,
        "title": case.title,
        "description": case.description,
        "type": case.type,
        "status": case.status,
        "ai_summary": case.ai_summary,
        "invite_token": case.invite_token,
        "invite_email": case.invite_email,
        "created_by": case.created_by,
        "created_at": case.created_at,
    }


def _participant_dict(participant: CaseParticipant, user: User) -> dict:
    return {
        "id": participant.id,
        "case_id": participant.case_id,
        "user_id": participant.user_id,
        "role_in_case": participant.role_in_case,
        "has_signed_agreement": participant.has_signed_agreement,
        "signed_at": participant.signed_at,
        "joined_at": participant.joined_at,
        "display_name": user.display_name,
    }


def _context_dict(context: CaseContext) -> dict:
    return {
        "id": context.id,
        "case_id": context.case_id,
        "user_id": context.user_id,
        "background_text": context.background_text,
        "goals_text": context.goals_text,
        "acceptable_outcome_text": context.acceptable_outcome_text,
        "constraints_text": context.constraints_text,
        "sensitivity_level": context.sensitivity_level,
        "created_at": context.created_at,
    }


def _message_dict(message: CaseMessage) -> dict:
    return {
        "id": message.id,
        "case_id": message.case_id,
        "sender_user_id": message.sender_user_id,
        "sender_type": message.sender_type,
        "content": message.content,
        "message_type": message.message_type,
        "created_at": message.created_at,
    }


def _agreement_dict(agreement: Agreement) -> dict:
    return {
        "id": agreement.id,
        "case_id": agreement.case_id,
        "draft_text": agreement.draft_text,
        "finalized_text": agreement.finalized_text,
        "status": agreement.status,
        "finalized_at": agreement.finalized_at,
        "version": agreement.version,
        "updated_at": agreement.updated_at,
    }


def _file_dict(case_file: CaseFile) -> dict:
    return {
        "id": case_file.id,
        "case_id": case_file.case_id,
        "user_id": case_file.user_id,
        "file_name": case_file.file_name,
        "file_path": case_file.file_path,
        "file_size": case_file.file_size,
        "mime_type": case_file.mime_type,
        "uploaded_at": case_file.uploaded_at,
    }


def _require_case(session: Session, case_id) -> Case:
    case = CaseDao().fetchCaseById(session, _as_uuid(case_id))
    if case is None:
        raise NotFound("Case not found")
    return case


def _require_participant(session: Session, case_id, user_id) -> CaseParticipant:
    case = _require_case(session, case_id)
    participant = ParticipantDao().fetchParticipant(session, case.id, _as_uuid(user_id))
    if participant is None:
        raise Forbidden("You are not a participant of this case")
    return participant


def _require_initiator(session: Session, case_id, user_id) -> CaseParticipant:
    participant = _require_participant(session, case_id, user_id)
    if participant.role_in_case != "initiator":
        raise Forbidden("Only the case initiator can do this")
    return participant


@transactional
def register_user(session: Session, email: str, password: str, full_name: Optional[str] = None) -> dict:
    """
    Validate and create a new user.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    email : str
        Login email (must be unique).
    password : str
        Plaintext password; must satisfy `EncryptionDec.is_valid_password`.
    full_name : str, optional
        Name shown to the other party and typed when signing.

    Returns
    -------
    dict
        The public profile of the new user.

    Raises
    ------
    InvalidInput
        Password does not meet the complexity policy.
    Conflict
        The email is already registered.
    """
    user_dao = UserDao()
    enc = EncryptionDec()
    email = email.strip()
    if not email:
        raise InvalidInput("Invalid input: email is required")
    if not enc.is_valid_password(password):
        raise InvalidInput(enc.password_policy_message(password))
    if user_dao.fetchUserByEmail(session, email) is not None:
        raise Conflict("A user with that email already exists")
    user = User(
        email=email,
        password=password,
        full_name=full_name,
        created_on=datetime.now(timezone.utc).isoformat(),
    )
    user_dao.createUser(session, user)
    session.flush()
    return _user_dict(user)


@transactional
def login_user(session: Session, email: str, password: str) -> dict:
    """
    Authenticate a user by email and password.

    Returns
    -------
    dict
        The public profile of the user.

    Raises
    ------
    Unauthenticated
        Unknown email or wrong password; the message does not say which.
    """
    user = UserDao().fetchUserByEmail(session, email.strip())
    if user is None or not EncryptionDec().check_passwords(password, user.password):
        raise Unauthenticated("Invalid email or password")
    return _user_dict(user)


@transactional
def fetch_user(session: Session, user_id) -> Optional[dict]:
    """Return the profile of `user_id`, or None if it no longer exists."""
    try:
        user_id = _as_uuid(user_id)
    except NotFound:
        return None
    user = UserDao().fetchUserById(session, user_id)
    return _user_dict(user) if user else None


@transactional
def create_case(session: Session, user_id, title: str, description: Optional[str], case_type: str) -> dict:
    """
    Create a draft case and register its creator as the initiator.

    Returns
    -------
    dict
        {'case': <case>, 'participant': <initiator participant>}
    """
    if not title or not title.strip():
        raise InvalidInput("Invalid input: title is required")
    if case_type not in CASE_TYPES:
        raise InvalidInput(f"Invalid input: type must be one of {', '.join(CASE_TYPES)}")
    user = UserDao().fetchUserById(session, _as_uuid(user_id))
    if user is None:
        raise Unauthenticated()
    timestamp = datetime.now(timezone.utc)
    case = Case(
        case_id=uuid.uuid4(),
        title=title.strip(),
        description=description,
        case_type=case_type,
        created_by=user.id,
        created_at=timestamp,
    )
    CaseDao().createCase(session, case)
    participant = CaseParticipant(case_id=case.id, user_id=user.id, role_in_case="initiator", joined_at=timestamp)
    ParticipantDao().createParticipant(session, participant)
    session.flush()
    logger.info(f"Case {case.id} created by {user.id}")
    return {"case": _case_dict(case), "participant": _participant_dict(participant, user)}


@transactional
def list_cases(session: Session, user_id) -> List[dict]:
    """List the cases `user_id` participates in, newest first."""
    cases = CaseDao().fetchCasesByUserId(session, _as_uuid(user_id))
    return [_case_dict(case) for case in cases]


@transactional
def generate_invite(session: Session, case_id, user_id, invite_email: Optional[str] = None) -> dict:
    """
    Issue a new invite token for a case. Only the initiator may invite, and a
    resolved case cannot be joined any more.
    """
    participant = _require_initiator(session, case_id, user_id)
    case = CaseDao().fetchCaseById(session, participant.case_id)
    if case.status == "resolved":
        raise Conflict("Case is already resolved")
    CaseDao().updateInvite(session, case, EncryptionDec().generate_invite_token(), invite_email)
    return _case_dict(case)


@transactional
def fetch_invite_case(session: Session, invite_token: str) -> dict:
    """
    Preview the case behind an invite token.

    Returns
    -------
    dict
        {'case_id', 'title', 'description', 'type', 'status', 'invited_by'}
    """
    case = CaseDao().fetchCaseByInviteToken(session, invite_token)
    if case is None:
        raise NotFound("Invite not found")
    inviter = UserDao().fetchUserById(session, case.created_by)
    return {
        "case_id": case.id,
        "title": case.title,
        "description": case.description,
        "type": case.type,
        "status": case.status,
        "invited_by": inviter.display_name if inviter else None,
    }


@transactional
def join_case(session: Session, invite_token: str, user_id) -> dict:
    """
    Join the case behind `invite_token` as the invited party.

    Raises
    ------
    NotFound
        Unknown token.
    Conflict
        The user already participates, the invited seat is taken, or the case
        is resolved.
    """
    case_dao = CaseDao()
    participant_dao = ParticipantDao()
    case = case_dao.fetchCaseByInviteToken(session, invite_token)
    if case is None:
        raise NotFound("Invite not found")
    if case.status == "resolved":
        raise Conflict("Case is already resolved")
    user = UserDao().fetchUserById(session, _as_uuid(user_id))
    if user is None:
        raise Unauthenticated()
    members = participant_dao.fetchParticipantsWithUsers(session, case.id)
    if any(p.user_id == user.id for p, _ in members):
        raise Conflict("You already participate in this case")
    if any(p.role_in_case == "invited_party" for p, _ in members):
        raise Conflict("This case already has an invited party")
    participant = CaseParticipant(
        case_id=case.id,
        user_id=user.id,
        role_in_case="invited_party",
        joined_at=datetime.now(timezone.utc),
    )
    participant_dao.createParticipant(session, participant)
    try:
        session.flush()
    except IntegrityError:
        raise Conflict("You already participate in this case")
    return {"case": _case_dict(case), "participant": _participant_dict(participant, user)}


@transactional
def insert_context(
    session: Session,
    case_id,
    user_id,
    background_text: Optional[str] = None,
    goals_text: Optional[str] = None,
    acceptable_outcome_text: Optional[str] = None,
    constraints_text: Optional[str] = None,
    sensitivity_level: str = "normal",
) -> dict:
    """
    Store the caller's private context for a case. Each participant writes it
    exactly once.
    """
    participant = _require_participant(session, case_id, user_id)
    if sensitivity_level not in SENSITIVITY_LEVELS:
        raise InvalidInput(f"Invalid input: sensitivity_level must be one of {', '.join(SENSITIVITY_LEVELS)}")
    context_dao = ContextDao()
    if context_dao.fetchContext(session, participant.case_id, participant.user_id) is not None:
        raise Conflict("Context already submitted")
    context = CaseContext(
        case_id=participant.case_id,
        user_id=participant.user_id,
        background_text=background_text,
        goals_text=goals_text,
        acceptable_outcome_text=acceptable_outcome_text,
        constraints_text=constraints_text,
        sensitivity_level=sensitivity_level,
        created_at=datetime.now(timezone.utc),
    )
    context_dao.createContext(session, context)
    session.flush()
    return _context_dict(context)


@transactional
def activate_case(session: Session, case_id, user_id) -> dict:
    """Move a draft case to active. Initiator only."""
    participant = _require_initiator(session, case_id, user_id)
    case_dao = CaseDao()
    if not case_dao.updateStatus(session, participant.case_id, "draft", "active"):
        raise Conflict("Only a draft case can be activated")
    case = case_dao.fetchCaseById(session, participant.case_id)
    session.refresh(case)
    return _case_dict(case)


@transactional
def fetch_participant(session: Session, case_id, user_id) -> dict:
    """
    Return the membership of `user_id` in `case_id`.

    Raises
    ------
    NotFound
        Unknown case.
    Forbidden
        The user does not participate.
    """
    participant = _require_participant(session, case_id, user_id)
    user = UserDao().fetchUserById(session, participant.user_id)
    return _participant_dict(participant, user)


@transactional
def create_message(session: Session, case_id, user_id, content: str) -> dict:
    """Append a plain user message to the case conversation."""
    participant = _require_participant(session, case_id, user_id)
    if not content or not content.strip():
        raise InvalidInput("Invalid input: content is required")
    message = CaseMessage(
        case_id=participant.case_id,
        sender_user_id=participant.user_id,
        sender_type="user",
        content=content,
        message_type="plain",
        created_at=datetime.now(timezone.utc),
    )
    CaseMessagesDao().createMessage(session, message)
    session.flush()
    return _message_dict(message)


@transactional
def create_ai_message(session: Session, case_id, content: str) -> dict:
    """Append an AI suggestion to the case conversation."""
    case = _require_case(session, case_id)
    message = CaseMessage(
        case_id=case.id,
        sender_user_id=None,
        sender_type="ai",
        content=content,
        message_type="ai_suggestion",
        created_at=datetime.now(timezone.utc),
    )
    CaseMessagesDao().createMessage(session, message)
    session.flush()
    return _message_dict(message)


@transactional
def record_summary(session: Session, case_id, summary: str, message_content: str) -> dict:
    """
    Store a new AI summary on the case and post it to the conversation.

    Returns
    -------
    dict
        {'case': <case>, 'message': <message>}
    """
    case = _require_case(session, case_id)
    CaseDao().updateSummary(session, case, summary)
    message = create_ai_message(case_id=case.id, content=message_content)
    session.flush()
    return {"case": _case_dict(case), "message": message}


@transactional
def save_agreement_draft(
    session: Session,
    case_id,
    draft_text: str,
    message_content: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> dict:
    """
    Create or overwrite the agreement draft of a case.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    case_id : UUID
        Case whose agreement is written.
    draft_text : str
        New draft.
    message_content : str, optional
        When given, also posted to the conversation as an AI suggestion.
    expected_version : int, optional
        Compare-and-swap guard. Without it the write is last-write-wins.

    Returns
    -------
    dict
        {'agreement': <agreement>, 'message': <message | None>}

    Raises
    ------
    Conflict
        The agreement is finalized, or its version moved past `expected_version`.
    """
    case = _require_case(session, case_id)
    agreement_dao = AgreementDao()
    timestamp = datetime.now(timezone.utc)
    agreement = agreement_dao.fetchAgreementByCaseId(session, case.id)
    if agreement is None:
        if expected_version is not None:
            raise Conflict("Agreement was modified by someone else")
        agreement = Agreement(case_id=case.id, draft_text=draft_text, updated_at=timestamp)
        agreement_dao.createAgreement(session, agreement)
        try:
            session.flush()
        except IntegrityError:
            raise Conflict("Agreement was modified by someone else")
    else:
        if agreement.status == "finalized":
            raise Conflict("Agreement is already finalized")
        if not agreement_dao.updateDraft(session, agreement.id, draft_text, timestamp, expected_version):
            raise Conflict("Agreement was modified by someone else")
        session.refresh(agreement)
    message = None
    if message_content is not None:
        message = create_ai_message(case_id=case.id, content=message_content)
    return {"agreement": _agreement_dict(agreement), "message": message}


@transactional
def fetch_agreement(session: Session, case_id) -> Optional[dict]:
    agreement = AgreementDao().fetchAgreementByCaseId(session, _require_case(session, case_id).id)
    return _agreement_dict(agreement) if agreement else None


@transactional
def finalize_agreement(
    session: Session,
    case_id,
    user_id,
    draft_text: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> dict:
    """
    Freeze the agreement: copy the draft into `finalized_text`, set status
    `finalized` and stamp `finalized_at`.

    When `draft_text` is given it is written as the draft first, so the text
    the caller reviewed is the text that gets frozen.

    Raises
    ------
    Conflict
        No draft exists, the agreement is already finalized, or the version
        check failed.
    """
    participant = _require_participant(session, case_id, user_id)
    agreement_dao = AgreementDao()
    agreement = agreement_dao.fetchAgreementByCaseId(session, participant.case_id)
    if agreement is None:
        raise Conflict("There is no agreement draft to finalize")
    if agreement.status == "finalized":
        raise Conflict("Agreement is already finalized")
    timestamp = datetime.now(timezone.utc)
    if draft_text is not None:
        if not agreement_dao.updateDraft(session, agreement.id, draft_text, timestamp, expected_version):
            raise Conflict("Agreement was modified by someone else")
    elif expected_version is not None and agreement.version != expected_version:
        raise Conflict("Agreement was modified by someone else")
    if not agreement_dao.finalizeAgreement(session, agreement.id, timestamp):
        raise Conflict("Agreement is already finalized")
    session.refresh(agreement)
    logger.info(f"Agreement {agreement.id} finalized by {participant.user_id}")
    return _agreement_dict(agreement)


@transactional
def sign_agreement(session: Session, case_id, user_id, typed_name: str) -> dict:
    """
    Record a participant's signature and resolve the case once everyone signed.

    The typed name must equal the signer's display name exactly
    (case-sensitive): the full name, or the email when no full name is on
    file. The case row is locked first, so signatures of one case are
    serialized and the last signer always sees everyone else's flag.
    Setting the flag and deriving the resolution happen in this one
    transaction.

    Returns
    -------
    dict
        {'participant': <participant>, 'case': <case>, 'resolved': bool}

    Raises
    ------
    InvalidInput
        The typed name does not match; nothing is written.
    Conflict
        The participant already signed.
    """
    case_dao = CaseDao()
    case = case_dao.fetchCaseForUpdate(session, _as_uuid(case_id))
    if case is None:
        raise NotFound("Case not found")
    participant = _require_participant(session, case.id, user_id)
    user = UserDao().fetchUserById(session, participant.user_id)
    if participant.has_signed_agreement:
        raise Conflict("You have already signed this agreement")
    if typed_name != user.display_name:
        raise InvalidInput("The typed name does not match your name on file")
    ParticipantDao().markSigned(session, participant, datetime.now(timezone.utc))
    session.flush()
    resolved = case_dao.resolveCaseIfAllSigned(session, case.id)
    session.refresh(case)
    if resolved:
        logger.info(f"Case {case.id} resolved")
    return {"participant": _participant_dict(participant, user), "case": _case_dict(case), "resolved": resolved}


@transactional
def fetch_case_snapshot(session: Session, case_id, user_id) -> dict:
    """
    Load everything a viewer of the case needs in one read.

    Returns
    -------
    dict
        {'case', 'participants', 'contexts', 'messages', 'agreement'}
    """
    participant = _require_participant(session, case_id, user_id)
    case = CaseDao().fetchCaseById(session, participant.case_id)
    members = ParticipantDao().fetchParticipantsWithUsers(session, case.id)
    contexts = ContextDao().fetchContextsByCaseId(session, case.id)
    messages = CaseMessagesDao().fetchMessagesByCaseId(session, case.id)
    agreement = AgreementDao().fetchAgreementByCaseId(session, case.id)
    return {
        "case": _case_dict(case),
        "participants": [_participant_dict(p, u) for p, u in members],
        "contexts": [_context_dict(c) for c in contexts],
        "messages": [_message_dict(m) for m in messages],
        "agreement": _agreement_dict(agreement) if agreement else None,
    }


@transactional
def fetch_rate_limit_timestamps(session: Session, user_id) -> List[float]:
    return RateLimitDao().fetchTimestamps(session, _as_uuid(user_id))


@transactional
def save_rate_limit_timestamps(session: Session, user_id, timestamps: List[float]) -> None:
    RateLimitDao().saveTimestamps(session, _as_uuid(user_id), timestamps)


@transactional
def create_case_file(
    session: Session,
    case_id,
    user_id,
    file_name: str,
    file_path: str,
    file_size: int,
    mime_type: Optional[str],
) -> dict:
    """Record an uploaded file. The object must already be in storage."""
    participant = _require_participant(session, case_id, user_id)
    case_file = CaseFile(
        case_id=participant.case_id,
        user_id=participant.user_id,
        file_name=file_name,
        file_path=file_path,
        file_size=file_size,
        mime_type=mime_type,
        uploaded_at=datetime.now(timezone.utc),
    )
    CaseFileDao().createCaseFile(session, case_file)
    session.flush()
    return _file_dict(case_file)


@transactional
def list_case_files(session: Session, case_id, user_id) -> List[dict]:
    participant = _require_participant(session, case_id, user_id)
    return [_file_dict(f) for f in CaseFileDao().fetchFilesByCaseId(session, participant.case_id)]
