"""
FastAPI Router — Auth • Cases • Conversation • AI Assist • Agreement • Files
===========================================================================

Purpose
-------
Defines the HTTP API for:
- Authentication: register, login, logout, current user
- Cases: create, list, snapshot, invite/join, participant context, activation
- Conversation: post messages; AI assist actions that post into it
- Agreement: finalize and sign
- Case files: upload to S3, list with presigned download links

Key Notes
---------
- Input validation via Pydantic models in `mediator.api.models`.
- Auth: `Authorization: Bearer <jwt>` or the HttpOnly `token` cookie set at login.
- Rule violations raise `MediationError` subclasses, rendered by the app as
  `{"error": message}` with the matching status code.
- Handlers are plain `def` so FastAPI runs the blocking DB and LLM calls on
  its worker threads.
"""

from fastapi import APIRouter, Response, Depends, UploadFile, File
from uuid import UUID
from mediator.api.models import (
    CaseCreationDetails,
    ContextDetails,
    FinalizeDetails,
    ImproveDraftDetails,
    InviteDetails,
    NewMessage,
    SignatureDetails,
    UserCredentials,
    UserData,
)
from mediator.database.core.funcs import login_user, register_user
from mediator.api.utils import (
    create_access_token,
    get_case_store,
    get_current_user,
    get_orchestrator,
    get_storage_client,
)
from mediator.api.aws_bucket_funcs.funcs import case_file_key, upload, download
from mediator.database.config.config import settings
from mediator.mediation.errors import InvalidInput, NotFound
from mediator.mediation.orchestrator import MediationOrchestrator
from mediator.mediation.store import CaseStore
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter()
"""Creates the FastAPI router in which we define its routes"""


# -----------------------
# Auth
# -----------------------

@router.post('/auth/register')
def register(data: UserData):
    """Register a new user account.

    Returns the public profile; 400 when the password policy is not met and
    409 when the email is taken.
    """
    return register_user(email=data.email, password=data.password, full_name=data.full_name)


@router.post('/auth/login')
def login(data: UserCredentials, response: Response):
    """Authenticate a user and issue a JWT.

    Behavior:
        - Verifies credentials via `login_user` (401 on failure).
        - Returns the token in the body and sets it as an HttpOnly cookie `token`.
    """
    user = login_user(email=data.email, password=data.password)
    access_token = create_access_token({'sub': str(user['id'])})
    response.set_cookie(
        key="token",
        value=access_token,
        httponly=True,
        secure=False,  # True in production
        samesite="lax",
    )
    return {'access_token': access_token, 'token_type': 'bearer', 'user': user}


@router.post('/auth/logout')
def logout(response: Response):
    response.delete_cookie("token")
    return True


@router.get('/auth/me')
def me(user: dict = Depends(get_current_user)):
    return user


# -----------------------
# Cases
# -----------------------

@router.post('/cases')
def new_case(data: CaseCreationDetails, user: dict = Depends(get_current_user), store: CaseStore = Depends(get_case_store)):
    """Open a draft case; the caller becomes its initiator."""
    return store.create_case(user['id'], data.title, data.description, data.type)


@router.get('/cases')
def user_cases(user: dict = Depends(get_current_user), store: CaseStore = Depends(get_case_store)):
    """Cases the caller participates in, newest first."""
    return store.list_cases(user['id'])


@router.get('/cases/{case_id}')
def case_snapshot(case_id: UUID, user: dict = Depends(get_current_user), store: CaseStore = Depends(get_case_store)):
    """Everything the mediation room shows: case, participants, contexts, messages, agreement."""
    return store.snapshot(case_id, user['id'])


@router.post('/cases/{case_id}/invite')
def invite(case_id: UUID, data: InviteDetails, user: dict = Depends(get_current_user), store: CaseStore = Depends(get_case_store)):
    """Issue a fresh invite token. Initiator only."""
    case = store.generate_invite(case_id, user['id'], data.invite_email)
    return {'invite_token': case.invite_token, 'invite_email': case.invite_email, 'case_id': case.id}


@router.get('/invites/{invite_token}')
def invite_preview(invite_token: str, user: dict = Depends(get_current_user), store: CaseStore = Depends(get_case_store)):
    return store.fetch_invite(invite_token)


@router.post('/invites/{invite_token}/join')
def join(invite_token: str, user: dict = Depends(get_current_user), store: CaseStore = Depends(get_case_store)):
    """Join the invited case as the second party."""
    return store.join_case(invite_token, user['id'])


@router.post('/cases/{case_id}/context')
def add_context(case_id: UUID, data: ContextDetails, user: dict = Depends(get_current_user), store: CaseStore = Depends(get_case_store)):
    """Submit the caller's private context, once per case."""
    return store.insert_context(case_id, user['id'], **data.model_dump())


@router.post('/cases/{case_id}/activate')
def activate(case_id: UUID, user: dict = Depends(get_current_user), store: CaseStore = Depends(get_case_store)):
    return store.activate_case(case_id, user['id'])


@router.post('/cases/{case_id}/messages')
def new_message(case_id: UUID, data: NewMessage, user: dict = Depends(get_current_user), store: CaseStore = Depends(get_case_store)):
    return store.post_message(case_id, user['id'], data.content.strip())


# -----------------------
# AI assist
# -----------------------

ASSIST_ACTIONS = ('summarize', 'suggest-compromises', 'rephrase', 'generate-draft', 'improve-clarity')


@router.post('/cases/{case_id}/assist/{action}')
def assist(
    case_id: UUID,
    action: str,
    data: Optional[ImproveDraftDetails] = None,
    user: dict = Depends(get_current_user),
    orchestrator: MediationOrchestrator = Depends(get_orchestrator),
):
    """Run one AI-assist action.

    Returns:
        {'result': <message or agreement record>} or {'result': None} when the
        action had nothing to work on (no own message to rephrase, no draft
        to improve).
    """
    if action == 'summarize':
        result = orchestrator.summarize(case_id, user['id'])
    elif action == 'suggest-compromises':
        result = orchestrator.suggest_compromises(case_id, user['id'])
    elif action == 'rephrase':
        result = orchestrator.rephrase_last_message(case_id, user['id'])
    elif action == 'generate-draft':
        result = orchestrator.generate_draft(case_id, user['id'])
    elif action == 'improve-clarity':
        expected_version = data.expected_version if data else None
        result = orchestrator.improve_draft(case_id, user['id'], expected_version=expected_version)
    else:
        raise NotFound(f"Unknown assist action '{action}'. Expected one of: {', '.join(ASSIST_ACTIONS)}")
    return {'result': result}


# -----------------------
# Agreement
# -----------------------

@router.post('/cases/{case_id}/agreement/finalize')
def finalize(
    case_id: UUID,
    data: Optional[FinalizeDetails] = None,
    user: dict = Depends(get_current_user),
    orchestrator: MediationOrchestrator = Depends(get_orchestrator),
):
    data = data or FinalizeDetails()
    return orchestrator.finalize_agreement(case_id, user['id'], draft_text=data.draft_text, expected_version=data.expected_version)


@router.post('/cases/{case_id}/agreement/sign')
def sign(
    case_id: UUID,
    data: SignatureDetails,
    user: dict = Depends(get_current_user),
    orchestrator: MediationOrchestrator = Depends(get_orchestrator),
):
    """Sign by typing one's own name; the case resolves when everyone has signed."""
    return orchestrator.sign(case_id, user['id'], data.full_name)


# -----------------------
# Case files
# -----------------------

@router.post('/cases/{case_id}/files')
def upload_file(
    case_id: UUID,
    file: UploadFile = File(...),
    user: dict = Depends(get_current_user),
    store: CaseStore = Depends(get_case_store),
    s3_client=Depends(get_storage_client),
):
    """Upload a document to the case. Participants only."""
    store.require_participant(case_id, user['id'])
    if not file.filename:
        raise InvalidInput("Invalid input: file is required")
    key = case_file_key(case_id, file.filename)
    upload(file.file, key, s3_client, file_name=file.filename, content_type=file.content_type)
    file.file.seek(0, 2)
    size = file.file.tell()
    record = store.add_file(case_id, user['id'], file.filename, key, size, file.content_type)
    logger.info(f"File {record.id} uploaded to case {case_id} by {user['id']}")
    return record


@router.get('/cases/{case_id}/files')
def list_files(
    case_id: UUID,
    user: dict = Depends(get_current_user),
    store: CaseStore = Depends(get_case_store),
    s3_client=Depends(get_storage_client),
):
    """Files of the case with short-lived download links."""
    files = store.list_files(case_id, user['id'])
    return [
        f.model_copy(update={'download_url': download(f.file_path, s3_client, expires=settings.PRESIGNED_URL_EXPIRES)})
        for f in files
    ]
