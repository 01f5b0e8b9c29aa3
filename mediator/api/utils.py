"""
JWT utilities and shared FastAPI dependencies.

Functions
---------
create_access_token(data: dict) -> str
    Creates a signed JWT access token with an expiration (`exp`) claim.
verify_token(token: str) -> str | None
    Verify a JWT's signature & expiration and return the subject (`sub`) if valid.
get_current_user(request) -> dict
    Dependency resolving the caller from a Bearer header or the `token` cookie.
get_case_store / get_rate_limiter / get_llm_gateway / get_orchestrator / get_storage_client
    Dependencies handing out the application's collaborators. Tests replace
    them through `app.dependency_overrides`.

Environment contract (from `settings`)
--------------------------------------
SECRET_KEY : str
    HMAC signing key for JWTs.
ALGORITHM : str
    JWT signing algorithm (e.g., "HS256").
ACCESS_TOKEN_EXPIRE_MINUTES : int
    Token lifetime window in minutes.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Request
from jose import jwt, JWTError
from mediator.database.config.config import settings
from mediator.database.core.funcs import fetch_user
from mediator.mediation.errors import Unauthenticated
from mediator.mediation.llm_gateway import LLMGateway, RetryPolicy, build_chat_model
from mediator.mediation.orchestrator import MediationOrchestrator
from mediator.mediation.rate_limiter import DatabaseRateLimitStorage, SlidingWindowRateLimiter
from mediator.mediation.store import CaseStore
from mediator.api.aws_bucket_funcs.funcs import get_client
import logging

logger = logging.getLogger(__name__)


def create_access_token(data: dict) -> str:
    """
    Create a signed JWT access token.

    Parameters
    ----------
    data : dict
        Claims to embed in the token; `sub` carries the user id.

    Returns
    -------
    str
        Encoded JWT string.

    Notes
    ----------
    - Adds an `exp` (expiration) claim calculated from ACCESS_TOKEN_EXPIRE_MINUTES.
    - Uses `settings.SECRET_KEY` and `settings.ALGORITHM` for signing.
    """
    expiration_time = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    encoding = data.copy()
    # exp is a NumericDate (seconds since epoch)
    expires = int(datetime.now(timezone.utc).timestamp()) + (int(expiration_time) * 60)
    encoding.update({"exp": expires})
    return jwt.encode(encoding, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: Optional[str]) -> Optional[str]:
    """
    Verify a JWT and return its subject.

    Returns
    ----------
    str | None
        The `sub` claim if the token is valid, otherwise None (invalid
        signature, expired, malformed or missing).
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload.get("sub")
    except JWTError as e:
        logger.debug(f"Rejected token: {e}")
        return None


def extract_token(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    """Prefer an `Authorization: Bearer` header, fall back to the `token` cookie."""
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    return cookie_token or None


def authenticate(token: Optional[str]) -> dict:
    """
    Resolve a token to the profile of an existing user.

    Raises
    ------
    Unauthenticated
        Missing, invalid or expired token, or the user no longer exists.
    """
    user_id = verify_token(token)
    if not user_id:
        raise Unauthenticated()
    user = fetch_user(user_id=user_id)
    if user is None:
        raise Unauthenticated()
    return user


def get_current_user(request: Request) -> dict:
    token = extract_token(request.headers.get("Authorization"), request.cookies.get("token"))
    return authenticate(token)


def get_case_store(request: Request) -> CaseStore:
    return request.app.state.case_store


def get_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        limiter = SlidingWindowRateLimiter(
            DatabaseRateLimitStorage(),
            limit=settings.RATE_LIMIT_CALLS,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        )
        request.app.state.rate_limiter = limiter
    return limiter


def get_llm_gateway(request: Request) -> LLMGateway:
    gateway = getattr(request.app.state, "llm_gateway", None)
    if gateway is None:
        gateway = LLMGateway(build_chat_model(), RetryPolicy.from_settings())
        request.app.state.llm_gateway = gateway
    return gateway


def get_orchestrator(
    gateway: LLMGateway = Depends(get_llm_gateway),
    rate_limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
    store: CaseStore = Depends(get_case_store),
) -> MediationOrchestrator:
    return MediationOrchestrator(gateway, rate_limiter, store, window=settings.RECENT_MESSAGE_WINDOW)


def get_storage_client():
    return get_client()
