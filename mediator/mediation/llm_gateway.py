"""
LLM Gateway
===========

Single entry point for chat completions. Owns the retry policy for upstream
rate limiting and maps provider failures onto the mediation error taxonomy:

- upstream 429            -> RateLimited (retried with exponential backoff)
- upstream 401 / bad key  -> Unauthorized
- anything else           -> ProviderError (raised at once)

The underlying `ChatOpenAI` client is built with `max_retries=0` so the
`RetryPolicy` here is the only retry layer.
"""

from langchain_openai import ChatOpenAI
from langchain_core.messages import BaseMessage, HumanMessage
from mediator.database.config.config import settings
from mediator.mediation.errors import MediationError, ProviderError, RateLimited, Unauthorized
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Union
import openai
import time
import logging

logger = logging.getLogger(__name__)


def _status_code(exc: BaseException):
    status = getattr(exc, "status_code", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    return status


def is_rate_limited(exc: BaseException) -> bool:
    """True for upstream 429 responses."""
    if isinstance(exc, RateLimited):
        return True
    return isinstance(exc, openai.RateLimitError) or _status_code(exc) == 429


def is_unauthorized(exc: BaseException) -> bool:
    return isinstance(exc, openai.AuthenticationError) or _status_code(exc) == 401


def classify_provider_error(exc: BaseException) -> MediationError:
    """Map a client exception onto RateLimited, Unauthorized or ProviderError."""
    if isinstance(exc, MediationError):
        return exc
    if is_rate_limited(exc):
        return RateLimited()
    if is_unauthorized(exc):
        return Unauthorized()
    return ProviderError()


@dataclass
class RetryPolicy:
    """
    Exponential backoff for retryable errors.

    Attempt ``n`` (1-based) that fails with a retryable error waits
    ``base_delay * 2 ** (n - 1)`` seconds before the next attempt.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    retryable: Callable[[BaseException], bool] = field(default=is_rate_limited)

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (2 ** (attempt - 1))

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(max_attempts=settings.LLM_MAX_ATTEMPTS, base_delay=settings.LLM_BASE_DELAY_SECONDS)


def lc_text_from_content(content) -> str:
    """Normalize LangChain message content to plain text.

    - If string -> return as-is.
    - If list of content parts -> concatenates only 'text' parts.
    - Else -> str(content).
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text")
    return str(content)


def build_chat_model() -> ChatOpenAI:
    return ChatOpenAI(model=settings.OPEN_AI_MODEL, api_key=settings.API_KEY, max_retries=0)


class LLMGateway:
    """
    Chat-completion wrapper with retry and error mapping.

    Parameters
    ----------
    model : BaseChatModel-like
        Anything with ``invoke(messages)`` returning a message with ``content``.
    retry_policy : RetryPolicy, optional
        Defaults to the policy configured in settings.
    sleep : callable
        Used between attempts; injectable so tests do not wait.
    """

    def __init__(self, model, retry_policy: RetryPolicy | None = None, sleep: Callable[[float], None] = time.sleep):
        self.model = model
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self.sleep = sleep

    def complete(self, prompt: Union[str, Sequence[BaseMessage]]) -> str:
        """
        Run one completion.

        Parameters
        ----------
        prompt : str | Sequence[BaseMessage]
            A prompt string (sent as a single user message) or chat messages.

        Returns
        -------
        str
            The non-empty completion text.

        Raises
        ------
        RateLimited
            Upstream kept answering 429 for every attempt.
        Unauthorized
            Upstream rejected the API key.
        ProviderError
            Any other failure, including an empty completion.
        """
        messages: List[BaseMessage] = [HumanMessage(content=prompt)] if isinstance(prompt, str) else list(prompt)
        policy = self.retry_policy
        attempt = 1
        while True:
            try:
                response = self.model.invoke(messages)
                break
            except Exception as e:
                if policy.retryable(e) and attempt < policy.max_attempts:
                    delay = policy.delay_for(attempt)
                    logger.warning(f"LLM call rate limited (attempt {attempt}/{policy.max_attempts}), retrying in {delay}s")
                    self.sleep(delay)
                    attempt += 1
                    continue
                logger.error(f"LLM call failed after {attempt} attempt(s): {type(e).__name__}")
                if isinstance(e, MediationError):
                    raise
                raise classify_provider_error(e) from e

        text = lc_text_from_content(getattr(response, "content", response)).strip()
        if not text:
            raise ProviderError("Empty completion")
        return text
