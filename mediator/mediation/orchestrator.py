"""
Mediation Orchestrator
======================

Runs the AI-assist actions for a case and the agreement finalize/sign flow.

Each assist action goes through the same steps:

1. Load the case mirror (fails with NotFound / Forbidden for unknown cases
   and non-participants).
2. Gather the action's input from the mirror. Missing input (no message of
   the requester to rephrase, no draft to improve) ends the action with
   ``None``; no quota is consumed and nothing is written.
3. Rate limit check; fails closed with `RateLimited`, nothing written.
4. Build the prompt and call the gateway; gateway errors propagate and
   nothing is written.
5. Persist the result in one transaction through the `CaseStore`, which
   publishes the resulting changes to live viewers.
"""

from mediator.mediation.errors import Conflict, RateLimited
from mediator.mediation.llm_gateway import LLMGateway
from mediator.mediation.prompt_builder import AssistTask, DEFAULT_MESSAGE_WINDOW, build_prompt
from mediator.mediation.rate_limiter import SlidingWindowRateLimiter
from mediator.mediation.records import AgreementRecord, MessageRecord
from mediator.mediation.store import CaseStore
from mediator.mediation.synchronizer import SessionSynchronizer
from typing import Optional
import logging

logger = logging.getLogger(__name__)

SUMMARY_PREFIX = "AI Summary: "
COMPROMISE_PREFIX = "AI Suggested Compromises: "
REPHRASE_PREFIX = "Rephrased calmly: "
DRAFT_PREFIX = "AI Draft Agreement: "


class MediationOrchestrator:
    """
    Parameters
    ----------
    gateway : LLMGateway
        Completion client shared by every action.
    rate_limiter : SlidingWindowRateLimiter
        Per-user quota for assist calls.
    store : CaseStore
        Persistence boundary.
    window : int
        Number of recent messages included in case prompts.
    """

    def __init__(
        self,
        gateway: LLMGateway,
        rate_limiter: SlidingWindowRateLimiter,
        store: CaseStore,
        window: int = DEFAULT_MESSAGE_WINDOW,
    ):
        self.gateway = gateway
        self.rate_limiter = rate_limiter
        self.store = store
        self.window = window

    def _check_rate_limit(self, user_id) -> None:
        if not self.rate_limiter.allow(user_id):
            raise RateLimited()

    def _case_prompt(self, sync: SessionSynchronizer, task: AssistTask, agreement_draft: Optional[str] = None) -> str:
        return build_prompt(
            task,
            case_meta=sync.case_meta(),
            party_contexts=sync.party_contexts(),
            recent_messages=sync.recent_lines(self.window),
            agreement_draft=agreement_draft,
            window=self.window,
        )

    def _complete(self, prompt: str, action: str, case_id, user_id) -> str:
        logger.info(f"AI action {action} started for case {case_id} by user {user_id}")
        try:
            result = self.gateway.complete(prompt)
        except Exception as e:
            logger.warning(f"AI action {action} failed for case {case_id}: {type(e).__name__}")
            raise
        logger.info(f"AI action {action} completed for case {case_id}")
        return result

    @staticmethod
    def _writable_draft(sync: SessionSynchronizer) -> None:
        if sync.agreement is not None and sync.agreement.status == "finalized":
            raise Conflict("Agreement is already finalized")

    def summarize(self, case_id, user_id) -> MessageRecord:
        """Summarize the mediation neutrally; stores it on the case and posts it."""
        sync = self.store.load_session(case_id, user_id)
        self._check_rate_limit(user_id)
        summary = self._complete(self._case_prompt(sync, AssistTask.SUMMARIZE), "summarize", sync.case_id, user_id)
        return self.store.record_summary(sync.case_id, summary, SUMMARY_PREFIX + summary)

    def suggest_compromises(self, case_id, user_id) -> MessageRecord:
        """Post compromise options, taking the current draft into account."""
        sync = self.store.load_session(case_id, user_id)
        self._check_rate_limit(user_id)
        draft = sync.agreement.draft_text if sync.agreement else None
        suggestions = self._complete(
            self._case_prompt(sync, AssistTask.SUGGEST_COMPROMISE, agreement_draft=draft),
            "suggest-compromises",
            sync.case_id,
            user_id,
        )
        return self.store.post_ai_message(sync.case_id, COMPROMISE_PREFIX + suggestions)

    def rephrase_last_message(self, case_id, user_id) -> Optional[MessageRecord]:
        """
        Post a calmer rewording of the requester's own most recent message.

        Only the requester's messages are candidates; a later message from
        the other party is skipped. Returns None when the requester has not
        written anything yet.
        """
        sync = self.store.load_session(case_id, user_id)
        last = sync.last_user_message(user_id)
        if last is None:
            return None
        self._check_rate_limit(user_id)
        prompt = build_prompt(AssistTask.REPHRASE, text=last.content)
        rephrased = self._complete(prompt, "rephrase", sync.case_id, user_id)
        return self.store.post_ai_message(sync.case_id, REPHRASE_PREFIX + rephrased)

    def generate_draft(self, case_id, user_id) -> AgreementRecord:
        """Create or replace the agreement draft from the discussion and post it."""
        sync = self.store.load_session(case_id, user_id)
        self._writable_draft(sync)
        self._check_rate_limit(user_id)
        draft = self._complete(self._case_prompt(sync, AssistTask.GENERATE_DRAFT), "generate-draft", sync.case_id, user_id)
        agreement, _ = self.store.save_draft(sync.case_id, draft, message_content=DRAFT_PREFIX + draft)
        return agreement

    def improve_draft(self, case_id, user_id, expected_version: Optional[int] = None) -> Optional[AgreementRecord]:
        """
        Rewrite the current draft for clarity, readability and neutrality.

        Only the draft is updated; nothing is posted to the conversation.
        Returns None when there is no draft yet.
        """
        sync = self.store.load_session(case_id, user_id)
        if sync.agreement is None or not sync.agreement.draft_text:
            return None
        self._writable_draft(sync)
        self._check_rate_limit(user_id)
        prompt = build_prompt(AssistTask.IMPROVE_CLARITY, text=sync.agreement.draft_text)
        improved = self._complete(prompt, "improve-clarity", sync.case_id, user_id)
        agreement, _ = self.store.save_draft(sync.case_id, improved, expected_version=expected_version)
        return agreement

    def finalize_agreement(
        self, case_id, user_id, draft_text: Optional[str] = None, expected_version: Optional[int] = None
    ) -> AgreementRecord:
        return self.store.finalize_agreement(case_id, user_id, draft_text=draft_text, expected_version=expected_version)

    def sign(self, case_id, user_id, typed_name: str) -> dict:
        """
        Sign the agreement by typing one's own name. The case resolves in the
        same transaction once every participant has signed.
        """
        result = self.store.sign_agreement(case_id, user_id, typed_name)
        logger.info(f"User {user_id} signed agreement of case {case_id}; resolved={result['resolved']}")
        return result
