"""
AI proxy endpoints — ``POST /functions/<name>``
===============================================

Stateless pass-throughs to the LLM for clients that assemble the case
material themselves. Each endpoint:

1. authenticates the caller (401 ``Unauthorized``),
2. consumes one rate-limit slot (429 ``Rate limit exceeded``),
3. validates the JSON body (400 ``Invalid input: ...``),
4. builds the prompt and calls the gateway.

Success is ``{"result": "<text>"}``; every failure is ``{"error": "<message>"}``.
Unexpected and provider failures are logged with their traceback and
answered with 500 ``Internal server error``.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from mediator.api.utils import authenticate, extract_token, get_llm_gateway, get_rate_limiter
from mediator.mediation.errors import InvalidInput, MediationError, ProviderError, RateLimited
from mediator.mediation.llm_gateway import LLMGateway
from mediator.mediation.prompt_builder import AssistTask, build_prompt
from mediator.mediation.rate_limiter import SlidingWindowRateLimiter
from typing import Callable, Dict, List
import json
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions")

CASE_FIELDS = ["caseMeta", "partyContexts", "recentMessages"]


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def success_response(result: str) -> JSONResponse:
    return JSONResponse({"result": result})


def _falsy(value) -> bool:
    # empty arrays and objects count as present
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False


def validate_input(body: dict, required_fields: List[str]) -> None:
    """
    Check required fields in order and raise on the first problem.

    `recentMessages` must be a JSON array of ``{sender, content}`` objects;
    every other field must be present and non-empty.
    """
    for field in required_fields:
        if field == "recentMessages":
            messages = body.get(field)
            if not isinstance(messages, list):
                raise InvalidInput(f"Invalid input: {field} must be an array")
            if not all(isinstance(m, dict) and "sender" in m and "content" in m for m in messages):
                raise InvalidInput(f"Invalid input: {field} must be an array of {{sender, content}}")
        elif _falsy(body.get(field)):
            raise InvalidInput(f"Invalid input: {field} is required")


def _summarize(body: dict) -> str:
    validate_input(body, CASE_FIELDS)
    return build_prompt(AssistTask.SUMMARIZE, body["caseMeta"], body["partyContexts"], body["recentMessages"])


def _suggest(body: dict) -> str:
    validate_input(body, CASE_FIELDS)
    return build_prompt(
        AssistTask.SUGGEST_COMPROMISE,
        body["caseMeta"],
        body["partyContexts"],
        body["recentMessages"],
        agreement_draft=body.get("agreementDraft"),
    )


def _generate(body: dict) -> str:
    validate_input(body, CASE_FIELDS)
    return build_prompt(AssistTask.GENERATE_DRAFT, body["caseMeta"], body["partyContexts"], body["recentMessages"])


def _rephrase(body: dict) -> str:
    validate_input(body, ["lastMessage"])
    return build_prompt(AssistTask.REPHRASE, text=str(body["lastMessage"]))


def _improve(body: dict) -> str:
    validate_input(body, ["draftText"])
    return build_prompt(AssistTask.IMPROVE_CLARITY, text=str(body["draftText"]))


PROMPTS: Dict[str, Callable[[dict], str]] = {
    "summarize-situation": _summarize,
    "suggest-compromises": _suggest,
    "generate-agreement": _generate,
    "rephrase-message": _rephrase,
    "improve-agreement": _improve,
}


async def _handle(
    name: str,
    request: Request,
    gateway: LLMGateway,
    rate_limiter: SlidingWindowRateLimiter,
) -> JSONResponse:
    try:
        token = extract_token(request.headers.get("Authorization"), request.cookies.get("token"))
        user = await run_in_threadpool(authenticate, token)

        if not await run_in_threadpool(rate_limiter.allow, user["id"]):
            raise RateLimited()

        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise InvalidInput("Invalid input: body must be a JSON object")
        if not isinstance(body, dict):
            raise InvalidInput("Invalid input: body must be a JSON object")

        prompt = PROMPTS[name](body)
        result = await run_in_threadpool(gateway.complete, prompt)
        return success_response(result)
    except ProviderError:
        logger.exception(f"Provider error in {name}")
        return error_response("Internal server error", 500)
    except MediationError as e:
        return error_response(e.message, e.status_code)
    except Exception:
        logger.exception(f"Error in {name}")
        return error_response("Internal server error", 500)


def _endpoint(name: str):
    async def endpoint(
        request: Request,
        gateway: LLMGateway = Depends(get_llm_gateway),
        rate_limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
    ) -> JSONResponse:
        return await _handle(name, request, gateway, rate_limiter)

    endpoint.__name__ = name.replace("-", "_")
    return endpoint


for _name in PROMPTS:
    router.add_api_route(f"/{_name}", _endpoint(_name), methods=["POST"], name=_name)
