"""
Prompt assembly for the AI-assist actions.

Every prompt is a single user-role text: the mediator preamble, the case
metadata and party contexts as compact JSON, the most recent conversation
lines as ``sender: content`` and a task instruction. Rephrase and
improve-clarity skip the case material and quote the text to rework.

User-supplied text is inserted verbatim; nothing here escapes or filters it.
"""

from langchain_core.prompts import PromptTemplate
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple, Union
import json

SYSTEM_PROMPT = (
    "You are an impartial, neutral mediator facilitating a conversation between two parties. "
    "Your role is to help them reach a fair agreement by summarizing discussions, suggesting compromises, "
    "rephrasing messages calmly, and drafting agreements. Always remain neutral and professional."
)

DEFAULT_MESSAGE_WINDOW = 50


class AssistTask(str, Enum):
    SUMMARIZE = "summarize"
    SUGGEST_COMPROMISE = "suggest-compromise"
    REPHRASE = "rephrase"
    GENERATE_DRAFT = "generate-draft"
    IMPROVE_CLARITY = "improve-clarity"


INSTRUCTIONS = {
    AssistTask.SUMMARIZE: "Please provide a neutral summary of the current situation in the mediation.",
    AssistTask.SUGGEST_COMPROMISE: "Please suggest compromise options that could help the parties reach an agreement.",
    AssistTask.GENERATE_DRAFT: "Please generate or update a draft agreement based on the discussion.",
}

CASE_PROMPT = PromptTemplate.from_template(
    "{system}\n\n"
    "Case Meta: {case_meta}\n\n"
    "Party Contexts: {party_contexts}\n\n"
    "Recent Messages: {recent_messages}\n\n"
    "{draft_section}"
    "{instruction}"
)

REPHRASE_PROMPT = PromptTemplate.from_template(
    '{system}\n\nPlease rephrase the following message more calmly and professionally: "{text}"'
)

IMPROVE_PROMPT = PromptTemplate.from_template(
    "{system}\n\n"
    "Please improve the clarity, readability, and neutrality of the following agreement draft:\n\n"
    '"{text}"\n\n'
    "Make it more professional, clear, and balanced."
)

RecentMessage = Union[Tuple[str, str], Mapping[str, Any]]


def _to_json(value) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def _line(message: RecentMessage) -> str:
    if isinstance(message, Mapping):
        return f"{message.get('sender')}: {message.get('content')}"
    sender, content = message
    return f"{sender}: {content}"


def format_recent_messages(recent_messages: Iterable[RecentMessage], window: int = DEFAULT_MESSAGE_WINDOW) -> str:
    """Render the last `window` messages as newline-joined ``sender: content`` lines."""
    recent = list(recent_messages)
    if window is not None and window >= 0:
        recent = recent[-window:] if window else []
    return "\n".join(_line(m) for m in recent)


def build_prompt(
    task: AssistTask,
    case_meta: Optional[Mapping[str, Any]] = None,
    party_contexts: Sequence[Any] = (),
    recent_messages: Iterable[RecentMessage] = (),
    agreement_draft: Optional[str] = None,
    text: Optional[str] = None,
    window: int = DEFAULT_MESSAGE_WINDOW,
) -> str:
    """
    Build the prompt text for one assist task.

    Parameters
    ----------
    task : AssistTask
        Which action the prompt is for.
    case_meta : Mapping, optional
        Case title and type, rendered as JSON.
    party_contexts : Sequence
        One entry per party (party label, background, goals, acceptable
        outcome, constraints), rendered as JSON.
    recent_messages : Iterable
        ``(sender, content)`` pairs or ``{"sender", "content"}`` mappings in
        chronological order; only the last `window` are used.
    agreement_draft : str, optional
        Current draft. Only suggest-compromise shows it; a missing draft is
        shown as ``None``.
    text : str, optional
        The message to rephrase or the draft to improve.
    window : int
        Number of recent messages to include.

    Returns
    -------
    str
        The prompt text.

    Raises
    ------
    ValueError
        `text` is missing for rephrase or improve-clarity.
    """
    task = AssistTask(task)
    if task is AssistTask.REPHRASE:
        if text is None:
            raise ValueError("rephrase needs the message text")
        return REPHRASE_PROMPT.format(system=SYSTEM_PROMPT, text=text)
    if task is AssistTask.IMPROVE_CLARITY:
        if text is None:
            raise ValueError("improve-clarity needs the draft text")
        return IMPROVE_PROMPT.format(system=SYSTEM_PROMPT, text=text)

    draft_section = ""
    if task is AssistTask.SUGGEST_COMPROMISE:
        draft_section = f"Current Agreement Draft: {agreement_draft or 'None'}\n\n"
    return CASE_PROMPT.format(
        system=SYSTEM_PROMPT,
        case_meta=_to_json(case_meta if case_meta is not None else {}),
        party_contexts=_to_json(list(party_contexts)),
        recent_messages=format_recent_messages(recent_messages, window),
        draft_section=draft_section,
        instruction=INSTRUCTIONS[task],
    )
