"""
Prompt Engine

Validates the next inbound turn against an expected shape (free text,
yes/no, or a choice from a list) with bounded re-prompting.

State machine per prompt:
    Idle -> AwaitingInput -> Resolved(value) -> Idle
                          -> Invalid -> AwaitingInput (retries += 1)
                          -> RetriesExhausted -> Resolved(None)
"""

import re
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from portfolio_bot.models.schemas import OutboundMessage, SuggestedAction

from .base import (
    Choice,
    FoundChoice,
    PromptKind,
    PromptResolution,
    PromptStatus,
)
from .state import PendingPrompt


logger = structlog.get_logger()


DEFAULT_MAX_RETRIES = 2

AFFIRMATIVES = {
    "ja", "j", "jazeker", "jawel", "jep", "jup", "zeker", "graag", "prima",
    "goed", "klopt", "oke", "oké", "ok", "okay", "yes", "y", "yeah", "yep",
    "sure", "true",
}

NEGATIVES = {
    "nee", "n", "neen", "nope", "niet", "nooit", "no", "nah", "false",
}

RETRY_TEXT: Dict[str, Dict[PromptKind, str]] = {
    "nl": {
        PromptKind.TEXT: "Sorry, dat begreep ik niet.",
        PromptKind.CONFIRM: "Sorry, dat begreep ik niet. Antwoord met ja of nee.",
        PromptKind.CHOICE: "Sorry, dat begreep ik niet. Kies een van de opties.",
    },
    "en": {
        PromptKind.TEXT: "Sorry, I didn't get that.",
        PromptKind.CONFIRM: "Sorry, I didn't get that. Please answer yes or no.",
        PromptKind.CHOICE: "Sorry, I didn't get that. Please pick one of the options.",
    },
}

CONFIRM_LABELS: Dict[str, Tuple[str, str]] = {
    "nl": ("Ja", "Nee"),
    "en": ("Yes", "No"),
}

_PUNCTUATION = re.compile(r"[!?.,;:]+")


def _normalize(text: str) -> str:
    return _PUNCTUATION.sub(" ", (text or "").lower()).strip()


def parse_confirm(text: str) -> Optional[bool]:
    """Map a natural yes/no answer to a boolean; None when unparseable."""
    normalized = _normalize(text)
    if not normalized:
        return None

    if normalized in AFFIRMATIVES:
        return True
    if normalized in NEGATIVES:
        return False

    first = normalized.split()[0]
    if first in AFFIRMATIVES:
        return True
    if first in NEGATIVES:
        return False

    return None


def parse_choice(text: str, choices: Sequence[Choice]) -> Optional[FoundChoice]:
    """
    Resolve a selection from an ordered option list.

    Index wins over label: an option's postback value or a 1-based ordinal
    is tried first, then a case-insensitive label (or synonym) match, then
    a label that appears as a whole phrase inside the utterance when exactly
    one option does.
    """
    raw = (text or "").strip()
    if not raw or not choices:
        return None

    lowered = raw.lower()

    for index, choice in enumerate(choices):
        if choice.value.lower() == lowered:
            return FoundChoice(index=index, value=choice.value, label=choice.label)

    normalized = _normalize(raw)
    if normalized.isdigit():
        ordinal = int(normalized)
        if 1 <= ordinal <= len(choices):
            choice = choices[ordinal - 1]
            return FoundChoice(index=ordinal - 1, value=choice.value, label=choice.label)

    for index, choice in enumerate(choices):
        names = [choice.label] + list(choice.synonyms)
        if any(_normalize(name) == normalized for name in names):
            return FoundChoice(index=index, value=choice.value, label=choice.label)

    partial: List[int] = []
    for index, choice in enumerate(choices):
        names = [choice.label] + list(choice.synonyms)
        for name in names:
            pattern = r"\b" + re.escape(_normalize(name)) + r"\b"
            if _normalize(name) and re.search(pattern, normalized):
                partial.append(index)
                break

    if len(partial) == 1:
        choice = choices[partial[0]]
        return FoundChoice(index=partial[0], value=choice.value, label=choice.label, score=0.8)

    return None


class PromptEngine:
    """
    Creates, renders and evaluates prompts.

    Usage:
        prompts = PromptEngine(max_retries=2)
        pending = prompts.create(PromptKind.CONFIRM, "Wil je me mailen?")

        resolution = prompts.evaluate(pending, "ja")
    """

    def __init__(self, max_retries: int = DEFAULT_MAX_RETRIES, locale: str = "nl"):
        self.max_retries = max_retries
        self.locale = locale if locale in RETRY_TEXT else "nl"

    def create(
        self,
        kind: PromptKind,
        text: str,
        choices: Optional[Sequence[Choice]] = None,
        retry_text: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> PendingPrompt:
        """Create a fresh prompt with its retry counter at zero."""
        if kind == PromptKind.CHOICE and not choices:
            raise ValueError("A choice prompt needs at least one option")

        return PendingPrompt(
            kind=kind,
            text=text,
            choices=list(choices or []),
            retry_text=retry_text,
            retries=0,
            max_retries=self.max_retries if max_retries is None else max_retries,
        )

    def evaluate(self, prompt: PendingPrompt, text: str) -> PromptResolution:
        """
        Feed one utterance to a pending prompt.

        Invalid input increments the retry counter. Once the counter would
        pass max_retries the prompt resolves with no answer.
        """
        value = self._parse(prompt, text)

        if value is not None:
            logger.debug("prompt_resolved", kind=prompt.kind.value, retries=prompt.retries)
            return PromptResolution(status=PromptStatus.RESOLVED, value=value)

        prompt.retries += 1

        if prompt.retries > prompt.max_retries:
            logger.info(
                "prompt_retries_exhausted",
                kind=prompt.kind.value,
                max_retries=prompt.max_retries,
            )
            return PromptResolution(status=PromptStatus.EXHAUSTED, value=None)

        logger.debug("prompt_input_invalid", kind=prompt.kind.value, retries=prompt.retries)
        return PromptResolution(status=PromptStatus.INVALID)

    def _parse(self, prompt: PendingPrompt, text: str):
        if prompt.kind == PromptKind.TEXT:
            return text if text and text.strip() else None
        if prompt.kind == PromptKind.CONFIRM:
            return parse_confirm(text)
        if prompt.kind == PromptKind.CHOICE:
            return parse_choice(text, prompt.choices)
        return None

    def render(
        self,
        prompt: PendingPrompt,
        conversation_id: str,
        retry: bool = False,
    ) -> OutboundMessage:
        """Build the outbound message that asks (or re-asks) the prompt."""
        text = prompt.text
        if retry:
            text = prompt.retry_text or f"{RETRY_TEXT[self.locale][prompt.kind]} {prompt.text}"

        actions: List[SuggestedAction] = []
        if prompt.kind == PromptKind.CHOICE:
            actions = [SuggestedAction(label=c.label, value=c.value) for c in prompt.choices]
        elif prompt.kind == PromptKind.CONFIRM:
            yes, no = CONFIRM_LABELS[self.locale]
            actions = [
                SuggestedAction(label=yes, value=yes.lower()),
                SuggestedAction(label=no, value=no.lower()),
            ]

        return OutboundMessage(
            conversation_id=conversation_id,
            text=text,
            suggested_actions=actions,
        )
