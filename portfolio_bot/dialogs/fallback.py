"""
Fallback Dialogs

The unknown-utterance answer, the help text and knowledge-base answers.
"""

from typing import Any, List

import structlog

from portfolio_bot.conversation.base import FALLBACK_DIALOG_ID, Entity, find_entity
from portfolio_bot.conversation.registry import DialogRegistry
from portfolio_bot.conversation.session import DialogSession

from .common import HELP_DIALOG_ID, QNA_DIALOG_ID, topic_actions


logger = structlog.get_logger()


UNKNOWN_TEXT = "Oei, ik denk dat ik je nog niet helemaal begrijp..."

HELP_TEXT = (
    "Ik ben de bot van Michel. Vraag me naar mijn werkervaring, hoe ik slimmer werk "
    "of hoe je contact met me opneemt. Typ 'reset' om opnieuw te beginnen."
)

NO_ANSWER_TEXT = "Goeie vraag! Daar heb ik helaas nog geen antwoord op."


async def unknown(session: DialogSession, args: Any) -> None:
    session.end_dialog(
        message=session.turn.build_message(UNKNOWN_TEXT, suggested_actions=topic_actions())
    )


async def show_help(session: DialogSession, args: Any) -> None:
    session.end_dialog(message=session.turn.build_message(HELP_TEXT, suggested_actions=topic_actions()))


async def answer_question(session: DialogSession, args: Any) -> None:
    entities: List[Entity] = []
    if isinstance(args, dict):
        entities = list(args.get("entities") or [])
    if not entities and session.intent is not None:
        entities = list(session.intent.entities)

    answer = find_entity(entities, "answer")
    if answer is None:
        logger.warning("qna_answer_missing", conversation_id=session.conversation_id)
        session.end_dialog(message=NO_ANSWER_TEXT)
        return

    session.end_dialog(message=answer.value)


def register(registry: DialogRegistry) -> None:
    registry.add(
        FALLBACK_DIALOG_ID,
        [unknown],
        triggers=["unknown", "None"],
        description="Answer for utterances no dialog handles",
    )
    registry.add(HELP_DIALOG_ID, [show_help], triggers=["Help"], description="What the bot can do")
    registry.add(QNA_DIALOG_ID, [answer_question], triggers=["qna"], description="Knowledge base answer")
