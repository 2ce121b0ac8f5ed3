"""
Root Dialog

The default dialog: greets the visitor and offers the portfolio topics.
"""

from typing import Any

from portfolio_bot.conversation.base import DEFAULT_DIALOG_ID
from portfolio_bot.conversation.registry import DialogRegistry
from portfolio_bot.conversation.session import DialogSession

from .common import TOPIC_CHOICES


GREETING_TEXT = "Hey! Leuk dat je langskomt."
TOPIC_QUESTION = "Waar wil je het over hebben?"
NO_TOPIC_TEXT = "Geen probleem. Vraag me gerust iets wanneer je wilt."
DONE_TEXT = "Kan ik nog iets anders voor je doen? Typ gerust je vraag."


async def greet(session: DialogSession, args: Any) -> None:
    session.send(GREETING_TEXT)


async def ask_topic(session: DialogSession, args: Any) -> None:
    session.prompt_choice(TOPIC_QUESTION, TOPIC_CHOICES)


async def open_topic(session: DialogSession, args: Any) -> None:
    choice = args.get("response") if isinstance(args, dict) else None
    if choice is None:
        session.end_dialog(message=NO_TOPIC_TEXT)
        return

    session.begin_dialog(choice.value)


async def wrap_up(session: DialogSession, args: Any) -> None:
    session.end_dialog(args, message=DONE_TEXT)


def register(registry: DialogRegistry) -> None:
    registry.add(
        DEFAULT_DIALOG_ID,
        [greet, ask_topic, open_topic, wrap_up],
        triggers=["Default", "Greeting"],
        references=[choice.value for choice in TOPIC_CHOICES],
        description="Welcome and topic menu",
    )
