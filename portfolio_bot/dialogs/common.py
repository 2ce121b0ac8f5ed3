"""Copy and quick replies shared by the portfolio dialogs."""

from typing import List

from portfolio_bot.conversation.base import Choice
from portfolio_bot.conversation.scheduler import ScheduledSend
from portfolio_bot.models.schemas import ConversationUpdate, OutboundMessage, SuggestedAction


EXPERIENCE_DIALOG_ID = "/experience"
WORK_SMARTER_DIALOG_ID = "/work-smarter"
CONTACT_DIALOG_ID = "/contact"
HELP_DIALOG_ID = "/help"
QNA_DIALOG_ID = "/qna"


WELCOME_TEXT = "Hey! Welkom op mijn website. Zin om te praten?"

INTRO_TEXT = (
    "Mijn naam is Michel Bouman, ik ben 37, heb 4 kids en werk voor Microsoft Nederland. "
    "Ik praat graag over digitale transformatie en nieuwe technologien als artificial "
    "intelligence, maar ben ook bezig met hoe ik nog slimmer de dag door kom."
)

TOPIC_ACTIONS = (
    (EXPERIENCE_DIALOG_ID, "Michel, wat voor werk ervaring heb je?"),
    (WORK_SMARTER_DIALOG_ID, "Even terug. Je zei iets over slimmer werken. Tell me more!"),
    (CONTACT_DIALOG_ID, "Ik wil graag met je in contact komen."),
)

TOPIC_CHOICES = (
    Choice(value=EXPERIENCE_DIALOG_ID, label="Werkervaring", synonyms=["ervaring", "werk"]),
    Choice(value=WORK_SMARTER_DIALOG_ID, label="Slimmer werken", synonyms=["productiviteit"]),
    Choice(value=CONTACT_DIALOG_ID, label="Contact", synonyms=["mail", "e-mail"]),
    Choice(value=HELP_DIALOG_ID, label="Help", synonyms=["hulp"]),
)


def topic_actions() -> List[SuggestedAction]:
    """Quick replies that jump straight to one of the portfolio topics."""
    return [SuggestedAction(label=label, value=value) for value, label in TOPIC_ACTIONS]


def welcome_sequence(update: ConversationUpdate, pause: float = 1.5) -> List[ScheduledSend]:
    """The greeting burst sent when the bot joins a conversation."""
    return [
        ScheduledSend(
            delay=0.0,
            message=OutboundMessage(conversation_id=update.conversation_id, text=WELCOME_TEXT),
        ),
        ScheduledSend(
            delay=pause,
            message=OutboundMessage(
                conversation_id=update.conversation_id,
                text=INTRO_TEXT,
                suggested_actions=topic_actions(),
            ),
        ),
    ]
