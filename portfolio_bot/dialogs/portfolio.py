"""
Portfolio Dialogs

Work experience cards, the working-smarter story and the answer to an
uploaded image.
"""

from typing import Any, List

from portfolio_bot.conversation.registry import DialogRegistry
from portfolio_bot.conversation.session import DialogSession
from portfolio_bot.middleware.attachments import IMAGE_RECEIVED_DIALOG_ID
from portfolio_bot.models.schemas import CardAttachment, SuggestedAction

from .common import CONTACT_DIALOG_ID, EXPERIENCE_DIALOG_ID, WORK_SMARTER_DIALOG_ID


# =============================================================================
# Experience
# =============================================================================


EXPERIENCE_INTRO = "Dit is in het kort wat ik de afgelopen jaren gedaan heb:"

EXPERIENCE_CARDS = (
    {
        "title": "Microsoft Nederland",
        "subtitle": "Digitale transformatie",
        "text": "Ik help organisaties om met cloud en artificial intelligence anders te gaan werken.",
    },
    {
        "title": "Artificial intelligence",
        "subtitle": "Bots en cognitive services",
        "text": "Van chatbots tot spraak en beeldherkenning: ik bouw graag prototypes die laten zien wat er kan.",
    },
    {
        "title": "Spreker en schrijver",
        "subtitle": "Nieuwe technologie",
        "text": "Ik vertel graag over wat nieuwe technologie betekent voor werk en organisaties.",
    },
)

EXPERIENCE_OUTRO = "Wil je meer weten? Neem gerust contact op."


def experience_cards() -> List[CardAttachment]:
    return [
        CardAttachment(
            title=card["title"],
            subtitle=card["subtitle"],
            text=card["text"],
            buttons=[SuggestedAction(label="Contact", value=CONTACT_DIALOG_ID)],
        )
        for card in EXPERIENCE_CARDS
    ]


async def show_experience(session: DialogSession, args: Any) -> None:
    session.send(EXPERIENCE_INTRO, attachments=experience_cards())
    session.end_dialog(message=EXPERIENCE_OUTRO)


# =============================================================================
# Working smarter
# =============================================================================


WORK_SMARTER_STORY = (
    (0.0, "Slimmer werken begint voor mij bij minder mail en meer focus."),
    (2.0, "Ik plan elke ochtend een uur zonder meetings voor het echte denkwerk."),
    (2.0, "Routineklusjes laat ik zoveel mogelijk over aan automatisering en bots, zoals deze."),
    (2.0, "En met 4 kids thuis is een goede planning geen luxe!"),
)


async def tell_work_smarter(session: DialogSession, args: Any) -> None:
    session.send_typing()
    session.send_sequence(WORK_SMARTER_STORY)
    session.end_dialog()


# =============================================================================
# Image received
# =============================================================================


IMAGE_TEXT = "Mooi plaatje! Ik kan er nog niet zoveel mee, maar ik heb het gezien."


async def acknowledge_image(session: DialogSession, args: Any) -> None:
    attachment = args.get("attachment") if isinstance(args, dict) else None
    text = IMAGE_TEXT
    if attachment is not None and attachment.name:
        text = f"{IMAGE_TEXT} ({attachment.name})"
    session.end_dialog(message=text)


def register(registry: DialogRegistry) -> None:
    registry.add(
        EXPERIENCE_DIALOG_ID,
        [show_experience],
        triggers=["Experience"],
        references=[CONTACT_DIALOG_ID],
        description="Work experience",
    )
    registry.add(
        WORK_SMARTER_DIALOG_ID,
        [tell_work_smarter],
        triggers=["WorkSmarter"],
        description="How Michel works smarter",
    )
    registry.add(IMAGE_RECEIVED_DIALOG_ID, [acknowledge_image], description="Reply to an uploaded image")
