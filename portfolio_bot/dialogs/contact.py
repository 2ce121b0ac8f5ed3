"""
Contact Dialog

Offers Twitter or e-mail; for e-mail, collects the sender address and the
message and hands them to the mail notifier.
"""

from typing import Any, Optional

import structlog

from portfolio_bot.adapters.base import MailMessage, Notifier
from portfolio_bot.conversation.registry import DialogRegistry
from portfolio_bot.conversation.session import DialogSession

from .common import CONTACT_DIALOG_ID


logger = structlog.get_logger()


CHANNEL_QUESTION = (
    "Je kunt me via twitter bereiken op http://www.twitter.com/boumanmichel "
    "of wil je me liever e-mailen?"
)
TWEET_TEXT = (
    "Okidoki. Ik zie je tweet wel verschijnen. "
    "Als ik iets voor je kan doen, dan weet je me te vinden."
)
EMAIL_QUESTION = "Wat is je e-mail adres?"
MESSAGE_QUESTION = (
    "Got it. Je kunt het bericht typen en ik zorg er dan voor, dat de e-mail verstuurd wordt."
)
SENT_TEXT = "Je bericht is verzonden, je hoort snel van me!"
GAVE_UP_TEXT = "Geen probleem. Als je me later nog wilt bereiken, vraag dan gewoon naar contact."


def _response(args: Any) -> Optional[Any]:
    if isinstance(args, dict):
        return args.get("response")
    return None


class ContactDialog:
    """
    Waterfall that ends in a mail to the site owner.

    Usage:
        contact = ContactDialog(notifier, mail_to="bot@michelbouman.nl")
        contact.register(registry)
    """

    def __init__(
        self,
        notifier: Notifier,
        mail_to: str,
        mail_subject: str = "Mail vanaf de bot",
    ):
        self.notifier = notifier
        self.mail_to = mail_to
        self.mail_subject = mail_subject

    @property
    def steps(self):
        return [self.ask_channel, self.ask_email, self.ask_message, self.send_mail]

    async def ask_channel(self, session: DialogSession, args: Any) -> None:
        session.prompt_confirm(CHANNEL_QUESTION)

    async def ask_email(self, session: DialogSession, args: Any) -> None:
        wants_mail = _response(args)

        if wants_mail is False:
            session.end_dialog(message=TWEET_TEXT)
            return
        if wants_mail is None:
            session.end_dialog(message=GAVE_UP_TEXT)
            return

        session.prompt_text(EMAIL_QUESTION)

    async def ask_message(self, session: DialogSession, args: Any) -> None:
        email = _response(args)
        if not email:
            session.end_dialog(message=GAVE_UP_TEXT)
            return

        session.dialog_data["email"] = email.strip()
        session.prompt_text(MESSAGE_QUESTION)

    async def send_mail(self, session: DialogSession, args: Any) -> None:
        text = _response(args)
        if not text:
            session.end_dialog(message=GAVE_UP_TEXT)
            return

        session.dialog_data["text"] = text
        sent = await self.notifier.send_mail(
            MailMessage(
                sender=session.dialog_data["email"],
                to=self.mail_to,
                subject=self.mail_subject,
                body=text,
            )
        )

        if sent:
            session.send(SENT_TEXT)
        else:
            logger.warning("contact_mail_not_sent", conversation_id=session.conversation_id)

        session.end_dialog({"sent": sent})

    def register(self, registry: DialogRegistry) -> None:
        registry.add(
            CONTACT_DIALOG_ID,
            self.steps,
            triggers=["Contact"],
            description="Reach Michel by Twitter or e-mail",
        )
