"""
Mail Notifiers

SMTP delivery for messages visitors leave through the contact dialog.
"""

from email.message import EmailMessage
from typing import Optional

import aiosmtplib
import structlog

from .base import MailMessage, NotificationError, Notifier


logger = structlog.get_logger()


class SmtpNotifier(Notifier):
    """
    Sends plain-text mail over SMTP with STARTTLS.

    Failures are logged and reported as False; they never reach the user.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        start_tls: bool = True,
        validate_certs: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.start_tls = start_tls
        self.validate_certs = validate_certs
        self.timeout = timeout

    def build_message(self, message: MailMessage) -> EmailMessage:
        """Build the MIME message."""
        if not message.to:
            raise NotificationError("Mail has no recipient")

        email = EmailMessage()
        email["From"] = message.sender
        email["To"] = message.to
        email["Subject"] = message.subject
        email.set_content(message.body)
        return email

    async def send_mail(self, message: MailMessage) -> bool:
        try:
            email = self.build_message(message)
            await aiosmtplib.send(
                email,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.start_tls,
                validate_certs=self.validate_certs,
                timeout=self.timeout,
            )
        except (NotificationError, aiosmtplib.SMTPException, OSError, ValueError) as e:
            logger.error(
                "mail_send_failed",
                host=self.host,
                to=message.to,
                error_type=type(e).__name__,
                error=str(e),
            )
            return False

        logger.info("mail_sent", to=message.to, subject=message.subject)
        return True


class LogOnlyNotifier(Notifier):
    """Development notifier that logs mail instead of sending it."""

    async def send_mail(self, message: MailMessage) -> bool:
        logger.info(
            "mail_not_sent",
            reason="no_mail_host_configured",
            sender=message.sender,
            to=message.to,
            subject=message.subject,
        )
        return True
