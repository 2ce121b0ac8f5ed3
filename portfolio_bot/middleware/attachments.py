"""Attachment detection middleware."""

from typing import TYPE_CHECKING

import structlog

from .pipeline import NextFn

if TYPE_CHECKING:
    from portfolio_bot.conversation.session import TurnContext


logger = structlog.get_logger()


IMAGE_RECEIVED_DIALOG_ID = "/image-received"


class AttachmentDetectionMiddleware:
    """
    Diverts turns that carry an image to a dedicated dialog.

    Only the first attachment is inspected; anything that is not an image
    continues through normal routing.
    """

    def __init__(
        self,
        dialog_id: str = IMAGE_RECEIVED_DIALOG_ID,
        content_type: str = "image",
        message: str = "I received your image. Let's have a look!",
    ):
        self.dialog_id = dialog_id
        self.content_type = content_type
        self.message = message

    async def __call__(self, turn: "TurnContext", next: NextFn) -> None:
        attachments = turn.attachments
        if not attachments or self.content_type not in attachments[0].content_type:
            await next()
            return

        attachment = attachments[0]
        logger.info(
            "attachment_detected",
            conversation_id=turn.conversation_id,
            content_type=attachment.content_type,
        )

        turn.send_typing()
        turn.send(self.message)
        await turn.begin_dialog(self.dialog_id, {"attachment": attachment})
