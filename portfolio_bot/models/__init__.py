"""External interface schemas."""

from portfolio_bot.models.schemas import (
    CardAttachment,
    ChannelAttachment,
    ConversationUpdate,
    InboundActivity,
    OutboundMessage,
    SuggestedAction,
)

__all__ = [
    "CardAttachment",
    "ChannelAttachment",
    "ConversationUpdate",
    "InboundActivity",
    "OutboundMessage",
    "SuggestedAction",
]
