"""
Pydantic schemas for the bot's external interfaces.

Defines the inbound turn, the outbound message and the conversation
update shapes exchanged with the transport.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChannelAttachment(BaseModel):
    """A file or media item attached to an inbound turn."""

    model_config = ConfigDict(populate_by_name=True)

    content_type: str = Field(..., alias="contentType", description="MIME type of the attachment")
    content_url: Optional[str] = Field(None, alias="contentUrl", description="Where the content can be fetched")
    name: Optional[str] = Field(None, description="Original file name")

    @property
    def is_image(self) -> bool:
        """Whether the attachment carries an image."""
        return "image" in self.content_type


class InboundActivity(BaseModel):
    """One inbound user turn."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "conversationId": "conv-123",
                    "userId": "user-abc",
                    "text": "Hallo!",
                    "attachments": [],
                }
            ]
        },
    )

    conversation_id: str = Field(..., min_length=1, max_length=256, alias="conversationId")
    user_id: Optional[str] = Field(None, max_length=256, alias="userId")
    text: str = Field("", max_length=10000, description="Utterance text")
    attachments: List[ChannelAttachment] = Field(default_factory=list)


class SuggestedAction(BaseModel):
    """A quick-reply button; its value is posted back as the next utterance."""

    label: str
    value: str


class CardAttachment(BaseModel):
    """Rich card descriptor rendered by the channel."""

    content_type: str = Field("application/vnd.microsoft.card.hero", alias="contentType")
    title: str
    subtitle: Optional[str] = None
    text: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    buttons: List[SuggestedAction] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class OutboundMessage(BaseModel):
    """One outbound activity addressed to a conversation."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(..., alias="conversationId")
    type: Literal["message", "typing"] = "message"
    text: Optional[str] = None
    suggested_actions: List[SuggestedAction] = Field(default_factory=list, alias="suggestedActions")
    attachments: List[CardAttachment] = Field(default_factory=list)


class ConversationUpdate(BaseModel):
    """Membership change in a conversation (e.g. the page with the bot was opened)."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(..., alias="conversationId")
    bot_id: str = Field(..., alias="botId")
    members_added: List[str] = Field(default_factory=list, alias="membersAdded")
    members_removed: List[str] = Field(default_factory=list, alias="membersRemoved")
