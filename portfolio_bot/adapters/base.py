"""
Adapter Base Types

Interfaces the dialog engine needs from its external collaborators:
state storage, intent recognition, outbound delivery and mail.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from portfolio_bot.conversation.base import IntentMatch
from portfolio_bot.conversation.state import ConversationState
from portfolio_bot.models.schemas import OutboundMessage


# =============================================================================
# Types
# =============================================================================


@dataclass
class MailMessage:
    """A plain-text mail."""

    sender: str
    to: str
    subject: str
    body: str


# =============================================================================
# Interfaces
# =============================================================================


class StateStore(ABC):
    """Opaque per-conversation state persistence."""

    @abstractmethod
    async def load(self, conversation_id: str) -> Optional[ConversationState]:
        """Load state; None when the conversation is new."""
        pass

    @abstractmethod
    async def save(self, state: ConversationState) -> None:
        """Persist state; raises StateStoreError on failure."""
        pass

    @abstractmethod
    async def delete(self, conversation_id: str) -> bool:
        """Forget a conversation."""
        pass

    async def close(self) -> None:
        """Release connections."""
        pass


class Recognizer(ABC):
    """Utterance to ranked intents."""

    name: str = "recognizer"

    @abstractmethod
    async def recognize(self, text: str) -> List[IntentMatch]:
        """Get candidate intents, best first; empty when nothing matched."""
        pass

    async def classify(self, text: str) -> Optional[IntentMatch]:
        """Get the single best intent."""
        matches = await self.recognize(text)
        return matches[0] if matches else None

    async def close(self) -> None:
        """Release connections."""
        pass


class Connector(ABC):
    """Outbound delivery to the channel."""

    @abstractmethod
    async def send(self, message: OutboundMessage) -> None:
        """Deliver one message."""
        pass


class Notifier(ABC):
    """Outbound mail notification."""

    @abstractmethod
    async def send_mail(self, message: MailMessage) -> bool:
        """Send a mail; returns False on failure instead of raising."""
        pass


# =============================================================================
# Exceptions
# =============================================================================


class AdapterError(Exception):
    """Base exception for collaborator failures."""
    pass


class StateStoreError(AdapterError):
    """State could not be loaded or saved."""

    def __init__(self, message: str, conversation_id: Optional[str] = None):
        super().__init__(message)
        self.conversation_id = conversation_id


class RecognizerError(AdapterError):
    """A recognizer call failed."""

    def __init__(self, message: str, recognizer: str):
        super().__init__(message)
        self.recognizer = recognizer


class NotificationError(AdapterError):
    """A mail could not be delivered."""
    pass


__all__ = [
    "MailMessage",
    "StateStore",
    "Recognizer",
    "Connector",
    "Notifier",
    "AdapterError",
    "StateStoreError",
    "RecognizerError",
    "NotificationError",
]
