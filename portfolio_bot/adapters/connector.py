"""In-memory connector for local development and tests."""

from collections import defaultdict
from typing import Dict, List

from portfolio_bot.models.schemas import OutboundMessage

from .base import Connector


class InMemoryConnector(Connector):
    """Records delivered messages per conversation, in delivery order."""

    def __init__(self):
        self.delivered: Dict[str, List[OutboundMessage]] = defaultdict(list)

    async def send(self, message: OutboundMessage) -> None:
        self.delivered[message.conversation_id].append(message)

    def texts(self, conversation_id: str) -> List[str]:
        """Get the text of every message delivered to a conversation."""
        return [m.text for m in self.delivered.get(conversation_id, []) if m.text]

    def clear(self) -> None:
        self.delivered.clear()
