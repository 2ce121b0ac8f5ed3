"""Shared pytest fixtures for testing."""

import os
from typing import Dict, List, Optional

import pytest

from portfolio_bot.adapters.base import MailMessage, Notifier, Recognizer
from portfolio_bot.adapters.connector import InMemoryConnector
from portfolio_bot.adapters.storage import InMemoryStateStore
from portfolio_bot.config import Settings
from portfolio_bot.conversation.base import Entity, IntentMatch

# Set test environment
os.environ["ENVIRONMENT"] = "test"


# =============================================================================
# Collaborator Doubles
# =============================================================================


class ScriptedRecognizer(Recognizer):
    """Recognizer that answers from a fixed utterance -> intents script."""

    name = "scripted"

    def __init__(self):
        self.script: Dict[str, List[IntentMatch]] = {}
        self.calls: List[str] = []
        self.error: Optional[Exception] = None

    def on(
        self,
        text: str,
        intent: str,
        confidence: float = 0.9,
        entities: Optional[List[Entity]] = None,
    ) -> "ScriptedRecognizer":
        self.script.setdefault(text.lower(), []).append(
            IntentMatch(intent=intent, confidence=confidence, entities=list(entities or []), source=self.name)
        )
        return self

    async def recognize(self, text: str) -> List[IntentMatch]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return list(self.script.get(text.lower(), []))


class RecordingNotifier(Notifier):
    """Notifier that records mail instead of sending it."""

    def __init__(self, result: bool = True):
        self.result = result
        self.sent: List[MailMessage] = []

    async def send_mail(self, message: MailMessage) -> bool:
        self.sent.append(message)
        return self.result


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def recognizer() -> ScriptedRecognizer:
    """Create a scripted recognizer."""
    return ScriptedRecognizer()


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Create a recording notifier."""
    return RecordingNotifier()


@pytest.fixture
def connector() -> InMemoryConnector:
    """Create an in-memory connector."""
    return InMemoryConnector()


@pytest.fixture
def state_store() -> InMemoryStateStore:
    """Create an in-memory state store."""
    return InMemoryStateStore()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the developer's environment file."""
    return Settings(
        _env_file=None,
        environment="test",
        send_typing=False,
        state_backend="memory",
        mail_host="",
        luis_app_id="",
        qna_knowledgebase_id="",
        typing_delay_seconds=0.0,
    )
