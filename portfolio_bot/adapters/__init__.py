"""
External Collaborator Adapters

- State stores (in-memory, Redis)
- Recognizers (rules, LUIS, QnA Maker)
- Mail notifiers (SMTP)
- Outbound connectors
"""

from .base import (
    AdapterError,
    Connector,
    MailMessage,
    NotificationError,
    Notifier,
    Recognizer,
    RecognizerError,
    StateStore,
    StateStoreError,
)
from .connector import InMemoryConnector
from .mail import LogOnlyNotifier, SmtpNotifier
from .recognizers import (
    LuisRecognizer,
    QnAMakerRecognizer,
    RecognizerSet,
    RuleBasedRecognizer,
    RuleConfig,
)
from .storage import InMemoryStateStore, RedisStateStore

__all__ = [
    # Interfaces
    "Connector",
    "Notifier",
    "Recognizer",
    "StateStore",
    "MailMessage",
    # Implementations
    "InMemoryConnector",
    "InMemoryStateStore",
    "RedisStateStore",
    "LogOnlyNotifier",
    "SmtpNotifier",
    "LuisRecognizer",
    "QnAMakerRecognizer",
    "RecognizerSet",
    "RuleBasedRecognizer",
    "RuleConfig",
    # Exceptions
    "AdapterError",
    "NotificationError",
    "RecognizerError",
    "StateStoreError",
]
