"""
Portfolio Dialogs

The conversation content of the portfolio site:
- Root menu and greeting
- Contact by Twitter or e-mail
- Work experience and working smarter
- Unknown, help and knowledge-base answers
- Image replies
"""

from portfolio_bot.adapters.base import Notifier
from portfolio_bot.adapters.recognizers import RuleBasedRecognizer, RuleConfig
from portfolio_bot.conversation.registry import DialogRegistry

from . import fallback, portfolio, root
from .common import TOPIC_ACTIONS, TOPIC_CHOICES, topic_actions, welcome_sequence
from .contact import ContactDialog


INTENT_PATTERNS = {
    "Greeting": [
        r"^\s*(hallo|hoi|hey|hi|hello|goedemorgen|goedemiddag|goedenavond|dag)\b",
    ],
    "Contact": [
        r"\b(contact|e-?mail|mailen|bereiken|twitter)\b",
    ],
    "Experience": [
        r"\b(ervaring|werkervaring|cv|loopbaan|experience)\b",
    ],
    "WorkSmarter": [
        r"\bslimmer\b",
        r"\b(productiviteit|productief|work smarter)\b",
    ],
    "Help": [
        r"^\s*(help|hulp)\b",
        r"\bwat kun je\b",
    ],
}

INTENT_KEYWORDS = {
    "Contact": ["mail", "tweet"],
    "Experience": ["microsoft", "werk"],
    "WorkSmarter": ["planning", "focus"],
}


def build_rule_recognizer() -> RuleBasedRecognizer:
    """Offline recognizer covering the portfolio intents in Dutch and English."""
    return RuleBasedRecognizer(RuleConfig(patterns=INTENT_PATTERNS, keywords=INTENT_KEYWORDS))


def register_portfolio_dialogs(
    registry: DialogRegistry,
    notifier: Notifier,
    mail_to: str,
    mail_subject: str = "Mail vanaf de bot",
) -> DialogRegistry:
    """Register every portfolio dialog and check the graph."""
    root.register(registry)
    fallback.register(registry)
    portfolio.register(registry)
    ContactDialog(notifier, mail_to=mail_to, mail_subject=mail_subject).register(registry)

    registry.validate()
    return registry


__all__ = [
    "ContactDialog",
    "INTENT_KEYWORDS",
    "INTENT_PATTERNS",
    "TOPIC_ACTIONS",
    "TOPIC_CHOICES",
    "build_rule_recognizer",
    "register_portfolio_dialogs",
    "topic_actions",
    "welcome_sequence",
]
