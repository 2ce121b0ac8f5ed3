"""
Conversation Engine - Base Classes and Types

This module defines the foundational types shared by the dialog registry,
the dialog stack and the waterfall executor.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Optional,
)


DEFAULT_DIALOG_ID = "/"
FALLBACK_DIALOG_ID = "/unknown"

# Trigger token that matches any recognized intent
ALWAYS_TRIGGER = "*"


# =============================================================================
# Enums
# =============================================================================


class PromptKind(str, Enum):
    """Shapes of input a prompt can wait for."""

    TEXT = "text"
    CONFIRM = "confirm"
    CHOICE = "choice"


class PromptStatus(str, Enum):
    """Outcome of evaluating one inbound turn against a prompt."""

    RESOLVED = "resolved"
    INVALID = "invalid"
    EXHAUSTED = "exhausted"


class ResumeReason(str, Enum):
    """Why a waterfall step is being invoked."""

    ENTERED = "entered"        # First step of a fresh invocation
    NEXT = "next"              # Previous step fell through or called next()
    COMPLETED = "completed"    # Prompt answered or child dialog ended
    NO_ANSWER = "no_answer"    # Prompt retries exhausted
    CANCELLED = "cancelled"    # Child dialog was cancelled


class StepOutcomeType(str, Enum):
    """What a step asked the executor to do once it returned."""

    NEXT = "next"
    PROMPT = "prompt"
    BEGIN = "begin"
    END = "end"
    REPLACE = "replace"
    CANCEL = "cancel"


# =============================================================================
# Recognition Types
# =============================================================================


@dataclass
class Entity:
    """An entity extracted from an utterance."""

    type: str
    value: Any
    position: Optional[int] = None
    score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": self.type,
            "value": self.value,
            "position": self.position,
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entity":
        """Create from dictionary."""
        return cls(
            type=data["type"],
            value=data.get("value"),
            position=data.get("position"),
            score=data.get("score"),
        )


@dataclass
class IntentMatch:
    """
    One recognized intent for an utterance.

    Produced per turn by a recognizer and never persisted.
    """

    intent: str
    confidence: float
    entities: List[Entity] = field(default_factory=list)
    source: str = ""

    def __post_init__(self) -> None:
        self.confidence = max(0.0, min(1.0, float(self.confidence)))

    def find_entity(self, entity_type: str) -> Optional[Entity]:
        """Get the first entity of the given type."""
        return find_entity(self.entities, entity_type)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "intent": self.intent,
            "confidence": self.confidence,
            "entities": [e.to_dict() for e in self.entities],
            "source": self.source,
        }


def find_entity(entities: Iterable[Entity], entity_type: str) -> Optional[Entity]:
    """Find the first entity of a given type."""
    for entity in entities:
        if entity.type == entity_type:
            return entity
    return None


# =============================================================================
# Prompt Types
# =============================================================================


@dataclass
class Choice:
    """An option offered by a choice prompt."""

    value: str
    label: str
    synonyms: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "value": self.value,
            "label": self.label,
            "synonyms": list(self.synonyms),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Choice":
        """Create from dictionary."""
        return cls(
            value=data["value"],
            label=data.get("label", data["value"]),
            synonyms=data.get("synonyms", []),
        )


@dataclass
class FoundChoice:
    """The option a user selected in response to a choice prompt."""

    index: int
    value: str
    label: str
    score: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "index": self.index,
            "value": self.value,
            "label": self.label,
            "score": self.score,
        }


@dataclass
class PromptResolution:
    """Result of feeding an utterance to a pending prompt."""

    status: PromptStatus
    value: Any = None

    @property
    def is_final(self) -> bool:
        """Whether the prompt is finished with this turn."""
        return self.status != PromptStatus.INVALID


# =============================================================================
# Exceptions
# =============================================================================


class DialogError(Exception):
    """Base exception for dialog orchestration errors."""
    pass


class DialogNotFoundError(DialogError):
    """A dialog id does not resolve to a registered dialog."""

    def __init__(self, dialog_id: str):
        super().__init__(f"Dialog not found: {dialog_id}")
        self.dialog_id = dialog_id


class DialogConfigurationError(DialogError):
    """The dialog graph failed startup validation."""

    def __init__(self, problems: List[str]):
        super().__init__("Invalid dialog configuration: " + "; ".join(problems))
        self.problems = problems


class DialogStackOverflowError(DialogError):
    """Beginning a dialog would exceed the maximum stack depth."""

    def __init__(self, dialog_id: str, depth: int):
        super().__init__(f"Dialog stack depth {depth} exceeded while beginning {dialog_id}")
        self.dialog_id = dialog_id
        self.depth = depth


__all__ = [
    # Constants
    "DEFAULT_DIALOG_ID",
    "FALLBACK_DIALOG_ID",
    "ALWAYS_TRIGGER",
    # Enums
    "PromptKind",
    "PromptStatus",
    "ResumeReason",
    "StepOutcomeType",
    # Recognition types
    "Entity",
    "IntentMatch",
    "find_entity",
    # Prompt types
    "Choice",
    "FoundChoice",
    "PromptResolution",
    # Exceptions
    "DialogError",
    "DialogNotFoundError",
    "DialogConfigurationError",
    "DialogStackOverflowError",
]
