"""
Conversation Engine

Dialog orchestration: registry, dialog stack, waterfall executor,
prompt engine and the turn lifecycle.
"""

from .base import (
    ALWAYS_TRIGGER,
    DEFAULT_DIALOG_ID,
    FALLBACK_DIALOG_ID,
    Choice,
    DialogConfigurationError,
    DialogError,
    DialogNotFoundError,
    DialogStackOverflowError,
    Entity,
    FoundChoice,
    IntentMatch,
    PromptKind,
    PromptResolution,
    PromptStatus,
    ResumeReason,
    StepOutcomeType,
    find_entity,
)
from .state import ConversationState, DialogFrame, PendingPrompt
from .registry import DialogDefinition, DialogRegistry, WaterfallStep, normalize_dialog_id
from .prompts import PromptEngine, parse_choice, parse_confirm
from .scheduler import MessageScheduler, ScheduledSend
from .session import DialogSession, StepOutcome, TurnContext
from .waterfall import WaterfallExecutor
from .engine import DialogEngine, EngineConfig, TurnResult

__all__ = [
    # Constants
    "ALWAYS_TRIGGER",
    "DEFAULT_DIALOG_ID",
    "FALLBACK_DIALOG_ID",
    # Types
    "Choice",
    "Entity",
    "FoundChoice",
    "IntentMatch",
    "PromptKind",
    "PromptResolution",
    "PromptStatus",
    "ResumeReason",
    "StepOutcomeType",
    "find_entity",
    # State
    "ConversationState",
    "DialogFrame",
    "PendingPrompt",
    # Registry
    "DialogDefinition",
    "DialogRegistry",
    "WaterfallStep",
    "normalize_dialog_id",
    # Prompts
    "PromptEngine",
    "parse_choice",
    "parse_confirm",
    # Execution
    "MessageScheduler",
    "ScheduledSend",
    "DialogSession",
    "StepOutcome",
    "TurnContext",
    "WaterfallExecutor",
    "DialogEngine",
    "EngineConfig",
    "TurnResult",
    # Exceptions
    "DialogError",
    "DialogNotFoundError",
    "DialogConfigurationError",
    "DialogStackOverflowError",
]
