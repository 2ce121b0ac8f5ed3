"""
Conversation State

Per-conversation execution state: the user data bag and the stack of
active dialog invocations.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog

from .base import Choice, PromptKind


logger = structlog.get_logger()


@dataclass
class PendingPrompt:
    """An outstanding prompt waiting for the next user turn."""

    kind: PromptKind
    text: str
    choices: List[Choice] = field(default_factory=list)
    retry_text: Optional[str] = None
    retries: int = 0
    max_retries: int = 2

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "text": self.text,
            "choices": [c.to_dict() for c in self.choices],
            "retry_text": self.retry_text,
            "retries": self.retries,
            "max_retries": self.max_retries,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PendingPrompt":
        """Create from dictionary."""
        return cls(
            kind=PromptKind(data["kind"]),
            text=data.get("text", ""),
            choices=[Choice.from_dict(c) for c in data.get("choices", [])],
            retry_text=data.get("retry_text"),
            retries=data.get("retries", 0),
            max_retries=data.get("max_retries", 2),
        )


@dataclass
class DialogFrame:
    """
    One nested dialog invocation on the dialog stack.

    The frame refers to its dialog definition by id only; the definition
    itself lives in the registry.
    """

    dialog_id: str
    step_index: int = 0
    dialog_data: Dict[str, Any] = field(default_factory=dict)
    pending_prompt: Optional[PendingPrompt] = None

    # An idle frame is the parked default dialog: it holds the stack open
    # but never runs steps or receives results.
    idle: bool = False

    started_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_waiting(self) -> bool:
        """Check if the frame waits on a prompt."""
        return self.pending_prompt is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "dialog_id": self.dialog_id,
            "step_index": self.step_index,
            "dialog_data": self.dialog_data,
            "pending_prompt": self.pending_prompt.to_dict() if self.pending_prompt else None,
            "idle": self.idle,
            "started_at": self.started_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DialogFrame":
        """Create from dictionary."""
        frame = cls(
            dialog_id=data["dialog_id"],
            step_index=data.get("step_index", 0),
            dialog_data=data.get("dialog_data", {}),
            idle=data.get("idle", False),
        )
        if data.get("pending_prompt"):
            frame.pending_prompt = PendingPrompt.from_dict(data["pending_prompt"])
        if data.get("started_at"):
            frame.started_at = datetime.fromisoformat(data["started_at"])
        return frame


@dataclass
class ConversationState:
    """
    State of one conversation with one user.

    Tracks:
    - User data that outlives individual dialogs
    - The dialog stack (top = active invocation)
    - The dialog version the stack was built against
    """

    conversation_id: str
    user_id: Optional[str] = None

    user_data: Dict[str, Any] = field(default_factory=dict)
    dialog_stack: List[DialogFrame] = field(default_factory=list)

    version: Optional[float] = None
    turn_count: int = 0

    created_at: datetime = field(default_factory=datetime.utcnow)
    last_activity: datetime = field(default_factory=datetime.utcnow)

    @property
    def active_frame(self) -> Optional[DialogFrame]:
        """Get the frame on top of the stack."""
        if not self.dialog_stack:
            return None
        return self.dialog_stack[-1]

    @property
    def depth(self) -> int:
        """Get the number of frames on the stack."""
        return len(self.dialog_stack)

    def is_waiting_for_prompt(self) -> bool:
        """Check if the active dialog waits for an answer."""
        frame = self.active_frame
        return frame is not None and frame.is_waiting

    def push(self, frame: DialogFrame) -> DialogFrame:
        """Push a frame onto the stack."""
        self.dialog_stack.append(frame)
        return frame

    def pop(self) -> Optional[DialogFrame]:
        """Pop the active frame, discarding its dialog data."""
        if not self.dialog_stack:
            return None
        return self.dialog_stack.pop()

    def clear_stack(self) -> None:
        """Drop every frame."""
        self.dialog_stack.clear()

    def reset_stack(self, default_dialog_id: str) -> DialogFrame:
        """Replace the stack with a fresh idle default frame."""
        self.dialog_stack.clear()
        frame = DialogFrame(dialog_id=default_dialog_id, idle=True)
        self.dialog_stack.append(frame)

        logger.debug(
            "dialog_stack_reset",
            conversation_id=self.conversation_id,
            dialog_id=default_dialog_id,
        )

        return frame

    def touch(self) -> None:
        """Record activity on the conversation."""
        self.turn_count += 1
        self.last_activity = datetime.utcnow()

    def copy(self) -> "ConversationState":
        """Get an independent working copy."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "conversation_id": self.conversation_id,
            "user_id": self.user_id,
            "user_data": self.user_data,
            "dialog_stack": [f.to_dict() for f in self.dialog_stack],
            "version": self.version,
            "turn_count": self.turn_count,
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationState":
        """Create from dictionary."""
        state = cls(
            conversation_id=data["conversation_id"],
            user_id=data.get("user_id"),
        )
        state.user_data = data.get("user_data", {})
        state.dialog_stack = [DialogFrame.from_dict(f) for f in data.get("dialog_stack", [])]
        state.version = data.get("version")
        state.turn_count = data.get("turn_count", 0)

        if data.get("created_at"):
            state.created_at = datetime.fromisoformat(data["created_at"])
        if data.get("last_activity"):
            state.last_activity = datetime.fromisoformat(data["last_activity"])

        return state
