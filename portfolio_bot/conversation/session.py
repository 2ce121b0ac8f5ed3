"""
Dialog Session

The turn context shared by middleware and dialog steps, and the session
object each waterfall step receives.
"""

from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import structlog

from portfolio_bot.models.schemas import (
    CardAttachment,
    ChannelAttachment,
    InboundActivity,
    OutboundMessage,
    SuggestedAction,
)

from .base import (
    Choice,
    IntentMatch,
    PromptKind,
    ResumeReason,
    StepOutcomeType,
)
from .scheduler import ScheduledSend
from .state import ConversationState, DialogFrame, PendingPrompt

if TYPE_CHECKING:
    from .waterfall import WaterfallExecutor


logger = structlog.get_logger()


MessageLike = Union[str, OutboundMessage]


@dataclass
class StepOutcome:
    """What the executor should do after a step returns."""

    type: StepOutcomeType
    dialog_id: Optional[str] = None
    args: Any = None
    prompt: Optional[PendingPrompt] = None


class TurnContext:
    """
    Everything one inbound turn touches.

    Outbound messages are buffered in emission order and delivered by the
    engine once the turn's state has been persisted.
    """

    def __init__(
        self,
        activity: InboundActivity,
        state: ConversationState,
        executor: "WaterfallExecutor",
    ):
        self.activity = activity
        self.state = state
        self.executor = executor

        self.outbox: List[OutboundMessage] = []
        self.sequences: List[List[ScheduledSend]] = []
        self.intent: Optional[IntentMatch] = None

    @property
    def conversation_id(self) -> str:
        return self.state.conversation_id

    @property
    def text(self) -> str:
        return self.activity.text or ""

    @property
    def attachments(self) -> List[ChannelAttachment]:
        return self.activity.attachments

    @property
    def user_data(self) -> Dict[str, Any]:
        return self.state.user_data

    def build_message(
        self,
        message: MessageLike,
        suggested_actions: Optional[Sequence[SuggestedAction]] = None,
        attachments: Optional[Sequence[CardAttachment]] = None,
    ) -> OutboundMessage:
        """Address a message (or plain text) to this conversation."""
        if isinstance(message, OutboundMessage):
            return message
        return OutboundMessage(
            conversation_id=self.conversation_id,
            text=message,
            suggested_actions=list(suggested_actions or []),
            attachments=list(attachments or []),
        )

    def send(
        self,
        message: MessageLike,
        suggested_actions: Optional[Sequence[SuggestedAction]] = None,
        attachments: Optional[Sequence[CardAttachment]] = None,
    ) -> OutboundMessage:
        """Emit a message; delivery keeps emission order."""
        outbound = self.build_message(message, suggested_actions, attachments)
        self.outbox.append(outbound)
        return outbound

    def send_typing(self) -> OutboundMessage:
        """Emit a typing indicator."""
        outbound = OutboundMessage(conversation_id=self.conversation_id, type="typing")
        self.outbox.append(outbound)
        return outbound

    def send_sequence(self, items: Iterable[Tuple[float, MessageLike]]) -> List[ScheduledSend]:
        """
        Queue a paced burst of messages.

        Each delay counts from the previous message in the burst. The burst
        starts after the turn completes and never affects dialog state.
        """
        sequence = [ScheduledSend(delay=delay, message=self.build_message(m)) for delay, m in items]
        if sequence:
            self.sequences.append(sequence)
        return sequence

    async def begin_dialog(self, dialog_id: str, args: Any = None) -> None:
        """Push a dialog and run it; used by middleware to divert a turn."""
        await self.executor.begin(self, dialog_id, args)

    def reset_dialogs(self) -> None:
        """Drop every active dialog and park the default dialog."""
        self.state.reset_stack(self.executor.registry.default_dialog_id)


class DialogSession:
    """
    The handle a waterfall step uses to talk and to steer the dialog stack.

    Steering calls (prompt, begin, end, replace, cancel, next) record what
    should happen once the step returns; a later call replaces an earlier
    one within the same step.
    """

    def __init__(
        self,
        turn: TurnContext,
        frame: DialogFrame,
        args: Any = None,
        resumed: ResumeReason = ResumeReason.ENTERED,
    ):
        self.turn = turn
        self.frame = frame
        self.args = args
        self.resumed = resumed
        self.outcome: Optional[StepOutcome] = None

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def conversation_id(self) -> str:
        return self.turn.conversation_id

    @property
    def dialog_id(self) -> str:
        return self.frame.dialog_id

    @property
    def user_data(self) -> Dict[str, Any]:
        return self.turn.state.user_data

    @property
    def dialog_data(self) -> Dict[str, Any]:
        return self.frame.dialog_data

    @property
    def message(self) -> InboundActivity:
        return self.turn.activity

    @property
    def intent(self) -> Optional[IntentMatch]:
        return self.turn.intent

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def send(
        self,
        message: MessageLike,
        suggested_actions: Optional[Sequence[SuggestedAction]] = None,
        attachments: Optional[Sequence[CardAttachment]] = None,
    ) -> OutboundMessage:
        """Emit a message now."""
        return self.turn.send(message, suggested_actions, attachments)

    def send_typing(self) -> OutboundMessage:
        """Emit a typing indicator."""
        return self.turn.send_typing()

    def send_sequence(self, items: Iterable[Tuple[float, MessageLike]]) -> List[ScheduledSend]:
        """Queue a paced burst of messages."""
        return self.turn.send_sequence(items)

    # -------------------------------------------------------------------------
    # Prompts
    # -------------------------------------------------------------------------

    def prompt(
        self,
        kind: PromptKind,
        text: str,
        choices: Optional[Sequence[Choice]] = None,
        retry_text: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> PendingPrompt:
        """Ask for input; the waterfall suspends until the prompt resolves."""
        pending = self.turn.executor.prompts.create(
            kind,
            text,
            choices=choices,
            retry_text=retry_text,
            max_retries=max_retries,
        )
        self._set_outcome(StepOutcome(type=StepOutcomeType.PROMPT, prompt=pending))
        return pending

    def prompt_text(self, text: str, retry_text: Optional[str] = None) -> PendingPrompt:
        """Ask for free text."""
        return self.prompt(PromptKind.TEXT, text, retry_text=retry_text)

    def prompt_confirm(self, text: str, retry_text: Optional[str] = None) -> PendingPrompt:
        """Ask a yes/no question."""
        return self.prompt(PromptKind.CONFIRM, text, retry_text=retry_text)

    def prompt_choice(
        self,
        text: str,
        choices: Sequence[Choice],
        retry_text: Optional[str] = None,
    ) -> PendingPrompt:
        """Ask the user to pick one option."""
        return self.prompt(PromptKind.CHOICE, text, choices=choices, retry_text=retry_text)

    # -------------------------------------------------------------------------
    # Stack control
    # -------------------------------------------------------------------------

    def next(self, args: Any = None) -> None:
        """Continue with the following step in this turn."""
        self._set_outcome(StepOutcome(type=StepOutcomeType.NEXT, args=args))

    def begin_dialog(self, dialog_id: str, args: Any = None) -> None:
        """Start a child dialog; this dialog resumes when the child ends."""
        self._set_outcome(StepOutcome(type=StepOutcomeType.BEGIN, dialog_id=dialog_id, args=args))

    def end_dialog(self, result: Any = None, message: Optional[MessageLike] = None) -> None:
        """End this dialog and hand `result` to the parent's next step."""
        if message is not None:
            self.send(message)
        self._set_outcome(StepOutcome(type=StepOutcomeType.END, args=result))

    def replace_dialog(self, dialog_id: str, args: Any = None) -> None:
        """End this dialog and start another in its place."""
        self._set_outcome(StepOutcome(type=StepOutcomeType.REPLACE, dialog_id=dialog_id, args=args))

    def cancel_dialog(self) -> None:
        """End this dialog without a result."""
        self._set_outcome(StepOutcome(type=StepOutcomeType.CANCEL))

    def _set_outcome(self, outcome: StepOutcome) -> None:
        if self.outcome is not None:
            logger.warning(
                "step_outcome_replaced",
                conversation_id=self.conversation_id,
                dialog_id=self.dialog_id,
                step_index=self.frame.step_index,
                previous=self.outcome.type.value,
                current=outcome.type.value,
            )
        self.outcome = outcome
