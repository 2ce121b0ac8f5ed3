"""
Dialog Engine

Owns the turn lifecycle: load state, run middleware, route the turn to a
pending prompt, an explicitly addressed dialog or a triggered dialog,
persist, then deliver output.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    AsyncIterator,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
)

import structlog

from portfolio_bot.middleware.pipeline import MiddlewarePipeline
from portfolio_bot.models.schemas import (
    ChannelAttachment,
    ConversationUpdate,
    InboundActivity,
    OutboundMessage,
)

from .base import DEFAULT_DIALOG_ID, FALLBACK_DIALOG_ID, IntentMatch
from .prompts import DEFAULT_MAX_RETRIES, PromptEngine
from .registry import DialogDefinition, DialogRegistry, normalize_dialog_id
from .scheduler import MessageScheduler, ScheduledSend
from .session import TurnContext
from .state import ConversationState
from .waterfall import WaterfallExecutor

if TYPE_CHECKING:
    from portfolio_bot.adapters.base import Connector, Recognizer, StateStore


logger = structlog.get_logger()


ConversationStartHandler = Callable[[ConversationUpdate], Sequence[ScheduledSend]]


@dataclass
class EngineConfig:
    """Configuration for the dialog engine."""
    default_dialog_id: str = DEFAULT_DIALOG_ID
    fallback_dialog_id: str = FALLBACK_DIALOG_ID
    confidence_threshold: float = 0.5
    prompt_max_retries: int = DEFAULT_MAX_RETRIES
    max_stack_depth: int = 10
    max_steps_per_turn: int = 50
    locale: str = "nl"
    dialog_version: Optional[float] = None
    error_message: str = "Oei, er ging iets mis. Probeer het nog eens?"


@dataclass
class TurnResult:
    """Result of processing one inbound turn."""
    conversation_id: str
    messages: List[OutboundMessage] = field(default_factory=list)
    scheduled: List[List[ScheduledSend]] = field(default_factory=list)
    intent: Optional[IntentMatch] = None
    active_dialog: Optional[str] = None
    waiting_for_input: bool = False
    error: Optional[str] = None

    @property
    def texts(self) -> List[str]:
        """Get the text of every outbound message."""
        return [m.text for m in self.messages if m.text]


class DialogEngine:
    """
    Conversation-state machine with nested dialogs and waterfalls.

    Turns for one conversation are serialized; turns for different
    conversations run independently.
    """

    def __init__(
        self,
        registry: DialogRegistry,
        state_store: "StateStore",
        recognizer: "Recognizer",
        config: Optional[EngineConfig] = None,
        middleware: Optional[MiddlewarePipeline] = None,
        connector: Optional["Connector"] = None,
        on_conversation_start: Optional[ConversationStartHandler] = None,
    ):
        self.config = config or EngineConfig()
        self.registry = registry
        self.state_store = state_store
        self.recognizer = recognizer
        self.middleware = middleware or MiddlewarePipeline()
        self.connector = connector
        self.on_conversation_start = on_conversation_start

        self.prompts = PromptEngine(
            max_retries=self.config.prompt_max_retries,
            locale=self.config.locale,
        )
        self.executor = WaterfallExecutor(
            registry,
            self.prompts,
            max_stack_depth=self.config.max_stack_depth,
            max_steps_per_turn=self.config.max_steps_per_turn,
        )
        self.scheduler = MessageScheduler(connector.send if connector else None)

        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    def use(self, hook) -> "DialogEngine":
        """Append a middleware hook."""
        self.middleware.use(hook)
        return self

    # -------------------------------------------------------------------------
    # Turn lifecycle
    # -------------------------------------------------------------------------

    async def handle_turn(self, activity: InboundActivity) -> TurnResult:
        """
        Process one inbound turn to completion.

        State is persisted only when the whole turn succeeds; any failure
        leaves the stored state untouched and answers with the fallback
        dialog's message.
        """
        conversation_id = activity.conversation_id

        async with self._conversation_lock(conversation_id):
            try:
                state = await self._load_state(activity)
                turn = TurnContext(activity, state, self.executor)

                await self.middleware.run(turn, self._dispatch)

                if not state.dialog_stack:
                    state.reset_stack(self.registry.default_dialog_id)
                state.touch()

                await self.state_store.save(state)

            except Exception as e:
                logger.exception(
                    "turn_failed",
                    conversation_id=conversation_id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                messages = await self._render_fallback(activity)
                await self._deliver(messages)
                return TurnResult(
                    conversation_id=conversation_id,
                    messages=messages,
                    error=str(e),
                )

            await self._deliver(turn.outbox)

        for sequence in turn.sequences:
            self.scheduler.schedule(sequence)

        active = state.active_frame
        logger.info(
            "turn_completed",
            conversation_id=conversation_id,
            intent=turn.intent.intent if turn.intent else None,
            active_dialog=active.dialog_id if active else None,
            depth=state.depth,
            messages=len(turn.outbox),
        )

        return TurnResult(
            conversation_id=conversation_id,
            messages=list(turn.outbox),
            scheduled=list(turn.sequences),
            intent=turn.intent,
            active_dialog=active.dialog_id if active and not active.idle else None,
            waiting_for_input=state.is_waiting_for_prompt(),
        )

    async def handle_text(
        self,
        conversation_id: str,
        text: str,
        user_id: Optional[str] = None,
        attachments: Optional[Sequence[ChannelAttachment]] = None,
    ) -> TurnResult:
        """Process a plain utterance."""
        return await self.handle_turn(
            InboundActivity(
                conversation_id=conversation_id,
                user_id=user_id,
                text=text,
                attachments=list(attachments or []),
            )
        )

    async def handle_conversation_update(self, update: ConversationUpdate) -> List[ScheduledSend]:
        """Greet the user when the bot joins a conversation."""
        if update.bot_id not in update.members_added or self.on_conversation_start is None:
            return []

        sequence = list(self.on_conversation_start(update))
        self.scheduler.schedule(sequence)

        logger.info(
            "conversation_started",
            conversation_id=update.conversation_id,
            messages=len(sequence),
        )

        return sequence

    async def _dispatch(self, turn: TurnContext) -> None:
        """Route a turn that made it through the middleware."""
        state = turn.state

        if state.is_waiting_for_prompt():
            await self.executor.continue_prompt(turn)
            return

        args = self._entry_args(turn)

        target = self._explicit_target(turn.text)
        if target is not None:
            state.clear_stack()
            await self.executor.begin(turn, target.id, args)
            return

        matches = await self._recognize(turn.text)
        resolved = self.registry.match(matches, self.config.confidence_threshold)

        if resolved is not None:
            definition, intent = resolved
            turn.intent = intent
            args["intent"] = intent
            args["entities"] = intent.entities
        else:
            definition = self.registry.resolve_by_id(self.config.fallback_dialog_id)
            logger.info(
                "turn_unrouted",
                conversation_id=state.conversation_id,
                candidates=[m.intent for m in matches],
            )

        state.clear_stack()
        await self.executor.begin(turn, definition.id, args)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _load_state(self, activity: InboundActivity) -> ConversationState:
        stored = await self.state_store.load(activity.conversation_id)

        if stored is None:
            state = ConversationState(
                conversation_id=activity.conversation_id,
                user_id=activity.user_id,
                version=self.config.dialog_version,
            )
            state.reset_stack(self.registry.default_dialog_id)
            logger.info("conversation_created", conversation_id=activity.conversation_id)
            return state

        state = stored.copy()
        if activity.user_id and not state.user_id:
            state.user_id = activity.user_id
        return state

    def _entry_args(self, turn: TurnContext) -> Dict[str, Any]:
        return {
            "text": turn.text,
            "attachments": list(turn.attachments),
            "intent": None,
            "entities": [],
        }

    def _explicit_target(self, text: str) -> Optional[DialogDefinition]:
        """Get the dialog an utterance addresses by absolute path."""
        candidate = (text or "").strip()
        if not candidate.startswith("/") or " " in candidate:
            return None
        if candidate not in self.registry:
            return None
        return self.registry.resolve_by_id(normalize_dialog_id(candidate))

    async def _recognize(self, text: str) -> List[IntentMatch]:
        if not text or not text.strip():
            return []
        try:
            return await self.recognizer.recognize(text)
        except Exception as e:
            logger.error("recognizer_failed", error_type=type(e).__name__, error=str(e))
            return []

    async def _render_fallback(self, activity: InboundActivity) -> List[OutboundMessage]:
        """Run the fallback dialog on a scratch state to produce the user-facing answer."""
        scratch = ConversationState(conversation_id=activity.conversation_id)
        turn = TurnContext(activity, scratch, self.executor)
        try:
            await self.executor.begin(turn, self.config.fallback_dialog_id, {"text": activity.text})
        except Exception as e:
            logger.error("fallback_dialog_failed", error=str(e))
            return [OutboundMessage(conversation_id=activity.conversation_id, text=self.config.error_message)]

        return [m for m in turn.outbox if m.type == "message"] or [
            OutboundMessage(conversation_id=activity.conversation_id, text=self.config.error_message)
        ]

    async def _deliver(self, messages: Sequence[OutboundMessage]) -> None:
        if self.connector is None:
            return
        for message in messages:
            try:
                await self.connector.send(message)
            except Exception as e:
                logger.error(
                    "message_delivery_failed",
                    conversation_id=message.conversation_id,
                    error=str(e),
                )

    @asynccontextmanager
    async def _conversation_lock(self, conversation_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._lock_users[conversation_id] = self._lock_users.get(conversation_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[conversation_id] -= 1
            if self._lock_users[conversation_id] == 0:
                del self._lock_users[conversation_id]
                del self._locks[conversation_id]

    async def get_state(self, conversation_id: str) -> Optional[ConversationState]:
        """Get the persisted state of a conversation."""
        return await self.state_store.load(conversation_id)

    async def close(self) -> None:
        """Stop background sends and release adapters."""
        await self.scheduler.close()
        await self.recognizer.close()
        await self.state_store.close()
