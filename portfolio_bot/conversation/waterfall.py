"""
Waterfall Executor

Runs the ordered steps of the active dialog invocation, threading each
step's result into the next one, and pushes/pops frames as steps begin
and end dialogs. The dialog stack is walked iteratively so nesting depth
is bounded by configuration only.
"""

from typing import Any, Tuple

import structlog

from .base import (
    DialogError,
    DialogStackOverflowError,
    PromptStatus,
    ResumeReason,
    StepOutcomeType,
)
from .prompts import PromptEngine
from .registry import DialogRegistry
from .session import DialogSession, StepOutcome, TurnContext
from .state import ConversationState, DialogFrame


logger = structlog.get_logger()


class WaterfallExecutor:
    """
    Executes waterfall steps against a turn's conversation state.

    A step that prompts suspends its dialog: the frame keeps its step index
    until the prompt resolves, then the following step runs with
    args = {"response": value, "resumed": reason}. A step that begins a
    child dialog is resumed the same way with the child's result as args.
    """

    def __init__(
        self,
        registry: DialogRegistry,
        prompts: PromptEngine,
        max_stack_depth: int = 10,
        max_steps_per_turn: int = 50,
    ):
        self.registry = registry
        self.prompts = prompts
        self.max_stack_depth = max_stack_depth
        self.max_steps_per_turn = max_steps_per_turn

    async def begin(self, turn: TurnContext, dialog_id: str, args: Any = None) -> DialogFrame:
        """Push a new invocation of a dialog and run it from step 0."""
        frame = self._push(turn.state, dialog_id)
        await self._run(turn, args, ResumeReason.ENTERED)
        return frame

    async def resume(self, turn: TurnContext, args: Any, reason: ResumeReason) -> None:
        """Advance the active frame past the step it suspended in and continue."""
        frame = turn.state.active_frame
        if frame is None or frame.idle:
            return

        frame.step_index += 1
        await self._run(turn, args, reason)

    async def continue_prompt(self, turn: TurnContext) -> None:
        """Feed the turn's utterance to the active frame's pending prompt."""
        frame = turn.state.active_frame
        if frame is None or frame.pending_prompt is None:
            raise DialogError("No prompt is pending")

        prompt = frame.pending_prompt
        resolution = self.prompts.evaluate(prompt, turn.text)

        if resolution.status == PromptStatus.INVALID:
            turn.send(self.prompts.render(prompt, turn.conversation_id, retry=True))
            return

        frame.pending_prompt = None
        reason = ResumeReason.COMPLETED
        if resolution.status == PromptStatus.EXHAUSTED:
            reason = ResumeReason.NO_ANSWER

        await self.resume(turn, {"response": resolution.value, "resumed": reason}, reason)

    # -------------------------------------------------------------------------
    # Execution loop
    # -------------------------------------------------------------------------

    async def _run(self, turn: TurnContext, args: Any, reason: ResumeReason) -> None:
        state = turn.state
        steps_run = 0

        while True:
            frame = state.active_frame
            if frame is None or frame.idle or frame.pending_prompt is not None:
                return

            definition = self.registry.resolve_by_id(frame.dialog_id)

            if frame.step_index >= definition.step_count:
                # Falling off the last step ends the dialog with the last value
                args, reason = self._pop(state, args, ResumeReason.COMPLETED)
                continue

            steps_run += 1
            if steps_run > self.max_steps_per_turn:
                raise DialogError(
                    f"Waterfall step limit {self.max_steps_per_turn} exceeded in {frame.dialog_id}"
                )

            logger.debug(
                "waterfall_step",
                conversation_id=state.conversation_id,
                dialog_id=frame.dialog_id,
                step_index=frame.step_index,
                resumed=reason.value,
            )

            session = DialogSession(turn, frame, args=args, resumed=reason)
            returned = await definition.steps[frame.step_index](session, args)
            outcome = session.outcome or StepOutcome(type=StepOutcomeType.NEXT, args=returned)

            if outcome.type == StepOutcomeType.NEXT:
                frame.step_index += 1
                args, reason = outcome.args, ResumeReason.NEXT

            elif outcome.type == StepOutcomeType.PROMPT:
                frame.pending_prompt = outcome.prompt
                turn.send(self.prompts.render(outcome.prompt, state.conversation_id))
                return

            elif outcome.type == StepOutcomeType.BEGIN:
                self._push(state, outcome.dialog_id)
                args, reason = outcome.args, ResumeReason.ENTERED

            elif outcome.type == StepOutcomeType.END:
                args, reason = self._pop(state, outcome.args, ResumeReason.COMPLETED)

            elif outcome.type == StepOutcomeType.REPLACE:
                self.registry.resolve_by_id(outcome.dialog_id)
                state.pop()
                self._push(state, outcome.dialog_id)
                args, reason = outcome.args, ResumeReason.ENTERED

            elif outcome.type == StepOutcomeType.CANCEL:
                args, reason = self._pop(state, None, ResumeReason.CANCELLED)

    # -------------------------------------------------------------------------
    # Stack operations
    # -------------------------------------------------------------------------

    def _push(self, state: ConversationState, dialog_id: str) -> DialogFrame:
        definition = self.registry.resolve_by_id(dialog_id)

        if state.depth >= self.max_stack_depth:
            raise DialogStackOverflowError(definition.id, self.max_stack_depth)

        frame = state.push(DialogFrame(dialog_id=definition.id))

        logger.info(
            "dialog_started",
            conversation_id=state.conversation_id,
            dialog_id=definition.id,
            depth=state.depth,
        )

        return frame

    def _pop(
        self,
        state: ConversationState,
        result: Any,
        reason: ResumeReason,
    ) -> Tuple[Any, ResumeReason]:
        """Pop the active frame and position the parent on its next step."""
        frame = state.pop()

        logger.info(
            "dialog_ended",
            conversation_id=state.conversation_id,
            dialog_id=frame.dialog_id if frame else None,
            reason=reason.value,
        )

        parent = state.active_frame
        if parent is None:
            state.reset_stack(self.registry.default_dialog_id)
        elif not parent.idle and parent.pending_prompt is None:
            parent.step_index += 1

        return result, reason
