"""
Built-in Middleware

Typing indicators and dialog-version resets.
"""

import re
from typing import TYPE_CHECKING, Optional

import structlog

from .pipeline import NextFn

if TYPE_CHECKING:
    from portfolio_bot.conversation.session import TurnContext


logger = structlog.get_logger()


class SendTypingMiddleware:
    """Shows a typing indicator at the start of every turn."""

    async def __call__(self, turn: "TurnContext", next: NextFn) -> None:
        turn.send_typing()
        await next()


class DialogVersionMiddleware:
    """
    Restarts conversations built against an older dialog version.

    Bumping the major version resets every existing dialog stack on the
    next turn (user data is kept). An utterance matching the reset command
    resets the stack on demand and ends the turn.
    """

    def __init__(
        self,
        version: float,
        reset_command: Optional[str] = r"^reset",
        restart_message: str = "Ik ben net bijgewerkt, dus we beginnen ons gesprek opnieuw.",
        reset_message: str = "Prima, we beginnen opnieuw.",
    ):
        self.version = version
        self.reset_pattern = re.compile(reset_command, re.IGNORECASE) if reset_command else None
        self.restart_message = restart_message
        self.reset_message = reset_message

    async def __call__(self, turn: "TurnContext", next: NextFn) -> None:
        state = turn.state

        if self.reset_pattern and self.reset_pattern.search(turn.text or ""):
            turn.reset_dialogs()
            state.version = self.version
            turn.send(self.reset_message)
            logger.info("conversation_reset", conversation_id=turn.conversation_id, reason="command")
            return

        if state.version != self.version:
            if _major(state.version) != _major(self.version):
                had_dialogs = any(not f.idle for f in state.dialog_stack)
                turn.reset_dialogs()
                if had_dialogs:
                    turn.send(self.restart_message)
                logger.info(
                    "conversation_reset",
                    conversation_id=turn.conversation_id,
                    reason="version",
                    stored_version=state.version,
                    version=self.version,
                )
            state.version = self.version

        await next()


def _major(version: Optional[float]) -> Optional[int]:
    if version is None:
        return None
    return int(version)
