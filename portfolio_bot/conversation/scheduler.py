"""
Message Scheduler

Delivers presentational message bursts (simulated typing pauses) on
timers that run independently of dialog state.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Set

import structlog

from portfolio_bot.models.schemas import OutboundMessage


logger = structlog.get_logger()


DeliverFn = Callable[[OutboundMessage], Awaitable[Any]]


@dataclass
class ScheduledSend:
    """A message to deliver `delay` seconds after the previous one in its sequence."""

    delay: float
    message: OutboundMessage


class MessageScheduler:
    """
    Runs declarative (delay, message) sequences as background tasks.

    Sequences are never awaited by the turn that produced them, so they
    cannot gate state persistence.
    """

    def __init__(self, deliver: Optional[DeliverFn] = None):
        self._deliver = deliver
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Get the number of sequences still running."""
        return len(self._tasks)

    def schedule(self, sequence: Sequence[ScheduledSend]) -> Optional[asyncio.Task]:
        """Start delivering a sequence in the background."""
        if not sequence:
            return None

        if self._deliver is None:
            logger.warning("scheduled_sends_dropped", count=len(sequence), reason="no_connector")
            return None

        task = asyncio.create_task(self._run(list(sequence)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, sequence: List[ScheduledSend]) -> None:
        for item in sequence:
            if item.delay > 0:
                await asyncio.sleep(item.delay)
            try:
                await self._deliver(item.message)
            except Exception as e:
                logger.error(
                    "scheduled_send_failed",
                    conversation_id=item.message.conversation_id,
                    error=str(e),
                )

    async def drain(self) -> None:
        """Wait for every running sequence to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel every running sequence."""
        for task in list(self._tasks):
            task.cancel()
        await self.drain()
        self._tasks.clear()
