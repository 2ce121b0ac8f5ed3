"""
Middleware Pipeline

Ordered hooks run around every inbound turn before dialog dispatch.
A hook that does not call `next()` ends the pipeline for that turn.
"""

from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional, Sequence

import structlog

if TYPE_CHECKING:
    from portfolio_bot.conversation.session import TurnContext


logger = structlog.get_logger()


NextFn = Callable[[], Awaitable[None]]
Middleware = Callable[["TurnContext", NextFn], Awaitable[None]]
TurnHandler = Callable[["TurnContext"], Awaitable[None]]


class MiddlewarePipeline:
    """
    Runs hooks strictly in registration order.

    Usage:
        pipeline = MiddlewarePipeline()
        pipeline.use(SendTypingMiddleware())
        pipeline.use(AttachmentDetectionMiddleware())

        await pipeline.run(turn, dispatch)
    """

    def __init__(self, hooks: Optional[Sequence[Middleware]] = None):
        self._hooks: List[Middleware] = list(hooks or [])

    def use(self, hook: Middleware) -> "MiddlewarePipeline":
        """Append a hook."""
        self._hooks.append(hook)
        return self

    @property
    def hooks(self) -> List[Middleware]:
        return list(self._hooks)

    def __len__(self) -> int:
        return len(self._hooks)

    async def run(self, turn: "TurnContext", handler: TurnHandler) -> bool:
        """
        Run every hook, then the handler.

        Returns True when the handler ran, False when a hook ended the
        pipeline early.
        """
        reached = False

        async def call(index: int) -> None:
            nonlocal reached

            if index == len(self._hooks):
                reached = True
                await handler(turn)
                return

            hook = self._hooks[index]
            called = False

            async def next_() -> None:
                nonlocal called
                if called:
                    logger.warning("middleware_next_called_twice", hook=_hook_name(hook))
                    return
                called = True
                await call(index + 1)

            await hook(turn, next_)

            if not called:
                logger.debug(
                    "middleware_short_circuit",
                    hook=_hook_name(hook),
                    conversation_id=turn.conversation_id,
                )

        await call(0)
        return reached


def _hook_name(hook: Middleware) -> str:
    return getattr(hook, "__name__", type(hook).__name__)
