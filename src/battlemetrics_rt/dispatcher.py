"""
Hands envelopes to the application handler without blocking the receive pump.

Each envelope gets its own task, so handler invocations may finish out of
order. Handler exceptions are logged and dropped.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from battlemetrics_rt.models.envelope import Envelope

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Envelope], Union[None, Awaitable[None]]]


class Dispatcher:
    def __init__(self, handler: Optional[MessageHandler] = None):
        self._handler = handler
        self._tasks: set[asyncio.Task[Any]] = set()

    def set_handler(self, handler: Optional[MessageHandler]) -> None:
        self._handler = handler

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, envelope: Envelope) -> None:
        """Schedule the handler for one envelope and return immediately."""
        if self._handler is None:
            return
        task = asyncio.get_running_loop().create_task(self._invoke(self._handler, envelope))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait for every in-flight handler invocation to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @staticmethod
    async def _invoke(handler: MessageHandler, envelope: Envelope) -> None:
        try:
            if inspect.iscoroutinefunction(handler):
                await handler(envelope)
            else:
                result = await asyncio.to_thread(handler, envelope)
                if inspect.isawaitable(result):
                    await result
        except Exception:
            logger.exception(f"Handler failed for {envelope.type} message {envelope.id}")
