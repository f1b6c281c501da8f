"""
AsyncRealtimeClient / RealtimeClient: the reconnecting subscription.

    client = AsyncRealtimeClient(channels=["server:events:123"], handler=print)
    await client.run_forever()

run_forever() never returns. Each cycle dials, runs one ConnectionSession
and backs off; the replay cursor and backoff carry over between cycles.
"""

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional

from battlemetrics_rt.backoff import Backoff
from battlemetrics_rt.config import ClientSettings
from battlemetrics_rt.dispatcher import Dispatcher, MessageHandler
from battlemetrics_rt.errors import ConnectionError
from battlemetrics_rt.models.envelope import ActivityFilter
from battlemetrics_rt.session import ConnectionSession
from battlemetrics_rt.state import ReplayCursor
from battlemetrics_rt.transport.websocket import dial

logger = logging.getLogger(__name__)

Dialer = Callable[[str], Awaitable[Any]]


class AsyncRealtimeClient:
    """Async real-time client (primary)."""

    def __init__(
        self,
        channels: Optional[Iterable[str]] = None,
        filters: Optional[Mapping[str, ActivityFilter]] = None,
        handler: Optional[MessageHandler] = None,
        settings: Optional[ClientSettings] = None,
        dialer: Dialer = dial,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or ClientSettings()
        self._channels: list[str] = []
        for channel in channels or ():
            self.join(channel)
        self._filters: dict[str, ActivityFilter] = dict(filters or {})
        self._dispatcher = Dispatcher(handler)
        self._dialer = dialer
        self._clock = clock
        self._cursor = ReplayCursor()
        self._backoff = Backoff(
            min_step=self.settings.backoff_min_step,
            max_step=self.settings.backoff_max_step,
            max_delay=self.settings.backoff_max_delay,
            rng=rng,
        )
        self._session: Optional[ConnectionSession] = None

    @property
    def channels(self) -> list[str]:
        return list(self._channels)

    @property
    def filters(self) -> dict[str, ActivityFilter]:
        return dict(self._filters)

    @property
    def cursor(self) -> ReplayCursor:
        return self._cursor

    @property
    def backoff(self) -> Backoff:
        return self._backoff

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def connected(self) -> bool:
        return self._session is not None

    def join(self, channel: str) -> None:
        """Subscribe to a channel on the next (re)connect. Duplicates are ignored."""
        if channel not in self._channels:
            self._channels.append(channel)

    def filter(self, target: str, activity_filter: ActivityFilter) -> None:
        """Set the filter for one target type, replacing any previous one."""
        self._filters[target] = activity_filter

    def on_message(self, handler: Optional[MessageHandler]) -> None:
        self._dispatcher.set_handler(handler)

    async def run_forever(self) -> None:
        """Connect, run, back off, repeat. Only cancellation stops it."""
        while True:
            await self.run_once()
            await self._backoff.wait()

    async def run_once(self) -> None:
        """One dial and, if it succeeds, one session until it dies."""
        try:
            transport = await self._dialer(self.settings.url)
        except ConnectionError as e:
            logger.warning(f"Connect failed: {e}")
            return

        self._backoff.reset()
        logger.info(f"Connected to {self.settings.url}")
        self._session = ConnectionSession(
            transport,
            self._channels,
            self._filters,
            self._dispatcher,
            self._cursor,
            settings=self.settings,
            clock=self._clock,
        )
        try:
            await self._session.run()
        finally:
            self._session = None
        logger.info("Session ended")


class RealtimeClient:
    """Sync wrapper around AsyncRealtimeClient. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._async = AsyncRealtimeClient(**kwargs)

    @property
    def channels(self) -> list[str]:
        return self._async.channels

    @property
    def cursor(self) -> ReplayCursor:
        return self._async.cursor

    def join(self, channel: str) -> None:
        self._async.join(channel)

    def filter(self, target: str, activity_filter: ActivityFilter) -> None:
        self._async.filter(target, activity_filter)

    def on_message(self, handler: Optional[MessageHandler]) -> None:
        self._async.on_message(handler)

    def listen(self) -> None:
        """Block forever delivering messages to the handler."""
        asyncio.run(self._async.run_forever())
