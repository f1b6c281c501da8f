"""
Connection session: one physical connection, from handshake to teardown.

Handshake (written straight to the socket, in order):
  1. one `filter` per filter target
  2. one `join` with every channel
  3. `replay` from the last received message id, if it is recent enough

Then three tasks run until the first one finishes:
  - receive pump: read, decode, track activity and cursor, dispatch
  - send pump: drain the outbound queue; write failures are logged only
  - heartbeat: close the connection after `heartbeat_timeout` of silence,
    otherwise ping when nothing else is queued

The socket is closed on every exit path.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Mapping, Optional, Sequence

from battlemetrics_rt.config import ClientSettings
from battlemetrics_rt.dispatcher import Dispatcher
from battlemetrics_rt.errors import HandshakeError, RealtimeError
from battlemetrics_rt.models.envelope import ActivityFilter, Envelope
from battlemetrics_rt.models.events import MessageType
from battlemetrics_rt.state import ActivityClock, ReplayCursor
from battlemetrics_rt.transport.envelope import build_filter, build_join, build_ping, build_replay

logger = logging.getLogger(__name__)


class ConnectionSession:
    def __init__(
        self,
        transport: Any,
        channels: Sequence[str],
        filters: Mapping[str, ActivityFilter],
        dispatcher: Dispatcher,
        cursor: ReplayCursor,
        settings: Optional[ClientSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._transport = transport
        self._channels = list(channels)
        self._filters = dict(filters)
        self._dispatcher = dispatcher
        self._cursor = cursor
        self._settings = settings or ClientSettings()
        self._clock = clock
        self._activity = ActivityClock(clock())
        self._outbound: asyncio.Queue[Envelope] = asyncio.Queue()

    @property
    def activity(self) -> ActivityClock:
        return self._activity

    def enqueue(self, envelope: Envelope) -> None:
        """Queue an envelope for the send pump."""
        self._outbound.put_nowait(envelope)

    async def run(self) -> None:
        """Handshake, then pump until the connection is dead."""
        try:
            try:
                await self._handshake()
            except HandshakeError as e:
                logger.warning(f"Handshake failed: {e}")
                return
            await self._pump()
        finally:
            await self._transport.close()

    async def _handshake(self) -> None:
        envelopes = [build_filter(target, f) for target, f in self._filters.items()]
        envelopes.append(build_join(self._channels))

        now = self._clock()
        if self._cursor.should_replay(now, self._settings.replay_window):
            age = now - (self._cursor.received_at or now)
            logger.info(f"Replaying from {self._cursor.message_id} (received {age:.0f}s ago)")
            envelopes.append(build_replay(self._channels, self._cursor.message_id))
        elif self._cursor.message_id:
            logger.info("Last message is outside the replay window; resuming live")

        for envelope in envelopes:
            try:
                await self._transport.send(envelope)
            except RealtimeError as e:
                raise HandshakeError(f"{envelope.type}: {e}") from e
        logger.info(f"Joined {len(self._channels)} channel(s) with {len(self._filters)} filter(s)")

    async def _pump(self) -> None:
        tasks = [
            asyncio.ensure_future(self._receive_loop()),
            asyncio.ensure_future(self._send_loop()),
            asyncio.ensure_future(self._heartbeat_loop()),
        ]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    error = task.exception()
                    logger.error(f"Session task crashed, ending session: {error!r}", exc_info=error)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _receive_loop(self) -> None:
        while True:
            try:
                envelope = await self._transport.recv()
            except RealtimeError as e:
                logger.warning(f"Receive failed, ending session: {e}")
                return

            now = self._clock()
            self._activity.touch(now)
            if envelope.type == MessageType.ACK:
                continue

            self._cursor.update(envelope.id, now)
            self._dispatcher.dispatch(envelope)

    async def _send_loop(self) -> None:
        while True:
            envelope = await self._outbound.get()
            try:
                await self._transport.send(envelope)
            except RealtimeError as e:
                logger.warning(f"Send failed for {envelope.type}: {e}")

    async def _heartbeat_loop(self) -> None:
        interval = self._settings.heartbeat_interval
        timeout = self._settings.heartbeat_timeout
        while True:
            await asyncio.sleep(interval)
            if self._activity.expired(self._clock(), timeout):
                logger.warning(f"No inbound traffic for over {timeout:.0f}s, closing connection")
                await self._transport.close()
                return
            if self._outbound.empty():
                self._outbound.put_nowait(build_ping())
