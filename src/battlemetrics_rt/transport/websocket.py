"""
WebSocket transport: one physical connection to the real-time endpoint.

The session owns the transport: one reader (receive pump) and one writer
(handshake, then send pump). websockets and OS errors surface as
battlemetrics_rt.errors.
"""

import asyncio
import logging
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from battlemetrics_rt.errors import ConnectionError
from battlemetrics_rt.models.envelope import Envelope
from battlemetrics_rt.transport.envelope import encode_envelope, parse_envelope

logger = logging.getLogger(__name__)

DEFAULT_URL = "wss://ws.battlemetrics.com"


class WebSocketTransport:
    def __init__(self, ws: Any, url: str = DEFAULT_URL):
        self._ws = ws
        self._url = url
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, envelope: Envelope) -> None:
        try:
            await self._ws.send(encode_envelope(envelope))
        except (ConnectionClosed, OSError) as e:
            raise ConnectionError(f"write: {e}") from e

    async def recv(self) -> Envelope:
        """Read one frame. Raises ConnectionError or DecodeError."""
        try:
            raw = await self._ws.recv()
        except (ConnectionClosed, OSError) as e:
            raise ConnectionError(f"read: {e}") from e
        return parse_envelope(raw)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._ws.close()
        except (WebSocketException, OSError) as e:
            logger.debug(f"Close failed for {self._url}: {e}")


async def dial(url: str = DEFAULT_URL) -> WebSocketTransport:
    """Open a connection. No timeout beyond the library's own open timeout.

    Keepalive pings from the library are disabled; liveness is the session's
    heartbeat.
    """
    try:
        ws = await websockets.connect(url, ping_interval=None)
    except (WebSocketException, OSError, asyncio.TimeoutError) as e:
        raise ConnectionError(f"dial: {e}", details={"url": url}) from e
    return WebSocketTransport(ws, url)
