"""Shared fakes: an in-memory transport, a scripted dialer and a manual clock."""

import asyncio
from typing import Any, Callable, Optional

import pytest

from battlemetrics_rt.errors import ConnectionError
from battlemetrics_rt.models.envelope import Envelope

_CLOSED = object()


class FakeTransport:
    def __init__(self, on_send: Optional[Callable[["FakeTransport", Envelope], None]] = None):
        self.sent: list[Envelope] = []
        self.closed = False
        self.fail_sends = 0  # fail this many upcoming writes; -1 fails all
        self.on_send = on_send
        self._inbound: asyncio.Queue[Any] = asyncio.Queue()

    def push(self, envelope: Envelope) -> None:
        self._inbound.put_nowait(envelope)

    def push_error(self, error: Exception) -> None:
        self._inbound.put_nowait(error)

    def disconnect(self) -> None:
        self._inbound.put_nowait(_CLOSED)

    def sent_types(self) -> list[str]:
        return [e.type for e in self.sent]

    async def send(self, envelope: Envelope) -> None:
        if self.closed:
            raise ConnectionError("write: closed")
        if self.fail_sends:
            if self.fail_sends > 0:
                self.fail_sends -= 1
            raise ConnectionError("write: broken pipe")
        self.sent.append(envelope)
        if self.on_send:
            self.on_send(self, envelope)

    async def recv(self) -> Envelope:
        item = await self._inbound.get()
        if item is _CLOSED:
            raise ConnectionError("read: closed")
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._inbound.put_nowait(_CLOSED)


class FakeDialer:
    """Returns scripted transports/errors in order, then idle transports."""

    def __init__(self, *script: Any):
        self.script = list(script)
        self.urls: list[str] = []
        self.transports: list[FakeTransport] = []

    async def __call__(self, url: str) -> FakeTransport:
        self.urls.append(url)
        item = self.script.pop(0) if self.script else FakeTransport()
        if isinstance(item, Exception):
            raise item
        self.transports.append(item)
        return item


class ManualClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)
    await asyncio.wait_for(_poll(), timeout=timeout)


def event(message_id: str, message_type: str = "playerConnected", channel: str = "server:events:A",
          payload: Any = None) -> Envelope:
    return Envelope(id=message_id, type=message_type, channel=channel, payload=payload)


def ack(message_id: str = "ack-1") -> Envelope:
    return Envelope(id=message_id, type="ack")


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()
