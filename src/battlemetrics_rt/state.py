"""
Per-client session state carried across reconnects.
"""

import threading
from typing import Optional


class ReplayCursor:
    """Id and receive time of the most recent non-ack inbound envelope.

    Written only by the receive pump; read by the handshake of the next
    session. Sessions never overlap, so no lock.
    """

    __slots__ = ("message_id", "received_at")

    def __init__(self) -> None:
        self.message_id: str = ""
        self.received_at: Optional[float] = None

    def update(self, message_id: str, received_at: float) -> None:
        self.message_id = message_id
        self.received_at = received_at

    def should_replay(self, now: float, window: Optional[float]) -> bool:
        if not self.message_id or self.received_at is None:
            return False
        if window is None:
            return True
        return now - self.received_at < window

    def __repr__(self) -> str:
        return f"ReplayCursor(message_id={self.message_id!r}, received_at={self.received_at!r})"


class ActivityClock:
    """Time of the last inbound envelope, ack or not.

    Touched by the receive pump, read by the heartbeat monitor.
    """

    def __init__(self, now: float) -> None:
        self._lock = threading.Lock()
        self._last_seen = now

    def touch(self, now: float) -> None:
        with self._lock:
            self._last_seen = now

    @property
    def last_seen(self) -> float:
        with self._lock:
            return self._last_seen

    def expired(self, now: float, timeout: float) -> bool:
        return now > self.last_seen + timeout
