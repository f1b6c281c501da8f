"""
BattleMetrics real-time client error types.

None of these reach the message handler; the supervisor logs them and
reconnects.
"""

from typing import Any, Optional


class RealtimeError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ConnectionError(RealtimeError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("connection_error", message, details)


class HandshakeError(RealtimeError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("handshake_error", message, details)


class DecodeError(RealtimeError):
    def __init__(self, message: str, raw: Optional[str] = None):
        super().__init__("decode_error", message, {"raw": raw} if raw is not None else None)
