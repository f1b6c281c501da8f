"""
battlemetrics-rt: BattleMetrics real-time client for Python.

Reconnecting WebSocket subscription with server-side filters, heartbeat
and replay of missed events.
"""

from battlemetrics_rt.client import AsyncRealtimeClient, RealtimeClient
from battlemetrics_rt.config import ClientSettings
from battlemetrics_rt.errors import RealtimeError, ConnectionError, HandshakeError, DecodeError
from battlemetrics_rt.models.envelope import Envelope, ActivityFilter, FilterTags, FilterTypes
from battlemetrics_rt.models.events import MessageType

__version__ = "0.1.0"
__all__ = [
    "AsyncRealtimeClient",
    "RealtimeClient",
    "ClientSettings",
    "RealtimeError",
    "ConnectionError",
    "HandshakeError",
    "DecodeError",
    "Envelope",
    "ActivityFilter",
    "FilterTags",
    "FilterTypes",
    "MessageType",
]
