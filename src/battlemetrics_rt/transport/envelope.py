"""
Envelope construction, encoding and parsing.
"""

import uuid
from typing import Any, Optional, Union

from pydantic import ValidationError

from battlemetrics_rt.errors import DecodeError
from battlemetrics_rt.models.envelope import ActivityFilter, Envelope
from battlemetrics_rt.models.events import MessageType


def new_message_id() -> str:
    return str(uuid.uuid4())


def build_envelope(message_type: str, payload: Optional[Any] = None) -> Envelope:
    """Build an outbound envelope. Every call gets a fresh id."""
    return Envelope(id=new_message_id(), type=message_type, payload=payload)


def build_filter(target: str, activity_filter: ActivityFilter) -> Envelope:
    return build_envelope(MessageType.FILTER, {
        "type": target,
        "filter": activity_filter.model_dump(by_alias=True, exclude_none=True),
    })


def build_join(channels: list[str]) -> Envelope:
    return build_envelope(MessageType.JOIN, list(channels))


def build_replay(channels: list[str], start: str) -> Envelope:
    return build_envelope(MessageType.REPLAY, {"channels": list(channels), "start": start})


def build_ping() -> Envelope:
    return build_envelope(MessageType.PING)


def encode_envelope(envelope: Envelope) -> str:
    return envelope.model_dump_json(by_alias=True, exclude_none=True)


def parse_envelope(raw: Union[str, bytes]) -> Envelope:
    """Parse an inbound frame. Raises DecodeError if it is not an envelope."""
    try:
        return Envelope.model_validate_json(raw)
    except ValidationError as e:
        text = raw.decode("utf-8", "replace") if isinstance(raw, bytes) else raw
        raise DecodeError(f"Malformed envelope: {e.error_count()} error(s)", raw=text[:200]) from e
