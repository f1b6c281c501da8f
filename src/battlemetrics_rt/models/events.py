"""
Envelope `t` values the client itself produces or interprets.

Anything else is an application event type (e.g. "playerConnected") and is
passed through to the handler untouched.
"""


class MessageType:
    JOIN = "join"
    FILTER = "filter"
    REPLAY = "replay"
    PING = "ping"
    ACK = "ack"


# Filter target used by the activity feed
ACTIVITY_FILTER_TARGET = "ACTIVITY"
