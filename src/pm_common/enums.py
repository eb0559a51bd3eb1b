"""Global enums: values are part of the WebSocket wire contract."""

from enum import Enum


class RoundPhase(str, Enum):
    BETTING = "BETTING"
    LIVE = "LIVE"
    SETTLING = "SETTLING"


class RoundEventType(str, Enum):
    """Server → client lifecycle messages."""
    ROUND_START = "ROUND_START"
    PHASE_CHANGE = "PHASE_CHANGE"
    PRICE_UPDATE = "PRICE_UPDATE"
    ROUND_END = "ROUND_END"


class RelayMessageType(str, Enum):
    """Relay control messages (connection bookkeeping, not round lifecycle)."""
    CONNECTED = "CONNECTED"
    SUBSCRIBE = "SUBSCRIBE"
    SUBSCRIBED = "SUBSCRIBED"
    UNSUBSCRIBE = "UNSUBSCRIBE"
