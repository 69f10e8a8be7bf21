"""Enumerations used across the auction house."""

from enum import Enum


class AuctionState(str, Enum):
    PENDING = "pending"  # now < starts_at
    ACTIVE = "active"  # starts_at <= now < ends_at
    ENDED = "ended"  # now >= ends_at


class RejectReason(str, Enum):
    NOT_STARTED = "not_started"
    ENDED = "ended"
    TOO_LOW = "too_low"
    BELOW_MIN_INCREMENT = "below_min_increment"
    ABOVE_MAX_INCREMENT = "above_max_increment"


class LogFormat(str, Enum):
    JSON = "json"
    CONSOLE = "console"
