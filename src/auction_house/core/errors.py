"""Custom exception hierarchy for the auction house.

Bid rejections are not exceptions: they come back as a ``BidOutcome``
carrying a ``RejectReason``.  The classes here cover lookups, invalid
admin input, persistence and configuration.
"""


class AuctionHouseError(Exception):
    """Base exception for all auction house errors."""


# --- Configuration ---
class ConfigError(AuctionHouseError):
    """Invalid or missing configuration."""


# --- Auctions ---
class AuctionNotFound(AuctionHouseError):
    """No auction matches the given slug or id."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Auction not found: {key}")


class InvalidAuctionSpec(AuctionHouseError):
    """Create/update payload carries an invalid value."""


class InvalidTimeWindow(InvalidAuctionSpec):
    """ends_at is not strictly after starts_at."""


# --- Admin ---
class InvalidCredentials(AuctionHouseError):
    """Username or password missing on credential rotation."""


# --- Persistence ---
class PersistenceError(AuctionHouseError):
    """A snapshot could not be written to durable storage."""
