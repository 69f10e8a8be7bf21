"""Auction bidding engine.

Key components
--------------
AuctionStore    Thread-safe auction state, per-auction locks, persistence hook
validate_bid    Pure bid acceptance rules (lifecycle, amount, increments)
AuctionEngine   place_bid / create / update / delete / status + admin credentials
"""

from .engine import AuctionEngine
from .store import AuctionStore
from .validator import BidDecision, validate_bid

__all__ = [
    "AuctionEngine",
    "AuctionStore",
    "BidDecision",
    "validate_bid",
]
