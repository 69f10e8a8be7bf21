"""Auction lifecycle state.

The only place that compares the clock against an auction's window.
Validation and status reporting both go through ``auction_state`` so they
cannot disagree about whether an auction is open.
"""

from __future__ import annotations

from datetime import datetime

from .enums import AuctionState


def auction_state(now: datetime, starts_at: datetime, ends_at: datetime) -> AuctionState:
    """Derive the lifecycle state from the current time and the window."""
    if now < starts_at:
        return AuctionState.PENDING
    if now >= ends_at:
        return AuctionState.ENDED
    return AuctionState.ACTIVE
