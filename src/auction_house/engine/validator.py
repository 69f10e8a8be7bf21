"""Bid validation.

``validate_bid`` is a pure function of an auction snapshot, the proposed
amount and the current time.  Checks run in a fixed order, so a bid on an
auction that has not started is reported as NOT_STARTED even if the amount
is also too low.

Out-of-band increments are rejected, never clamped: the amount that gets
recorded is always exactly what the bidder asked for (rounded to cents).
The proposal is rounded *before* the comparisons, so the recorded amount
is the amount that passed them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation

from auction_house.core.enums import AuctionState, RejectReason
from auction_house.core.models import Auction, to_money


@dataclass(frozen=True)
class BidDecision:
    accepted: bool
    amount: Decimal | None = None
    reason: RejectReason | None = None

    @classmethod
    def accept(cls, amount: Decimal) -> BidDecision:
        return cls(accepted=True, amount=amount)

    @classmethod
    def reject(cls, reason: RejectReason) -> BidDecision:
        return cls(accepted=False, reason=reason)


def validate_bid(auction: Auction, proposed: Decimal, now: datetime) -> BidDecision:
    state = auction.state(now)
    if state == AuctionState.PENDING:
        return BidDecision.reject(RejectReason.NOT_STARTED)
    if state == AuctionState.ENDED:
        return BidDecision.reject(RejectReason.ENDED)

    if not proposed.is_finite():
        return BidDecision.reject(RejectReason.TOO_LOW)
    try:
        amount = to_money(proposed)
    except InvalidOperation:
        # Too many digits to express in cents
        return BidDecision.reject(RejectReason.TOO_LOW)
    if amount <= auction.current_bid:
        return BidDecision.reject(RejectReason.TOO_LOW)

    increment = amount - auction.current_bid
    if increment < auction.min_increment:
        return BidDecision.reject(RejectReason.BELOW_MIN_INCREMENT)
    if auction.max_increment is not None and increment > auction.max_increment:
        return BidDecision.reject(RejectReason.ABOVE_MAX_INCREMENT)

    return BidDecision.accept(amount)
