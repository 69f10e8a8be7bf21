"""Request bodies and response payloads for the HTTP layer."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from auction_house.core.enums import RejectReason
from auction_house.core.models import (
    Auction,
    AuctionPatch,
    AuctionSpec,
    AuctionStatus,
    TimeWindow,
)

REJECT_MESSAGES: dict[RejectReason, str] = {
    RejectReason.NOT_STARTED: "Auction has not started yet.",
    RejectReason.ENDED: "Auction has ended.",
    RejectReason.TOO_LOW: "Bid must be greater than current bid.",
    RejectReason.BELOW_MIN_INCREMENT: "Bid increment is below the minimum increment.",
    RejectReason.ABOVE_MAX_INCREMENT: "Bid increment is above the maximum increment.",
}

NOT_FOUND_MESSAGE = "Auction not found"

MAX_DURATION_MINUTES = 10 * 366 * 24 * 60  # Ten years


class BidRequest(BaseModel):
    amount: Any = None  # Parsed by the engine; junk is rejected as too low


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class CredentialsRequest(BaseModel):
    username: str = ""
    password: str = ""


class CreateAuctionRequest(BaseModel):
    title: str = ""
    slug: str | None = None
    description: str = ""
    starts_at: datetime
    duration_minutes: int = Field(default=60, gt=0, le=MAX_DURATION_MINUTES)
    starting_bid: Decimal = Decimal("0")
    min_increment: Decimal = Decimal("1")
    max_increment: Decimal | None = None  # null = no cap

    def to_spec(self) -> AuctionSpec:
        return AuctionSpec(
            title=self.title,
            slug=self.slug,
            description=self.description,
            starts_at=self.starts_at,
            ends_at=self.starts_at + timedelta(minutes=self.duration_minutes),
            starting_bid=self.starting_bid,
            min_increment=self.min_increment,
            max_increment=self.max_increment,
        )


class UpdateAuctionRequest(BaseModel):
    """Partial edit. ``starts_at`` and ``duration_minutes`` travel together."""

    title: str | None = None
    description: str | None = None
    starts_at: datetime | None = None
    duration_minutes: int | None = Field(default=None, gt=0, le=MAX_DURATION_MINUTES)
    starting_bid: Decimal | None = None
    min_increment: Decimal | None = None
    max_increment: Decimal | None = None

    def to_patch(self) -> AuctionPatch:
        """Build the engine patch, keeping only the fields the client sent.

        Raises ``ValueError`` if only half of the time window was given.
        """
        sent = self.model_fields_set
        if ("starts_at" in sent) != ("duration_minutes" in sent):
            raise ValueError("starts_at and duration_minutes must be given together")

        data: dict[str, Any] = {}
        for name in ("title", "description", "starting_bid", "min_increment", "max_increment"):
            if name in sent:
                data[name] = getattr(self, name)
        if self.starts_at is not None and self.duration_minutes is not None:
            data["window"] = TimeWindow(
                starts_at=self.starts_at,
                ends_at=self.starts_at + timedelta(minutes=self.duration_minutes),
            )
        return AuctionPatch(**data)


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------

def money(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def status_payload(status: AuctionStatus) -> dict[str, Any]:
    return {
        "ok": True,
        "current_bid": money(status.current_bid),
        "starts_at": status.starts_at.isoformat(),
        "ends_at": status.ends_at.isoformat(),
        "state": status.state.value,
        "active": status.active,
        "has_started": status.has_started,
        "has_ended": status.has_ended,
    }


def auction_payload(auction: Auction, now: datetime, include_bids: bool = False) -> dict[str, Any]:
    status = AuctionStatus.from_auction(auction, now)
    payload: dict[str, Any] = {
        "id": auction.id,
        "slug": auction.slug,
        "title": auction.title,
        "description": auction.description,
        "starts_at": auction.starts_at.isoformat(),
        "ends_at": auction.ends_at.isoformat(),
        "starting_bid": money(auction.starting_bid),
        "min_increment": money(auction.min_increment),
        "max_increment": money(auction.max_increment),
        "current_bid": money(auction.current_bid),
        "bid_count": len(auction.bids),
        "state": status.state.value,
    }
    if include_bids:
        payload["bids"] = [
            {
                "amount": money(bid.amount),
                "placed_at": bid.placed_at.isoformat(),
                "bidder_ref": bid.bidder_ref,
            }
            for bid in auction.bids
        ]
    return payload


def dashboard_row(auction: Auction, now: datetime) -> dict[str, Any]:
    """Auction payload plus the values the dashboard edit form is prefilled with."""
    payload = auction_payload(auction, now, include_bids=True)
    payload["starts_at_input"] = auction.starts_at.strftime("%Y-%m-%dT%H:%M")
    payload["duration_minutes"] = int((auction.ends_at - auction.starts_at).total_seconds() // 60)
    return payload
