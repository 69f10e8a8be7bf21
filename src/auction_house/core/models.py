"""Core domain models used across the auction house.

These are the canonical "truth models" for the system.  The store, the
engine, the persistence adapters and the HTTP layer all exchange these
same types.

Stored models are frozen: a mutation produces a new ``Auction`` via
``model_copy(update=...)`` and swaps it into the store, so a reference
handed to a reader never changes underneath it.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .enums import AuctionState, RejectReason
from .ids import as_utc
from .lifecycle import auction_state

MONEY_QUANT = Decimal("0.01")


def to_money(value: Decimal | float | int | str) -> Decimal:
    """Round an amount to two decimal places (half up)."""
    d = value if isinstance(value, Decimal) else Decimal(str(value))
    return d.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def parse_amount(raw: Any) -> Decimal:
    """Parse a bidder-supplied amount.

    Anything that is not a number comes back as ``Decimal("NaN")`` so the
    validator can reject it as too low instead of the caller raising.
    """
    if isinstance(raw, Decimal):
        return raw
    if raw is None or isinstance(raw, bool):
        return Decimal("NaN")
    try:
        return Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return Decimal("NaN")


def _money_or_none(value: Decimal | None) -> Decimal | None:
    if value is None:
        return None
    try:
        return to_money(value)
    except InvalidOperation as exc:
        raise ValueError(f"amount out of range: {value}") from exc


# ---------------------------------------------------------------------------
# Stored state
# ---------------------------------------------------------------------------

class Bid(BaseModel):
    """One accepted bid. Append-only; never edited after acceptance."""

    model_config = {"frozen": True}

    amount: Decimal
    placed_at: datetime
    bidder_ref: str = ""  # Client address or other opaque bidder handle

    @field_validator("amount")
    @classmethod
    def _round_amount(cls, v: Decimal) -> Decimal:
        return _money_or_none(v)

    @field_validator("placed_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class Auction(BaseModel):
    """A single timed sale with its own schedule, bid history and bounds."""

    model_config = {"frozen": True}

    id: str
    slug: str
    title: str = ""
    description: str = ""
    starts_at: datetime
    ends_at: datetime
    starting_bid: Decimal = Decimal("0.00")
    min_increment: Decimal = Decimal("1.00")
    max_increment: Decimal | None = None  # None = no upper bound
    current_bid: Decimal
    bids: tuple[Bid, ...] = ()

    @field_validator("starting_bid", "min_increment", "current_bid")
    @classmethod
    def _round_money(cls, v: Decimal) -> Decimal:
        return _money_or_none(v)

    @field_validator("max_increment")
    @classmethod
    def _round_optional_money(cls, v: Decimal | None) -> Decimal | None:
        return _money_or_none(v)

    @field_validator("starts_at", "ends_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    def state(self, now: datetime) -> AuctionState:
        return auction_state(now, self.starts_at, self.ends_at)


class AdminCredentials(BaseModel):
    """Admin login. Only the PBKDF2 hash of the password is stored."""

    model_config = {"frozen": True}

    username: str = "admin"
    password_hash: str | None = None


class StoreSnapshot(BaseModel):
    """Everything the persistence adapter writes and reads back."""

    auctions: list[Auction] = Field(default_factory=list)
    admin: AdminCredentials = Field(default_factory=AdminCredentials)
    retired_ids: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Admin inputs
# ---------------------------------------------------------------------------

class TimeWindow(BaseModel):
    """Start/end pair. Always replaced together on update."""

    starts_at: datetime
    ends_at: datetime

    @field_validator("starts_at", "ends_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class AuctionSpec(BaseModel):
    """Admin request to create an auction.

    ``slug`` is optional; when absent it is derived from the title.
    Range checks (window order, positive increments) are done by the engine
    so they surface as ``InvalidTimeWindow`` / ``InvalidAuctionSpec``.
    """

    title: str = ""
    description: str = ""
    slug: str | None = None
    starts_at: datetime
    ends_at: datetime
    starting_bid: Decimal = Decimal("0")
    min_increment: Decimal = Decimal("1")
    max_increment: Decimal | None = None

    @field_validator("title", "description")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()

    @field_validator("starting_bid", "min_increment")
    @classmethod
    def _round_money(cls, v: Decimal) -> Decimal:
        return _money_or_none(v)

    @field_validator("max_increment")
    @classmethod
    def _round_optional_money(cls, v: Decimal | None) -> Decimal | None:
        return _money_or_none(v)

    @field_validator("starts_at", "ends_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class AuctionPatch(BaseModel):
    """Admin edit. Only fields that were explicitly set are applied.

    ``max_increment`` set to ``None`` explicitly clears the cap; leaving it
    out keeps the current cap.  Use ``model_fields_set`` to tell them apart.
    """

    title: str | None = None
    description: str | None = None
    window: TimeWindow | None = None
    starting_bid: Decimal | None = None
    min_increment: Decimal | None = None
    max_increment: Decimal | None = None

    @field_validator("title", "description")
    @classmethod
    def _strip(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else None

    @field_validator("starting_bid", "min_increment", "max_increment")
    @classmethod
    def _round_optional_money(cls, v: Decimal | None) -> Decimal | None:
        return _money_or_none(v)

    def provided(self, field: str) -> bool:
        return field in self.model_fields_set


# ---------------------------------------------------------------------------
# Read projections / results
# ---------------------------------------------------------------------------

class AuctionStatus(BaseModel):
    """Polling projection of one auction."""

    slug: str
    current_bid: Decimal
    starts_at: datetime
    ends_at: datetime
    state: AuctionState
    has_started: bool
    active: bool
    has_ended: bool

    @classmethod
    def from_auction(cls, auction: Auction, now: datetime) -> AuctionStatus:
        state = auction.state(now)
        return cls(
            slug=auction.slug,
            current_bid=auction.current_bid,
            starts_at=auction.starts_at,
            ends_at=auction.ends_at,
            state=state,
            has_started=state != AuctionState.PENDING,
            active=state == AuctionState.ACTIVE,
            has_ended=state == AuctionState.ENDED,
        )


class BidOutcome(BaseModel):
    """Result of ``AuctionEngine.place_bid``.

    Rejections are ordinary outcomes (``ok=False`` with a ``reason``),
    not exceptions.
    """

    ok: bool
    slug: str
    current_bid: Decimal
    reason: RejectReason | None = None
