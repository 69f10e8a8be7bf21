"""AuctionEngine — the bidding and admin operations over an AuctionStore.

Every mutation follows the same shape: take the auction's lock, re-read
the current version, validate, build a new frozen version, swap it in,
persist, release.  Validation failures on admin input raise before
anything is swapped in; bid rejections come back as ``BidOutcome``.

A failed save is logged and counted but never rolls back the in-memory
change: the running process keeps serving the state it accepted.
"""

from __future__ import annotations

import hmac
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from auction_house.core.clock import IClock, WallClock
from auction_house.core.errors import (
    AuctionNotFound,
    InvalidAuctionSpec,
    InvalidCredentials,
    InvalidTimeWindow,
)
from auction_house.core.ids import as_utc, short_suffix
from auction_house.core.interfaces import IPersistence
from auction_house.core.models import (
    AdminCredentials,
    Auction,
    AuctionPatch,
    AuctionSpec,
    AuctionStatus,
    Bid,
    BidOutcome,
    parse_amount,
)
from auction_house.core.slugs import is_valid_slug, slugify
from auction_house.observability import metrics

from .credentials import DEFAULT_ITERATIONS, hash_password, verify_password
from .store import AuctionStore
from .validator import validate_bid

logger = logging.getLogger(__name__)


def _check_window(starts_at: datetime, ends_at: datetime) -> None:
    if ends_at <= starts_at:
        raise InvalidTimeWindow(
            f"ends_at ({ends_at.isoformat()}) must be after "
            f"starts_at ({starts_at.isoformat()})"
        )


def _check_bounds(
    starting_bid: Decimal,
    min_increment: Decimal,
    max_increment: Decimal | None,
) -> None:
    if starting_bid < 0:
        raise InvalidAuctionSpec("starting_bid must not be negative")
    if min_increment <= 0:
        raise InvalidAuctionSpec("min_increment must be positive")
    if max_increment is not None:
        if max_increment <= 0:
            raise InvalidAuctionSpec("max_increment must be positive when set")
        if max_increment < min_increment:
            raise InvalidAuctionSpec("max_increment must not be below min_increment")


class AuctionEngine:
    """Bidding engine.

    Parameters
    ----------
    store:
        Auction state.  Persistence is whatever the store was built with.
    clock:
        Time source for lifecycle decisions (``WallClock`` by default).
    hash_iterations:
        PBKDF2 rounds for newly hashed admin passwords.
    """

    def __init__(
        self,
        store: AuctionStore,
        clock: IClock | None = None,
        hash_iterations: int = DEFAULT_ITERATIONS,
    ) -> None:
        self._store = store
        self._clock = clock or WallClock()
        self._hash_iterations = hash_iterations
        metrics.set_live_auctions(len(store))

    @classmethod
    def from_persistence(
        cls,
        persistence: IPersistence,
        clock: IClock | None = None,
        hash_iterations: int = DEFAULT_ITERATIONS,
    ) -> AuctionEngine:
        """Restore the store from *persistence* (empty when nothing saved)."""
        snapshot = persistence.load()
        store = AuctionStore.from_snapshot(snapshot, persistence=persistence)
        logger.info("Loaded %d auctions", len(store))
        return cls(store, clock=clock, hash_iterations=hash_iterations)

    @property
    def store(self) -> AuctionStore:
        return self._store

    @property
    def clock(self) -> IClock:
        return self._clock

    def _now(self, now: datetime | None) -> datetime:
        return as_utc(now) if now is not None else self._clock.now()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_auction(self, slug: str) -> Auction:
        auction = self._store.get_by_slug(slug)
        if auction is None:
            raise AuctionNotFound(slug)
        return auction

    def get_auction_by_id(self, auction_id: str) -> Auction:
        auction = self._store.get(auction_id)
        if auction is None:
            raise AuctionNotFound(auction_id)
        return auction

    def list_auctions(self) -> list[Auction]:
        """All auctions, earliest start first."""
        return sorted(self._store.all(), key=lambda a: (a.starts_at, a.slug))

    def status(self, slug: str, now: datetime | None = None) -> AuctionStatus:
        auction = self.get_auction(slug)
        return AuctionStatus.from_auction(auction, self._now(now))

    # ------------------------------------------------------------------
    # Bidding
    # ------------------------------------------------------------------

    def place_bid(
        self,
        slug: str,
        amount: Any,
        bidder_ref: str = "",
        now: datetime | None = None,
    ) -> BidOutcome:
        """Validate and record a bid as one exclusive unit per auction.

        Raises ``AuctionNotFound`` for an unknown slug; every other failure
        is a rejected ``BidOutcome``.
        """
        proposed = parse_amount(amount)
        with self._store.exclusive_slug(slug) as current:
            if current is None:
                raise AuctionNotFound(slug)
            at = self._now(now)
            decision = validate_bid(current, proposed, at)
            if not decision.accepted:
                metrics.record_bid(decision.reason.value)
                logger.debug(
                    "Bid rejected on %s: %s (proposed=%s current=%s)",
                    slug, decision.reason.value, proposed, current.current_bid,
                )
                return BidOutcome(
                    ok=False,
                    slug=slug,
                    current_bid=current.current_bid,
                    reason=decision.reason,
                )

            bid = Bid(amount=decision.amount, placed_at=at, bidder_ref=bidder_ref)
            updated = current.model_copy(
                update={"current_bid": bid.amount, "bids": current.bids + (bid,)}
            )
            self._store.replace(updated)
            self._persist("bid", slug)

        metrics.record_bid("accepted")
        logger.info(
            "Bid accepted on %s: %s (was %s)",
            slug, updated.current_bid, current.current_bid,
        )
        return BidOutcome(ok=True, slug=slug, current_bid=updated.current_bid)

    # ------------------------------------------------------------------
    # Admin: auctions
    # ------------------------------------------------------------------

    def create_auction(self, spec: AuctionSpec) -> Auction:
        _check_window(spec.starts_at, spec.ends_at)
        _check_bounds(spec.starting_bid, spec.min_increment, spec.max_increment)

        auction_id = self._store.new_auction_id()
        base = slugify(spec.slug or spec.title) or f"auction-{auction_id}"
        fields = {
            "id": auction_id,
            "title": spec.title,
            "description": spec.description,
            "starts_at": spec.starts_at,
            "ends_at": spec.ends_at,
            "starting_bid": spec.starting_bid,
            "min_increment": spec.min_increment,
            "max_increment": spec.max_increment,
            "current_bid": spec.starting_bid,
        }

        candidate = base
        while True:
            if is_valid_slug(candidate):
                auction = Auction(slug=candidate, **fields)
                if self._store.add(auction):
                    break
            logger.debug("Slug %s unavailable, disambiguating", candidate)
            candidate = f"{base}-{short_suffix()}"

        self._persist("create", auction.slug)
        metrics.record_admin_mutation("create")
        metrics.set_live_auctions(len(self._store))
        logger.info("Created auction %s (%s)", auction.slug, auction.id)
        return auction

    def update_auction(self, auction_id: str, patch: AuctionPatch) -> Auction:
        """Apply the fields present in *patch*.

        ``starting_bid`` moves ``current_bid`` along with it only while no
        bids exist; afterwards only the stored starting bid changes.
        """
        with self._store.exclusive(auction_id) as current:
            if current is None:
                raise AuctionNotFound(auction_id)
            updates = self._patch_updates(current, patch)
            if not updates:
                return current
            updated = current.model_copy(update=updates)
            self._store.replace(updated)
            self._persist("update", updated.slug)

        metrics.record_admin_mutation("update")
        logger.info("Updated auction %s: %s", updated.slug, sorted(updates))
        return updated

    def delete_auction(self, auction_id: str) -> None:
        with self._store.exclusive(auction_id) as current:
            if current is None:
                raise AuctionNotFound(auction_id)
            self._store.remove(auction_id)
            self._persist("delete", current.slug)

        metrics.record_admin_mutation("delete")
        metrics.set_live_auctions(len(self._store))
        logger.info("Deleted auction %s (%s)", current.slug, auction_id)

    def _patch_updates(self, current: Auction, patch: AuctionPatch) -> dict[str, Any]:
        updates: dict[str, Any] = {}

        if patch.title is not None:
            updates["title"] = patch.title
        if patch.description is not None:
            updates["description"] = patch.description

        if patch.window is not None:
            _check_window(patch.window.starts_at, patch.window.ends_at)
            updates["starts_at"] = patch.window.starts_at
            updates["ends_at"] = patch.window.ends_at

        starting_bid = current.starting_bid
        if patch.starting_bid is not None:
            starting_bid = patch.starting_bid
            updates["starting_bid"] = starting_bid
            if not current.bids:
                updates["current_bid"] = starting_bid

        min_increment = current.min_increment
        if patch.min_increment is not None:
            min_increment = patch.min_increment
            updates["min_increment"] = min_increment

        max_increment = current.max_increment
        if patch.provided("max_increment"):
            max_increment = patch.max_increment
            updates["max_increment"] = max_increment

        _check_bounds(starting_bid, min_increment, max_increment)
        return updates

    # ------------------------------------------------------------------
    # Admin: credentials
    # ------------------------------------------------------------------

    def ensure_admin(self, username: str, password: str) -> bool:
        """Seed default credentials when none are stored. True if seeded."""
        admin = self._store.admin
        if admin.username and admin.password_hash:
            return False
        self._store.set_admin(AdminCredentials(
            username=admin.username or username,
            password_hash=hash_password(password, self._hash_iterations),
        ))
        self._persist("admin-seed", None)
        logger.info("Initialized default admin password for %r", self._store.admin.username)
        return True

    def verify_credentials(self, username: str, password: str) -> bool:
        admin = self._store.admin
        if not hmac.compare_digest(username.encode("utf-8"), admin.username.encode("utf-8")):
            return False
        return verify_password(password, admin.password_hash)

    def rotate_credentials(self, username: str, password: str) -> None:
        username = username.strip()
        if not username or not password:
            raise InvalidCredentials("Username and password required")
        self._store.set_admin(AdminCredentials(
            username=username,
            password_hash=hash_password(password, self._hash_iterations),
        ))
        self._persist("admin-rotate", None)
        logger.info("Admin credentials rotated for %r", username)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self, operation: str, slug: str | None) -> None:
        if not self._store.persist():
            logger.warning(
                "%s on %s applied in memory but not persisted",
                operation, slug or "<store>",
            )
