"""AuctionStore — owns every auction plus the admin credentials.

Locking
-------
* ``_index_lock`` guards the id and slug indexes, the retired-id set and
  the admin record.  It is only ever held for dictionary operations.
* One ``threading.Lock`` per auction serialises read-modify-write
  sequences on that auction (bids and admin edits alike).  Callers take it
  through ``exclusive()`` / ``exclusive_slug()``.
* ``_persist_lock`` serialises snapshot + save, so the last save to finish
  always carries the newest state.

Lock order is per-auction lock → index lock, and per-auction lock →
persist lock → index lock.  Nothing waits on a per-auction lock while
holding the index lock.

Stored ``Auction`` models are frozen and replaced wholesale, so readers get
a consistent auction without taking the per-auction lock.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from auction_house.core.ids import new_id
from auction_house.core.interfaces import IPersistence
from auction_house.core.models import AdminCredentials, Auction, StoreSnapshot

logger = logging.getLogger(__name__)


class AuctionStore:
    """Thread-safe in-memory auction state with injected persistence."""

    def __init__(self, persistence: IPersistence | None = None) -> None:
        self._persistence = persistence
        self._index_lock = threading.Lock()
        self._persist_lock = threading.Lock()
        self._by_id: dict[str, Auction] = {}
        self._slug_to_id: dict[str, str] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._retired_ids: set[str] = set()
        self._admin = AdminCredentials()

    @classmethod
    def from_snapshot(
        cls,
        snapshot: StoreSnapshot | None,
        persistence: IPersistence | None = None,
    ) -> AuctionStore:
        store = cls(persistence=persistence)
        if snapshot is None:
            return store
        for auction in snapshot.auctions:
            if auction.id in store._by_id or auction.slug in store._slug_to_id:
                logger.warning(
                    "Skipping duplicate auction in snapshot: id=%s slug=%s",
                    auction.id, auction.slug,
                )
                continue
            store._by_id[auction.id] = auction
            store._slug_to_id[auction.slug] = auction.id
            store._locks[auction.id] = threading.Lock()
        store._retired_ids = set(snapshot.retired_ids)
        store._admin = snapshot.admin
        return store

    # ------------------------------------------------------------------
    # Reads (frozen models, no per-auction lock)
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, auction_id: str) -> Auction | None:
        return self._by_id.get(auction_id)

    def get_by_slug(self, slug: str) -> Auction | None:
        with self._index_lock:
            auction_id = self._slug_to_id.get(slug)
            if auction_id is None:
                return None
            return self._by_id.get(auction_id)

    def all(self) -> list[Auction]:
        with self._index_lock:
            return list(self._by_id.values())

    @property
    def admin(self) -> AdminCredentials:
        return self._admin

    def snapshot(self) -> StoreSnapshot:
        with self._index_lock:
            return StoreSnapshot(
                auctions=list(self._by_id.values()),
                admin=self._admin,
                retired_ids=sorted(self._retired_ids),
            )

    # ------------------------------------------------------------------
    # Exclusivity
    # ------------------------------------------------------------------

    @contextmanager
    def exclusive(self, auction_id: str) -> Iterator[Auction | None]:
        """Hold the auction's lock and yield its current version.

        Yields ``None`` when the auction does not exist (or was deleted
        while we waited for the lock).
        """
        with self._index_lock:
            lock = self._locks.get(auction_id)
        if lock is None:
            yield None
            return
        with lock:
            yield self._by_id.get(auction_id)

    @contextmanager
    def exclusive_slug(self, slug: str) -> Iterator[Auction | None]:
        """Like ``exclusive`` but resolves the auction by slug first."""
        with self._index_lock:
            auction_id = self._slug_to_id.get(slug)
        if auction_id is None:
            yield None
            return
        with self.exclusive(auction_id) as auction:
            yield auction

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def new_auction_id(self) -> str:
        """Generate an id that no live or deleted auction has used."""
        with self._index_lock:
            while True:
                candidate = new_id()
                if candidate not in self._by_id and candidate not in self._retired_ids:
                    return candidate

    def add(self, auction: Auction) -> bool:
        """Insert a new auction. Returns False if its id or slug is taken."""
        with self._index_lock:
            if (
                auction.id in self._by_id
                or auction.id in self._retired_ids
                or auction.slug in self._slug_to_id
            ):
                return False
            self._by_id[auction.id] = auction
            self._slug_to_id[auction.slug] = auction.id
            self._locks[auction.id] = threading.Lock()
            return True

    def replace(self, auction: Auction) -> None:
        """Swap in a new version of an existing auction.

        Must be called while holding the auction's lock.  The slug is
        immutable, so the slug index is left alone.
        """
        with self._index_lock:
            existing = self._by_id.get(auction.id)
            if existing is None:
                raise KeyError(auction.id)
            if existing.slug != auction.slug:
                raise ValueError(
                    f"Slug is immutable: {existing.slug!r} -> {auction.slug!r}"
                )
            self._by_id[auction.id] = auction

    def remove(self, auction_id: str) -> Auction | None:
        """Delete an auction, free its slug and retire its id."""
        with self._index_lock:
            auction = self._by_id.pop(auction_id, None)
            if auction is None:
                return None
            self._slug_to_id.pop(auction.slug, None)
            self._locks.pop(auction_id, None)
            self._retired_ids.add(auction_id)
            return auction

    def set_admin(self, admin: AdminCredentials) -> None:
        with self._index_lock:
            self._admin = admin

    def persist(self) -> bool:
        """Save a fresh snapshot. Returns False when the save failed."""
        if self._persistence is None:
            return True
        with self._persist_lock:
            return self._persistence.save(self.snapshot())
