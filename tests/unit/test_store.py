"""AuctionStore indexes, exclusivity and snapshots."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from auction_house.core.models import AdminCredentials, Auction, StoreSnapshot
from auction_house.engine.store import AuctionStore
from auction_house.storage import MemoryPersistence


def _auction(auction_id: str = "a1", slug: str = "lamp") -> Auction:
    return Auction(
        id=auction_id,
        slug=slug,
        starts_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
        ends_at=datetime(2024, 6, 2, tzinfo=timezone.utc),
        current_bid=Decimal("10"),
        starting_bid=Decimal("10"),
    )


class TestIndexes:
    def test_add_and_lookup(self):
        store = AuctionStore()
        assert store.add(_auction())
        assert store.get("a1").slug == "lamp"
        assert store.get_by_slug("lamp").id == "a1"
        assert len(store) == 1

    def test_duplicate_slug_refused(self):
        store = AuctionStore()
        store.add(_auction("a1", "lamp"))
        assert not store.add(_auction("a2", "lamp"))
        assert store.get("a2") is None

    def test_duplicate_id_refused(self):
        store = AuctionStore()
        store.add(_auction("a1", "lamp"))
        assert not store.add(_auction("a1", "chair"))

    def test_remove_frees_slug_and_retires_id(self):
        store = AuctionStore()
        store.add(_auction("a1", "lamp"))
        store.remove("a1")
        assert store.get_by_slug("lamp") is None
        assert store.add(_auction("a2", "lamp"))
        assert not store.add(_auction("a1", "other"))

    def test_remove_missing_returns_none(self):
        assert AuctionStore().remove("nope") is None

    def test_new_auction_id_is_fresh(self):
        store = AuctionStore()
        ids = {store.new_auction_id() for _ in range(50)}
        assert len(ids) == 50
        assert all(len(i) == 16 for i in ids)


class TestReplace:
    def test_replace_swaps_version(self):
        store = AuctionStore()
        original = _auction()
        store.add(original)
        store.replace(original.model_copy(update={"title": "New"}))
        assert store.get("a1").title == "New"
        assert original.title == ""

    def test_replace_rejects_slug_change(self):
        store = AuctionStore()
        store.add(_auction())
        with pytest.raises(ValueError, match="immutable"):
            store.replace(_auction("a1", "other"))

    def test_replace_missing_raises(self):
        with pytest.raises(KeyError):
            AuctionStore().replace(_auction())


class TestExclusive:
    def test_yields_current_version(self):
        store = AuctionStore()
        store.add(_auction())
        with store.exclusive("a1") as auction:
            assert auction.id == "a1"

    def test_missing_yields_none(self):
        with AuctionStore().exclusive("nope") as auction:
            assert auction is None

    def test_by_slug(self):
        store = AuctionStore()
        store.add(_auction())
        with store.exclusive_slug("lamp") as auction:
            assert auction.id == "a1"
        with store.exclusive_slug("missing") as auction:
            assert auction is None


class TestSnapshot:
    def test_round_trip_through_snapshot(self):
        store = AuctionStore()
        store.add(_auction("a1", "lamp"))
        store.add(_auction("a2", "chair"))
        store.remove("a2")
        store.set_admin(AdminCredentials(username="root", password_hash="h"))

        restored = AuctionStore.from_snapshot(store.snapshot())
        assert restored.get_by_slug("lamp").id == "a1"
        assert restored.admin.username == "root"
        assert not restored.add(_auction("a2", "again"))  # retired id stays retired
        with restored.exclusive("a1") as auction:
            assert auction is not None

    def test_from_none_is_empty(self):
        assert len(AuctionStore.from_snapshot(None)) == 0

    def test_duplicate_slugs_in_snapshot_skipped(self):
        snapshot = StoreSnapshot(auctions=[_auction("a1", "lamp"), _auction("a2", "lamp")])
        store = AuctionStore.from_snapshot(snapshot)
        assert len(store) == 1

    def test_persist_saves_snapshot(self):
        persistence = MemoryPersistence()
        store = AuctionStore(persistence=persistence)
        store.add(_auction())
        assert store.persist()
        assert persistence.snapshot.auctions[0].id == "a1"

    def test_persist_without_adapter_is_noop(self):
        assert AuctionStore().persist()
