"""Shared fixtures for the auction-house test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from auction_house.core.clock import SimClock
from auction_house.core.models import AuctionSpec
from auction_house.engine import AuctionEngine, AuctionStore
from auction_house.storage import MemoryPersistence

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Clock / persistence
# ---------------------------------------------------------------------------

@pytest.fixture
def sim_clock() -> SimClock:
    """Return a SimClock starting at 2024-06-01 12:00 UTC."""
    return SimClock(start=NOW)


@pytest.fixture
def memory_persistence() -> MemoryPersistence:
    return MemoryPersistence()


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

@pytest.fixture
def engine(sim_clock, memory_persistence) -> AuctionEngine:
    """Engine over an empty store with cheap password hashing."""
    store = AuctionStore(persistence=memory_persistence)
    return AuctionEngine(store, clock=sim_clock, hash_iterations=1_000)


def make_spec(
    title: str = "Vintage Lamp",
    starts_in: timedelta = timedelta(hours=-1),
    duration: timedelta = timedelta(hours=2),
    starting_bid: str = "50",
    min_increment: str = "1",
    max_increment: str | None = "100",
    slug: str | None = None,
) -> AuctionSpec:
    """AuctionSpec relative to NOW. The default window is active at NOW."""
    starts_at = NOW + starts_in
    return AuctionSpec(
        title=title,
        slug=slug,
        description="Brass, working condition.",
        starts_at=starts_at,
        ends_at=starts_at + duration,
        starting_bid=Decimal(starting_bid),
        min_increment=Decimal(min_increment),
        max_increment=Decimal(max_increment) if max_increment is not None else None,
    )


@pytest.fixture
def active_auction(engine):
    """Active auction: starting 50, min raise 1, max raise 100."""
    return engine.create_auction(make_spec())


@pytest.fixture
def spec_factory():
    """Expose ``make_spec`` to tests that need custom windows or bounds."""
    return make_spec
