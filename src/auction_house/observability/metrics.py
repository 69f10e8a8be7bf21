"""Prometheus metrics.

Exposes bidding and persistence metrics for monitoring.  Persistence write
failures are the one failure class an operator should alert on.
"""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Info,
    generate_latest,
)

# ---------------------------------------------------------------------------
# System metrics
# ---------------------------------------------------------------------------

SYSTEM_INFO = Info("auction_house", "Auction house build information")

# ---------------------------------------------------------------------------
# Bidding metrics
# ---------------------------------------------------------------------------

BIDS_TOTAL = Counter(
    "auction_bids_total",
    "Bids submitted, by outcome",
    ["outcome"],  # "accepted" or a RejectReason value
)

AUCTIONS_LIVE = Gauge(
    "auction_auctions_live",
    "Auctions currently held in the store",
)

ADMIN_MUTATIONS_TOTAL = Counter(
    "auction_admin_mutations_total",
    "Admin create/update/delete operations",
    ["operation"],
)

# ---------------------------------------------------------------------------
# Persistence metrics
# ---------------------------------------------------------------------------

PERSIST_FAILURES_TOTAL = Counter(
    "auction_persist_failures_total",
    "Snapshot saves that failed after all retry attempts",
)

PERSIST_RETRIES_TOTAL = Counter(
    "auction_persist_retries_total",
    "Individual snapshot write attempts that failed and were retried",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def record_bid(outcome: str) -> None:
    BIDS_TOTAL.labels(outcome=outcome).inc()


def record_admin_mutation(operation: str) -> None:
    ADMIN_MUTATIONS_TOTAL.labels(operation=operation).inc()


def set_live_auctions(count: int) -> None:
    AUCTIONS_LIVE.set(count)


def record_persist_failure() -> None:
    PERSIST_FAILURES_TOTAL.inc()


def record_persist_retry() -> None:
    PERSIST_RETRIES_TOTAL.inc()


def set_system_info(version: str) -> None:
    SYSTEM_INFO.info({"version": version})


def render_latest() -> tuple[bytes, str]:
    """Return the exposition body and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
