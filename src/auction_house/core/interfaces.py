"""Protocol interfaces for the auction house.

Module boundaries are defined here as Protocol classes so the engine can
run against a JSON file in production and an in-memory adapter in tests.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .clock import IClock
from .models import StoreSnapshot

__all__ = ["IClock", "IPersistence"]


@runtime_checkable
class IPersistence(Protocol):
    """Durable snapshot storage for the auction store."""

    def load(self) -> StoreSnapshot | None:
        """Return the last saved snapshot, or None when nothing usable exists."""
        ...

    def save(self, snapshot: StoreSnapshot) -> bool:
        """Write a snapshot. Returns False when the write ultimately failed."""
        ...
