"""MemoryPersistence — in-process snapshot holder for tests and dry runs."""

from __future__ import annotations

import logging

from auction_house.core.models import StoreSnapshot
from auction_house.observability import metrics

logger = logging.getLogger(__name__)


class MemoryPersistence:
    """Keeps the last saved snapshot in memory.

    ``fail_saves`` makes every ``save`` report failure, which lets tests
    check that a lost write never rolls back an accepted bid.
    """

    def __init__(
        self,
        initial: StoreSnapshot | None = None,
        fail_saves: bool = False,
    ) -> None:
        self._snapshot = initial.model_copy(deep=True) if initial else None
        self.fail_saves = fail_saves
        self.save_count = 0

    @property
    def snapshot(self) -> StoreSnapshot | None:
        return self._snapshot

    def load(self) -> StoreSnapshot | None:
        if self._snapshot is None:
            return None
        return self._snapshot.model_copy(deep=True)

    def save(self, snapshot: StoreSnapshot) -> bool:
        self.save_count += 1
        if self.fail_saves:
            logger.warning("Snapshot save failed (simulated)")
            metrics.record_persist_failure()
            return False
        self._snapshot = snapshot.model_copy(deep=True)
        return True
