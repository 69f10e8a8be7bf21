"""JsonFilePersistence — snapshot the auction store to a JSON file.

The whole store (auctions, admin credentials, retired ids) is written as
one indented JSON document after every accepted mutation.  Writes go
through ``safe_write_text`` and are retried a bounded number of times;
a save that still fails is logged and reported as ``False``, never raised,
because the in-memory state remains authoritative for the running process.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from pydantic import ValidationError

from auction_house.core.errors import PersistenceError
from auction_house.core.file_io import safe_write_text
from auction_house.core.models import StoreSnapshot
from auction_house.observability import metrics

logger = logging.getLogger(__name__)


class JsonFilePersistence:
    """JSON file adapter.

    Parameters
    ----------
    path:
        Data file location.  Parent directories are created on first save.
    max_attempts:
        Write attempts per ``save`` (at least 1).
    retry_backoff_ms:
        Sleep before the second attempt; doubled on each further attempt.
    """

    def __init__(
        self,
        path: str | Path,
        max_attempts: int = 3,
        retry_backoff_ms: int = 50,
    ) -> None:
        self._path = Path(path)
        self._max_attempts = max(1, max_attempts)
        self._retry_backoff_ms = max(0, retry_backoff_ms)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> StoreSnapshot | None:
        """Read the data file. Missing or corrupt files load as ``None``."""
        if not self._path.exists():
            return None
        try:
            raw = self._path.read_text(encoding="utf-8")
            return StoreSnapshot.model_validate_json(raw)
        except (OSError, ValidationError, ValueError):
            logger.exception("Failed to parse data file %s", self._path)
            return None

    def save(self, snapshot: StoreSnapshot) -> bool:
        text = snapshot.model_dump_json(indent=2)
        delay = self._retry_backoff_ms / 1000.0
        for attempt in range(1, self._max_attempts + 1):
            try:
                self._write(text)
                return True
            except PersistenceError as exc:
                if attempt == self._max_attempts:
                    logger.warning(
                        "Snapshot save failed after %d attempts: %s",
                        attempt, exc,
                    )
                    metrics.record_persist_failure()
                    return False
                metrics.record_persist_retry()
                logger.debug("Snapshot write attempt %d failed, retrying", attempt)
                time.sleep(delay)
                delay *= 2
        return False

    def _write(self, text: str) -> None:
        try:
            safe_write_text(self._path, text)
        except OSError as exc:
            raise PersistenceError(f"{self._path}: {exc}") from exc
