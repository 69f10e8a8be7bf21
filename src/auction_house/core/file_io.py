"""Safe file I/O utilities.

Provides atomic replace-on-write for the JSON data file with file locking
(``fcntl``) and ``fsync`` to minimise data loss on crash or concurrent
access.
"""

from __future__ import annotations

import fcntl
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def safe_write_text(path: Path, text: str) -> None:
    """Replace the contents of *path* atomically.

    * The text goes to a temp file in the same directory, is flushed and
      ``fsync``-ed, then ``os.replace``-d over the target, so readers see
      either the old file or the new one, never a torn write.
    * ``fcntl.LOCK_EX`` on a sidecar ``.lock`` file serialises writers from
      concurrent processes sharing the same data file.
    * Parent directories are created as needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    lock_path = path.with_name(path.name + ".lock")
    with open(lock_path, "a") as lock:
        fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        finally:
            fcntl.flock(lock.fileno(), fcntl.LOCK_UN)
