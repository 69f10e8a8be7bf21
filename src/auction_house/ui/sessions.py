"""Admin session registry.

Sessions are opaque random tokens carried in an HTTP-only cookie and held
in memory with a fixed TTL.  A restart logs every admin out, which is fine
for a single-process server.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta

from auction_house.core.clock import IClock, WallClock
from auction_house.core.ids import new_session_token


class SessionRegistry:
    """Thread-safe token → expiry map."""

    def __init__(self, ttl: timedelta, clock: IClock | None = None) -> None:
        self._ttl = ttl
        self._clock = clock or WallClock()
        self._lock = threading.Lock()
        self._expires: dict[str, datetime] = {}

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self) -> str:
        token = new_session_token()
        now = self._clock.now()
        with self._lock:
            self._purge(now)
            self._expires[token] = now + self._ttl
        return token

    def is_valid(self, token: str | None) -> bool:
        if not token:
            return False
        now = self._clock.now()
        with self._lock:
            expires = self._expires.get(token)
            if expires is None:
                return False
            if now >= expires:
                del self._expires[token]
                return False
            return True

    def revoke(self, token: str | None) -> None:
        if not token:
            return
        with self._lock:
            self._expires.pop(token, None)

    def _purge(self, now: datetime) -> None:
        expired = [t for t, exp in self._expires.items() if now >= exp]
        for token in expired:
            del self._expires[token]
