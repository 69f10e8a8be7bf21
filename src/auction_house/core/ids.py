"""Canonical ID and timestamp factories.

Auction IDs are 16 lowercase hex characters (8 random bytes): opaque and
safe to embed in URLs.  Slug disambiguators are 4 hex characters.

Timestamp Rule
--------------
All timestamps are ``datetime`` with ``tzinfo=timezone.utc``, never naive.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone


def new_id() -> str:
    """Generate a new auction ID."""
    return secrets.token_hex(8)


def short_suffix() -> str:
    """Random 4-char disambiguator appended to colliding slugs."""
    return secrets.token_hex(2)


def new_session_token() -> str:
    """Opaque admin session token for the session cookie."""
    return secrets.token_urlsafe(32)


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalise a datetime to UTC; naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
