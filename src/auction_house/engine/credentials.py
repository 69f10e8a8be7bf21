"""Admin password hashing.

PBKDF2-HMAC-SHA256 with a random per-hash salt.  Encoded as
``pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>`` so the iteration
count can be raised later without invalidating stored hashes.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

_SCHEME = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 200_000


def hash_password(password: str, iterations: int = DEFAULT_ITERATIONS) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), iterations,
    )
    return f"{_SCHEME}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str | None) -> bool:
    """Check *password* against an encoded hash. Malformed hashes never match."""
    if not encoded:
        return False
    try:
        scheme, iterations, salt, expected = encoded.split("$")
        rounds = int(iterations)
    except ValueError:
        return False
    if scheme != _SCHEME or rounds < 1:
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), rounds,
    )
    return hmac.compare_digest(digest.hex(), expected)
