"""Slug derivation for public auction URLs.

Slugs are lowercase ASCII words joined by single hyphens.  They live at the
top level of the URL space, so they must never shadow a fixed route.
"""

from __future__ import annotations

import re
import unicodedata

RESERVED_SLUGS = frozenset({"admin", "health", "metrics"})

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def slugify(text: str) -> str:
    """Lowercase, strip accents, collapse everything else to hyphens."""
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii").lower()
    return _NON_ALNUM.sub("-", ascii_text).strip("-")


def is_valid_slug(slug: str) -> bool:
    return bool(SLUG_PATTERN.match(slug)) and slug not in RESERVED_SLUGS
