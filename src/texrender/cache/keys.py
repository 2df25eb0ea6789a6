"""Content hashing for cache keys."""

from __future__ import annotations

import hashlib
import re

HASH_LENGTH = 64

_HASH_RE = re.compile(r"^[0-9a-f]{64}$")


def hash_source(source: str) -> str:
    """SHA-256 hex digest of a LaTeX fragment.

    Leading and trailing whitespace is stripped first; internal whitespace
    is significant. The digest doubles as the artifact file stem and as the
    ``{file-path}`` substitution, so it must stay stable across restarts.
    """
    return hashlib.sha256(source.strip().encode("utf-8")).hexdigest()


def is_content_hash(value: str) -> bool:
    return bool(_HASH_RE.match(value))
