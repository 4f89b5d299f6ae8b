"""Digest helpers matching the digests helm records in ``index.yaml``.

Helm stores the SHA-256 hex digest of the packaged archive bytes, with no
algorithm prefix.
"""

from __future__ import annotations

import hashlib


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def normalize_digest(digest: str) -> str:
    """Strip an optional ``sha256:`` prefix and lowercase the hex."""
    return digest.removeprefix("sha256:").strip().lower()
