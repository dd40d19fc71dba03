"""Utility helpers for working with files."""

from __future__ import annotations

import hashlib
from pathlib import Path


def compute_sha256(path: Path) -> str:
    """Compute the SHA256 fingerprint of a catalog file."""
    sha = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 20), b""):
            sha.update(chunk)
    return sha.hexdigest()


def ensure_directory(path: Path) -> Path:
    """Create ``path`` and its parents if needed and return it."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
