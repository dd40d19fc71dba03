"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from dictsearch.index.search import DEFAULT_LIMIT
from dictsearch.index.storage import resolve_index_dir

CATALOG_ENVVAR = "DICTSEARCH_CATALOG"
INDEX_DIR_ENVVAR = "DICTSEARCH_INDEX_DIR"


@dataclass(slots=True)
class AppConfig:
    index_dir: Path | None = None
    catalog_path: Path | None = None
    record_limit: int = DEFAULT_LIMIT
    writer_limit_mb: int = 50

    def __post_init__(self) -> None:
        if self.record_limit < 0:
            raise ValueError("record_limit must be non-negative")
        if self.writer_limit_mb <= 0:
            raise ValueError("writer_limit_mb must be positive")

    def resolve_index_dir(self) -> Path:
        """Return the index directory (created if missing)."""
        return resolve_index_dir(self.index_dir)
