"""Directory-backed whoosh index store."""

from __future__ import annotations

import enum
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from whoosh import index as whoosh_index
from whoosh.filedb.filestore import FileStorage
from whoosh.searching import Searcher as WhooshSearcher
from whoosh.writing import IndexWriter

from dictsearch.errors import IndexCorruptError
from dictsearch.index.schema import METADATA_FILENAME, IndexMetadata, build_schema, check_compatible
from dictsearch.utils.files import ensure_directory

LOGGER = logging.getLogger(__name__)

APP_NAME = "dictsearch"
INDEX_DIRNAME = "Data Dictionary Search Index"
BUILD_LOCK_NAME = "BUILD_LOCK"
# Table-of-contents files written by whoosh on every commit.
TOC_PATTERN = "_MAIN_*.toc"


def default_index_dir() -> Path:
    return Path(typer.get_app_dir(APP_NAME, roaming=False)) / INDEX_DIRNAME


def resolve_index_dir(override: Optional[Path] = None) -> Path:
    """Return the index directory, creating it if missing."""
    path = Path(override).expanduser() if override is not None else default_index_dir()
    ensure_directory(path)
    LOGGER.debug("Using index directory %s", path)
    return path


class IndexStatus(enum.Enum):
    ABSENT = "absent"
    PRESENT = "present"
    CORRUPT = "corrupt"


class IndexReader:
    """Read side of a committed index.

    ``searcher()`` hands out a snapshot and swaps it for a fresh one when a
    newer commit has landed, so callers always see the latest committed state.
    """

    def __init__(self, ix: whoosh_index.Index, metadata: IndexMetadata) -> None:
        self._index = ix
        self.metadata = metadata
        self._searcher: Optional[WhooshSearcher] = None

    @property
    def schema(self):
        return self._index.schema

    def searcher(self) -> WhooshSearcher:
        if self._searcher is None:
            self._searcher = self._index.searcher()
        else:
            self._searcher = self._searcher.refresh()
        return self._searcher

    def close(self) -> None:
        if self._searcher is not None:
            self._searcher.close()
            self._searcher = None
        self._index.close()

    def __enter__(self) -> "IndexReader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class CatalogIndexStore:
    """Owns the on-disk index directory."""

    def __init__(self, index_dir: Path) -> None:
        self.index_dir = Path(index_dir)

    def _has_toc(self) -> bool:
        return any(self.index_dir.glob(TOC_PATTERN))

    def _has_metadata(self) -> bool:
        return (self.index_dir / METADATA_FILENAME).is_file()

    def status(self) -> IndexStatus:
        """Probe the directory for a committed index.

        An empty directory is absent. The metadata file is written after the
        commit, so a build that failed part way (the engine writes its first
        TOC as soon as the index is created) reports corrupt, as does
        metadata without a TOC.
        """
        has_toc = self._has_toc()
        has_meta = self._has_metadata()
        if not has_toc and not has_meta:
            return IndexStatus.ABSENT
        if not (has_toc and has_meta):
            LOGGER.debug("Index at %s is incomplete (toc=%s, meta=%s)", self.index_dir, has_toc, has_meta)
            return IndexStatus.CORRUPT
        try:
            IndexMetadata.read(self.index_dir)
        except IndexCorruptError:
            return IndexStatus.CORRUPT
        return IndexStatus.PRESENT

    def metadata(self) -> IndexMetadata:
        return IndexMetadata.read(self.index_dir)

    def create(self) -> whoosh_index.Index:
        """Create an empty index with the catalog schema."""
        ensure_directory(self.index_dir)
        return whoosh_index.create_in(str(self.index_dir), build_schema())

    def writer(self, ix: whoosh_index.Index, *, limit_mb: int = 50) -> IndexWriter:
        """Open a writer whose in-memory buffer is bounded by ``limit_mb``."""
        return ix.writer(limitmb=limit_mb)

    @contextmanager
    def build_lock(self) -> Iterator[None]:
        """Hold an exclusive lock on the directory while an index is built."""
        ensure_directory(self.index_dir)
        lock = FileStorage(str(self.index_dir)).lock(BUILD_LOCK_NAME)
        lock.acquire(blocking=True)
        try:
            yield
        finally:
            lock.release()

    def open_reader(self) -> IndexReader:
        """Open the committed index read-only after validating its schema."""
        if self.status() is not IndexStatus.PRESENT:
            raise IndexCorruptError(f"No valid index found in {self.index_dir}", self.index_dir)
        metadata = self.metadata()
        try:
            ix = whoosh_index.open_dir(str(self.index_dir))
        except Exception as exc:
            raise IndexCorruptError(f"Cannot open index: {exc}", self.index_dir) from exc
        try:
            check_compatible(metadata, ix.schema, self.index_dir)
        except IndexCorruptError:
            ix.close()
            raise
        LOGGER.info("Opened index with %d documents", ix.doc_count())
        return IndexReader(ix, metadata)
