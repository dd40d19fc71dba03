"""One-shot catalog ingestion pipeline."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from dictsearch.errors import CatalogError, IndexCorruptError
from dictsearch.index.schema import IndexMetadata
from dictsearch.index.storage import CatalogIndexStore, IndexStatus
from dictsearch.ingestion.csv_loader import load_catalog
from dictsearch.models import CatalogRecord
from dictsearch.utils.files import compute_sha256

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class IndexStats:
    documents: int = 0
    elapsed: float = 0.0
    built: bool = True


class Indexer:
    """Streams catalog records into a fresh index and commits once."""

    def __init__(self, store: CatalogIndexStore, *, limit_mb: int = 50) -> None:
        self.store = store
        self.limit_mb = limit_mb

    def build(
        self,
        records: Iterable[CatalogRecord],
        *,
        catalog_path: Optional[Path] = None,
        catalog_sha256: Optional[str] = None,
    ) -> IndexStats:
        """Index every record, commit, then write the metadata sentinel.

        The commit is the visibility point. If anything fails before it the
        writer is cancelled and the exception propagates.
        """
        started = time.perf_counter()
        ix = self.store.create()
        writer = self.store.writer(ix, limit_mb=self.limit_mb)
        count = 0
        try:
            for record in records:
                writer.add_document(**record.as_document())
                count += 1
                if count % 10000 == 0:
                    LOGGER.debug("Buffered %d documents", count)
        except Exception:
            writer.cancel()
            raise
        writer.commit()
        ix.close()

        IndexMetadata(
            documents=count,
            catalog_path=str(catalog_path) if catalog_path is not None else None,
            catalog_sha256=catalog_sha256,
        ).write(self.store.index_dir)

        stats = IndexStats(documents=count, elapsed=time.perf_counter() - started)
        LOGGER.info("Indexed %d documents in %.2fs", stats.documents, stats.elapsed)
        return stats


def ensure_index(
    store: CatalogIndexStore,
    catalog_path: Optional[Path],
    *,
    limit_mb: int = 50,
) -> IndexStats:
    """Build the index from ``catalog_path`` unless a committed one already exists."""
    with store.build_lock():
        status = store.status()
        if status is IndexStatus.CORRUPT:
            raise IndexCorruptError(f"Index at {store.index_dir} is corrupt", store.index_dir)

        if status is IndexStatus.PRESENT:
            metadata = store.metadata()
            LOGGER.info("Reusing index at %s (%d documents)", store.index_dir, metadata.documents)
            _warn_if_stale(metadata, catalog_path)
            return IndexStats(documents=metadata.documents, built=False)

        if catalog_path is None:
            raise CatalogError(
                "No index has been built yet; pass --catalog or set DICTSEARCH_CATALOG"
            )
        catalog_path = Path(catalog_path)
        if not catalog_path.is_file():
            raise CatalogError(f"Catalog file not found: {catalog_path}")

        LOGGER.info("Building index at %s from %s", store.index_dir, catalog_path)
        try:
            sha256 = compute_sha256(catalog_path)
        except OSError as exc:
            raise CatalogError(f"Cannot read catalog {catalog_path}: {exc}") from exc
        indexer = Indexer(store, limit_mb=limit_mb)
        return indexer.build(
            load_catalog(catalog_path), catalog_path=catalog_path, catalog_sha256=sha256
        )


def _warn_if_stale(metadata: IndexMetadata, catalog_path: Optional[Path]) -> None:
    if catalog_path is None or metadata.catalog_sha256 is None:
        return
    catalog_path = Path(catalog_path)
    if not catalog_path.is_file():
        return
    if compute_sha256(catalog_path) != metadata.catalog_sha256:
        LOGGER.warning(
            "Catalog %s changed since the index was built on %s; "
            "delete the index directory to rebuild it",
            catalog_path,
            metadata.created_at,
        )
