"""Catalog CSV loading.

The catalog is a UTF-8 export with a header row and five columns in the order
``db_name, table_name, column_name, table_biz_desc, col_biz_desc``. Rows are
streamed one at a time; nothing is retained after it is handed to the writer.
"""

from __future__ import annotations

import csv
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO

from dictsearch.errors import CatalogError
from dictsearch.models import CatalogRecord

LOGGER = logging.getLogger(__name__)


@contextmanager
def open_catalog(path: Path) -> Iterator[TextIO]:
    """Open a catalog file for reading as text, tolerating a leading BOM."""
    try:
        handle = open(path, "r", encoding="utf-8-sig", newline="")
    except OSError as exc:
        raise CatalogError(f"Cannot open catalog {path}: {exc}") from exc
    with handle:
        yield handle


def iter_catalog_records(stream: TextIO, *, source: str = "<catalog>") -> Iterator[CatalogRecord]:
    """Yield catalog records from a CSV text stream, skipping the header row.

    Malformed input is fatal: decoding and CSV syntax errors raise
    ``CatalogError`` with the offending line number instead of skipping rows.
    """
    reader = csv.reader(stream)
    try:
        header = next(reader, None)
        if header is None:
            LOGGER.warning("Catalog %s is empty", source)
            return
        LOGGER.debug("Catalog header: %s", header)
        for row in reader:
            if not row:
                continue
            yield CatalogRecord.from_row(row)
    except UnicodeDecodeError as exc:
        raise CatalogError(
            f"{source}: invalid UTF-8 near line {reader.line_num + 1}: {exc.reason}"
        ) from exc
    except csv.Error as exc:
        raise CatalogError(f"{source}: malformed CSV at line {reader.line_num}: {exc}") from exc


def load_catalog(path: Path) -> Iterator[CatalogRecord]:
    """Stream records from the catalog file at ``path``."""
    with open_catalog(path) as handle:
        yield from iter_catalog_records(handle, source=str(path))
