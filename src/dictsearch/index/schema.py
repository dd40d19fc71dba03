"""Index schema and the metadata sentinel stored next to the index."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from whoosh.analysis import LowercaseFilter, RegexTokenizer
from whoosh.fields import TEXT, Schema

from dictsearch.errors import IndexCorruptError, SchemaMismatchError
from dictsearch.models import FIELD_NAMES

SCHEMA_VERSION = 2
METADATA_FILENAME = "index_meta.json"


def catalog_analyzer():
    """Split on every non-alphanumeric character, underscores included.

    ``customer_id`` is indexed as ``customer`` and ``id``; no stop words.
    """
    return RegexTokenizer(r"[^\W_]+") | LowercaseFilter()


def build_schema() -> Schema:
    """All catalog fields are tokenized, indexed and stored."""
    return Schema(**{name: TEXT(stored=True, analyzer=catalog_analyzer()) for name in FIELD_NAMES})


@dataclass(slots=True)
class IndexMetadata:
    schema_version: int = SCHEMA_VERSION
    fields: List[str] = field(default_factory=lambda: list(FIELD_NAMES))
    documents: int = 0
    catalog_path: Optional[str] = None
    catalog_sha256: Optional[str] = None
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="seconds")
    )

    def write(self, index_dir: Path) -> Path:
        path = Path(index_dir) / METADATA_FILENAME
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(asdict(self), indent=2), encoding="utf-8")
        tmp_path.replace(path)
        return path

    @classmethod
    def read(cls, index_dir: Path) -> "IndexMetadata":
        path = Path(index_dir) / METADATA_FILENAME
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            return cls(
                schema_version=int(payload["schema_version"]),
                fields=list(payload["fields"]),
                documents=int(payload.get("documents", 0)),
                catalog_path=payload.get("catalog_path"),
                catalog_sha256=payload.get("catalog_sha256"),
                created_at=payload.get("created_at", ""),
            )
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise IndexCorruptError(f"Unreadable index metadata {path}: {exc}", index_dir) from exc


def check_compatible(metadata: IndexMetadata, schema: Schema, index_dir: Path) -> None:
    """Reject an index whose version or field list differs from ours."""
    if metadata.schema_version != SCHEMA_VERSION:
        raise SchemaMismatchError(
            f"Index schema version {metadata.schema_version} does not match "
            f"expected version {SCHEMA_VERSION}",
            index_dir,
        )
    if tuple(metadata.fields) != FIELD_NAMES:
        raise SchemaMismatchError(
            f"Index fields {metadata.fields} do not match {list(FIELD_NAMES)}", index_dir
        )
    if sorted(schema.names()) != sorted(FIELD_NAMES):
        raise SchemaMismatchError(
            f"Embedded index schema {schema.names()} does not match {list(FIELD_NAMES)}",
            index_dir,
        )
