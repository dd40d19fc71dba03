"""Core dictsearch data models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence

FIELD_NAMES = ("db_name", "table_name", "column_name", "table_biz_desc", "col_biz_desc")


@dataclass(slots=True)
class CatalogRecord:
    """One row of the data dictionary."""

    db_name: str = ""
    table_name: str = ""
    column_name: str = ""
    table_biz_desc: str = ""
    col_biz_desc: str = ""

    @classmethod
    def from_row(cls, row: Sequence[str]) -> "CatalogRecord":
        """Build a record from positional CSV columns; missing columns become empty."""
        values = [row[i] if i < len(row) else "" for i in range(len(FIELD_NAMES))]
        return cls(*values)

    def as_document(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in FIELD_NAMES}


@dataclass(slots=True)
class SearchHit:
    """Score paired with the engine's document number."""

    score: float
    docnum: int


@dataclass(slots=True)
class ResolvedHit:
    """Stored field values of a hit, ready for display."""

    score: float
    db_name: str
    table_name: str
    column_name: str
    table_biz_desc: str
    col_biz_desc: str
