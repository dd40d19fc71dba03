from __future__ import annotations

from pathlib import Path

import pytest

from dictsearch.index.indexer import Indexer
from dictsearch.index.storage import CatalogIndexStore
from dictsearch.ingestion.csv_loader import load_catalog

CATALOG_CSV = """db_name,table_name,column_name,table_biz_desc,col_biz_desc
sales,orders,customer_id,Customer orders,FK to customers
sales,customers,email,Customer master,Primary contact email
hr,employees,salary,Employee roster,Monthly gross pay
"""


@pytest.fixture
def catalog_path(tmp_path: Path) -> Path:
    """Three-row data dictionary export."""
    path = tmp_path / "catalog.csv"
    path.write_text(CATALOG_CSV, encoding="utf-8")
    return path


@pytest.fixture
def index_dir(tmp_path: Path) -> Path:
    path = tmp_path / "index"
    path.mkdir()
    return path


@pytest.fixture
def built_store(index_dir: Path, catalog_path: Path) -> CatalogIndexStore:
    """Store with the three-row catalog already committed."""
    store = CatalogIndexStore(index_dir)
    Indexer(store, limit_mb=16).build(load_catalog(catalog_path), catalog_path=catalog_path)
    return store


@pytest.fixture
def reader(built_store: CatalogIndexStore):
    with built_store.open_reader() as opened:
        yield opened
