"""Command line interface for dictsearch."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from dictsearch.config import CATALOG_ENVVAR, INDEX_DIR_ENVVAR, AppConfig
from dictsearch.errors import DictSearchError
from dictsearch.index.indexer import ensure_index
from dictsearch.index.search import DEFAULT_LIMIT, CatalogSearcher
from dictsearch.index.storage import CatalogIndexStore, IndexStatus
from dictsearch.viewer import HitViewer

LOGGER = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(help="dictsearch - full-text search over a data dictionary", add_completion=False)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _prepare_index(config: AppConfig) -> CatalogIndexStore:
    store = CatalogIndexStore(config.resolve_index_dir())
    spinner = (
        err_console.status(f"Building search index in {store.index_dir}...")
        if store.status() is IndexStatus.ABSENT
        else nullcontext()
    )
    with spinner:
        stats = ensure_index(store, config.catalog_path, limit_mb=config.writer_limit_mb)
    if stats.built:
        err_console.print(f"Indexed {stats.documents} catalog rows.")
    return store


def _run(config: AppConfig, search_term: str) -> None:
    store = _prepare_index(config)
    with store.open_reader() as reader:
        searcher = CatalogSearcher(reader)
        query = searcher.parse(search_term)
        if config.record_limit == 0:
            return

        hits = searcher.search(query, limit=config.record_limit)
        if not hits:
            console.print("[yellow]No matches found.[/yellow]")
            return

        LOGGER.debug("Showing %d hit(s) for %r", len(hits), search_term)
        HitViewer(console).show(searcher.resolve(hit) for hit in hits)


@app.command()
def search(
    search_term: str = typer.Argument(..., help="Search term; use field:term to target one field"),
    record_limit: int = typer.Option(
        DEFAULT_LIMIT, "--record-limit", "-l", min=0, help="Maximum number of records to show"
    ),
    catalog: Optional[Path] = typer.Option(
        None,
        "--catalog",
        envvar=CATALOG_ENVVAR,
        help="Data dictionary CSV used to build the index on first run",
    ),
    index_dir: Optional[Path] = typer.Option(
        None, "--index-dir", envvar=INDEX_DIR_ENVVAR, help="Override the index directory"
    ),
    writer_memory: int = typer.Option(
        AppConfig().writer_limit_mb, "--writer-memory", min=1, help="Index writer buffer in MB"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search the data dictionary and page through matching columns."""
    _setup_logging(verbose)
    config = AppConfig(
        index_dir=index_dir,
        catalog_path=catalog,
        record_limit=record_limit,
        writer_limit_mb=writer_memory,
    )
    try:
        _run(config, search_term)
    except DictSearchError as exc:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(code=exc.exit_code) from exc
    except OSError as exc:
        err_console.print(f"[bold red]I/O error:[/bold red] {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(code=1) from exc


def main() -> None:
    app()


if __name__ == "__main__":
    main()
