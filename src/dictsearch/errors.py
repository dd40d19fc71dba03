"""Error kinds surfaced to the user, each with its own exit code."""

from __future__ import annotations

from pathlib import Path


class DictSearchError(Exception):
    """Base class for failures that abort the current invocation."""

    exit_code = 1


class CatalogError(DictSearchError):
    """The catalog CSV could not be located or decoded."""

    exit_code = 3


class IndexCorruptError(DictSearchError):
    """The index directory holds something the engine cannot open."""

    exit_code = 4

    def __init__(self, message: str, index_dir: Path | None = None) -> None:
        if index_dir is not None:
            message = f"{message} (delete '{index_dir}' and run again to rebuild)"
        super().__init__(message)
        self.index_dir = index_dir


class SchemaMismatchError(IndexCorruptError):
    """The index was built with a different schema than this version expects."""


class QueryParseError(DictSearchError):
    exit_code = 5


class DocumentResolutionError(DictSearchError):
    """A stored document is missing one of the schema fields."""

    exit_code = 6


class TerminalError(DictSearchError):
    exit_code = 7
