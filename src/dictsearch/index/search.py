"""Query parsing and ranked retrieval over the catalog index."""

from __future__ import annotations

import logging
from typing import Iterator, List

from whoosh.qparser import MultifieldParser, OrGroup
from whoosh.qparser.common import QueryParserError
from whoosh.qparser.plugins import FieldsPlugin
from whoosh.query import Query

from dictsearch.errors import DocumentResolutionError, IndexCorruptError, QueryParseError
from dictsearch.index.storage import IndexReader
from dictsearch.models import FIELD_NAMES, ResolvedHit, SearchHit

LOGGER = logging.getLogger(__name__)

DEFAULT_LIMIT = 25


class CatalogSearcher:
    """High-level API to query the catalog index.

    Bare terms are matched against every catalog field and combined with OR;
    ``field:term`` restricts a term to one field.
    """

    def __init__(self, reader: IndexReader) -> None:
        self.reader = reader
        self.parser = MultifieldParser(list(FIELD_NAMES), schema=reader.schema, group=OrGroup)
        # Keep unknown field prefixes as fields so they can be rejected below.
        self.parser.replace_plugin(FieldsPlugin(remove_unknown=False))

    def parse(self, text: str) -> Query:
        _check_balanced(text)
        try:
            query = self.parser.parse(text)
        except QueryParserError as exc:
            raise QueryParseError(f"Cannot parse query {text!r}: {exc}") from exc

        known = set(self.reader.schema.names())
        unknown = sorted(
            {
                leaf.fieldname
                for leaf in query.leaves()
                if getattr(leaf, "fieldname", None) and leaf.fieldname not in known
            }
        )
        if unknown:
            raise QueryParseError(
                f"Unknown field(s) {', '.join(unknown)} in query; "
                f"available fields: {', '.join(FIELD_NAMES)}"
            )
        LOGGER.debug("Parsed %r as %r", text, query)
        return query

    def search(self, query: Query, *, limit: int = DEFAULT_LIMIT) -> List[SearchHit]:
        """Return at most ``limit`` hits, best score first."""
        if limit < 0:
            raise ValueError("limit must be non-negative")
        if limit == 0:
            return []
        searcher = self.reader.searcher()
        try:
            results = searcher.search(query, limit=limit)
            return [SearchHit(score=float(hit.score), docnum=hit.docnum) for hit in results]
        except OSError as exc:
            raise IndexCorruptError(f"Failed reading index: {exc}") from exc

    def resolve(self, hit: SearchHit) -> ResolvedHit:
        """Load the stored catalog fields for ``hit``."""
        try:
            stored = self.reader.searcher().stored_fields(hit.docnum)
        except OSError as exc:
            raise IndexCorruptError(f"Failed reading document {hit.docnum}: {exc}") from exc

        values = {}
        for name in FIELD_NAMES:
            value = stored.get(name)
            if not isinstance(value, str):
                raise DocumentResolutionError(
                    f"Document {hit.docnum} has no stored '{name}' field"
                )
            values[name] = value
        return ResolvedHit(score=hit.score, **values)

    def iter_results(self, text: str, *, limit: int = DEFAULT_LIMIT) -> Iterator[ResolvedHit]:
        """Parse ``text``, search, and resolve hits lazily in score order."""
        query = self.parse(text)
        for hit in self.search(query, limit=limit):
            yield self.resolve(hit)


_CLOSERS = {")": "(", "]": "[", "}": "["}


def _check_balanced(text: str) -> None:
    """Reject unbalanced quotes, parentheses and range brackets.

    Whoosh silently repairs these, which would run a different query than the
    one typed. Ranges may mix ``[``/``{`` with ``]``/``}``.
    """
    if text.count('"') % 2:
        raise QueryParseError(f"Unbalanced quotes in query: {text}")
    stack: List[str] = []
    in_phrase = False
    for position, char in enumerate(text):
        if char == '"':
            in_phrase = not in_phrase
        elif in_phrase:
            continue
        elif char in "([{":
            stack.append("(" if char == "(" else "[")
        elif char in _CLOSERS:
            if not stack or stack.pop() != _CLOSERS[char]:
                raise QueryParseError(f"Unexpected {char!r} at position {position} in query: {text}")
    if stack:
        kind = "parenthesis" if stack[-1] == "(" else "range bracket"
        raise QueryParseError(f"Unclosed {kind} in query: {text}")
