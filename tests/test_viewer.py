"""Tests for the interactive hit viewer."""

from __future__ import annotations

import io
from typing import Iterable

import pytest
from rich.console import Console

from dictsearch.errors import TerminalError
from dictsearch.models import ResolvedHit
from dictsearch.viewer import PROMPT, HitViewer, render_hit

WIDTH = 100

ORDERS = ResolvedHit(1.0, "sales", "orders", "customer_id", "Customer orders", "FK to customers")
CUSTOMERS = ResolvedHit(0.9, "sales", "customers", "email", "Customer master", "Primary contact email")


def _viewer(keys: Iterable[str]) -> tuple[HitViewer, io.StringIO]:
    buffer = io.StringIO()
    console = Console(file=buffer, width=WIDTH, force_terminal=False, color_system=None)
    return HitViewer(console, read_key=iter(keys).__next__), buffer


class TestRenderHit:
    def test_lines(self) -> None:
        lines = [line.plain for line in render_hit(ORDERS)]

        assert lines == [
            "Table: orders Column: customer_id Database: sales",
            "Table Description: Customer orders",
            "Column Description: FK to customers",
        ]

    def test_field_colors(self) -> None:
        header, table_desc, column_desc = render_hit(ORDERS)

        styles = {header.plain[span.start : span.end]: str(span.style) for span in header.spans}
        assert styles == {"orders": "green", "customer_id": "blue", "sales": "magenta"}
        assert [str(span.style) for span in table_desc.spans] == ["green"]
        assert [str(span.style) for span in column_desc.spans] == ["blue"]


class TestHitViewer:
    """Paging behaviour driven by scripted key presses."""

    def test_enter_advances_through_all_hits(self) -> None:
        viewer, buffer = _viewer(["\r", "\r"])

        shown = viewer.show([ORDERS, CUSTOMERS])

        output = buffer.getvalue()
        assert shown == 2
        assert "Table: orders Column: customer_id Database: sales" in output
        assert "Table: customers Column: email Database: sales" in output
        assert output.index("orders") < output.index("customers Column")

    def test_prompts_once_per_hit(self) -> None:
        viewer, buffer = _viewer(["\r", "\n"])

        viewer.show([ORDERS, CUSTOMERS])

        assert buffer.getvalue().count(PROMPT) == 2

    def test_separator_matches_width(self) -> None:
        viewer, buffer = _viewer(["\r"])

        viewer.show([ORDERS])

        assert buffer.getvalue().splitlines()[0] == "-" * WIDTH

    def test_escape_quits(self) -> None:
        viewer, buffer = _viewer(["\x1b"])

        shown = viewer.show([ORDERS, CUSTOMERS])

        assert shown == 1
        assert "customers Column" not in buffer.getvalue()

    def test_other_keys_are_ignored(self) -> None:
        """Arrow keys arrive as escape sequences and must not quit."""
        viewer, _ = _viewer(["x", " ", "\x1b[A", "\r", "\x1b"])

        assert viewer.show([ORDERS, CUSTOMERS]) == 2

    def test_no_hits_reads_no_keys(self) -> None:
        viewer, buffer = _viewer([])

        assert viewer.show([]) == 0
        assert buffer.getvalue() == ""

    def test_hits_are_consumed_lazily(self) -> None:
        """Hits after an Escape are never resolved."""
        consumed = []

        def hits():
            for hit in (ORDERS, CUSTOMERS):
                consumed.append(hit.table_name)
                yield hit

        viewer, _ = _viewer(["\x1b"])
        viewer.show(hits())

        assert consumed == ["orders"]

    def test_markup_in_catalog_text_is_literal(self) -> None:
        hit = ResolvedHit(1.0, "[bold]db[/bold]", "t", "c", "[red]x", "y")
        viewer, buffer = _viewer(["\r"])

        viewer.show([hit])

        assert "[bold]db[/bold]" in buffer.getvalue()
        assert "[red]x" in buffer.getvalue()

    def test_terminal_read_failure(self) -> None:
        def broken() -> str:
            raise OSError("no tty")

        viewer = HitViewer(Console(file=io.StringIO()), read_key=broken)

        with pytest.raises(TerminalError, match="no tty"):
            viewer.show([ORDERS])

    def test_end_of_input_is_terminal_error(self) -> None:
        def closed() -> str:
            raise EOFError()

        viewer = HitViewer(Console(file=io.StringIO()), read_key=closed)

        with pytest.raises(TerminalError):
            viewer.show([ORDERS])

    def test_defaults_to_getchar(self, monkeypatch: pytest.MonkeyPatch) -> None:
        keys = iter(["\r"])
        monkeypatch.setattr("dictsearch.viewer.typer.getchar", lambda: next(keys))
        viewer = HitViewer(Console(file=io.StringIO()))

        assert viewer.show([ORDERS]) == 1
