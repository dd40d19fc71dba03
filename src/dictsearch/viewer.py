"""Terminal pager that shows one catalog hit at a time."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

import typer
from rich.console import Console
from rich.text import Text

from dictsearch.errors import TerminalError
from dictsearch.models import ResolvedHit

LOGGER = logging.getLogger(__name__)

ENTER_KEYS = frozenset({"\r", "\n", "\r\n"})
ESCAPE_KEY = "\x1b"
PROMPT = "Press Enter to continue or Esc to exit..."

DATABASE_STYLE = "magenta"
TABLE_STYLE = "green"
COLUMN_STYLE = "blue"
PROMPT_STYLE = "yellow"


def render_hit(hit: ResolvedHit) -> list[Text]:
    """Build the colorized lines for a single hit."""
    return [
        Text.assemble(
            "Table: ",
            (hit.table_name, TABLE_STYLE),
            " Column: ",
            (hit.column_name, COLUMN_STYLE),
            " Database: ",
            (hit.db_name, DATABASE_STYLE),
        ),
        Text.assemble("Table Description: ", (hit.table_biz_desc, TABLE_STYLE)),
        Text.assemble("Column Description: ", (hit.col_biz_desc, COLUMN_STYLE)),
    ]


class HitViewer:
    """Renders hits in order and waits for Enter (next) or Esc (quit)."""

    def __init__(
        self,
        console: Optional[Console] = None,
        read_key: Optional[Callable[[], str]] = None,
    ) -> None:
        self.console = console or Console()
        self.read_key = read_key

    def _next_key(self) -> str:
        try:
            if self.read_key is not None:
                return self.read_key()
            return typer.getchar()
        except (OSError, EOFError) as exc:
            raise TerminalError(f"Cannot read from terminal: {exc}") from exc

    def _wait(self) -> bool:
        """Block until Enter or Esc; True means continue."""
        while True:
            key = self._next_key()
            if key in ENTER_KEYS:
                return True
            if key == ESCAPE_KEY:
                return False
            LOGGER.debug("Ignoring key %r", key)

    def render(self, hit: ResolvedHit) -> None:
        try:
            self.console.print(Text("-" * self.console.width))
            self.console.print()
            for line in render_hit(hit):
                self.console.print(line)
                self.console.print()
            self.console.print(Text(PROMPT, style=PROMPT_STYLE))
            self.console.print()
        except OSError as exc:
            raise TerminalError(f"Cannot write to terminal: {exc}") from exc

    def show(self, hits: Iterable[ResolvedHit]) -> int:
        """Page through ``hits``; return how many were displayed."""
        shown = 0
        for hit in hits:
            self.render(hit)
            shown += 1
            if not self._wait():
                LOGGER.debug("Viewer closed after %d hit(s)", shown)
                break
        return shown
