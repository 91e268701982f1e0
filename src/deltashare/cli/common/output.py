"""Rich console output for the sharing CLI."""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

# Results go to stdout, diagnostics to stderr, so `--json` output stays pipeable.
console = Console(theme=_THEME)
err_console = Console(theme=_THEME, stderr=True)


def _cell(value: Any) -> str:
    if value is None:
        return "[meta]null[/]"
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def _grid(title: str, columns: Sequence[tuple[str, str | None]]) -> Table:
    """Empty rich table with `(header, style)` columns."""
    grid = Table(title=title, show_lines=False)
    for header, style in columns:
        grid.add_column(header, style=style)
    return grid


@dataclass(frozen=True)
class Out:
    """Message and table printer used by every command."""

    def info(self, msg: str) -> None:
        """Print an informational line."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Spinner shown while a request is in flight."""
        with console.status(msg, spinner="dots"):
            yield

    def warn(self, msg: str) -> None:
        """Print a warning to stderr."""
        err_console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error to stderr."""
        err_console.print(f"[err]✗[/] {msg}")

    def header(self, title: str) -> None:
        """Print a section title."""
        console.print(f"[title]{title}[/]")

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs, one per line."""
        for key, value in items.items():
            console.print(f"[meta]{key}[/]: {value}", highlight=False)

    def json(self, payload: Any) -> None:
        """Print `payload` as JSON, bypassing markup."""
        console.print_json(json.dumps(payload, default=str))

    def json_text(self, text: str) -> None:
        """Pretty-print a JSON string; anything unparsable is echoed as-is."""
        try:
            json.loads(text)
        except ValueError:
            console.print(text, markup=False)
            return
        console.print_json(text)

    def shares_table(self, shares: Iterable[Any], title: str = "Shares") -> None:
        """Render shares, one row each."""
        grid = _grid(title, [("Share", "ok")])
        for share in shares:
            grid.add_row(share.name)
        console.print(grid)

    def schemas_table(self, schemas: Iterable[Any], title: str = "Schemas") -> None:
        """Render schemas with their share."""
        grid = _grid(title, [("Share", "meta"), ("Schema", "ok")])
        for schema in schemas:
            grid.add_row(schema.share, schema.name)
        console.print(grid)

    def tables_table(self, tables: Iterable[Any], title: str = "Tables") -> None:
        """
        Render shared tables by full name.

        Expects objects with `.share`, `.schema` and `.name`
        (see `deltashare.core.protocol.Table`).
        """
        grid = _grid(title, [("Full name", "ok"), ("Share", "meta"), ("Schema", "meta")])
        for table in tables:
            grid.add_row(f"{table.share}.{table.schema}.{table.name}", table.share, table.schema)
        console.print(grid)

    def rows_table(
        self,
        rows: Iterable[Mapping[str, Any]],
        columns: list[str],
        title: str = "Rows",
    ) -> None:
        """One rich column per field; missing fields render as null."""
        grid = _grid(title, [(column, None) for column in columns])
        for row in rows:
            grid.add_row(*(_cell(row.get(column)) for column in columns))
        console.print(grid)


out = Out()
