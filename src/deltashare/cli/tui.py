"""Terminal UI utilities for the deltashare CLI."""

from __future__ import annotations

import questionary

from deltashare.cli.common.tui_style import QUESTIONARY_STYLE_TABLE_PICKER
from deltashare.core.protocol import Table

_MAX_TABLE_NAME_WIDTH = 96


def _truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def _table_choice_title(table: Table) -> str:
    """Format one table choice as `share.schema.table`."""
    return _truncate(table.full_name, _MAX_TABLE_NAME_WIDTH)


def select_table(tables: list[Table]) -> Table | None:
    """Display a select prompt to pick one table from a list.

    Args:
        tables: Tables to choose from.

    Returns:
        The picked table, or None if the list is empty or the prompt was cancelled.
    """
    if not tables:
        return None

    choices = [
        questionary.Choice(title=_table_choice_title(table), value=table)
        for table in tables
    ]

    return questionary.select(
        "Select a table:",
        choices=choices,
        style=QUESTIONARY_STYLE_TABLE_PICKER,
        qmark="✦",
        instruction="Use ↑/↓ then Enter",
    ).ask()
