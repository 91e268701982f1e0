"""Questionary / prompt_toolkit theme for the deltashare CLI.

The table picker is the only interactive prompt; its look lives here so it
stays in line with the Rich theme used for regular output.
"""

from __future__ import annotations

from prompt_toolkit.styles import Style

QUESTIONARY_STYLE_TABLE_PICKER = Style.from_dict(
    {
        "qmark": "bold ansicyan",
        "question": "bold ansicyan",
        "answer": "bold ansigreen",
        "pointer": "bold ansigreen",
        "highlighted": "bold ansigreen",
        "separator": "ansibrightblack",
        "instruction": "ansibrightblack",
        "error": "bold ansired",
    }
)
