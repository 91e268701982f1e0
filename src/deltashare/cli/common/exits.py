"""Exit helpers shared by the sharing commands."""

from typing import NoReturn

import typer

from deltashare.cli.common.output import out

# Bad user input (unparsable names, unreadable profile).
INPUT_ERROR = 2


def warn_exit(msg: str, code: int = 0) -> NoReturn:
    """Stop with a warning, e.g. when a listing came back empty."""
    out.warn(msg)
    raise typer.Exit(code)


def exit_from_exc(exc: Exception, *, message: str, code: int = 1) -> NoReturn:
    """Report `message` and exit with `code`, keeping `exc` as the cause."""
    out.error(message)
    raise typer.Exit(code) from exc
