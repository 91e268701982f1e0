"""CLI application for Delta Sharing."""

import typer

from deltashare.cli.commands.sharing import share_app

app = typer.Typer(
    help="deltashare - browse and read Delta Sharing tables",
    no_args_is_help=True,
)

app.add_typer(share_app, name="share", help="List shares/schemas/tables and load table rows.")


if __name__ == "__main__":
    app()
