from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from deltashare.cli.common.context import (
    ShareAppContext,
    build_share_context,
    configure_logging,
)
from deltashare.cli.common.exits import INPUT_ERROR, exit_from_exc, warn_exit
from deltashare.cli.common.options import (
    JsonOpt,
    LimitOpt,
    MaxPagesOpt,
    ParallelOpt,
    PredicateHintOpt,
    ProfileOpt,
    TimeoutOpt,
    VerboseOpt,
)
from deltashare.cli.common.output import out
from deltashare.cli.tui import select_table
from deltashare.core.discovery import parse_schema_full_name, parse_table_full_name
from deltashare.core.errors import (
    Cancelled,
    DeltaSharingError,
    HTTPStatusError,
    NotFound,
    PartialFetchError,
    TransportError,
)
from deltashare.core.protocol import Share, Table

share_app = typer.Typer(
    help="Browse and read Delta Sharing tables.",
    no_args_is_help=False,
    invoke_without_command=True,
)


@share_app.callback()
def _init(
    ctx: typer.Context,
    profile: Path = ProfileOpt,
    max_pages: int | None = MaxPagesOpt,
    verbose: bool = VerboseOpt,
):
    """Initialize sharing client context."""
    configure_logging(verbose)
    ctx.obj = build_share_context(profile, max_pages=max_pages)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


def _parse_or_exit(parse, value: str):
    """Run a coordinate parser and turn ValueError into a CLI input error."""
    try:
        return parse(value)
    except (ValueError, DeltaSharingError) as exc:
        exit_from_exc(exc, message=str(exc), code=INPUT_ERROR)


def _exit_on_error(exc: DeltaSharingError, what: str) -> NoReturn:
    """Map core errors onto user-facing messages and exit."""
    if isinstance(exc, NotFound):
        exit_from_exc(exc, message=f"{what} does not exist.", code=1)
    if isinstance(exc, HTTPStatusError) and exc.status_code in (401, 403):
        exit_from_exc(exc, message=f"No permission to access {what}.", code=1)
    if isinstance(exc, TransportError):
        exit_from_exc(exc, message=f"Cannot reach the sharing server: {exc}", code=1)
    exit_from_exc(exc, message=str(exc), code=1)


@share_app.command("shares-list")
def shares_list(ctx: typer.Context):
    """List shares available with the profile."""
    appctx: ShareAppContext = ctx.obj

    try:
        with out.status("Loading shares..."):
            shares = appctx.client.list_shares()
    except DeltaSharingError as exc:
        _exit_on_error(exc, "Shares")

    if not shares:
        warn_exit("No shares found.")

    out.header("Shares")
    out.info(f"Shares: {len(shares)}")
    out.shares_table(shares)


@share_app.command("schemas-list")
def schemas_list(
    ctx: typer.Context,
    share: str = typer.Argument(..., help="Share name"),
):
    """List schemas in a share."""
    appctx: ShareAppContext = ctx.obj
    share_obj = _parse_or_exit(lambda name: Share(name=name.strip()), share)

    try:
        with out.status("Loading schemas..."):
            schemas = appctx.client.list_schemas(share_obj)
    except DeltaSharingError as exc:
        _exit_on_error(exc, f"Share '{share}'")

    if not schemas:
        warn_exit("No schemas found.")

    out.header("Schemas")
    out.info(f"Share: {share_obj.name} | Schemas: {len(schemas)}")
    out.schemas_table(schemas)


@share_app.command("tables-list")
def tables_list(
    ctx: typer.Context,
    schema: str = typer.Argument(..., help="Schema in the form share.schema"),
):
    """List tables in a schema."""
    appctx: ShareAppContext = ctx.obj
    schema_obj = _parse_or_exit(parse_schema_full_name, schema)

    try:
        with out.status("Loading tables..."):
            tables = appctx.client.list_tables(schema_obj)
    except DeltaSharingError as exc:
        _exit_on_error(exc, f"Schema '{schema}'")

    if not tables:
        warn_exit("No tables found.")

    out.header("Tables")
    out.info(f"Schema: {schema_obj.share}.{schema_obj.name} | Tables: {len(tables)}")
    out.tables_table(tables)


@share_app.command("tables-list-all")
def tables_list_all(ctx: typer.Context):
    """List every table in every share."""
    appctx: ShareAppContext = ctx.obj

    try:
        with out.status("Loading tables..."):
            tables = appctx.client.list_all_tables()
    except DeltaSharingError as exc:
        _exit_on_error(exc, "Tables")

    if not tables:
        warn_exit("No tables found.")

    out.header("Tables")
    out.info(f"Tables: {len(tables)}")
    out.tables_table(tables)


@share_app.command("metadata")
def metadata(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table in the form share.schema.table"),
):
    """Show protocol and metadata of a table."""
    appctx: ShareAppContext = ctx.obj
    table_obj = _parse_or_exit(parse_table_full_name, table)

    try:
        with out.status("Loading metadata..."):
            response = appctx.client.get_table_metadata(table_obj)
    except DeltaSharingError as exc:
        _exit_on_error(exc, f"Table '{table}'")

    meta = response.metadata
    out.header(table_obj.full_name)
    out.kv(
        {
            "minReaderVersion": response.protocol.min_reader_version,
            "id": meta.id,
            "name": meta.name,
            "description": meta.description,
            "format": meta.format.provider,
            "partitionColumns": ", ".join(meta.partition_columns) or "-",
        }
    )
    out.header("Schema")
    out.json_text(meta.schema_string or "{}")


@share_app.command("load")
def load(
    ctx: typer.Context,
    table: str | None = typer.Argument(
        None, help="Table in the form share.schema.table (prompted when omitted)"
    ),
    limit: int | None = LimitOpt,
    predicate_hint: list[str] = PredicateHintOpt,
    parallel: int = ParallelOpt,
    timeout: float | None = TimeoutOpt,
    as_json: bool = JsonOpt,
):
    """Read a table and print its rows."""
    appctx: ShareAppContext = ctx.obj

    if table:
        table_obj: Table = _parse_or_exit(parse_table_full_name, table)
    else:
        try:
            with out.status("Loading tables..."):
                tables = appctx.client.list_all_tables()
        except DeltaSharingError as exc:
            _exit_on_error(exc, "Tables")
        picked = select_table(tables)
        if picked is None:
            warn_exit("No table selected.")
        table_obj = picked

    try:
        with out.status(f"Reading {table_obj.full_name}..."):
            result = appctx.client.load_table(
                table_obj,
                limit=limit,
                predicate_hints=predicate_hint or None,
                max_workers=parallel,
                timeout=timeout,
            )
    except PartialFetchError as exc:
        exit_from_exc(exc, message=f"Reading a data file failed: {exc}", code=1)
    except Cancelled as exc:
        exit_from_exc(exc, message=str(exc), code=1)
    except DeltaSharingError as exc:
        _exit_on_error(exc, f"Table '{table_obj.full_name}'")

    if as_json:
        out.json(list(result.rows))
        return

    if not result.rows:
        warn_exit(f"Table {table_obj.full_name} returned no rows.")

    out.header(table_obj.full_name)
    out.info(f"Rows: {len(result.rows)}")
    out.rows_table(result.rows, result.columns, title="Rows")
