"""Common CLI options for the CLI."""

import typer

ProfileOpt = typer.Option(
    ...,
    "--profile",
    "-p",
    envvar="DELTA_SHARING_PROFILE",
    help="Path to the share profile file (JSON credentials from the data provider)",
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log requests and file fetches",
)

LimitOpt = typer.Option(
    None,
    "--limit",
    "-l",
    min=0,
    help="Load only this many rows",
)

PredicateHintOpt = typer.Option(
    [],
    "--predicate-hint",
    help="Predicate hint sent to the server (e.g. \"date >= '2021-01-01'\"). This is reusable.",
    show_default=False,
)

ParallelOpt = typer.Option(
    8,
    "--parallel",
    "-n",
    min=1,
    help="Number of data files to fetch in parallel",
)

TimeoutOpt = typer.Option(
    None,
    "--timeout",
    help=(
        "Give up reading data files after this many seconds. Each download uses the "
        "same timeout, so the process may wait up to that long again for abandoned "
        "downloads before exiting"
    ),
)

JsonOpt = typer.Option(
    False,
    "--json",
    help="Print rows as JSON instead of a table",
)

MaxPagesOpt = typer.Option(
    None,
    "--max-pages",
    min=1,
    help="Stop listings that need more than this many pages",
)
