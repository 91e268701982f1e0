"""Application context management for the CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from rich.logging import RichHandler

from deltashare.cli.common.exits import INPUT_ERROR, exit_from_exc
from deltashare.cli.common.output import err_console
from deltashare.core.client import SharingClient
from deltashare.core.errors import DeltaSharingError


@dataclass
class ShareAppContext:
    """Application context holding the profile path and sharing client."""

    profile: Path
    client: SharingClient


def configure_logging(verbose: bool) -> None:
    """Route library logging through Rich; debug level when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def build_share_context(profile: Path, *, max_pages: int | None = None) -> ShareAppContext:
    """Build the application context, exiting cleanly on unreadable profiles.

    Args:
        profile: Path to the share profile file.
        max_pages: Optional cap on pages per listing.

    Returns:
        ShareAppContext: Application context with a configured client.
    """
    try:
        client = SharingClient(profile, max_pages=max_pages)
    except OSError as exc:
        exit_from_exc(exc, message=f"Cannot read profile '{profile}': {exc.strerror}", code=INPUT_ERROR)
    except DeltaSharingError as exc:
        exit_from_exc(exc, message=f"Invalid profile '{profile}': {exc}", code=INPUT_ERROR)
    return ShareAppContext(profile=profile, client=client)
