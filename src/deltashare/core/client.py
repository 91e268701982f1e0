"""High-level client for Delta Sharing servers.

`SharingClient` bundles a profile, a REST adapter and the domain functions in
`discovery` and `reader` behind one object, for callers that do not want to
wire adapters themselves. `load_table` reads a table straight from a
`<profile>#<share>.<schema>.<table>` URL.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Sequence

from deltashare.core import discovery
from deltashare.core.adapters.parquet import ColumnarFileReader, ParquetFileReader
from deltashare.core.adapters.sharing import QueryTableMetadataResponse, SharingRestAdapter
from deltashare.core.adapters.transport import RequestsTransport
from deltashare.core.auth import DeltaSharingProfile, resolve_profile
from deltashare.core.protocol import Schema, Share, Table, parse_url
from deltashare.core.reader import DeltaSharingReader, MaterializedTable


def get_adapter(
    profile: str | Path | DeltaSharingProfile,
    *,
    timeout: float | None = None,
    num_retries: int | None = None,
) -> SharingRestAdapter:
    """
    Create a REST adapter for a profile.

    `profile` may be a profile object or the path of a profile file. Timeout
    and retry count default to the transport's environment-driven settings.
    """
    resolved = resolve_profile(profile)
    transport = RequestsTransport(resolved, timeout=timeout, num_retries=num_retries)
    return SharingRestAdapter(transport)


class SharingClient:
    """Client to list and read shared tables from a Delta Sharing server."""

    def __init__(
        self,
        profile: str | Path | DeltaSharingProfile,
        *,
        adapter: SharingRestAdapter | None = None,
        file_reader: ColumnarFileReader | None = None,
        max_pages: int | None = None,
    ) -> None:
        self.profile = resolve_profile(profile)
        self.adapter = adapter or get_adapter(self.profile)
        self.file_reader = file_reader
        self.max_pages = max_pages

    def list_shares(self) -> list[Share]:
        """List shares that can be accessed with this profile."""
        return discovery.list_shares(self.adapter, max_pages=self.max_pages)

    def list_schemas(self, share: Share) -> list[Schema]:
        """List schemas in a share."""
        return discovery.list_schemas(self.adapter, share, max_pages=self.max_pages)

    def list_tables(self, schema: Schema) -> list[Table]:
        """List tables in a schema."""
        return discovery.list_tables(self.adapter, schema, max_pages=self.max_pages)

    def list_all_tables(self) -> list[Table]:
        """List every table in every share."""
        return discovery.list_all_tables(self.adapter, max_pages=self.max_pages)

    def get_table_metadata(self, table: Table) -> QueryTableMetadataResponse:
        """Return protocol and metadata of a table."""
        return self.adapter.query_table_metadata(table)

    def reader(
        self,
        table: Table,
        *,
        max_workers: int = 8,
        file_reader: ColumnarFileReader | None = None,
    ) -> DeltaSharingReader:
        """Return a reader for a table."""
        return DeltaSharingReader(
            table,
            self.adapter,
            file_reader=file_reader or self.file_reader,
            max_workers=max_workers,
        )

    def load_table(
        self,
        table: Table,
        *,
        limit: int | None = None,
        predicate_hints: Sequence[str] | None = None,
        max_workers: int = 8,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> MaterializedTable:
        """
        Read a table into rows.

        With a `timeout` and no custom file reader, each data file download is
        bounded by the same timeout. Downloads still running when the read is
        cancelled are abandoned and end on their own.
        """
        file_reader = self.file_reader
        if file_reader is None and timeout is not None:
            file_reader = ParquetFileReader(timeout=timeout)
        reader = (
            self.reader(table, max_workers=max_workers, file_reader=file_reader)
            .predicate_hints(predicate_hints)
            .limit(limit)
        )
        return reader.materialize(timeout=timeout, cancel_event=cancel_event)


def load_table(
    url: str,
    *,
    limit: int | None = None,
    predicate_hints: Sequence[str] | None = None,
    file_reader: ColumnarFileReader | None = None,
) -> MaterializedTable:
    """
    Load a shared table from a URL.

    Args:
        url: A URL of the form `<profile>#<share>.<schema>.<table>`, where
            `<profile>` is the path of a profile file.
        limit: Optional non-negative row limit.
        predicate_hints: Optional filter expressions sent to the server.
        file_reader: Optional reader for data files (Parquet by default).

    Returns:
        The table rows and schema string.
    """
    profile_path, share, schema, name = parse_url(url)
    client = SharingClient(profile_path, file_reader=file_reader)
    return client.load_table(
        Table(name=name, share=share, schema=schema),
        limit=limit,
        predicate_hints=predicate_hints,
    )
