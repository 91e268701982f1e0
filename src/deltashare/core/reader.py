"""Materialization of a shared table into rows.

A table query returns an ordered list of data file pointers. This module
fetches those files concurrently, decodes them into row records and joins the
results back together in file-list order. The operation is all-or-nothing:
one failed file fails the whole read and no partial rows are returned.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from deltashare.core.adapters.parquet import ColumnarFileReader, ParquetFileReader
from deltashare.core.adapters.sharing import ListFilesInTableResponse
from deltashare.core.errors import Cancelled, MalformedRecord, PartialFetchError
from deltashare.core.protocol import AddFile, Metadata, Table

logger = logging.getLogger(__name__)

_POLL_INTERVAL_SECONDS = 0.1


class FilesAdapter(Protocol):
    """Interface for the table query endpoint."""

    def list_files_in_table(
        self,
        table: Table,
        *,
        predicate_hints: Sequence[str] | None = None,
        limit_hint: int | None = None,
    ) -> ListFilesInTableResponse:
        """Return protocol, metadata and file pointers for a table."""
        ...


@dataclass(frozen=True)
class MaterializedTable:
    """
    Rows of a shared table plus its schema.

    Attributes:
        rows: Row records in file-list order.
        schema_string: Serialized table schema from the metadata line.
        metadata: Full metadata of the table.
    """

    rows: tuple[dict[str, Any], ...]
    schema_string: str
    metadata: Metadata | None = None

    @property
    def columns(self) -> list[str]:
        """Column names in first-seen order across all rows."""
        seen: dict[str, None] = {}
        for row in self.rows:
            for key in row:
                seen.setdefault(key, None)
        return list(seen)


def _read_file(file_reader: ColumnarFileReader, add_file: AddFile) -> list[dict[str, Any]]:
    """Read every row of one data file, adding partition values as columns."""
    rows: list[dict[str, Any]] = []
    for record in file_reader.read_rows(add_file.url):
        row = dict(record)
        for column, value in add_file.partition_values.items():
            row.setdefault(column, value)
        rows.append(row)
    logger.debug("Read %d row(s) from file %s", len(rows), add_file.id)
    return rows


def fetch_files_parallel(
    file_reader: ColumnarFileReader,
    add_files: Sequence[AddFile],
    max_workers: int,
    *,
    timeout: float | None = None,
    cancel_event: threading.Event | None = None,
) -> list[list[dict[str, Any]]]:
    """
    Read several data files concurrently.

    The call returns once every file has been read, or raises as soon as one
    read fails, the cancel event is set, or the timeout elapses. Queued reads
    are cancelled in those cases; reads already running are abandoned.

    Args:
        file_reader: Reader used for each file.
        add_files: Files to read.
        max_workers: Maximum number of files read at the same time.
        timeout: Optional overall deadline in seconds.
        cancel_event: Optional event that aborts the read when set.

    Returns:
        One row list per file, in the same order as `add_files`.

    Raises:
        PartialFetchError: If any file could not be read.
        Cancelled: If the caller cancelled or the deadline passed.
    """
    if max_workers < 1:
        raise ValueError("max_workers must be >= 1")
    if not add_files:
        return []

    deadline = time.monotonic() + timeout if timeout is not None else None
    results: list[list[dict[str, Any]] | None] = [None] * len(add_files)

    pool = ThreadPoolExecutor(
        max_workers=min(max_workers, len(add_files)),
        thread_name_prefix="deltashare-fetch",
    )
    try:
        index_by_future: dict[Future, int] = {
            pool.submit(_read_file, file_reader, add_file): i
            for i, add_file in enumerate(add_files)
        }
        pending = set(index_by_future)

        while pending:
            if cancel_event is not None and cancel_event.is_set():
                raise Cancelled("Table read was cancelled.")
            wait_for = _POLL_INTERVAL_SECONDS
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise Cancelled(f"Table read did not finish within {timeout} second(s).")
                wait_for = min(wait_for, remaining)

            done, pending = wait(pending, timeout=wait_for, return_when=FIRST_EXCEPTION)

            for future in sorted(done, key=index_by_future.__getitem__):
                i = index_by_future[future]
                exc = future.exception()
                if exc is not None:
                    raise PartialFetchError(add_files[i].url, exc) from exc
                results[i] = future.result()
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    return [rows if rows is not None else [] for rows in results]


class DeltaSharingReader:
    """
    Reader for one shared table.

    Instances are immutable: `predicate_hints()` and `limit()` return a new
    reader with the option changed.
    """

    def __init__(
        self,
        table: Table,
        adapter: FilesAdapter,
        *,
        file_reader: ColumnarFileReader | None = None,
        predicate_hints: Sequence[str] | None = None,
        limit: int | None = None,
        max_workers: int = 8,
    ) -> None:
        if limit is not None and limit < 0:
            raise ValueError("limit must be a non-negative integer")
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._table = table
        self._adapter = adapter
        self._file_reader = file_reader or ParquetFileReader()
        self._predicate_hints = tuple(predicate_hints) if predicate_hints is not None else None
        self._limit = limit
        self._max_workers = max_workers

    @property
    def table(self) -> Table:
        return self._table

    def predicate_hints(self, predicate_hints: Sequence[str] | None) -> DeltaSharingReader:
        """Return a copy of this reader with different predicate hints."""
        return self._copy(predicate_hints=predicate_hints, limit=self._limit)

    def limit(self, limit: int | None) -> DeltaSharingReader:
        """Return a copy of this reader with a different row limit."""
        return self._copy(predicate_hints=self._predicate_hints, limit=limit)

    def _copy(
        self, *, predicate_hints: Sequence[str] | None, limit: int | None
    ) -> DeltaSharingReader:
        return DeltaSharingReader(
            self._table,
            self._adapter,
            file_reader=self._file_reader,
            predicate_hints=predicate_hints,
            limit=limit,
            max_workers=self._max_workers,
        )

    def materialize(
        self,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> MaterializedTable:
        """
        Fetch the table and return its rows.

        Hints are passed to the server as advisory only; the row limit is
        always enforced here, on the concatenated rows.

        Raises:
            MalformedRecord: If the query response has no metadata line.
            PartialFetchError: If any data file could not be read.
            Cancelled: If the caller cancelled or the deadline passed.
        """
        response = self._adapter.list_files_in_table(
            self._table,
            predicate_hints=self._predicate_hints,
            limit_hint=self._limit,
        )
        if response.metadata is None:
            raise MalformedRecord(f"Query response for {self._table.full_name} has no metaData line")
        metadata = response.metadata

        if not response.add_files or self._limit == 0:
            return MaterializedTable(rows=(), schema_string=metadata.schema_string, metadata=metadata)

        logger.info(
            "Reading %d file(s) for %s", len(response.add_files), self._table.full_name
        )
        per_file = fetch_files_parallel(
            self._file_reader,
            response.add_files,
            self._max_workers,
            timeout=timeout,
            cancel_event=cancel_event,
        )
        rows = [row for file_rows in per_file for row in file_rows]
        if self._limit is not None:
            rows = rows[: self._limit]

        return MaterializedTable(
            rows=tuple(rows), schema_string=metadata.schema_string, metadata=metadata
        )
