from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Sequence
from urllib.parse import quote

from deltashare.core.adapters.transport import Transport, TransportResponse
from deltashare.core.errors import HTTPStatusError, MalformedRecord, NotFound
from deltashare.core.protocol import (
    AddFile,
    Metadata,
    Protocol,
    Schema,
    Share,
    Table,
    load_record,
)
from deltashare.core.streaming import parse_streamed_response

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListSharesResponse:
    """One page of `GET /shares`."""

    items: tuple[Share, ...]
    next_page_token: str | None = None


@dataclass(frozen=True)
class ListSchemasResponse:
    """One page of `GET /shares/{share}/schemas`."""

    items: tuple[Schema, ...]
    next_page_token: str | None = None


@dataclass(frozen=True)
class ListTablesResponse:
    """One page of a table listing (per schema or across a share)."""

    items: tuple[Table, ...]
    next_page_token: str | None = None


@dataclass(frozen=True)
class QueryTableMetadataResponse:
    """Protocol and metadata of a table."""

    protocol: Protocol
    metadata: Metadata


@dataclass(frozen=True)
class ListFilesInTableResponse:
    """Protocol, metadata and file pointers returned by a table query."""

    protocol: Protocol | None
    metadata: Metadata | None
    add_files: tuple[AddFile, ...]


def _segment(value: str) -> str:
    """Percent-encode one path segment."""
    return quote(value, safe="")


def _table_path(table: Table) -> str:
    return (
        f"/shares/{_segment(table.share)}/schemas/{_segment(table.schema)}"
        f"/tables/{_segment(table.name)}"
    )


class SharingRestAdapter:
    """Adapter around the Delta Sharing REST endpoints (one method per endpoint)."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def _call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> TransportResponse:
        """Issue a request and map non-success statuses onto errors."""
        response = self.transport.request(method, path, params=params, json=body)
        if response.status_code == 404:
            raise NotFound(404, response.text, path=path)
        if not response.ok:
            raise HTTPStatusError(response.status_code, response.text, path=path)
        return response

    def _list(
        self,
        path: str,
        page_token: str | None,
        max_results: int | None,
    ) -> tuple[list[Any], str | None]:
        """Fetch one listing page and return its raw items and next token."""
        params: dict[str, Any] = {}
        if max_results is not None:
            params["maxResults"] = max_results
        if page_token is not None:
            params["pageToken"] = page_token
        response = self._call("GET", path, params=params or None)
        record = load_record(response.text)
        items = record.get("items") or []
        if not isinstance(items, list):
            raise MalformedRecord("'items' must be a JSON array", text=response.text)
        return items, record.get("nextPageToken")

    def list_shares(
        self, page_token: str | None = None, max_results: int | None = None
    ) -> ListSharesResponse:
        """List one page of shares."""
        items, token = self._list("/shares", page_token, max_results)
        return ListSharesResponse(
            items=tuple(Share.from_json(i) for i in items), next_page_token=token
        )

    def list_schemas(
        self,
        share: Share,
        page_token: str | None = None,
        max_results: int | None = None,
    ) -> ListSchemasResponse:
        """List one page of schemas in a share."""
        path = f"/shares/{_segment(share.name)}/schemas"
        items, token = self._list(path, page_token, max_results)
        return ListSchemasResponse(
            items=tuple(Schema.from_json(i) for i in items), next_page_token=token
        )

    def list_tables(
        self,
        schema: Schema,
        page_token: str | None = None,
        max_results: int | None = None,
    ) -> ListTablesResponse:
        """List one page of tables in a schema."""
        path = f"/shares/{_segment(schema.share)}/schemas/{_segment(schema.name)}/tables"
        items, token = self._list(path, page_token, max_results)
        return ListTablesResponse(
            items=tuple(Table.from_json(i) for i in items), next_page_token=token
        )

    def list_all_tables(
        self,
        share: Share,
        page_token: str | None = None,
        max_results: int | None = None,
    ) -> ListTablesResponse:
        """List one page of tables across every schema of a share."""
        path = f"/shares/{_segment(share.name)}/all-tables"
        items, token = self._list(path, page_token, max_results)
        return ListTablesResponse(
            items=tuple(Table.from_json(i) for i in items), next_page_token=token
        )

    def query_table_metadata(self, table: Table) -> QueryTableMetadataResponse:
        """Return the protocol and metadata of a table."""
        response = self._call("GET", f"{_table_path(table)}/metadata")
        parsed = parse_streamed_response(response.text)
        if parsed.protocol is None or parsed.metadata is None:
            raise MalformedRecord(
                f"Metadata response for {table.full_name} lacks protocol or metaData",
                text=response.text,
            )
        return QueryTableMetadataResponse(protocol=parsed.protocol, metadata=parsed.metadata)

    def list_files_in_table(
        self,
        table: Table,
        *,
        predicate_hints: Sequence[str] | None = None,
        limit_hint: int | None = None,
    ) -> ListFilesInTableResponse:
        """Query a table for its current file list, passing optional hints."""
        body: dict[str, Any] = {}
        if predicate_hints is not None:
            body["predicateHints"] = list(predicate_hints)
        if limit_hint is not None:
            body["limitHint"] = limit_hint
        logger.debug("Querying %s with %s", table.full_name, json.dumps(body))
        response = self._call("POST", f"{_table_path(table)}/query", body=body)
        parsed = parse_streamed_response(response.text)
        return ListFilesInTableResponse(
            protocol=parsed.protocol,
            metadata=parsed.metadata,
            add_files=parsed.add_files,
        )
