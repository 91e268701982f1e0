"""Share, schema and table discovery.

This module holds the domain-level listing operations. Each one drains a
paginated endpoint through `fetch_all_pages`. `list_all_tables` prefers the
consolidated all-tables endpoint and falls back to walking shares, schemas
and tables when the server does not implement it.
"""

from __future__ import annotations

import logging
from typing import Protocol

from deltashare.core.adapters.sharing import (
    ListSchemasResponse,
    ListSharesResponse,
    ListTablesResponse,
)
from deltashare.core.errors import NotFound
from deltashare.core.pagination import fetch_all_pages
from deltashare.core.protocol import Schema, Share, Table

logger = logging.getLogger(__name__)


def parse_schema_full_name(schema_full_name: str) -> Schema:
    """Split `share.schema` into a Schema."""
    parts = schema_full_name.strip().split(".")
    if len(parts) != 2 or not all(parts):
        raise ValueError("Schema must be in the form `share.schema`.")
    share, schema = parts
    return Schema(name=schema, share=share)


def parse_table_full_name(table_full_name: str) -> Table:
    """Split `share.schema.table` into a Table."""
    parts = table_full_name.strip().split(".")
    if len(parts) != 3 or not all(parts):
        raise ValueError("Table must be in the form `share.schema.table`.")
    share, schema, name = parts
    return Table(name=name, share=share, schema=schema)


class ListingAdapter(Protocol):
    """Interface for the listing endpoints used by the discovery functions."""

    def list_shares(
        self, page_token: str | None = None, max_results: int | None = None
    ) -> ListSharesResponse: ...

    def list_schemas(
        self, share: Share, page_token: str | None = None, max_results: int | None = None
    ) -> ListSchemasResponse: ...

    def list_tables(
        self, schema: Schema, page_token: str | None = None, max_results: int | None = None
    ) -> ListTablesResponse: ...

    def list_all_tables(
        self, share: Share, page_token: str | None = None, max_results: int | None = None
    ) -> ListTablesResponse: ...


def list_shares(
    adapter: ListingAdapter,
    *,
    max_results: int | None = None,
    max_pages: int | None = None,
) -> list[Share]:
    """Return every share visible with the current profile."""
    return fetch_all_pages(
        lambda token: adapter.list_shares(page_token=token, max_results=max_results),
        max_pages=max_pages,
    )


def list_schemas(
    adapter: ListingAdapter,
    share: Share,
    *,
    max_results: int | None = None,
    max_pages: int | None = None,
) -> list[Schema]:
    """Return every schema in a share."""
    return fetch_all_pages(
        lambda token: adapter.list_schemas(share, page_token=token, max_results=max_results),
        max_pages=max_pages,
    )


def list_tables(
    adapter: ListingAdapter,
    schema: Schema,
    *,
    max_results: int | None = None,
    max_pages: int | None = None,
) -> list[Table]:
    """Return every table in a schema."""
    return fetch_all_pages(
        lambda token: adapter.list_tables(schema, page_token=token, max_results=max_results),
        max_pages=max_pages,
    )


def list_all_tables_in_share(
    adapter: ListingAdapter,
    share: Share,
    *,
    max_results: int | None = None,
    max_pages: int | None = None,
) -> list[Table]:
    """Return every table in a share using the all-tables endpoint."""
    return fetch_all_pages(
        lambda token: adapter.list_all_tables(share, page_token=token, max_results=max_results),
        max_pages=max_pages,
    )


def list_all_tables(
    adapter: ListingAdapter,
    *,
    max_results: int | None = None,
    max_pages: int | None = None,
) -> list[Table]:
    """
    Return every table in every share.

    The all-tables endpoint is tried share by share. If any of those calls
    answers 404 the server is assumed not to support it: tables collected so
    far are discarded and the whole listing is redone through the schema and
    table endpoints, for all shares. Other errors propagate unchanged.
    """
    shares = list_shares(adapter, max_results=max_results, max_pages=max_pages)

    tables: list[Table] = []
    try:
        for share in shares:
            tables.extend(
                list_all_tables_in_share(
                    adapter, share, max_results=max_results, max_pages=max_pages
                )
            )
        return tables
    except NotFound:
        logger.warning(
            "The sharing server does not support the all-tables API; "
            "falling back to listing schemas and tables."
        )

    schemas: list[Schema] = []
    for share in shares:
        schemas.extend(
            list_schemas(adapter, share, max_results=max_results, max_pages=max_pages)
        )

    tables = []
    for schema in schemas:
        tables.extend(
            list_tables(adapter, schema, max_results=max_results, max_pages=max_pages)
        )
    return tables
