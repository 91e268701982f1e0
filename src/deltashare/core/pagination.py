"""Cursor pagination for listing endpoints.

Listing endpoints return one page of items plus an optional continuation
token. This module drives the request loop until the server stops handing out
tokens. Pages are fetched strictly one after another because each request
depends on the previous page's token.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol, Sequence, TypeVar

from deltashare.core.errors import PaginationLimitExceeded

logger = logging.getLogger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Page(Protocol[T_co]):
    """One page of a listing response."""

    @property
    def items(self) -> Sequence[T_co]: ...

    @property
    def next_page_token(self) -> str | None: ...


def fetch_all_pages(
    fetch_page: Callable[[str | None], Page[T]],
    *,
    max_pages: int | None = None,
) -> list[T]:
    """
    Collect every item of a paginated listing.

    `fetch_page` is called with `None` first and then with each token the
    server returns, until a page arrives without a token. An empty listing is
    a valid result.

    Args:
        fetch_page: Callable issuing one page request for a given token.
        max_pages: Optional cap on the number of requests. Without it the loop
            runs until the server ends the listing.

    Returns:
        All items across all pages, in page order.

    Raises:
        PaginationLimitExceeded: If `max_pages` pages were fetched and the
            server still returned a continuation token.
        ValueError: If `max_pages` is not positive.
    """
    if max_pages is not None and max_pages < 1:
        raise ValueError("max_pages must be >= 1")

    items: list[T] = []
    page_token: str | None = None
    pages = 0

    while True:
        page = fetch_page(page_token)
        pages += 1
        items.extend(page.items)
        page_token = page.next_page_token or None
        logger.debug("Fetched page %d (%d item(s)), more=%s", pages, len(page.items), bool(page_token))

        if page_token is None:
            return items
        if max_pages is not None and pages >= max_pages:
            raise PaginationLimitExceeded(max_pages)
