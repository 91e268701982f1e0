"""Error taxonomy for the sharing client.

Every error raised by the core derives from DeltaSharingError so frontends
can catch the whole family in one place. Errors propagate unchanged; the only
one the core ever recovers from is NotFound on the all-tables endpoint.
"""

from __future__ import annotations


class DeltaSharingError(Exception):
    """Base class for all sharing client errors."""


class UnsupportedVersion(DeltaSharingError):
    """Raised when a profile or table declares a version newer than supported."""


class MalformedRecord(DeltaSharingError):
    """Raised when a JSON record or response line cannot be decoded."""

    def __init__(self, message: str, text: str | None = None) -> None:
        self.text = text
        if text is not None:
            message = f"{message}: {text!r}"
        super().__init__(message)


class TransportError(DeltaSharingError):
    """Raised when a request fails at the connection or timeout level."""


class HTTPStatusError(DeltaSharingError):
    """Raised when the server answers with a non-success status code."""

    def __init__(self, status_code: int, body: str = "", *, path: str | None = None):
        self.status_code = status_code
        self.body = body
        self.path = path
        where = f" for {path}" if path else ""
        super().__init__(f"HTTP {status_code}{where}: {body.strip()[:200]}")


class NotFound(HTTPStatusError):
    """HTTP 404. Used to detect servers without the all-tables endpoint."""


class PartialFetchError(DeltaSharingError):
    """Raised when one of the concurrent file fetches fails."""

    def __init__(self, url: str, cause: BaseException | None = None) -> None:
        self.url = url
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        # Pre-signed URLs carry credentials in the query string.
        super().__init__(f"Failed to fetch data file {url.split('?', 1)[0]}{detail}")


class Cancelled(DeltaSharingError):
    """Raised when the caller aborts an operation or its deadline passes."""


class PaginationLimitExceeded(DeltaSharingError):
    """Raised when a listing still has pages left after the caller's page cap."""

    def __init__(self, max_pages: int) -> None:
        self.max_pages = max_pages
        super().__init__(
            f"Listing did not finish within {max_pages} page(s); "
            "the server kept returning a continuation token."
        )
