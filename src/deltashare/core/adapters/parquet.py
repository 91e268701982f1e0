from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping, Protocol
from urllib.parse import unquote, urlparse

import pyarrow as pa
import pyarrow.parquet as pq
import requests

from deltashare.core.errors import TransportError

logger = logging.getLogger(__name__)


class ColumnarFileReader(Protocol):
    """Interface for turning one data file URL into row records."""

    def read_rows(self, url: str) -> Iterator[Mapping[str, Any]]:
        """Yield the rows of the file at `url` as column-name mappings."""
        ...


class ParquetFileReader:
    """
    Read Parquet data files referenced by pre-signed URLs.

    Remote files are downloaded with a plain `requests.Session` (pre-signed
    URLs must not carry the sharing server's bearer token). Local paths and
    `file://` URLs are opened directly.
    """

    def __init__(
        self,
        *,
        timeout: float = 120.0,
        batch_size: int = 65536,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self.batch_size = batch_size
        self.session = session or requests.Session()

    def _open(self, url: str) -> pa.NativeFile:
        """Open the file behind `url` as an Arrow input stream."""
        parsed = urlparse(url)
        if parsed.scheme in ("http", "https"):
            target = f"{parsed.netloc}{parsed.path}"
            try:
                response = self.session.get(url, timeout=self.timeout)
            except requests.exceptions.RequestException as exc:
                raise TransportError(f"GET {target} failed: {type(exc).__name__}") from exc
            if not response.ok:
                raise TransportError(f"GET {target} failed with HTTP {response.status_code}")
            logger.debug("Downloaded %d byte(s) from %s", len(response.content), parsed.path)
            return pa.BufferReader(response.content)
        if parsed.scheme == "file":
            return pa.OSFile(unquote(parsed.path), "rb")
        return pa.OSFile(url, "rb")

    def read_rows(self, url: str) -> Iterator[Mapping[str, Any]]:
        with self._open(url) as source:
            parquet_file = pq.ParquetFile(source)
            for batch in parquet_file.iter_batches(batch_size=self.batch_size):
                yield from batch.to_pylist()
