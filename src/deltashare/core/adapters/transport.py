from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from deltashare.core.auth import DeltaSharingProfile
from deltashare.core.errors import MalformedRecord, TransportError

logger = logging.getLogger(__name__)

CLIENT_VERSION = "0.1.0"
USER_AGENT = f"Delta-Sharing-Python/{CLIENT_VERSION}"


@dataclass(frozen=True)
class TransportResponse:
    """Raw outcome of one HTTP request."""

    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class Transport(Protocol):
    """Interface for issuing one HTTP request against the sharing server."""

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Mapping[str, Any] | None = None,
    ) -> TransportResponse:
        """Send a request and return its status and body, or raise TransportError."""
        ...


class RequestsTransport:
    """Transport backed by a shared `requests.Session`."""

    _TIMEOUT_ENV = "DELTA_SHARING_TIMEOUT"
    _RETRIES_ENV = "DELTA_SHARING_NUM_RETRIES"
    _DEFAULT_TIMEOUT_SECONDS = 120.0
    _DEFAULT_NUM_RETRIES = 10

    def __init__(
        self,
        profile: DeltaSharingProfile,
        *,
        timeout: float | None = None,
        num_retries: int | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Create a transport bound to the profile's endpoint and token."""
        self.endpoint = profile.endpoint
        self.timeout = timeout if timeout is not None else self._timeout_seconds()
        self.num_retries = num_retries if num_retries is not None else self._num_retries()
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {profile.bearer_token}",
                "User-Agent": USER_AGENT,
            }
        )
        if self.num_retries > 0:
            retry = Retry(
                total=self.num_retries,
                backoff_factor=0.5,
                status_forcelist=(429, 502, 503, 504),
                allowed_methods=None,
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry)
            self.session.mount("https://", adapter)
            self.session.mount("http://", adapter)

    @classmethod
    def _timeout_seconds(cls) -> float:
        """Return the request timeout, honoring env override."""
        raw = os.getenv(cls._TIMEOUT_ENV)
        if raw is None:
            return cls._DEFAULT_TIMEOUT_SECONDS
        try:
            value = float(raw)
        except ValueError:
            return cls._DEFAULT_TIMEOUT_SECONDS
        return value if value > 0 else cls._DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def _num_retries(cls) -> int:
        """Return the retry count, honoring env override."""
        raw = os.getenv(cls._RETRIES_ENV)
        if raw is None:
            return cls._DEFAULT_NUM_RETRIES
        try:
            return max(int(raw), 0)
        except ValueError:
            return cls._DEFAULT_NUM_RETRIES

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Mapping[str, Any] | None = None,
    ) -> TransportResponse:
        url = f"{self.endpoint}{path}"
        logger.debug("%s %s params=%s", method, url, params)
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        # Bodies are UTF-8 whatever charset the Content-Type names, if any.
        try:
            text = response.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedRecord(
                f"{method} {url} returned a body that is not valid UTF-8",
                text=response.content.decode("utf-8", errors="replace"),
            ) from exc
        return TransportResponse(status_code=response.status_code, text=text)
