"""Profile handling for Delta Sharing servers.

This module centralizes loading of the share credentials (the "profile"
file handed out by a data provider) and applies the small normalization rules
the rest of the client relies on, such as sanitizing the endpoint URL.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from deltashare.core.errors import MalformedRecord, UnsupportedVersion
from deltashare.core.protocol import load_record


def _sanitize_endpoint(endpoint: str) -> str:
    """
    Normalize a sharing server endpoint.

    Removes exactly one trailing slash so that request paths (which always
    start with `/`) can be appended without producing `//`.
    """
    if endpoint.endswith("/"):
        return endpoint[:-1]
    return endpoint


@dataclass(frozen=True)
class DeltaSharingProfile:
    """
    Connection credentials for a sharing server.

    Attributes:
        share_credentials_version: Version of the profile file format.
        endpoint: Base URL of the sharing server, without a trailing slash.
        bearer_token: Token sent in the Authorization header.
        expiration_time: Optional ISO-8601 expiration of the token.
    """

    CURRENT = 1

    share_credentials_version: int
    endpoint: str
    bearer_token: str
    expiration_time: str | None = None

    def __post_init__(self) -> None:
        if self.share_credentials_version > DeltaSharingProfile.CURRENT:
            raise UnsupportedVersion(
                "'shareCredentialsVersion' in the profile is "
                f"{self.share_credentials_version} which is too new. The current release "
                f"supports version {DeltaSharingProfile.CURRENT} and below. "
                "Please upgrade to a newer release."
            )

    def __repr__(self) -> str:
        return (
            "DeltaSharingProfile("
            f"share_credentials_version={self.share_credentials_version}, "
            f"endpoint={self.endpoint!r}, bearer_token='***', "
            f"expiration_time={self.expiration_time!r})"
        )

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> DeltaSharingProfile:
        """Decode a profile from its JSON form."""
        record = load_record(data)
        missing = [
            key
            for key in ("shareCredentialsVersion", "endpoint", "bearerToken")
            if record.get(key) is None
        ]
        if missing:
            raise MalformedRecord(
                f"Profile is missing required field(s): {', '.join(missing)}",
                text=json.dumps({k: v for k, v in record.items() if k != "bearerToken"}),
            )
        version = record["shareCredentialsVersion"]
        if not isinstance(version, int) or isinstance(version, bool):
            raise MalformedRecord("'shareCredentialsVersion' must be an integer")
        return cls(
            share_credentials_version=version,
            endpoint=_sanitize_endpoint(str(record["endpoint"])),
            bearer_token=str(record["bearerToken"]),
            expiration_time=record.get("expirationTime"),
        )

    @classmethod
    def read_from_file(cls, profile: str | Path) -> DeltaSharingProfile:
        """Read and decode a profile file from disk."""
        return cls.from_json(Path(profile).expanduser().read_text(encoding="utf-8"))

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "shareCredentialsVersion": self.share_credentials_version,
            "endpoint": self.endpoint,
            "bearerToken": self.bearer_token,
        }
        if self.expiration_time is not None:
            out["expirationTime"] = self.expiration_time
        return out


def resolve_profile(profile: str | Path | DeltaSharingProfile) -> DeltaSharingProfile:
    """Return a profile object, reading it from disk when given a path."""
    if isinstance(profile, DeltaSharingProfile):
        return profile
    return DeltaSharingProfile.read_from_file(profile)
