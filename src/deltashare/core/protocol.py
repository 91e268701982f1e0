"""Core protocol models for Delta Sharing.

These models represent the objects exchanged with a sharing server in a
simple, immutable form. Each one decodes from a JSON record (text or an
already-parsed mapping) and encodes back to the same wire shape. They are
intentionally free of HTTP and CLI concerns.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from deltashare.core.errors import MalformedRecord, UnsupportedVersion


def load_record(data: str | bytes | Mapping[str, Any]) -> Mapping[str, Any]:
    """Return `data` as a mapping, decoding JSON text when needed."""
    if isinstance(data, Mapping):
        return data
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        parsed = json.loads(data)
    except UnicodeDecodeError as exc:
        raise MalformedRecord("Record is not valid UTF-8", text=data.decode("utf-8", errors="replace")) from exc
    except (TypeError, ValueError) as exc:
        raise MalformedRecord("Invalid JSON record", text=str(data)) from exc
    if not isinstance(parsed, Mapping):
        raise MalformedRecord("Expected a JSON object", text=str(data))
    return parsed


def _require(record: Mapping[str, Any], key: str, kind: str) -> Any:
    """Fetch a required key or fail with MalformedRecord."""
    if record.get(key) is None:
        raise MalformedRecord(f"{kind} record is missing '{key}'", text=json.dumps(record))
    return record[key]


@dataclass(frozen=True)
class Share:
    """A named collection of schemas."""

    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise MalformedRecord("Share name must not be empty")

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> Share:
        record = load_record(data)
        return cls(name=_require(record, "name", "Share"))

    def to_json(self) -> dict[str, Any]:
        return {"name": self.name}


@dataclass(frozen=True)
class Schema:
    """A named collection of tables within a share."""

    name: str
    share: str

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> Schema:
        record = load_record(data)
        return cls(
            name=_require(record, "name", "Schema"),
            share=_require(record, "share", "Schema"),
        )

    def to_json(self) -> dict[str, Any]:
        return {"name": self.name, "share": self.share}


@dataclass(frozen=True)
class Table:
    """A queryable dataset, identified by share, schema and table name."""

    name: str
    share: str
    schema: str

    def __post_init__(self) -> None:
        if not self.name or not self.share or not self.schema:
            raise MalformedRecord(
                f"Table requires share, schema and name (got {self.full_name!r})"
            )

    @property
    def full_name(self) -> str:
        """Return `share.schema.table`."""
        return f"{self.share}.{self.schema}.{self.name}"

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> Table:
        record = load_record(data)
        return cls(
            name=record.get("name") or "",
            share=record.get("share") or "",
            schema=record.get("schema") or "",
        )

    def to_json(self) -> dict[str, Any]:
        return {"name": self.name, "share": self.share, "schema": self.schema}


@dataclass(frozen=True)
class Protocol:
    """Reader-compatibility marker for a table."""

    CURRENT = 1

    min_reader_version: int

    def __post_init__(self) -> None:
        if self.min_reader_version > Protocol.CURRENT:
            raise UnsupportedVersion(
                f"The table requires a newer version {self.min_reader_version} to read. "
                f"But the current release supports version {Protocol.CURRENT} and below. "
                "Please upgrade to a newer release."
            )

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> Protocol:
        record = load_record(data)
        version = _require(record, "minReaderVersion", "Protocol")
        if not isinstance(version, int) or isinstance(version, bool):
            raise MalformedRecord("minReaderVersion must be an integer", text=json.dumps(record))
        return cls(min_reader_version=version)

    def to_json(self) -> dict[str, Any]:
        return {"minReaderVersion": self.min_reader_version}


@dataclass(frozen=True)
class Format:
    """Physical file format descriptor."""

    provider: str = "parquet"
    options: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> Format:
        record = load_record(data)
        return cls(
            provider=record.get("provider") or "parquet",
            options=dict(record.get("options") or {}),
        )

    def to_json(self) -> dict[str, Any]:
        return {"provider": self.provider, "options": dict(self.options)}


@dataclass(frozen=True)
class Metadata:
    """Table schema and partitioning descriptor."""

    id: str | None = None
    name: str | None = None
    description: str | None = None
    format: Format = field(default_factory=Format)
    schema_string: str = ""
    partition_columns: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> Metadata:
        record = load_record(data)
        fmt = record.get("format")
        return cls(
            id=record.get("id"),
            name=record.get("name"),
            description=record.get("description"),
            format=Format.from_json(fmt) if fmt is not None else Format(),
            schema_string=record.get("schemaString") or "",
            partition_columns=tuple(record.get("partitionColumns") or ()),
        )

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "format": self.format.to_json(),
            "schemaString": self.schema_string,
            "partitionColumns": list(self.partition_columns),
        }
        if self.name is not None:
            out["name"] = self.name
        if self.description is not None:
            out["description"] = self.description
        return out


@dataclass(frozen=True)
class AddFile:
    """Pointer to one remote data file backing a table."""

    url: str
    id: str
    partition_values: Mapping[str, str | None] = field(default_factory=dict)
    size: int = 0
    stats: str | None = None

    def __post_init__(self) -> None:
        if not self.url:
            raise MalformedRecord(f"AddFile {self.id!r} has an empty url")

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> AddFile:
        record = load_record(data)
        return cls(
            url=record.get("url") or "",
            id=_require(record, "id", "AddFile"),
            partition_values=dict(record.get("partitionValues") or {}),
            size=int(record.get("size") or 0),
            stats=record.get("stats"),
        )

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "url": self.url,
            "id": self.id,
            "partitionValues": dict(self.partition_values),
            "size": self.size,
        }
        if self.stats is not None:
            out["stats"] = self.stats
        return out


def parse_url(url: str) -> tuple[str, str, str, str]:
    """
    Split a shared table URL into its parts.

    The URL has the form `<profile>#<share>.<schema>.<table>` where `<profile>`
    is the path to a profile file. The profile path may itself contain `#`,
    so the split happens on the last one.

    Returns:
        A tuple `(profile, share, schema, table)`.

    Raises:
        ValueError: If the URL does not follow the expected format.
    """
    profile, sep, coordinates = url.rpartition("#")
    if not sep:
        raise ValueError(f"Invalid 'url': {url}")
    parts = coordinates.split(".")
    if len(parts) != 3:
        raise ValueError(f"Invalid 'url': {url}")
    share, schema, table = parts
    if not profile or not share or not schema or not table:
        raise ValueError(f"Invalid 'url': {url}")
    return profile, share, schema, table
