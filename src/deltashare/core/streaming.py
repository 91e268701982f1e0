"""Decoding of newline-delimited table responses.

The metadata and query endpoints answer with one JSON object per line. Each
line carries exactly one of three tags: `protocol`, `metaData` or `file`.
Lines are classified by tag and decoded into the matching protocol model.
File lines keep their arrival order, which later determines row order.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from deltashare.core.errors import MalformedRecord
from deltashare.core.protocol import AddFile, Metadata, Protocol


class LineKind(str, Enum):
    """
    Kind of a single response line.

    Values:
        PROTOCOL: Reader-compatibility line (`protocol`).
        METADATA: Table metadata line (`metaData`).
        FILE: Data file pointer (`file`).
        UNRECOGNIZED: No tag, several tags, or not a JSON object.
    """

    PROTOCOL = "protocol"
    METADATA = "metaData"
    FILE = "file"
    UNRECOGNIZED = "unrecognized"


_TAGS = (LineKind.PROTOCOL, LineKind.METADATA, LineKind.FILE)


@dataclass(frozen=True)
class StreamedTableResponse:
    """
    Decoded content of a metadata or query response.

    Attributes:
        protocol: The protocol line, or None when the server omitted it.
        metadata: The metadata line, or None when the server omitted it.
        add_files: File pointers in the order the server sent them.
    """

    protocol: Protocol | None
    metadata: Metadata | None
    add_files: tuple[AddFile, ...] = ()


def classify_line(record: Any) -> LineKind:
    """Return the kind of a decoded response line."""
    if not isinstance(record, Mapping):
        return LineKind.UNRECOGNIZED
    present = [tag for tag in _TAGS if tag.value in record]
    if len(present) != 1:
        return LineKind.UNRECOGNIZED
    return present[0]


def parse_streamed_response(body: str | bytes) -> StreamedTableResponse:
    """
    Parse a newline-delimited response body.

    Blank lines are skipped. Any line that is not valid JSON, or that does
    not carry exactly one known tag, fails the whole parse so no data is
    silently dropped. A second protocol or metadata line is rejected too.

    Returns:
        A StreamedTableResponse. Missing protocol or metadata are reported as
        None; whether that is fatal is up to the caller.

    Raises:
        MalformedRecord: On any undecodable or unrecognized line.
    """
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedRecord(
                "Response body is not valid UTF-8", text=body.decode("utf-8", errors="replace")
            ) from exc

    protocol: Protocol | None = None
    metadata: Metadata | None = None
    add_files: list[AddFile] = []

    # Records end at "\n" only. JSON strings may hold raw U+2028 or U+0085.
    for line in body.split("\n"):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except ValueError as exc:
            raise MalformedRecord("Invalid JSON line in response", text=line) from exc

        kind = classify_line(record)
        if kind is LineKind.UNRECOGNIZED:
            raise MalformedRecord("Unrecognized response line", text=line)

        payload = record[kind.value]
        if not isinstance(payload, Mapping):
            raise MalformedRecord(f"'{kind.value}' must hold a JSON object", text=line)

        if kind is LineKind.PROTOCOL:
            if protocol is not None:
                raise MalformedRecord("Duplicate protocol line in response", text=line)
            protocol = Protocol.from_json(payload)
        elif kind is LineKind.METADATA:
            if metadata is not None:
                raise MalformedRecord("Duplicate metaData line in response", text=line)
            metadata = Metadata.from_json(payload)
        else:
            add_files.append(AddFile.from_json(payload))

    return StreamedTableResponse(
        protocol=protocol,
        metadata=metadata,
        add_files=tuple(add_files),
    )
