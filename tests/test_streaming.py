import json

import pytest

from conftest import ndjson
from deltashare.core.errors import MalformedRecord, UnsupportedVersion
from deltashare.core.protocol import Protocol
from deltashare.core.streaming import LineKind, classify_line, parse_streamed_response

PROTOCOL = {"protocol": {"minReaderVersion": 1}}
METADATA = {
    "metaData": {
        "id": "x",
        "format": {"provider": "parquet"},
        "schemaString": "{}",
        "partitionColumns": [],
    }
}


def _file(url: str, file_id: str) -> dict:
    return {"file": {"url": url, "id": file_id, "partitionValues": {}, "size": 10}}


def test_parse_example_query_response():
    body = (
        '{"protocol":{"minReaderVersion":1}}\n'
        '{"metaData":{"id":"x","format":{"provider":"parquet"},"schemaString":"{}","partitionColumns":[]}}\n'
        '{"file":{"url":"u1","id":"a","partitionValues":{},"size":10}}\n'
    )

    parsed = parse_streamed_response(body)

    assert parsed.protocol == Protocol(min_reader_version=1)
    assert parsed.metadata is not None
    assert parsed.metadata.id == "x"
    assert parsed.metadata.schema_string == "{}"
    assert [f.url for f in parsed.add_files] == ["u1"]


def test_parse_keeps_file_arrival_order():
    body = ndjson(PROTOCOL, METADATA, _file("u3", "c"), _file("u1", "a"), _file("u2", "b"))

    parsed = parse_streamed_response(body)

    assert [f.url for f in parsed.add_files] == ["u3", "u1", "u2"]


def test_parse_skips_blank_lines_and_accepts_bytes():
    body = "\n  \n" + ndjson(PROTOCOL) + "\n\n" + ndjson(METADATA) + "\r\n"

    parsed = parse_streamed_response(body.encode("utf-8"))

    assert parsed.protocol is not None
    assert parsed.metadata is not None
    assert parsed.add_files == ()


def test_parse_reports_missing_protocol_and_metadata_as_none():
    parsed = parse_streamed_response(ndjson(_file("u1", "a")))

    assert parsed.protocol is None
    assert parsed.metadata is None
    assert len(parsed.add_files) == 1


def test_parse_empty_body():
    parsed = parse_streamed_response("")

    assert parsed.protocol is None
    assert parsed.metadata is None
    assert parsed.add_files == ()


def test_parse_fails_whole_response_on_bad_json_line():
    body = ndjson(PROTOCOL, METADATA) + "{broken\n" + ndjson(_file("u1", "a"))

    with pytest.raises(MalformedRecord) as excinfo:
        parse_streamed_response(body)

    assert excinfo.value.text == "{broken"


@pytest.mark.parametrize(
    "line",
    ['{"add": {}}', '{"protocol": {"minReaderVersion": 1}, "file": {}}', "[1]", '"text"'],
)
def test_parse_rejects_unrecognized_lines(line):
    with pytest.raises(MalformedRecord, match="Unrecognized"):
        parse_streamed_response(line + "\n")


def test_parse_rejects_duplicate_metadata():
    with pytest.raises(MalformedRecord, match="Duplicate metaData"):
        parse_streamed_response(ndjson(PROTOCOL, METADATA, METADATA))


def test_parse_rejects_non_object_payload():
    with pytest.raises(MalformedRecord):
        parse_streamed_response('{"file": "u1"}\n')


def test_parse_propagates_unsupported_protocol():
    with pytest.raises(UnsupportedVersion):
        parse_streamed_response(ndjson({"protocol": {"minReaderVersion": 3}}))


@pytest.mark.parametrize(
    ("record", "kind"),
    [
        (PROTOCOL, LineKind.PROTOCOL),
        (METADATA, LineKind.METADATA),
        (_file("u", "a"), LineKind.FILE),
        ({}, LineKind.UNRECOGNIZED),
        ({"metaData": {}, "file": {}}, LineKind.UNRECOGNIZED),
        (None, LineKind.UNRECOGNIZED),
    ],
)
def test_classify_line(record, kind):
    assert classify_line(record) is kind


@pytest.mark.parametrize("separator", ["\u2028", "\u2029", "\u0085"])
def test_unicode_line_separators_inside_strings_do_not_split_lines(separator):
    description = f"a{separator}b"
    metadata = {"metaData": {**METADATA["metaData"], "description": description}}
    partition_file = {"file": {"url": "u1", "id": "a", "partitionValues": {"p": description}, "size": 1}}
    body = "\n".join(json.dumps(r, ensure_ascii=False) for r in (PROTOCOL, metadata, partition_file)) + "\n"

    parsed = parse_streamed_response(body.encode("utf-8"))

    assert parsed.metadata.description == description
    assert parsed.add_files[0].partition_values == {"p": description}


def test_invalid_utf8_body_is_malformed():
    body = ndjson(PROTOCOL, METADATA).encode("utf-8") + b"\xff\n"

    with pytest.raises(MalformedRecord, match="not valid UTF-8") as excinfo:
        parse_streamed_response(body)

    assert "minReaderVersion" in excinfo.value.text
