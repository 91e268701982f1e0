import io
from types import SimpleNamespace

import pyarrow as pa
import pyarrow.parquet as pq
import pytest
import requests

from deltashare.core.adapters.parquet import ParquetFileReader
from deltashare.core.errors import TransportError

DATA = pa.table({"id": [1, 2, 3], "name": ["a", "b", None]})
EXPECTED = [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}, {"id": 3, "name": None}]


def _parquet_bytes() -> bytes:
    sink = io.BytesIO()
    pq.write_table(DATA, sink)
    return sink.getvalue()


def test_read_rows_from_local_path(tmp_path):
    path = tmp_path / "part-0.parquet"
    pq.write_table(DATA, path)

    assert list(ParquetFileReader().read_rows(str(path))) == EXPECTED


def test_read_rows_from_file_url(tmp_path):
    path = tmp_path / "part-0.parquet"
    pq.write_table(DATA, path)

    assert list(ParquetFileReader(batch_size=1).read_rows(path.as_uri())) == EXPECTED


def test_read_rows_downloads_presigned_url(monkeypatch):
    reader = ParquetFileReader(timeout=5)
    payload = _parquet_bytes()
    calls = []

    def fake_get(url, **kwargs):
        calls.append((url, kwargs))
        return SimpleNamespace(content=payload, ok=True, status_code=200)

    monkeypatch.setattr(reader.session, "get", fake_get)

    rows = list(reader.read_rows("https://bucket.s3.amazonaws.com/part-0.parquet?X-Amz-Signature=abc"))

    assert rows == EXPECTED
    assert calls[0][1]["timeout"] == 5
    assert "Authorization" not in reader.session.headers


def test_read_rows_wraps_download_errors(monkeypatch):
    reader = ParquetFileReader()

    def fake_get(url, **kwargs):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(reader.session, "get", fake_get)

    with pytest.raises(TransportError, match="bucket.example.com/part-0.parquet"):
        list(reader.read_rows("https://bucket.example.com/part-0.parquet?sig=secret"))


def test_read_rows_rejects_error_status_without_leaking_signature(monkeypatch):
    reader = ParquetFileReader()
    monkeypatch.setattr(reader.session, "get", lambda url, **kwargs: SimpleNamespace(ok=False, status_code=403))

    with pytest.raises(TransportError, match="HTTP 403") as excinfo:
        list(reader.read_rows("https://bucket.example.com/part-0.parquet?sig=secret"))

    assert "secret" not in str(excinfo.value)
