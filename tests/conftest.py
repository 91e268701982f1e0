from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

# Ensure tests always import the local src tree, not an older installed wheel.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))


@pytest.fixture
def profile_file(tmp_path: Path) -> Path:
    """A valid profile file on disk."""
    path = tmp_path / "open-datasets.share"
    path.write_text(
        json.dumps(
            {
                "shareCredentialsVersion": 1,
                "endpoint": "https://sharing.example.com/delta-sharing/",
                "bearerToken": "secret-token",
            }
        )
    )
    return path


def ndjson(*records: dict) -> str:
    """Build a newline-delimited response body."""
    return "".join(json.dumps(r) + "\n" for r in records)
