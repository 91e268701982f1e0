import json

import pytest

from deltashare.core.auth import DeltaSharingProfile, _sanitize_endpoint, resolve_profile
from deltashare.core.errors import MalformedRecord, UnsupportedVersion


def test_profile_strips_one_trailing_slash():
    profile = DeltaSharingProfile.from_json(
        '{"shareCredentialsVersion":1,"endpoint":"https://h/delta-sharing/","bearerToken":"t"}'
    )

    assert profile.endpoint == "https://h/delta-sharing"
    assert profile.bearer_token == "t"
    assert profile.share_credentials_version == 1
    assert profile.expiration_time is None


def test_sanitize_endpoint_strips_exactly_one_separator():
    assert _sanitize_endpoint("https://h/x//") == "https://h/x/"
    assert _sanitize_endpoint("https://h/x") == "https://h/x"


def test_profile_keeps_expiration_time():
    profile = DeltaSharingProfile.from_json(
        {
            "shareCredentialsVersion": 1,
            "endpoint": "https://h",
            "bearerToken": "t",
            "expirationTime": "2021-11-12T00:12:29.0Z",
        }
    )

    assert profile.expiration_time == "2021-11-12T00:12:29.0Z"
    assert profile.to_json()["expirationTime"] == "2021-11-12T00:12:29.0Z"


def test_profile_rejects_newer_version():
    with pytest.raises(UnsupportedVersion, match="too new"):
        DeltaSharingProfile.from_json(
            {"shareCredentialsVersion": 2, "endpoint": "https://h", "bearerToken": "t"}
        )


def test_profile_reports_missing_fields_without_leaking_token():
    with pytest.raises(MalformedRecord, match="endpoint") as excinfo:
        DeltaSharingProfile.from_json({"shareCredentialsVersion": 1, "bearerToken": "secret"})

    assert "secret" not in str(excinfo.value)


def test_profile_rejects_non_integer_version():
    with pytest.raises(MalformedRecord):
        DeltaSharingProfile.from_json(
            {"shareCredentialsVersion": "1", "endpoint": "https://h", "bearerToken": "t"}
        )


def test_profile_repr_masks_token():
    profile = DeltaSharingProfile(1, "https://h", "secret")

    assert "secret" not in repr(profile)


def test_read_from_file(profile_file):
    profile = DeltaSharingProfile.read_from_file(profile_file)

    assert profile.endpoint == "https://sharing.example.com/delta-sharing"
    assert profile.bearer_token == "secret-token"


def test_resolve_profile_passes_through_objects(profile_file):
    profile = DeltaSharingProfile(1, "https://h", "t")

    assert resolve_profile(profile) is profile
    assert resolve_profile(str(profile_file)).bearer_token == "secret-token"


def test_read_from_file_invalid_json(tmp_path):
    path = tmp_path / "bad.share"
    path.write_text("{oops")

    with pytest.raises(MalformedRecord):
        DeltaSharingProfile.read_from_file(path)


def test_profile_round_trip():
    record = {"shareCredentialsVersion": 1, "endpoint": "https://h", "bearerToken": "t"}

    assert DeltaSharingProfile.from_json(json.dumps(record)).to_json() == record
