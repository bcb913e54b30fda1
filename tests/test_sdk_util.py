from __future__ import annotations

from datetime import datetime, timezone

import pytest

from nextid_sdk.endpoints import Endpoint, Service, resolve_base_url
from nextid_sdk.errors import MalformedInputError
from nextid_sdk.util import b64_decode, format_timestamp, hex_decode, parse_timestamp


def test_parse_timestamp_accepts_int_and_numeric_string() -> None:
    expected = datetime(2022, 4, 15, 5, 20, tzinfo=timezone.utc)
    assert parse_timestamp(1650000000) == expected
    assert parse_timestamp("1650000000") == expected
    assert format_timestamp(expected) == "1650000000"


@pytest.mark.parametrize(
    "value",
    [
        "",
        "12.5",
        "tomorrow",
        True,
        1.5,
        "--5",
        "²",
        "99999999999999999999",
        10**20,
    ],
)
def test_parse_timestamp_rejects_non_unix_seconds(value) -> None:
    with pytest.raises(MalformedInputError):
        parse_timestamp(value)


def test_hex_and_base64_errors_are_malformed_input() -> None:
    assert hex_decode("0xdeadBEEF") == bytes.fromhex("deadbeef")
    with pytest.raises(MalformedInputError):
        hex_decode("0xabc")
    with pytest.raises(MalformedInputError) as excinfo:
        hex_decode("0xdeadbeeg")
    assert "deadbeeg" not in str(excinfo.value)
    with pytest.raises(MalformedInputError):
        b64_decode("not base64!")


@pytest.mark.parametrize(
    "endpoint, service, expected",
    [
        (Endpoint.PRODUCTION, Service.PROOF, "https://proof-service.next.id"),
        ("Staging", Service.KV, "https://kv-service.nextnext.id"),
        ("https://proof.internal.example/", Service.PROOF, "https://proof.internal.example"),
    ],
)
def test_resolve_base_url(endpoint, service: Service, expected: str) -> None:
    assert resolve_base_url(endpoint, service) == expected


def test_resolve_base_url_rejects_unknown_names() -> None:
    with pytest.raises(MalformedInputError):
        resolve_base_url("moon", Service.PROOF)
