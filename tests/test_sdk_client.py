from __future__ import annotations

import json as jsonlib
import types

import pytest
import requests

from nextid_sdk.client import KVServiceClient, ProofServiceClient
from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.errors import RemoteRejectedError, SchemaValidationError, TransportFailureError

GENERATOR_COMPRESSED = "0x0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"


def _response(status_code: int, body=None, *, text: str | None = None):
    if text is None:
        text = "" if body is None else jsonlib.dumps(body)

    def _json():
        return jsonlib.loads(text)

    return types.SimpleNamespace(
        status_code=status_code,
        json=_json,
        text=text,
        content=text.encode("utf-8"),
    )


def _capture(monkeypatch, client, response):
    captured: dict[str, object] = {}

    def fake_request(method, url, *, json=None, params=None, headers=None, timeout=None):  # noqa: ANN001
        captured["method"] = method
        captured["url"] = url
        captured["json"] = json
        captured["params"] = params
        captured["headers"] = headers
        captured["timeout"] = timeout
        return response

    monkeypatch.setattr(client._session, "request", fake_request)
    return captured


def test_for_endpoint_resolves_named_base_urls() -> None:
    assert ProofServiceClient.for_endpoint("staging").base_url == "https://proof-service.nextnext.id"
    assert KVServiceClient.for_endpoint("production").base_url == "https://kv-service.next.id"
    custom = KVServiceClient.for_endpoint("http://localhost:9800/")
    assert custom.base_url == "http://localhost:9800"


def test_proof_payload_request_posts_json_body(monkeypatch) -> None:
    client = ProofServiceClient(base_url="http://localhost:9801", timeout=0.5)
    body = {"uuid": "u-1", "sign_payload": "{}", "created_at": "1650000000"}
    captured = _capture(monkeypatch, client, _response(200, body))

    result = client.submit_payload_request({"action": "create"})

    assert result == body
    assert captured["method"] == "POST"
    assert captured["url"] == "http://localhost:9801/v1/proof/payload"
    assert captured["json"] == {"action": "create"}
    assert captured["timeout"] == 0.5
    assert captured["headers"]["Accept"] == "application/json"
    assert captured["headers"]["User-Agent"].startswith("NextID-SDK-Python/")


def test_empty_success_body_returns_empty_dict(monkeypatch) -> None:
    client = ProofServiceClient(base_url="http://localhost:9801")
    captured = _capture(monkeypatch, client, _response(201))

    assert client.submit_upload_request({"uuid": "u-1"}) == {}
    assert captured["url"] == "http://localhost:9801/v1/proof"


def test_kv_client_uses_kv_paths(monkeypatch) -> None:
    client = KVServiceClient(base_url="http://localhost:9800")
    captured = _capture(monkeypatch, client, _response(200, {}))

    client.submit_payload_request({})
    assert captured["url"] == "http://localhost:9800/v1/kv/payload"
    client.submit_upload_request({})
    assert captured["url"] == "http://localhost:9800/v1/kv"


def test_non_success_status_raises_remote_rejected(monkeypatch) -> None:
    client = ProofServiceClient(base_url="http://localhost:9801")
    _capture(monkeypatch, client, _response(400, {"message": "signature invalid"}))

    with pytest.raises(RemoteRejectedError) as excinfo:
        client.submit_upload_request({})

    assert excinfo.value.status_code == 400
    assert excinfo.value.body == {"message": "signature invalid"}
    assert "signature invalid" in str(excinfo.value)


def test_non_json_error_body_is_kept_as_text(monkeypatch) -> None:
    client = ProofServiceClient(base_url="http://localhost:9801")
    _capture(monkeypatch, client, _response(502, text="<html>bad gateway</html>"))

    with pytest.raises(RemoteRejectedError) as excinfo:
        client.submit_payload_request({})

    assert excinfo.value.status_code == 502
    assert excinfo.value.body == "<html>bad gateway</html>"


def test_non_json_success_body_is_schema_error(monkeypatch) -> None:
    client = ProofServiceClient(base_url="http://localhost:9801")
    _capture(monkeypatch, client, _response(200, text="ok"))

    with pytest.raises(SchemaValidationError):
        client.submit_payload_request({})


def test_connection_error_raises_transport_failure(monkeypatch) -> None:
    client = KVServiceClient(base_url="http://localhost:9800")

    def fake_request(method, url, **kwargs):  # noqa: ANN001, ARG001
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(client._session, "request", fake_request)

    with pytest.raises(TransportFailureError):
        client.submit_payload_request({})


def test_proof_find_by_parses_query_response(monkeypatch) -> None:
    client = ProofServiceClient(base_url="http://localhost:9801")
    body = {
        "pagination": {"total": 1, "per": 20, "current": 1, "next": 0},
        "ids": [
            {
                "avatar": GENERATOR_COMPRESSED,
                "last_arweave_id": "",
                "proofs": [
                    {
                        "platform": "twitter",
                        "identity": "alice",
                        "created_at": "1650000000",
                        "last_checked_at": "1650000100",
                        "is_valid": True,
                        "invalid_reason": "",
                    }
                ],
            }
        ],
    }
    captured = _capture(monkeypatch, client, _response(200, body))

    result = client.find_by("twitter", "alice")

    assert captured["method"] == "GET"
    assert captured["params"] == {"platform": "twitter", "identity": "alice"}
    assert result.pagination.total == 1
    assert result.ids[0].avatar == GENERATOR_COMPRESSED
    assert result.ids[0].proofs[0].is_valid is True


def test_proof_find_by_rejects_unexpected_body(monkeypatch) -> None:
    client = ProofServiceClient(base_url="http://localhost:9801")
    _capture(monkeypatch, client, _response(200, {"ids": []}))

    with pytest.raises(SchemaValidationError):
        client.find_by("twitter", "alice")


def test_kv_find_by_avatar(monkeypatch) -> None:
    client = KVServiceClient(base_url="http://localhost:9800")
    avatar = Secp256k1KeyPair.from_public_hex(GENERATOR_COMPRESSED)
    body = {
        "avatar": GENERATOR_COMPRESSED,
        "proofs": [{"platform": "twitter", "identity": "alice", "content": {"name": "Alice"}}],
    }
    captured = _capture(monkeypatch, client, _response(200, body))

    proofs = client.find_by_avatar(avatar)

    assert captured["url"] == "http://localhost:9800/v1/kv"
    assert captured["params"] == {"avatar": GENERATOR_COMPRESSED}
    assert proofs[0].content == {"name": "Alice"}


def test_kv_find_by_platform_identity(monkeypatch) -> None:
    client = KVServiceClient(base_url="http://localhost:9800")
    body = {"values": [{"avatar": GENERATOR_COMPRESSED, "content": {"name": "Alice"}}]}
    captured = _capture(monkeypatch, client, _response(200, body))

    values = client.find_by_platform_identity("twitter", "alice")

    assert captured["url"] == "http://localhost:9800/v1/kv/by_identity"
    assert values[0].avatar == Secp256k1KeyPair.from_public_hex(GENERATOR_COMPRESSED)
    assert values[0].content == {"name": "Alice"}
