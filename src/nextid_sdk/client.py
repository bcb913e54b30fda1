"""Typed SDK clients for ProofService and KVService endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.endpoints import Endpoint, Service, resolve_base_url
from nextid_sdk.errors import RemoteRejectedError, SchemaValidationError, TransportFailureError
from nextid_sdk.schemas import (
    KVQueryIdentityResponse,
    KVQueryResponse,
    KVSingleProof,
    ProofQueryResponse,
)
from nextid_sdk.types import Platform, parse_platform

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def sdk_version() -> str:
    try:
        return pkg_version("nextid-sdk")
    except PackageNotFoundError:
        return "0.0.0+local"


def parse_response(model: type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise SchemaValidationError(f"unexpected {model.__name__} body: {exc}") from exc


@dataclass
class _ServiceClient:
    base_url: str
    timeout: float = 10.0
    retries: int = 2

    service_name = "service"

    def __post_init__(self) -> None:
        try:
            import requests
            from requests.adapters import HTTPAdapter
            from urllib3.util.retry import Retry
        except Exception as exc:  # pragma: no cover
            raise TransportFailureError(f"requests stack unavailable: {exc}") from exc

        self._requests = requests
        self._session = requests.Session()
        retry = Retry(
            total=max(0, int(self.retries)),
            connect=max(0, int(self.retries)),
            read=max(0, int(self.retries)),
            status=max(0, int(self.retries)),
            status_forcelist=(429, 502, 503, 504),
            backoff_factor=0.2,
            allowed_methods=("GET",),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)
        self._headers = {
            "Accept": "application/json",
            "User-Agent": f"NextID-SDK-Python/{sdk_version()}",
        }

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_payload: dict | None = None,
        params: dict | None = None,
    ) -> Any:
        url = self._url(path)
        logger.debug("%s %s %s", self.service_name, method, url)
        try:
            response = self._session.request(
                method,
                url,
                json=json_payload,
                params=params,
                headers=self._headers,
                timeout=self.timeout,
            )
        except self._requests.RequestException as exc:
            raise TransportFailureError(f"{self.service_name} unreachable: {exc}") from exc

        if not 200 <= response.status_code < 300:
            body: object | None
            try:
                body = response.json()
            except ValueError:
                body = response.text
            detail = body.get("message") if isinstance(body, dict) else None
            if isinstance(detail, str) and detail:
                message = f"{self.service_name} request failed: {response.status_code} {detail}"
            else:
                message = (
                    f"{self.service_name} request failed: {response.status_code} {response.text}"
                )
            logger.debug(
                "%s rejected %s %s: %s", self.service_name, method, url, response.status_code
            )
            raise RemoteRejectedError(message, status_code=response.status_code, body=body)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise SchemaValidationError(f"{self.service_name} returned a non-JSON body") from exc


@dataclass
class ProofServiceClient(_ServiceClient):
    service_name = "proof service"

    @classmethod
    def for_endpoint(cls, endpoint: Endpoint | str, **kwargs: Any) -> "ProofServiceClient":
        return cls(base_url=resolve_base_url(endpoint, Service.PROOF), **kwargs)

    def submit_payload_request(self, body: dict) -> dict:
        return self._request("POST", "/v1/proof/payload", json_payload=body)

    def submit_upload_request(self, body: dict) -> dict:
        return self._request("POST", "/v1/proof", json_payload=body)

    def find_by(self, platform: Platform | str, identity: str) -> ProofQueryResponse:
        """Fetch the first page of avatars bound to `identity` on `platform`."""
        platform = parse_platform(platform)
        data = self._request(
            "GET",
            "/v1/proof",
            params={"platform": platform.value, "identity": identity},
        )
        return parse_response(ProofQueryResponse, data)


@dataclass(frozen=True)
class KVAvatar:
    avatar: Secp256k1KeyPair
    content: Any


@dataclass
class KVServiceClient(_ServiceClient):
    service_name = "kv service"

    @classmethod
    def for_endpoint(cls, endpoint: Endpoint | str, **kwargs: Any) -> "KVServiceClient":
        return cls(base_url=resolve_base_url(endpoint, Service.KV), **kwargs)

    def submit_payload_request(self, body: dict) -> dict:
        return self._request("POST", "/v1/kv/payload", json_payload=body)

    def submit_upload_request(self, body: dict) -> dict:
        return self._request("POST", "/v1/kv", json_payload=body)

    def find_by_avatar(self, avatar: Secp256k1KeyPair) -> list[KVSingleProof]:
        data = self._request("GET", "/v1/kv", params={"avatar": avatar.public_key_hex()})
        return parse_response(KVQueryResponse, data).proofs

    def find_by_platform_identity(self, platform: Platform | str, identity: str) -> list[KVAvatar]:
        platform = parse_platform(platform)
        data = self._request(
            "GET",
            "/v1/kv/by_identity",
            params={"platform": platform.value, "identity": identity},
        )
        response = parse_response(KVQueryIdentityResponse, data)
        return [
            KVAvatar(avatar=Secp256k1KeyPair.from_public_hex(value.avatar), content=value.content)
            for value in response.values
        ]


__all__ = [
    "ProofServiceClient",
    "KVServiceClient",
    "KVAvatar",
    "parse_response",
    "sdk_version",
]
