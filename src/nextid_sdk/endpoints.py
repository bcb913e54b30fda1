"""Service base URLs."""

from __future__ import annotations

from enum import Enum

from nextid_sdk.errors import MalformedInputError


class Service(str, Enum):
    PROOF = "proof"
    KV = "kv"


class Endpoint(str, Enum):
    PRODUCTION = "production"
    STAGING = "staging"


_BASE_URLS: dict[tuple[Endpoint, Service], str] = {
    (Endpoint.PRODUCTION, Service.PROOF): "https://proof-service.next.id",
    (Endpoint.STAGING, Service.PROOF): "https://proof-service.nextnext.id",
    (Endpoint.PRODUCTION, Service.KV): "https://kv-service.next.id",
    (Endpoint.STAGING, Service.KV): "https://kv-service.nextnext.id",
}


def resolve_base_url(endpoint: Endpoint | str, service: Service) -> str:
    """Map a named endpoint to its service URL; other strings are custom base URLs."""
    if isinstance(endpoint, Endpoint):
        return _BASE_URLS[(endpoint, service)]
    value = endpoint.strip()
    if value.lower() in {item.value for item in Endpoint}:
        return _BASE_URLS[(Endpoint(value.lower()), service)]
    if not value.startswith(("http://", "https://")):
        raise MalformedInputError(f"custom endpoint must be an http(s) URL: {endpoint!r}")
    return value.rstrip("/")
