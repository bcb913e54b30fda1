"""SDK configuration loaded from TOML and environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from nextid_sdk.endpoints import Endpoint, Service, resolve_base_url
from nextid_sdk.errors import MalformedInputError

DEFAULT_CONFIG_PATH = Path.home() / ".nextid" / "config.toml"
PROOF_SERVICE_BASE_ENV_VAR = "NEXTID_PROOF_SERVICE_BASE"
KV_SERVICE_BASE_ENV_VAR = "NEXTID_KV_SERVICE_BASE"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_RETRIES = 2


@dataclass(frozen=True)
class SDKConfig:
    endpoint: str = Endpoint.PRODUCTION.value
    proof_service_base: str = resolve_base_url(Endpoint.PRODUCTION, Service.PROOF)
    kv_service_base: str = resolve_base_url(Endpoint.PRODUCTION, Service.KV)
    request_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    retries: int = DEFAULT_RETRIES


class ConfigError(ValueError):
    """Raised when SDK config is invalid."""


def _load_toml(path: Path) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
        try:
            return tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
    except ModuleNotFoundError:
        try:
            import tomli
        except ModuleNotFoundError as exc:
            raise ConfigError("toml parser unavailable; install tomli for Python < 3.11") from exc
        try:
            return tomli.loads(raw)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc


def _service_base(
    source: dict[str, Any],
    key: str,
    env_var: str,
    endpoint: str,
    service: Service,
) -> str:
    env_value = os.getenv(env_var)
    configured = source.get(key)
    raw = env_value.strip() if env_value else configured
    try:
        if raw is None:
            return resolve_base_url(endpoint, service)
        return resolve_base_url(str(raw), service)
    except MalformedInputError as exc:
        raise ConfigError(f"{key}: {exc}") from exc


def load_config(path: str | Path | None = None) -> SDKConfig:
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    parsed = _load_toml(config_path) if config_path.exists() else {}

    section = parsed.get("nextid")
    if isinstance(section, dict):
        source = section
    elif section is None:
        source = parsed
    else:
        raise ConfigError("[nextid] must be a table")

    endpoint = str(source.get("endpoint", Endpoint.PRODUCTION.value)).strip().lower()
    if not endpoint:
        raise ConfigError("endpoint must not be empty")

    proof_service_base = _service_base(
        source, "proof_service_base", PROOF_SERVICE_BASE_ENV_VAR, endpoint, Service.PROOF
    )
    kv_service_base = _service_base(
        source, "kv_service_base", KV_SERVICE_BASE_ENV_VAR, endpoint, Service.KV
    )

    try:
        timeout = float(source.get("request_timeout_seconds", DEFAULT_TIMEOUT_SECONDS))
    except (TypeError, ValueError) as exc:
        raise ConfigError("request_timeout_seconds must be a number") from exc
    if timeout <= 0:
        raise ConfigError("request_timeout_seconds must be > 0")

    retries = source.get("retries", DEFAULT_RETRIES)
    if isinstance(retries, bool) or not isinstance(retries, int) or retries < 0:
        raise ConfigError("retries must be an int >= 0")

    return SDKConfig(
        endpoint=endpoint,
        proof_service_base=proof_service_base,
        kv_service_base=kv_service_base,
        request_timeout_seconds=timeout,
        retries=retries,
    )
