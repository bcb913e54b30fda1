"""Encoding and timestamp helpers shared by the SDK."""

from __future__ import annotations

import base64
import binascii
import re
from datetime import datetime, timezone

from nextid_sdk.errors import MalformedInputError


def strip_hex_prefix(value: str) -> str:
    value = value.strip()
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def hex_decode(value: str) -> bytes:
    try:
        return bytes.fromhex(strip_hex_prefix(value))
    except ValueError as exc:
        raise MalformedInputError(
            f"invalid hex string ({len(strip_hex_prefix(value))} characters)"
        ) from exc


def hex_encode(data: bytes, *, prefix: bool = True) -> str:
    encoded = data.hex()
    return f"0x{encoded}" if prefix else encoded


def b64_encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64_decode(value: str) -> bytes:
    try:
        return base64.b64decode(value.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedInputError("invalid base64") from exc


_UNIX_SECONDS = re.compile(r"-?[0-9]+")


def parse_timestamp(value: int | str) -> datetime:
    """Parse unix seconds (int or numeric string) into an aware UTC datetime."""
    if isinstance(value, bool):
        raise MalformedInputError("timestamp must be unix seconds")
    if isinstance(value, str):
        stripped = value.strip()
        if not _UNIX_SECONDS.fullmatch(stripped):
            raise MalformedInputError(f"timestamp must be unix seconds: {value!r}")
        value = int(stripped)
    if not isinstance(value, int):
        raise MalformedInputError("timestamp must be unix seconds")
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedInputError(f"timestamp out of range: {value}") from exc


def format_timestamp(moment: datetime) -> str:
    return str(int(moment.timestamp()))
