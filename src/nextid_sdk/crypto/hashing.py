"""Keccak-256 digests used for personal-message signing and addresses."""

from __future__ import annotations

from eth_hash.auto import keccak

PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"


def keccak256(data: bytes | str) -> bytes:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return keccak(data)


def personal_message_bytes(message: str) -> bytes:
    """Build the prefixed payload for `personal_sign`.

    The decimal length is the UTF-8 byte length of `message`, not its
    code point count: "🐴🐮🐱" is prefixed with "12".
    """
    encoded = message.encode("utf-8")
    return PERSONAL_MESSAGE_PREFIX + str(len(encoded)).encode("ascii") + encoded


def personal_message_digest(message: str) -> bytes:
    return keccak256(personal_message_bytes(message))
