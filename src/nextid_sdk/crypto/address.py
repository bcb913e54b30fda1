"""Ethereum address derivation from secp256k1 public keys."""

from __future__ import annotations

from nextid_sdk.crypto.hashing import keccak256
from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.errors import MalformedInputError
from nextid_sdk.util import hex_decode, strip_hex_prefix

ADDRESS_LEN = 20


def derive_address(keypair: Secp256k1KeyPair) -> bytes:
    """Return the low 20 bytes of keccak256(uncompressed point without 0x04)."""
    uncompressed = keypair.public_key_bytes(compressed=False)
    return keccak256(uncompressed[1:])[-ADDRESS_LEN:]


def parse_address(value: str) -> bytes:
    address = hex_decode(value)
    if len(address) != ADDRESS_LEN:
        raise MalformedInputError(f"address must be {ADDRESS_LEN} bytes, got {len(address)}")
    return address


def to_checksum_address(address: bytes | str) -> str:
    """EIP-55 mixed-case hex encoding."""
    raw = parse_address(address) if isinstance(address, str) else address
    if len(raw) != ADDRESS_LEN:
        raise MalformedInputError(f"address must be {ADDRESS_LEN} bytes, got {len(raw)}")
    lowered = raw.hex()
    address_hash = keccak256(lowered.encode("ascii")).hex()
    return "0x" + "".join(
        char.upper() if int(address_hash[index], 16) >= 8 else char
        for index, char in enumerate(lowered)
    )


def is_checksum_address(value: str) -> bool:
    try:
        return to_checksum_address(value)[2:] == strip_hex_prefix(value)
    except MalformedInputError:
        return False
