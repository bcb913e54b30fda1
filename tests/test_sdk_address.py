from __future__ import annotations

import pytest

from nextid_sdk.crypto.address import (
    derive_address,
    is_checksum_address,
    parse_address,
    to_checksum_address,
)
from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.errors import MalformedInputError

KEY_ONE_ADDRESS = "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"


def test_derive_address_for_secret_key_one() -> None:
    keypair = Secp256k1KeyPair.from_secret_hex("00" * 31 + "01")
    address = derive_address(keypair)
    assert len(address) == 20
    assert address == parse_address(KEY_ONE_ADDRESS)
    assert to_checksum_address(address) == KEY_ONE_ADDRESS


def test_derive_address_ignores_public_key_encoding() -> None:
    keypair = Secp256k1KeyPair.generate()
    compressed = Secp256k1KeyPair.from_public_hex(keypair.public_key_hex())
    uncompressed = Secp256k1KeyPair.from_public_hex(keypair.public_key_hex(compressed=False))
    assert derive_address(compressed) == derive_address(uncompressed) == derive_address(keypair)


def test_checksum_detection() -> None:
    assert is_checksum_address(KEY_ONE_ADDRESS) is True
    assert is_checksum_address(KEY_ONE_ADDRESS.lower()) is False
    assert is_checksum_address("0x1234") is False


@pytest.mark.parametrize("value", ["0x1234", "not-hex", "0x" + "00" * 21])
def test_parse_address_rejects_malformed_values(value: str) -> None:
    with pytest.raises(MalformedInputError):
        parse_address(value)
