"""secp256k1 keypair with `personal_sign` signing and public key recovery.

Signatures are 65 bytes: r (32) || s (32) || recovery id (1). Recovery ids
27/28 produced by some wallets are normalized to 0/1 before recovery.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from coincurve import PrivateKey, PublicKey

from nextid_sdk.crypto.hashing import keccak256, personal_message_digest
from nextid_sdk.errors import (
    InvalidRecoveryIdError,
    MalformedInputError,
    NoSecretKeyError,
)
from nextid_sdk.util import hex_decode, hex_encode

SECRET_KEY_LEN = 32
COMPRESSED_PUBLIC_KEY_LEN = 33
UNCOMPRESSED_PUBLIC_KEY_LEN = 65
SIGNATURE_LEN = 65
_RECOVERY_ID_OFFSET = 27


class UnrecoverableSignatureError(MalformedInputError):
    """Well-formed signature from which no public key can be recovered."""


@dataclass(frozen=True)
class SignatureEnvelope:
    r: bytes
    s: bytes
    recovery_id: int

    @classmethod
    def from_bytes(cls, data: bytes) -> "SignatureEnvelope":
        if len(data) != SIGNATURE_LEN:
            raise MalformedInputError(
                f"signature must be {SIGNATURE_LEN} bytes, got {len(data)}"
            )
        return cls(
            r=bytes(data[:32]),
            s=bytes(data[32:64]),
            recovery_id=normalize_recovery_id(data[64]),
        )

    def to_bytes(self) -> bytes:
        return self.r + self.s + bytes([self.recovery_id])


def normalize_recovery_id(value: int) -> int:
    if value in (_RECOVERY_ID_OFFSET, _RECOVERY_ID_OFFSET + 1):
        value -= _RECOVERY_ID_OFFSET
    if value not in (0, 1):
        raise InvalidRecoveryIdError(f"invalid signature recovery id: {value}")
    return value


def _signature_bytes(signature: bytes | SignatureEnvelope) -> bytes:
    if isinstance(signature, SignatureEnvelope):
        return signature.to_bytes()
    return bytes(signature)


class Secp256k1KeyPair:
    """secp256k1 public key with an optional secret key."""

    def __init__(self, public_key: PublicKey, secret_key: PrivateKey | None = None) -> None:
        self._public_key = public_key
        self._secret_key = secret_key

    @classmethod
    def generate(cls, rng: Callable[[int], bytes] | None = None) -> "Secp256k1KeyPair":
        """Generate a keypair from the OS CSPRNG, or from `rng(n) -> bytes`."""
        if rng is None:
            secret = PrivateKey()
            return cls(secret.public_key, secret)
        while True:
            candidate = rng(SECRET_KEY_LEN)
            if len(candidate) != SECRET_KEY_LEN:
                raise MalformedInputError("rng must return 32 bytes")
            try:
                secret = PrivateKey(candidate)
            except ValueError:
                continue
            return cls(secret.public_key, secret)

    @classmethod
    def from_public_bytes(cls, data: bytes) -> "Secp256k1KeyPair":
        if len(data) not in (COMPRESSED_PUBLIC_KEY_LEN, UNCOMPRESSED_PUBLIC_KEY_LEN):
            raise MalformedInputError(
                f"public key must be 33 or 65 bytes, got {len(data)}"
            )
        try:
            public_key = PublicKey(bytes(data))
        except ValueError as exc:
            raise MalformedInputError("public key is not a valid secp256k1 point") from exc
        return cls(public_key)

    @classmethod
    def from_public_hex(cls, value: str) -> "Secp256k1KeyPair":
        return cls.from_public_bytes(hex_decode(value))

    @classmethod
    def from_secret_bytes(cls, data: bytes) -> "Secp256k1KeyPair":
        if len(data) != SECRET_KEY_LEN:
            raise MalformedInputError(f"secret key must be 32 bytes, got {len(data)}")
        try:
            secret = PrivateKey(bytes(data))
        except ValueError as exc:
            raise MalformedInputError("secret key scalar is out of range") from exc
        return cls(secret.public_key, secret)

    @classmethod
    def from_secret_hex(cls, value: str) -> "Secp256k1KeyPair":
        return cls.from_secret_bytes(hex_decode(value))

    @classmethod
    def recover_from_personal_signature(
        cls,
        signature: bytes | SignatureEnvelope,
        message: str,
    ) -> "Secp256k1KeyPair":
        """Recover the signer of a `personal_sign` signature over `message`."""
        envelope = SignatureEnvelope.from_bytes(_signature_bytes(signature))
        digest = personal_message_digest(message)
        try:
            public_key = PublicKey.from_signature_and_message(
                envelope.to_bytes(), digest, hasher=None
            )
        except ValueError as exc:
            raise UnrecoverableSignatureError("no public key recoverable from signature") from exc
        return cls(public_key)

    @property
    def public_key(self) -> PublicKey:
        return self._public_key

    @property
    def has_secret_key(self) -> bool:
        return self._secret_key is not None

    def refresh_public_key(self) -> "Secp256k1KeyPair":
        """Return a new keypair whose public key is re-derived from the secret key."""
        secret = self._require_secret()
        return type(self)(secret.public_key, secret)

    def public_key_bytes(self, *, compressed: bool = True) -> bytes:
        return self._public_key.format(compressed=compressed)

    def public_key_hex(self, *, compressed: bool = True) -> str:
        return hex_encode(self.public_key_bytes(compressed=compressed))

    def secret_key_hex(self) -> str:
        return hex_encode(self._require_secret().secret)

    def point(self) -> tuple[int, int]:
        return self._public_key.point()

    def same_public_key(self, other: "Secp256k1KeyPair") -> bool:
        return self.point() == other.point()

    def sign_personal(self, message: str) -> SignatureEnvelope:
        """`web3.eth.personal.sign` equivalent."""
        return self._sign_digest(personal_message_digest(message))

    def sign_hashed(self, message: bytes | str) -> SignatureEnvelope:
        """Sign keccak256(message) without the personal-message prefix."""
        return self._sign_digest(keccak256(message))

    def _sign_digest(self, digest: bytes) -> SignatureEnvelope:
        secret = self._require_secret()
        raw = secret.sign_recoverable(digest, hasher=None)
        return SignatureEnvelope.from_bytes(raw)

    def _require_secret(self) -> PrivateKey:
        if self._secret_key is None:
            raise NoSecretKeyError("keypair has no secret key")
        return self._secret_key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Secp256k1KeyPair):
            return NotImplemented
        return self.same_public_key(other)

    def __hash__(self) -> int:
        return hash(self.point())

    def __repr__(self) -> str:
        return (
            f"Secp256k1KeyPair(public_key={self.public_key_hex()}, "
            f"has_secret_key={self.has_secret_key})"
        )
