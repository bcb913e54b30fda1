"""Command-line interface for nextid."""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from typing import Sequence

from nextid_sdk.client import KVServiceClient, ProofServiceClient, sdk_version
from nextid_sdk.config import ConfigError, SDKConfig, load_config
from nextid_sdk.crypto.address import derive_address, to_checksum_address
from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.errors import (
    MalformedInputError,
    NextIDSDKError,
    NoSecretKeyError,
    RemoteRejectedError,
    SchemaValidationError,
    TransportFailureError,
)
from nextid_sdk.util import b64_decode, b64_encode

EXIT_SUCCESS = 0
EXIT_VALIDATION_ERROR = 1
EXIT_NETWORK_ERROR = 2

_SENSITIVE_FIELDS = (
    "secret_key",
    "private_key",
    "secret",
    "token",
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nextid")
    parser.add_argument(
        "--version",
        action="version",
        version=f"nextid-sdk {sdk_version()}",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config TOML (default: ~/.nextid/config.toml)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log HTTP requests to stderr")

    sub = parser.add_subparsers(dest="command", required=True)

    version = sub.add_parser("version", help="Show SDK version and service endpoints")
    version.add_argument("--json", action="store_true", help="Print version details as JSON")

    keygen = sub.add_parser("keygen", help="Generate a new secp256k1 avatar keypair")
    keygen.add_argument("--json", action="store_true", help="Print keypair as JSON")

    sign = sub.add_parser("sign", help="personal_sign a message with a secret key")
    sign.add_argument("--secret-key", required=True, help="Hex secret key (with or without 0x)")
    sign.add_argument("message", help="Message to sign (usually a sign_payload)")

    recover = sub.add_parser("recover", help="Recover the signer of a personal_sign signature")
    recover.add_argument("--signature", required=True, help="Base64 65-byte signature")
    recover.add_argument("message", help="Message that was signed")

    address = sub.add_parser("address", help="Derive the Ethereum address of a public key")
    address.add_argument("public_key", help="Hex public key (33 or 65 bytes)")

    proof = sub.add_parser("proof", help="Query ProofService")
    proof_sub = proof.add_subparsers(dest="proof_command", required=True)
    proof_find = proof_sub.add_parser("find", help="Find avatars bound to a platform identity")
    proof_find.add_argument("--platform", required=True)
    proof_find.add_argument("--identity", required=True)

    kv = sub.add_parser("kv", help="Query KVService")
    kv_sub = kv.add_subparsers(dest="kv_command", required=True)
    kv_find = kv_sub.add_parser("find", help="Find KV records by avatar or platform identity")
    kv_find.add_argument("--avatar", default=None, help="Hex avatar public key")
    kv_find.add_argument("--platform", default=None)
    kv_find.add_argument("--identity", default=None)

    return parser


def _sanitize_error_text(value: str) -> str:
    redacted = value
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)({field}\s*[=:]\s*)([^,\s]+)",
            r"\1[REDACTED]",
            redacted,
        )
    return redacted


def _print_error(stderr, prefix: str, message: str, *, code: int) -> int:
    print(f"{prefix}: {_sanitize_error_text(message)}", file=stderr)
    return code


def _print_service_error(stderr, exc: NextIDSDKError) -> int:
    if isinstance(exc, RemoteRejectedError):
        return _print_error(stderr, "service error", str(exc), code=EXIT_NETWORK_ERROR)
    if isinstance(exc, (TransportFailureError, SchemaValidationError)):
        return _print_error(stderr, "network error", str(exc), code=EXIT_NETWORK_ERROR)
    return _print_error(stderr, "validation error", str(exc), code=EXIT_VALIDATION_ERROR)


def _run_version(*, config: SDKConfig, as_json: bool, stdout) -> int:
    payload = {
        "sdk_version": sdk_version(),
        "endpoint": config.endpoint,
        "proof_service_base": config.proof_service_base,
        "kv_service_base": config.kv_service_base,
    }
    if as_json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
    else:
        print(f"nextid-sdk {payload['sdk_version']}", file=stdout)
        print(f"proof service: {payload['proof_service_base']}", file=stdout)
        print(f"kv service: {payload['kv_service_base']}", file=stdout)
    return EXIT_SUCCESS


def _run_keygen(*, as_json: bool, stdout) -> int:
    keypair = Secp256k1KeyPair.generate()
    payload = {
        "public_key": keypair.public_key_hex(),
        "public_key_uncompressed": keypair.public_key_hex(compressed=False),
        "secret_key": keypair.secret_key_hex(),
        "address": to_checksum_address(derive_address(keypair)),
    }
    if as_json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
    else:
        print(f"public key: {payload['public_key']}", file=stdout)
        print(f"secret key: {payload['secret_key']}", file=stdout)
        print(f"address: {payload['address']}", file=stdout)
    return EXIT_SUCCESS


def _run_sign(*, args, stdout, stderr) -> int:
    try:
        keypair = Secp256k1KeyPair.from_secret_hex(args.secret_key)
        signature = keypair.sign_personal(args.message).to_bytes()
    except (MalformedInputError, NoSecretKeyError) as exc:
        return _print_error(stderr, "validation error", str(exc), code=EXIT_VALIDATION_ERROR)
    print(
        json.dumps(
            {
                "public_key": keypair.public_key_hex(),
                "signature_b64": b64_encode(signature),
                "signature_hex": "0x" + signature.hex(),
            },
            sort_keys=True,
        ),
        file=stdout,
    )
    return EXIT_SUCCESS


def _run_recover(*, args, stdout, stderr) -> int:
    try:
        signature = b64_decode(args.signature)
        recovered = Secp256k1KeyPair.recover_from_personal_signature(signature, args.message)
    except MalformedInputError as exc:
        return _print_error(stderr, "validation error", str(exc), code=EXIT_VALIDATION_ERROR)
    print(
        json.dumps(
            {
                "public_key": recovered.public_key_hex(),
                "public_key_uncompressed": recovered.public_key_hex(compressed=False),
                "address": to_checksum_address(derive_address(recovered)),
            },
            sort_keys=True,
        ),
        file=stdout,
    )
    return EXIT_SUCCESS


def _run_address(*, args, stdout, stderr) -> int:
    try:
        keypair = Secp256k1KeyPair.from_public_hex(args.public_key)
    except MalformedInputError as exc:
        return _print_error(stderr, "validation error", str(exc), code=EXIT_VALIDATION_ERROR)
    print(to_checksum_address(derive_address(keypair)), file=stdout)
    return EXIT_SUCCESS


def _run_proof_find(*, args, config: SDKConfig, stdout, stderr) -> int:
    client = ProofServiceClient(
        base_url=config.proof_service_base,
        timeout=config.request_timeout_seconds,
        retries=config.retries,
    )
    try:
        result = client.find_by(args.platform, args.identity)
    except NextIDSDKError as exc:
        return _print_service_error(stderr, exc)
    print(json.dumps(result.model_dump(), sort_keys=True, indent=2), file=stdout)
    return EXIT_SUCCESS


def _run_kv_find(*, args, config: SDKConfig, stdout, stderr) -> int:
    by_avatar = args.avatar is not None
    by_identity = args.platform is not None or args.identity is not None
    if by_avatar == by_identity or (by_identity and not (args.platform and args.identity)):
        return _print_error(
            stderr,
            "validation error",
            "use either --avatar or both --platform and --identity",
            code=EXIT_VALIDATION_ERROR,
        )

    client = KVServiceClient(
        base_url=config.kv_service_base,
        timeout=config.request_timeout_seconds,
        retries=config.retries,
    )
    try:
        if by_avatar:
            avatar = Secp256k1KeyPair.from_public_hex(args.avatar)
            payload = [proof.model_dump() for proof in client.find_by_avatar(avatar)]
        else:
            payload = [
                {"avatar": value.avatar.public_key_hex(), "content": value.content}
                for value in client.find_by_platform_identity(args.platform, args.identity)
            ]
    except NextIDSDKError as exc:
        return _print_service_error(stderr, exc)
    print(json.dumps(payload, sort_keys=True, indent=2), file=stdout)
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None, *, stdout=sys.stdout, stderr=sys.stderr) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=stderr)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    if args.command == "version":
        return _run_version(config=config, as_json=args.json, stdout=stdout)

    if args.command == "keygen":
        return _run_keygen(as_json=args.json, stdout=stdout)

    if args.command == "sign":
        return _run_sign(args=args, stdout=stdout, stderr=stderr)

    if args.command == "recover":
        return _run_recover(args=args, stdout=stdout, stderr=stderr)

    if args.command == "address":
        return _run_address(args=args, stdout=stdout, stderr=stderr)

    if args.command == "proof":
        return _run_proof_find(args=args, config=config, stdout=stdout, stderr=stderr)

    if args.command == "kv":
        return _run_kv_find(args=args, config=config, stdout=stdout, stderr=stderr)

    parser.error(f"unknown command: {args.command}")
    return EXIT_VALIDATION_ERROR


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
