"""NextID SDK public surface."""

from nextid_sdk.client import KVAvatar, KVServiceClient, ProofServiceClient
from nextid_sdk.config import SDKConfig, load_config
from nextid_sdk.crypto.address import derive_address, parse_address, to_checksum_address
from nextid_sdk.crypto.hashing import keccak256, personal_message_digest
from nextid_sdk.crypto.keypair import Secp256k1KeyPair, SignatureEnvelope
from nextid_sdk.endpoints import Endpoint, Service
from nextid_sdk.errors import (
    InvalidRecoveryIdError,
    InvalidStateError,
    MalformedInputError,
    NextIDSDKError,
    NoSecretKeyError,
    PolicyViolationError,
    RemoteRejectedError,
    SchemaValidationError,
    SignatureMismatchError,
    TransportFailureError,
)
from nextid_sdk.gateway import ProcedureGateway
from nextid_sdk.policy import AvatarAndSecondary, AvatarOnly, Mode, required_signatures
from nextid_sdk.procedures.kv import KVProcedure
from nextid_sdk.procedures.proof import ProofProcedure
from nextid_sdk.procedures.state import Stage
from nextid_sdk.types import Action, Platform, SignatureRole

__all__ = [
    "NextIDSDKError",
    "MalformedInputError",
    "InvalidRecoveryIdError",
    "NoSecretKeyError",
    "SignatureMismatchError",
    "PolicyViolationError",
    "InvalidStateError",
    "RemoteRejectedError",
    "TransportFailureError",
    "SchemaValidationError",
    "Secp256k1KeyPair",
    "SignatureEnvelope",
    "keccak256",
    "personal_message_digest",
    "derive_address",
    "parse_address",
    "to_checksum_address",
    "Action",
    "Platform",
    "SignatureRole",
    "AvatarOnly",
    "AvatarAndSecondary",
    "Mode",
    "required_signatures",
    "Stage",
    "ProofProcedure",
    "KVProcedure",
    "ProcedureGateway",
    "ProofServiceClient",
    "KVServiceClient",
    "KVAvatar",
    "Endpoint",
    "Service",
    "SDKConfig",
    "load_config",
]
