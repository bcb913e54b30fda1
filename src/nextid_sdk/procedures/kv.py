"""KVService patch procedure."""

from __future__ import annotations

import json

from nextid_sdk.client import KVServiceClient, parse_response
from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.endpoints import Endpoint
from nextid_sdk.errors import MalformedInputError
from nextid_sdk.gateway import ProcedureGateway
from nextid_sdk.policy import KV_POLICY
from nextid_sdk.procedures.base import Procedure, SignatureInput
from nextid_sdk.procedures.state import LocallyValidated, PayloadRequested
from nextid_sdk.schemas import KVPayloadResponse
from nextid_sdk.types import Action, Platform, SignatureRole
from nextid_sdk.util import b64_encode, parse_timestamp


class KVProcedure(Procedure):
    """Apply a JSON merge patch to the KV record of an avatar/identity pair.

    Keys set to `None` in `patch` are removed from the stored record.
    """

    policy_table = KV_POLICY
    kind = "kv procedure"

    def __init__(
        self,
        endpoint: Endpoint | str,
        action: Action | str,
        avatar: Secp256k1KeyPair,
        platform: Platform | str,
        identity: str,
        patch: dict,
        *,
        gateway: ProcedureGateway | None = None,
    ) -> None:
        if not isinstance(patch, dict):
            raise MalformedInputError("patch must be a JSON object")
        try:
            json.dumps(patch, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise MalformedInputError(f"patch is not JSON serializable: {exc}") from exc
        super().__init__(endpoint, action, avatar, platform, identity, gateway=gateway)
        self.patch = patch

    def _default_gateway(self, endpoint: Endpoint | str) -> ProcedureGateway:
        return KVServiceClient.for_endpoint(endpoint)

    def _payload_body(self) -> dict:
        return {
            "avatar": self.avatar.public_key_hex(),
            "platform": self.platform.value,
            "identity": self.identity,
            "patch": self.patch,
        }

    def _challenge_from_response(self, body: dict) -> PayloadRequested:
        response = parse_response(KVPayloadResponse, body)
        return PayloadRequested(
            sign_payload=response.sign_payload,
            uuid=response.uuid,
            issued_at=parse_timestamp(response.created_at),
        )

    def _upload_body(self, validated: LocallyValidated) -> dict:
        return {
            "avatar": self.avatar.public_key_hex(),
            "platform": self.platform.value,
            "identity": self.identity,
            "uuid": validated.requested.uuid,
            "created_at": int(validated.requested.issued_at.timestamp()),
            "patch": self.patch,
            "signature": b64_encode(validated.signatures[SignatureRole.AVATAR]),
        }

    def submit(self, avatar_signature: SignatureInput) -> None:
        """Validate the avatar signature over the challenge locally, then upload the patch."""
        self._submit_signatures({SignatureRole.AVATAR: avatar_signature})
