"""ProofService binding procedure."""

from __future__ import annotations

from nextid_sdk.client import ProofServiceClient, parse_response
from nextid_sdk.endpoints import Endpoint
from nextid_sdk.gateway import ProcedureGateway
from nextid_sdk.policy import PROOF_POLICY
from nextid_sdk.procedures.base import Procedure, SignatureInput
from nextid_sdk.procedures.state import LocallyValidated, PayloadRequested, Stage
from nextid_sdk.schemas import ProofPayloadResponse
from nextid_sdk.types import SignatureRole
from nextid_sdk.util import b64_encode, format_timestamp, parse_timestamp


class ProofProcedure(Procedure):
    """Bind (or unbind) a platform identity to an avatar on ProofService.

    Typical flow::

        procedure = ProofProcedure("staging", "create", avatar, "twitter", "alice")
        payload = procedure.request_challenge()
        # post `procedure.post_content["default"]`, sign `payload` with the avatar
        procedure.submit(proof_location="1415362679095635970", avatar_signature=sig)

    On the ethereum platform `identity` is the wallet address and a wallet
    signature over the same payload is needed as well: both for `create`,
    either one for `delete`.
    """

    policy_table = PROOF_POLICY
    kind = "proof procedure"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._proof_location: str | None = None

    def _default_gateway(self, endpoint: Endpoint | str) -> ProcedureGateway:
        return ProofServiceClient.for_endpoint(endpoint)

    @property
    def post_content(self) -> dict[str, str]:
        """Proof post templates keyed by language (`default`, `en_US`, ...)."""
        return dict(self._challenge().post_content)

    @property
    def proof_location(self) -> str | None:
        return self._proof_location

    def _payload_body(self) -> dict:
        return {
            "action": self.action.value,
            "platform": self.platform.value,
            "identity": self.identity,
            "public_key": self.avatar.public_key_hex(compressed=False),
        }

    def _challenge_from_response(self, body: dict) -> PayloadRequested:
        response = parse_response(ProofPayloadResponse, body)
        return PayloadRequested(
            sign_payload=response.sign_payload,
            uuid=response.uuid,
            issued_at=parse_timestamp(response.created_at),
            post_content=dict(response.post_content),
        )

    def _upload_body(self, validated: LocallyValidated) -> dict:
        extra: dict[str, str] = {}
        avatar_signature = validated.signatures.get(SignatureRole.AVATAR)
        if avatar_signature is not None:
            extra["signature"] = b64_encode(avatar_signature)
        wallet_signature = validated.signatures.get(SignatureRole.SECONDARY)
        if wallet_signature is not None:
            extra["wallet_signature"] = b64_encode(wallet_signature)
        return {
            "action": self.action.value,
            "platform": self.platform.value,
            "identity": self.identity,
            "proof_location": self._proof_location or "",
            "public_key": self.avatar.public_key_hex(),
            "uuid": validated.requested.uuid,
            "created_at": format_timestamp(validated.requested.issued_at),
            "extra": extra,
        }

    def submit(
        self,
        *,
        proof_location: str = "",
        avatar_signature: SignatureInput = None,
        secondary_signature: SignatureInput = None,
    ) -> None:
        """Validate the signatures over the challenge locally, then upload the proof."""
        self._expect(Stage.PAYLOAD_REQUESTED)
        self._proof_location = proof_location
        self._submit_signatures(
            {
                SignatureRole.AVATAR: avatar_signature,
                SignatureRole.SECONDARY: secondary_signature,
            }
        )
