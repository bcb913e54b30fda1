"""Shared challenge/validate/commit flow for registry procedures."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Mapping, Optional, Union

from nextid_sdk.crypto.address import parse_address
from nextid_sdk.crypto.keypair import (
    Secp256k1KeyPair,
    SignatureEnvelope,
    UnrecoverableSignatureError,
)
from nextid_sdk.endpoints import Endpoint
from nextid_sdk.errors import (
    InvalidStateError,
    MalformedInputError,
    PolicyViolationError,
    SignatureMismatchError,
)
from nextid_sdk.gateway import ProcedureGateway
from nextid_sdk.policy import (
    PROOF_POLICY,
    PolicyRule,
    PolicyTable,
    address_rule_for,
    enforce_policy,
    required_signatures,
)
from nextid_sdk.procedures.state import (
    Committed,
    Created,
    LocallyValidated,
    PayloadRequested,
    ProcedureState,
    Stage,
    challenge_of,
    transition,
)
from nextid_sdk.types import Action, Platform, SignatureRole, parse_action, parse_platform

logger = logging.getLogger(__name__)

SignatureInput = Optional[Union[bytes, SignatureEnvelope]]


class Procedure(ABC):
    """One registry modification driven through a fixed sequence of stages.

    Calls on one instance must be serialized by the caller. A failed local
    validation abandons the instance; build a new procedure to try again.
    """

    policy_table: PolicyTable = PROOF_POLICY
    kind = "procedure"

    def __init__(
        self,
        endpoint: Endpoint | str,
        action: Action | str,
        avatar: Secp256k1KeyPair,
        platform: Platform | str,
        identity: str,
        *,
        gateway: ProcedureGateway | None = None,
    ) -> None:
        if not isinstance(identity, str) or not identity.strip():
            raise MalformedInputError("identity must be a non-empty string")
        self.endpoint = endpoint
        self.action = parse_action(action)
        self.avatar = avatar
        self.platform = parse_platform(platform)
        self.identity = identity.strip()
        self.gateway = gateway if gateway is not None else self._default_gateway(endpoint)
        self._state: ProcedureState = Created()
        self._abandoned_reason: str | None = None

    @abstractmethod
    def _default_gateway(self, endpoint: Endpoint | str) -> ProcedureGateway:
        ...

    @abstractmethod
    def _payload_body(self) -> dict:
        ...

    @abstractmethod
    def _challenge_from_response(self, body: dict) -> PayloadRequested:
        ...

    @abstractmethod
    def _upload_body(self, validated: LocallyValidated) -> dict:
        ...

    @property
    def stage(self) -> Stage:
        return self._state.stage

    @property
    def state(self) -> ProcedureState:
        return self._state

    @property
    def abandoned(self) -> bool:
        return self._abandoned_reason is not None

    @property
    def committed(self) -> bool:
        return self._state.stage is Stage.COMMITTED

    @property
    def sign_payload(self) -> str:
        return self._challenge().sign_payload

    @property
    def uuid(self) -> str:
        return self._challenge().uuid

    @property
    def issued_at(self) -> datetime:
        return self._challenge().issued_at

    @property
    def signature_rule(self) -> PolicyRule:
        return required_signatures(self.platform, self.action, self.policy_table)

    def _challenge(self) -> PayloadRequested:
        requested = challenge_of(self._state)
        if requested is None:
            raise InvalidStateError("challenge has not been requested yet")
        return requested

    def _expect(self, stage: Stage) -> ProcedureState:
        if self._abandoned_reason is not None:
            raise InvalidStateError(f"{self.kind} was abandoned: {self._abandoned_reason}")
        if self._state.stage is not stage:
            raise InvalidStateError(
                f"{self.kind} is {self._state.stage.value}, expected {stage.value}"
            )
        return self._state

    def _advance(self, target: ProcedureState) -> None:
        self._state = transition(self._state, target)
        logger.debug(
            "%s %s/%s -> %s", self.kind, self.platform.value, self.identity, target.stage.value
        )

    def request_challenge(self) -> str:
        """Ask the service for the payload to sign; returns it."""
        self._expect(Stage.CREATED)
        response = self.gateway.submit_payload_request(self._payload_body())
        requested = self._challenge_from_response(response)
        self._advance(requested)
        return requested.sign_payload

    def _submit_signatures(self, signatures: Mapping[SignatureRole, SignatureInput]) -> None:
        self._expect(Stage.PAYLOAD_REQUESTED)
        requested = self._challenge()
        try:
            validated = self._validate_locally(requested, signatures)
        except (MalformedInputError, SignatureMismatchError, PolicyViolationError) as exc:
            self._abandoned_reason = str(exc)
            logger.warning("%s rejected locally: %s", self.kind, exc)
            raise
        self._advance(validated)

        self.gateway.submit_upload_request(self._upload_body(validated))
        self._advance(Committed(validated=validated))

    def _validate_locally(
        self,
        requested: PayloadRequested,
        signatures: Mapping[SignatureRole, SignatureInput],
    ) -> LocallyValidated:
        accepted: dict[SignatureRole, bytes] = {}
        for role, signature in signatures.items():
            if signature is None:
                continue
            if isinstance(signature, SignatureEnvelope):
                raw = signature.to_bytes()
            else:
                raw = bytes(signature)
            if role is SignatureRole.AVATAR:
                self._check_avatar_signature(raw, requested.sign_payload)
            else:
                self._check_secondary_signature(raw, requested.sign_payload)
            accepted[role] = raw
        enforce_policy(self.signature_rule, frozenset(accepted))
        return LocallyValidated(requested=requested, signatures=accepted)

    def _recover(
        self,
        signature: bytes,
        sign_payload: str,
        role: SignatureRole,
    ) -> Secp256k1KeyPair:
        try:
            return Secp256k1KeyPair.recover_from_personal_signature(signature, sign_payload)
        except UnrecoverableSignatureError as exc:
            raise SignatureMismatchError(f"{role.value} signature does not recover a key") from exc

    def _check_avatar_signature(self, signature: bytes, sign_payload: str) -> None:
        recovered = self._recover(signature, sign_payload, SignatureRole.AVATAR)
        if not recovered.same_public_key(self.avatar):
            raise SignatureMismatchError("public key recovered from signature mismatches avatar")

    def _check_secondary_signature(self, signature: bytes, sign_payload: str) -> None:
        rule = address_rule_for(self.platform)
        if rule is None:
            raise PolicyViolationError(
                f"platform {self.platform.value} does not accept a secondary chain signature"
            )
        expected = parse_address(self.identity)
        recovered = self._recover(signature, sign_payload, SignatureRole.SECONDARY)
        if rule(recovered) != expected:
            raise SignatureMismatchError(
                f"{self.platform.value} address recovered from signature mismatches identity"
            )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(action={self.action.value}, platform={self.platform.value}, "
            f"identity={self.identity!r}, stage={self.stage.value})"
        )
