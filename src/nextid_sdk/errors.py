"""SDK error types."""

from __future__ import annotations


class NextIDSDKError(RuntimeError):
    """Base SDK error."""


class MalformedInputError(NextIDSDKError):
    """Key, signature or address material could not be parsed."""


class InvalidRecoveryIdError(MalformedInputError):
    """Signature recovery byte is not 0, 1, 27 or 28."""


class NoSecretKeyError(NextIDSDKError):
    """Signing attempted with a public-only keypair."""


class SignatureMismatchError(NextIDSDKError):
    """Key recovered from a signature does not match the expected signer."""


class PolicyViolationError(NextIDSDKError):
    """Supplied signatures do not satisfy the platform/action policy."""


class InvalidStateError(NextIDSDKError):
    """Procedure transition called out of order."""


class TransportFailureError(NextIDSDKError):
    """Service could not be reached."""


class RemoteRejectedError(NextIDSDKError):
    """Service returned a non-success HTTP response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SchemaValidationError(NextIDSDKError):
    """Service response body did not match the expected schema."""
