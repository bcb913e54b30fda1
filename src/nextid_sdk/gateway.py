"""Gateway contract consumed by procedures."""

from __future__ import annotations

from typing import Protocol


class ProcedureGateway(Protocol):
    """Exchanges signed requests with a registry service.

    `submit_payload_request` returns the decoded challenge response body.
    `submit_upload_request` returns the decoded (usually empty) body of a
    2xx response. Both raise `RemoteRejectedError` for any other status and
    `TransportFailureError` when the service cannot be reached.
    """

    def submit_payload_request(self, body: dict) -> dict: ...

    def submit_upload_request(self, body: dict) -> dict: ...


__all__ = ["ProcedureGateway"]
