"""Forward-only procedure states.

Each state object carries exactly the data guaranteed to exist once the
procedure has reached it: the challenge fields appear with
`PayloadRequested`, validated signatures with `LocallyValidated`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Mapping, Union

from nextid_sdk.errors import InvalidStateError
from nextid_sdk.types import SignatureRole


class Stage(str, Enum):
    CREATED = "created"
    PAYLOAD_REQUESTED = "payload_requested"
    LOCALLY_VALIDATED = "locally_validated"
    COMMITTED = "committed"


NEXT_STAGE: dict[Stage, Stage] = {
    Stage.CREATED: Stage.PAYLOAD_REQUESTED,
    Stage.PAYLOAD_REQUESTED: Stage.LOCALLY_VALIDATED,
    Stage.LOCALLY_VALIDATED: Stage.COMMITTED,
}


@dataclass(frozen=True)
class Created:
    stage: ClassVar[Stage] = Stage.CREATED


@dataclass(frozen=True)
class PayloadRequested:
    sign_payload: str
    uuid: str
    issued_at: datetime
    post_content: Mapping[str, str] = field(default_factory=dict)

    stage: ClassVar[Stage] = Stage.PAYLOAD_REQUESTED


@dataclass(frozen=True)
class LocallyValidated:
    requested: PayloadRequested
    signatures: Mapping[SignatureRole, bytes]

    stage: ClassVar[Stage] = Stage.LOCALLY_VALIDATED


@dataclass(frozen=True)
class Committed:
    validated: LocallyValidated

    stage: ClassVar[Stage] = Stage.COMMITTED


ProcedureState = Union[Created, PayloadRequested, LocallyValidated, Committed]


def transition(current: ProcedureState, target: ProcedureState) -> ProcedureState:
    """Return `target` if it is the single stage after `current`."""
    if NEXT_STAGE.get(current.stage) is not target.stage:
        raise InvalidStateError(
            f"cannot move from {current.stage.value} to {target.stage.value}"
        )
    return target


def challenge_of(state: ProcedureState) -> PayloadRequested | None:
    if isinstance(state, PayloadRequested):
        return state
    if isinstance(state, LocallyValidated):
        return state.requested
    if isinstance(state, Committed):
        return state.validated.requested
    return None
