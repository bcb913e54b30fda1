"""Response schemas for ProofService and KVService."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ProofPayloadResponse(_Response):
    uuid: str
    sign_payload: str
    created_at: Union[int, str]
    post_content: Dict[str, str] = Field(default_factory=dict)


class KVPayloadResponse(_Response):
    uuid: str
    sign_payload: str
    created_at: Union[int, str]


class Pagination(_Response):
    total: int = Field(..., ge=0)
    per: int = Field(..., ge=0)
    current: int = Field(..., ge=0)
    next: int = Field(..., ge=0)


class SingleProof(_Response):
    platform: str
    identity: str
    created_at: str
    last_checked_at: str
    is_valid: bool
    invalid_reason: Optional[str] = None


class AvatarWithProof(_Response):
    avatar: str
    last_arweave_id: str = ""
    proofs: List[SingleProof] = Field(default_factory=list)


class ProofQueryResponse(_Response):
    pagination: Pagination
    ids: List[AvatarWithProof] = Field(default_factory=list)


class KVSingleProof(_Response):
    platform: str
    identity: str
    content: Any = None


class KVQueryResponse(_Response):
    avatar: str
    proofs: List[KVSingleProof] = Field(default_factory=list)


class KVIdentityValue(_Response):
    avatar: str
    content: Any = None


class KVQueryIdentityResponse(_Response):
    values: List[KVIdentityValue] = Field(default_factory=list)
