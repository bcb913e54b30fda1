from __future__ import annotations

import pytest

from nextid_sdk.errors import PolicyViolationError
from nextid_sdk.policy import (
    AVATAR_ONLY,
    KV_POLICY,
    AvatarAndSecondary,
    Mode,
    enforce_policy,
    required_signatures,
)
from nextid_sdk.types import Action, Platform, SignatureRole

AVATAR = SignatureRole.AVATAR
SECONDARY = SignatureRole.SECONDARY


@pytest.mark.parametrize("platform", [p for p in Platform if p is not Platform.ETHEREUM])
@pytest.mark.parametrize("action", list(Action))
def test_default_rule_is_avatar_only(platform: Platform, action: Action) -> None:
    assert required_signatures(platform, action) == AVATAR_ONLY


def test_ethereum_create_needs_both_signatures() -> None:
    assert required_signatures(Platform.ETHEREUM, Action.CREATE) == AvatarAndSecondary(Mode.ALL_OF)


def test_ethereum_delete_needs_either_signature() -> None:
    assert required_signatures(Platform.ETHEREUM, Action.DELETE) == AvatarAndSecondary(Mode.ANY_OF)


def test_kv_table_is_avatar_only_everywhere() -> None:
    for action in Action:
        assert required_signatures(Platform.ETHEREUM, action, KV_POLICY) == AVATAR_ONLY


@pytest.mark.parametrize(
    "rule, roles, ok",
    [
        (AVATAR_ONLY, {AVATAR}, True),
        (AVATAR_ONLY, set(), False),
        (AVATAR_ONLY, {AVATAR, SECONDARY}, False),
        (AvatarAndSecondary(Mode.ALL_OF), {AVATAR, SECONDARY}, True),
        (AvatarAndSecondary(Mode.ALL_OF), {AVATAR}, False),
        (AvatarAndSecondary(Mode.ALL_OF), {SECONDARY}, False),
        (AvatarAndSecondary(Mode.ANY_OF), {AVATAR}, True),
        (AvatarAndSecondary(Mode.ANY_OF), {SECONDARY}, True),
        (AvatarAndSecondary(Mode.ANY_OF), {AVATAR, SECONDARY}, True),
        (AvatarAndSecondary(Mode.ANY_OF), set(), False),
    ],
)
def test_enforce_policy(rule, roles, ok: bool) -> None:
    if ok:
        enforce_policy(rule, frozenset(roles))
    else:
        with pytest.raises(PolicyViolationError):
            enforce_policy(rule, frozenset(roles))
