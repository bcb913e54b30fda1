"""Which signatures a submission needs, per platform and action.

Platforms that carry their own address-derivation rule are self-custodied
chains: binding one needs a signature from the chain key as well as the
avatar. Creating such a binding needs both; deleting it needs either one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Union

from nextid_sdk.crypto.address import derive_address
from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.errors import PolicyViolationError
from nextid_sdk.types import Action, Platform, SignatureRole

AddressRule = Callable[[Secp256k1KeyPair], bytes]

ADDRESS_RULES: dict[Platform, AddressRule] = {
    Platform.ETHEREUM: derive_address,
}


class Mode(str, Enum):
    ALL_OF = "all_of"
    ANY_OF = "any_of"


@dataclass(frozen=True)
class AvatarOnly:
    def satisfied_by(self, roles: frozenset[SignatureRole]) -> bool:
        return roles == {SignatureRole.AVATAR}

    def describe(self) -> str:
        return "avatar signature required"


@dataclass(frozen=True)
class AvatarAndSecondary:
    mode: Mode

    def satisfied_by(self, roles: frozenset[SignatureRole]) -> bool:
        wanted = {SignatureRole.AVATAR, SignatureRole.SECONDARY}
        if not roles <= wanted:
            return False
        if self.mode is Mode.ALL_OF:
            return roles == wanted
        return bool(roles)

    def describe(self) -> str:
        if self.mode is Mode.ALL_OF:
            return "avatar and secondary chain signatures required"
        return "avatar or secondary chain signature required"


PolicyRule = Union[AvatarOnly, AvatarAndSecondary]

AVATAR_ONLY = AvatarOnly()

PolicyTable = Mapping[tuple[Platform, Action], PolicyRule]


def _secondary_chain_rules(platforms) -> dict[tuple[Platform, Action], PolicyRule]:
    table: dict[tuple[Platform, Action], PolicyRule] = {}
    for platform in platforms:
        table[(platform, Action.CREATE)] = AvatarAndSecondary(Mode.ALL_OF)
        table[(platform, Action.DELETE)] = AvatarAndSecondary(Mode.ANY_OF)
    return table


PROOF_POLICY: PolicyTable = _secondary_chain_rules(ADDRESS_RULES)

# KV patches are always authorized by the avatar alone.
KV_POLICY: PolicyTable = {}


def required_signatures(
    platform: Platform,
    action: Action,
    table: PolicyTable = PROOF_POLICY,
) -> PolicyRule:
    return table.get((platform, action), AVATAR_ONLY)


def address_rule_for(platform: Platform) -> AddressRule | None:
    return ADDRESS_RULES.get(platform)


def enforce_policy(rule: PolicyRule, roles: frozenset[SignatureRole]) -> None:
    if not rule.satisfied_by(roles):
        supplied = ", ".join(sorted(role.value for role in roles)) or "none"
        raise PolicyViolationError(f"{rule.describe()} (validated: {supplied})")
