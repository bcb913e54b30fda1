"""SDK public types."""

from __future__ import annotations

from enum import Enum

from nextid_sdk.errors import MalformedInputError


class Action(str, Enum):
    CREATE = "create"
    DELETE = "delete"


class Platform(str, Enum):
    GITHUB = "github"
    NEXTID = "nextid"
    TWITTER = "twitter"
    KEYBASE = "keybase"
    ETHEREUM = "ethereum"
    DISCORD = "discord"
    DOTBIT = "dotbit"
    SOLANA = "solana"


class SignatureRole(str, Enum):
    AVATAR = "avatar"
    SECONDARY = "secondary"


def parse_action(value: str | Action) -> Action:
    try:
        return Action(str(value.value if isinstance(value, Action) else value).strip().lower())
    except ValueError as exc:
        raise MalformedInputError(
            "action must be one of: " + ", ".join(item.value for item in Action)
        ) from exc


def parse_platform(value: str | Platform) -> Platform:
    try:
        return Platform(str(value.value if isinstance(value, Platform) else value).strip().lower())
    except ValueError as exc:
        raise MalformedInputError(
            "platform must be one of: " + ", ".join(item.value for item in Platform)
        ) from exc


__all__ = [
    "Action",
    "Platform",
    "SignatureRole",
    "parse_action",
    "parse_platform",
]
