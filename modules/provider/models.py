"""Typed views over the Discord REST payloads the provider consumes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from modules.permissions.overwrites import PermissionOverwrite

__all__ = [
    "CHANNEL_TYPES",
    "Channel",
    "Guild",
    "Invite",
    "Member",
    "Message",
    "Role",
    "User",
    "Webhook",
    "channel_type_name",
    "channel_type_value",
]

CHANNEL_TYPES: dict[str, int] = {
    "text": 0,
    "voice": 2,
    "category": 4,
    "news": 5,
    "store": 6,
}
_CHANNEL_TYPE_NAMES = {value: name for name, value in CHANNEL_TYPES.items()}


def channel_type_name(value: int) -> tuple[str, bool]:
    """Map an API channel type to its name; unknown types fall back to text."""

    name = _CHANNEL_TYPE_NAMES.get(int(value))
    if name is None:
        return ("text", False)
    return (name, True)


def channel_type_value(name: str) -> tuple[int, bool]:
    value = CHANNEL_TYPES.get(name)
    if value is None:
        return (0, False)
    return (value, True)


def _snowflake(value: Any) -> Optional[str]:
    if value in (None, "", 0, "0"):
        return None
    return str(value)


@dataclass(slots=True)
class Role:
    id: str
    name: str = ""
    color: int = 0
    hoist: bool = False
    position: int = 0
    permissions: int = 0
    managed: bool = False
    mentionable: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Role":
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or ""),
            color=int(payload.get("color") or 0),
            hoist=bool(payload.get("hoist")),
            position=int(payload.get("position") or 0),
            permissions=int(payload.get("permissions") or 0),
            managed=bool(payload.get("managed")),
            mentionable=bool(payload.get("mentionable")),
        )


@dataclass(slots=True)
class Guild:
    id: str
    name: str = ""
    region: Optional[str] = None
    icon: Optional[str] = None
    splash: Optional[str] = None
    owner_id: Optional[str] = None
    afk_channel_id: Optional[str] = None
    afk_timeout: int = 0
    system_channel_id: Optional[str] = None
    verification_level: int = 0
    default_message_notifications: int = 0
    explicit_content_filter: int = 0
    roles: list[Role] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Guild":
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or ""),
            region=payload.get("region"),
            icon=payload.get("icon"),
            splash=payload.get("splash"),
            owner_id=_snowflake(payload.get("owner_id")),
            afk_channel_id=_snowflake(payload.get("afk_channel_id")),
            afk_timeout=int(payload.get("afk_timeout") or 0),
            system_channel_id=_snowflake(payload.get("system_channel_id")),
            verification_level=int(payload.get("verification_level") or 0),
            default_message_notifications=int(payload.get("default_message_notifications") or 0),
            explicit_content_filter=int(payload.get("explicit_content_filter") or 0),
            roles=[Role.from_payload(item) for item in payload.get("roles") or []],
        )


@dataclass(slots=True)
class Channel:
    id: str
    type: int = 0
    guild_id: Optional[str] = None
    name: str = ""
    position: int = 0
    topic: str = ""
    nsfw: bool = False
    bitrate: int = 0
    user_limit: int = 0
    parent_id: Optional[str] = None
    permission_overwrites: list[PermissionOverwrite] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Channel":
        return cls(
            id=str(payload["id"]),
            type=int(payload.get("type") or 0),
            guild_id=_snowflake(payload.get("guild_id")),
            name=str(payload.get("name") or ""),
            position=int(payload.get("position") or 0),
            topic=str(payload.get("topic") or ""),
            nsfw=bool(payload.get("nsfw")),
            bitrate=int(payload.get("bitrate") or 0),
            user_limit=int(payload.get("user_limit") or 0),
            parent_id=_snowflake(payload.get("parent_id")),
            permission_overwrites=[
                PermissionOverwrite.from_payload(item)
                for item in payload.get("permission_overwrites") or []
            ],
        )


@dataclass(slots=True)
class User:
    id: str
    username: str = ""
    discriminator: str = "0"
    avatar: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "User":
        return cls(
            id=str(payload["id"]),
            username=str(payload.get("username") or ""),
            discriminator=str(payload.get("discriminator") or "0"),
            avatar=payload.get("avatar"),
        )


@dataclass(slots=True)
class Member:
    user: User
    roles: list[str] = field(default_factory=list)
    nick: Optional[str] = None
    joined_at: Optional[str] = None
    premium_since: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Member":
        return cls(
            user=User.from_payload(payload.get("user") or {}),
            roles=[str(role) for role in payload.get("roles") or []],
            nick=payload.get("nick"),
            joined_at=payload.get("joined_at"),
            premium_since=payload.get("premium_since"),
        )


@dataclass(slots=True)
class Invite:
    code: str
    channel_id: Optional[str] = None
    max_age: int = 0
    max_uses: int = 0
    temporary: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Invite":
        channel = payload.get("channel") or {}
        return cls(
            code=str(payload["code"]),
            channel_id=_snowflake(channel.get("id") or payload.get("channel_id")),
            max_age=int(payload.get("max_age") or 0),
            max_uses=int(payload.get("max_uses") or 0),
            temporary=bool(payload.get("temporary")),
        )


@dataclass(slots=True)
class Webhook:
    id: str
    channel_id: Optional[str] = None
    name: str = ""
    avatar: Optional[str] = None
    token: Optional[str] = None

    WEBHOOK_BASE = "https://discord.com/api/webhooks"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Webhook":
        return cls(
            id=str(payload["id"]),
            channel_id=_snowflake(payload.get("channel_id")),
            name=str(payload.get("name") or ""),
            avatar=payload.get("avatar"),
            token=payload.get("token"),
        )

    @property
    def url(self) -> str:
        return f"{self.WEBHOOK_BASE}/{self.id}/{self.token or ''}"


@dataclass(slots=True)
class Message:
    id: str
    channel_id: str
    guild_id: Optional[str] = None
    author_id: Optional[str] = None
    content: str = ""
    timestamp: Optional[str] = None
    edited_timestamp: Optional[str] = None
    tts: bool = False
    pinned: bool = False
    type: int = 0
    embeds: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Message":
        author = payload.get("author") or {}
        return cls(
            id=str(payload["id"]),
            channel_id=str(payload.get("channel_id") or ""),
            guild_id=_snowflake(payload.get("guild_id")),
            author_id=_snowflake(author.get("id")),
            content=str(payload.get("content") or ""),
            timestamp=payload.get("timestamp"),
            edited_timestamp=payload.get("edited_timestamp"),
            tts=bool(payload.get("tts")),
            pinned=bool(payload.get("pinned")),
            type=int(payload.get("type") or 0),
            embeds=[dict(item) for item in payload.get("embeds") or []],
        )
