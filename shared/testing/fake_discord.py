"""In-memory stand-in for :class:`modules.provider.client.DiscordAPI` used by tests."""

from __future__ import annotations

import itertools
from dataclasses import replace
from types import SimpleNamespace
from typing import Any, Iterable, Optional, Sequence

import discord

from modules.permissions.overwrites import OverwriteType, PermissionOverwrite
from modules.provider.models import Channel, Guild, Invite, Member, Message, Role, User, Webhook

__all__ = ["FakeDiscordAPI", "http_error", "not_found"]


def http_error(status: int = 500, message: str = "Internal Server Error") -> discord.HTTPException:
    response = SimpleNamespace(status=status, reason=message)
    return discord.HTTPException(response, {"message": message, "code": 0})


def not_found(what: str = "Channel") -> discord.NotFound:
    response = SimpleNamespace(status=404, reason="Not Found")
    return discord.NotFound(response, {"message": f"Unknown {what}", "code": 10003})


class FakeDiscordAPI:
    """Keeps guilds, channels, roles, members, invites, webhooks and messages in dicts.

    ``fail(method, exc, after=n)`` makes the named method raise ``exc`` once
    ``n`` earlier calls to it have succeeded. Every call is appended to
    ``calls`` as ``(method, args)``.
    """

    def __init__(self) -> None:
        self.guilds: dict[str, Guild] = {}
        self.channels: dict[str, Channel] = {}
        self.roles: dict[str, list[Role]] = {}
        self.members: dict[tuple[str, str], Member] = {}
        self.invites: dict[str, Invite] = {}
        self.webhooks: dict[str, Webhook] = {}
        self.messages: dict[str, Message] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._failures: dict[str, tuple[BaseException, int]] = {}
        self._counts: dict[str, int] = {}
        self._ids = itertools.count(9000)

    # seeding

    def next_id(self) -> str:
        return str(next(self._ids))

    def add_guild(self, guild_id: str, name: str = "Test Guild", **fields: Any) -> Guild:
        guild = Guild(id=guild_id, name=name, **fields)
        self.guilds[guild_id] = guild
        self.roles.setdefault(guild_id, [Role(id=guild_id, name="@everyone", position=0)])
        return guild

    def add_role(self, guild_id: str, role_id: str, name: str, position: int, **fields: Any) -> Role:
        role = Role(id=role_id, name=name, position=position, **fields)
        self.roles.setdefault(guild_id, []).append(role)
        return role

    def add_channel(
        self,
        guild_id: str,
        channel_id: str,
        name: str,
        *,
        type: int = 0,
        parent_id: Optional[str] = None,
        overwrites: Iterable[PermissionOverwrite] = (),
        **fields: Any,
    ) -> Channel:
        channel = Channel(
            id=channel_id,
            type=type,
            guild_id=guild_id,
            name=name,
            parent_id=parent_id,
            permission_overwrites=list(overwrites),
            **fields,
        )
        self.channels[channel_id] = channel
        return channel

    def add_member(
        self, guild_id: str, user_id: str, username: str, roles: Iterable[str] = (), **fields: Any
    ) -> Member:
        member = Member(user=User(id=user_id, username=username), roles=list(roles), **fields)
        self.members[(guild_id, user_id)] = member
        return member

    def fail(self, method: str, exc: BaseException, *, after: int = 0) -> None:
        self._failures[method] = (exc, after)

    def calls_to(self, method: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == method]

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        count = self._counts.get(method, 0)
        self._counts[method] = count + 1
        failure = self._failures.get(method)
        if failure is not None and count >= failure[1]:
            raise failure[0]

    def _channel(self, channel_id: str) -> Channel:
        try:
            return self.channels[channel_id]
        except KeyError:
            raise not_found("Channel") from None

    def _guild(self, guild_id: str) -> Guild:
        try:
            return self.guilds[guild_id]
        except KeyError:
            raise not_found("Guild") from None

    # guilds

    async def get_guild(self, guild_id: str) -> Guild:
        self._record("get_guild", guild_id)
        guild = self._guild(guild_id)
        return replace(guild, roles=[replace(role) for role in self.roles.get(guild_id, [])])

    async def list_user_guilds(self) -> list[Guild]:
        self._record("list_user_guilds")
        return [replace(guild, roles=[]) for guild in self.guilds.values()]

    async def edit_guild(self, guild_id: str, **fields: Any) -> Guild:
        self._record("edit_guild", guild_id, fields)
        guild = self._guild(guild_id)
        for key, value in fields.items():
            if key in ("icon", "splash"):
                # images go up as data URIs and come back as hashes
                value = f"{key}{guild_id}" if value else None
            setattr(guild, key, value)
        return replace(guild)

    async def create_guild(self, name: str) -> Guild:
        self._record("create_guild", name)
        guild_id = self.next_id()
        guild = self.add_guild(guild_id, name=name, owner_id="bot", afk_timeout=300)
        self.add_channel(guild_id, self.next_id(), "general")
        self.add_channel(guild_id, self.next_id(), "General", type=2)
        return replace(guild, roles=[])

    async def delete_guild(self, guild_id: str) -> None:
        self._record("delete_guild", guild_id)
        self._guild(guild_id)
        del self.guilds[guild_id]

    async def get_guild_channels(self, guild_id: str) -> list[Channel]:
        self._record("get_guild_channels", guild_id)
        self._guild(guild_id)
        return [
            replace(channel, permission_overwrites=list(channel.permission_overwrites))
            for channel in self.channels.values()
            if channel.guild_id == guild_id
        ]

    # channels

    async def get_channel(self, channel_id: str) -> Channel:
        self._record("get_channel", channel_id)
        channel = self._channel(channel_id)
        return replace(channel, permission_overwrites=list(channel.permission_overwrites))

    async def create_channel(self, guild_id: str, **fields: Any) -> Channel:
        self._record("create_channel", guild_id, fields)
        self._guild(guild_id)
        fields = dict(fields)
        channel_id = self.next_id()
        channel = self.add_channel(
            guild_id,
            channel_id,
            fields.pop("name"),
            type=fields.pop("type", 0),
            parent_id=fields.pop("parent_id", None),
            **fields,
        )
        return replace(channel, permission_overwrites=[])

    async def edit_channel(self, channel_id: str, **fields: Any) -> Channel:
        self._record("edit_channel", channel_id, fields)
        channel = self._channel(channel_id)
        for key, value in fields.items():
            setattr(channel, key, value)
        return replace(channel, permission_overwrites=list(channel.permission_overwrites))

    async def delete_channel(self, channel_id: str) -> None:
        self._record("delete_channel", channel_id)
        self._channel(channel_id)
        del self.channels[channel_id]

    async def edit_channel_permissions(
        self,
        channel_id: str,
        overwrite_id: str,
        *,
        overwrite_type: OverwriteType,
        allow: int,
        deny: int,
    ) -> None:
        self._record("edit_channel_permissions", channel_id, overwrite_id, overwrite_type, allow, deny)
        channel = self._channel(channel_id)
        kept = [item for item in channel.permission_overwrites if item.id != overwrite_id]
        kept.append(PermissionOverwrite(id=overwrite_id, type=overwrite_type, allow=allow, deny=deny))
        channel.permission_overwrites = kept

    async def delete_channel_permission(self, channel_id: str, overwrite_id: str) -> None:
        self._record("delete_channel_permission", channel_id, overwrite_id)
        channel = self._channel(channel_id)
        channel.permission_overwrites = [
            item for item in channel.permission_overwrites if item.id != overwrite_id
        ]

    # roles

    async def get_roles(self, guild_id: str) -> list[Role]:
        self._record("get_roles", guild_id)
        self._guild(guild_id)
        return [replace(role) for role in self.roles.get(guild_id, [])]

    async def create_role(self, guild_id: str, **fields: Any) -> Role:
        self._record("create_role", guild_id, fields)
        roles = self.roles.setdefault(guild_id, [])
        role = Role(id=self.next_id(), position=1, **fields)
        for existing in roles:
            if existing.position >= 1:
                existing.position += 1
        roles.append(role)
        return replace(role)

    async def edit_role(self, guild_id: str, role_id: str, **fields: Any) -> Role:
        self._record("edit_role", guild_id, role_id, fields)
        for role in self.roles.get(guild_id, []):
            if role.id == role_id:
                for key, value in fields.items():
                    setattr(role, key, value)
                return replace(role)
        raise not_found("Role")

    async def delete_role(self, guild_id: str, role_id: str) -> None:
        self._record("delete_role", guild_id, role_id)
        roles = self.roles.get(guild_id, [])
        remaining = [role for role in roles if role.id != role_id]
        if len(remaining) == len(roles):
            raise not_found("Role")
        self.roles[guild_id] = remaining

    async def reorder_roles(self, guild_id: str, positions: Sequence[tuple[str, int]]) -> list[Role]:
        self._record("reorder_roles", guild_id, tuple(positions))
        wanted = dict(positions)
        for role in self.roles.get(guild_id, []):
            if role.id in wanted:
                role.position = wanted[role.id]
        return [replace(role) for role in self.roles.get(guild_id, [])]

    # members

    async def get_member(self, guild_id: str, user_id: str) -> Member:
        self._record("get_member", guild_id, user_id)
        try:
            member = self.members[(guild_id, user_id)]
        except KeyError:
            raise not_found("Member") from None
        return replace(member, roles=list(member.roles))

    async def search_members(self, guild_id: str, query: str, *, limit: int = 1) -> list[Member]:
        self._record("search_members", guild_id, query, limit)
        found = [
            replace(member, roles=list(member.roles))
            for (member_guild, _), member in self.members.items()
            if member_guild == guild_id and member.user.username.startswith(query)
        ]
        return found[:limit]

    async def edit_member_roles(self, guild_id: str, user_id: str, roles: Iterable[str]) -> Member:
        roles = list(roles)
        self._record("edit_member_roles", guild_id, user_id, roles)
        try:
            member = self.members[(guild_id, user_id)]
        except KeyError:
            raise not_found("Member") from None
        member.roles = roles
        return replace(member, roles=list(roles))

    # invites

    async def create_invite(self, channel_id: str, **fields: Any) -> Invite:
        self._record("create_invite", channel_id, fields)
        self._channel(channel_id)
        code = f"inv{self.next_id()}"
        invite = Invite(
            code=code,
            channel_id=channel_id,
            max_age=fields.get("max_age", 0),
            max_uses=fields.get("max_uses", 0),
            temporary=fields.get("temporary", False),
        )
        self.invites[code] = invite
        return replace(invite)

    async def get_invite(self, code: str) -> Invite:
        self._record("get_invite", code)
        try:
            return replace(self.invites[code])
        except KeyError:
            raise not_found("Invite") from None

    async def delete_invite(self, code: str) -> None:
        self._record("delete_invite", code)
        if self.invites.pop(code, None) is None:
            raise not_found("Invite")

    # webhooks

    async def create_webhook(
        self, channel_id: str, *, name: str, avatar: Optional[str] = None
    ) -> Webhook:
        self._record("create_webhook", channel_id, name, avatar)
        self._channel(channel_id)
        webhook_id = self.next_id()
        webhook = Webhook(
            id=webhook_id,
            channel_id=channel_id,
            name=name,
            avatar=f"hash{webhook_id}" if avatar else None,
            token=f"tok{webhook_id}",
        )
        self.webhooks[webhook_id] = webhook
        return replace(webhook)

    async def get_webhook(self, webhook_id: str) -> Webhook:
        self._record("get_webhook", webhook_id)
        try:
            return replace(self.webhooks[webhook_id])
        except KeyError:
            raise not_found("Webhook") from None

    async def edit_webhook(self, webhook_id: str, **fields: Any) -> Webhook:
        self._record("edit_webhook", webhook_id, fields)
        try:
            webhook = self.webhooks[webhook_id]
        except KeyError:
            raise not_found("Webhook") from None
        webhook.name = fields.get("name", webhook.name)
        webhook.channel_id = fields.get("channel_id", webhook.channel_id)
        if "avatar" in fields:
            webhook.avatar = f"hash{webhook_id}" if fields["avatar"] else None
        return replace(webhook)

    async def delete_webhook(self, webhook_id: str) -> None:
        self._record("delete_webhook", webhook_id)
        if self.webhooks.pop(webhook_id, None) is None:
            raise not_found("Webhook")

    # messages

    def _message(self, channel_id: str, message_id: str) -> Message:
        message = self.messages.get(message_id)
        if message is None or message.channel_id != channel_id:
            raise not_found("Message")
        return message

    async def create_message(self, channel_id: str, **fields: Any) -> Message:
        self._record("create_message", channel_id, fields)
        channel = self._channel(channel_id)
        message = Message(
            id=self.next_id(),
            channel_id=channel_id,
            guild_id=channel.guild_id,
            author_id="bot",
            content=fields.get("content", ""),
            timestamp="2024-01-01T00:00:00+00:00",
            tts=fields.get("tts", False),
            embeds=[dict(item) for item in fields.get("embeds", [])],
        )
        self.messages[message.id] = message
        return replace(message, embeds=list(message.embeds))

    async def get_message(self, channel_id: str, message_id: str) -> Message:
        self._record("get_message", channel_id, message_id)
        message = self._message(channel_id, message_id)
        return replace(message, embeds=list(message.embeds))

    async def edit_message(self, channel_id: str, message_id: str, **fields: Any) -> Message:
        self._record("edit_message", channel_id, message_id, fields)
        message = self._message(channel_id, message_id)
        if "content" in fields:
            message.content = fields["content"]
        if "embeds" in fields:
            message.embeds = [dict(item) for item in fields["embeds"]]
        message.edited_timestamp = "2024-01-02T00:00:00+00:00"
        return replace(message, embeds=list(message.embeds))

    async def delete_message(self, channel_id: str, message_id: str) -> None:
        self._record("delete_message", channel_id, message_id)
        self._message(channel_id, message_id)
        del self.messages[message_id]

    async def pin_message(self, channel_id: str, message_id: str) -> None:
        self._record("pin_message", channel_id, message_id)
        self._message(channel_id, message_id).pinned = True

    async def unpin_message(self, channel_id: str, message_id: str) -> None:
        self._record("unpin_message", channel_id, message_id)
        self._message(channel_id, message_id).pinned = False
