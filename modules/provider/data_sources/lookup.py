"""Read-only lookups of live Discord entities: servers, roles, members."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from modules.provider.base import DataSource, ResourceResult, fetch_or_none, remote_call
from modules.provider.client import DiscordAPI
from modules.provider.models import Guild, Member
from modules.provider.schema import exactly_one_of, get_str
from shared.errors import ProviderError
from shared.ids import get_major_id

__all__ = [
    "MemberDataSource",
    "MemberLookupConfig",
    "RoleDataSource",
    "RoleLookupConfig",
    "ServerDataSource",
    "ServerLookupConfig",
    "SystemChannelDataSource",
    "SystemChannelLookupConfig",
]

log = logging.getLogger("provider.data_sources")


async def _guild(api: DiscordAPI, server_id: str) -> Guild:
    with remote_call(
        f"Failed to fetch server {server_id}", operation="server.get", entity_id=server_id
    ):
        return await api.get_guild(server_id)


@dataclass(frozen=True, slots=True)
class ServerLookupConfig:
    server_id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ServerLookupConfig":
        exactly_one_of(values, ("server_id", "name"))
        return cls(server_id=get_str(values, "server_id"), name=get_str(values, "name"))


class ServerDataSource(DataSource[ServerLookupConfig]):
    type_name = "discord_server"
    config_type = ServerLookupConfig

    async def read(self, api: Optional[DiscordAPI], config: ServerLookupConfig) -> ResourceResult:
        if config.server_id:
            guild = await _guild(api, config.server_id)
        else:
            with remote_call(
                f"Failed to fetch server {config.name}", operation="server.list"
            ):
                guilds = await api.list_user_guilds()
            match = next((item for item in guilds if item.name == config.name), None)
            if match is None:
                raise ProviderError(f"Failed to fetch server {config.name}")
            guild = await _guild(api, match.id)

        attributes: dict[str, Any] = {
            "server_id": guild.id,
            "name": guild.name,
            "region": guild.region,
            "afk_timeout": guild.afk_timeout,
            "icon_hash": guild.icon,
            "splash_hash": guild.splash,
            "default_message_notifications": guild.default_message_notifications,
            "verification_level": guild.verification_level,
            "explicit_content_filter": guild.explicit_content_filter,
            "afk_channel_id": guild.afk_channel_id,
            "owner_id": guild.owner_id,
        }
        return ResourceResult(id=guild.id, attributes=attributes)


@dataclass(frozen=True, slots=True)
class RoleLookupConfig:
    server_id: str
    role_id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "RoleLookupConfig":
        exactly_one_of(values, ("role_id", "name"))
        return cls(
            server_id=get_major_id(get_str(values, "server_id", required=True)),
            role_id=get_str(values, "role_id"),
            name=get_str(values, "name"),
        )


class RoleDataSource(DataSource[RoleLookupConfig]):
    type_name = "discord_role"
    config_type = RoleLookupConfig

    async def read(self, api: Optional[DiscordAPI], config: RoleLookupConfig) -> ResourceResult:
        guild = await _guild(api, config.server_id)
        roles = guild.roles
        if not roles:
            with remote_call(
                f"Failed to fetch server {config.server_id}",
                operation="role.list",
                entity_id=config.server_id,
            ):
                roles = await api.get_roles(config.server_id)

        role = next(
            (
                item
                for item in roles
                if (config.role_id and item.id == config.role_id)
                or (config.name and item.name == config.name)
            ),
            None,
        )
        if role is None:
            raise ProviderError(
                f"Failed to find role {config.role_id or config.name} in {config.server_id}"
            )
        return ResourceResult(
            id=role.id,
            attributes={
                "server_id": config.server_id,
                "role_id": role.id,
                "name": role.name,
                # reported top-down: the highest role is 1
                "position": len(roles) - role.position,
                "color": role.color,
                "hoist": role.hoist,
                "mentionable": role.mentionable,
                "permissions": role.permissions,
                "managed": role.managed,
            },
        )


@dataclass(frozen=True, slots=True)
class MemberLookupConfig:
    server_id: str
    user_id: Optional[str] = None
    username: Optional[str] = None
    discriminator: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "MemberLookupConfig":
        exactly_one_of(values, ("user_id", "username"))
        return cls(
            server_id=get_major_id(get_str(values, "server_id", required=True)),
            user_id=get_str(values, "user_id"),
            username=get_str(values, "username"),
            discriminator=get_str(values, "discriminator"),
        )


def _matches(member: Member, username: str, discriminator: Optional[str]) -> bool:
    if member.user.username != username:
        return False
    return discriminator is None or member.user.discriminator == discriminator


class MemberDataSource(DataSource[MemberLookupConfig]):
    type_name = "discord_member"
    config_type = MemberLookupConfig

    async def _find(self, api: DiscordAPI, config: MemberLookupConfig) -> Optional[Member]:
        if config.user_id:
            return await fetch_or_none(
                api.get_member(config.server_id, config.user_id),
                f"Could not get member {config.user_id} in {config.server_id}",
                operation="member.get",
                entity_id=config.user_id,
            )
        with remote_call(
            f"Failed to fetch members for {config.server_id}",
            operation="member.search",
            entity_id=config.server_id,
        ):
            members = await api.search_members(config.server_id, config.username, limit=1)
        return next(
            (item for item in members if _matches(item, config.username, config.discriminator)),
            None,
        )

    async def read(self, api: Optional[DiscordAPI], config: MemberLookupConfig) -> ResourceResult:
        member = await self._find(api, config)
        if member is None:
            log.info(
                "member not in server",
                extra={"server_id": config.server_id, "user_id": config.user_id},
            )
            return ResourceResult(
                id=config.user_id or config.username,
                attributes={
                    "server_id": config.server_id,
                    "user_id": config.user_id,
                    "username": config.username,
                    "discriminator": config.discriminator,
                    "in_server": False,
                    "joined_at": None,
                    "premium_since": None,
                    "roles": [],
                    "avatar": None,
                    "nick": None,
                },
            )
        return ResourceResult(
            id=member.user.id,
            attributes={
                "server_id": config.server_id,
                "user_id": member.user.id,
                "username": member.user.username,
                "discriminator": member.user.discriminator,
                "in_server": True,
                "joined_at": member.joined_at,
                "premium_since": member.premium_since,
                "roles": list(member.roles),
                "avatar": member.user.avatar,
                "nick": member.nick,
            },
        )


@dataclass(frozen=True, slots=True)
class SystemChannelLookupConfig:
    server_id: str

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "SystemChannelLookupConfig":
        return cls(server_id=get_major_id(get_str(values, "server_id", required=True)))


class SystemChannelDataSource(DataSource[SystemChannelLookupConfig]):
    type_name = "discord_system_channel"
    config_type = SystemChannelLookupConfig

    async def read(
        self, api: Optional[DiscordAPI], config: SystemChannelLookupConfig
    ) -> ResourceResult:
        guild = await _guild(api, config.server_id)
        return ResourceResult(
            id=guild.id,
            attributes={"server_id": guild.id, "system_channel_id": guild.system_channel_id},
        )
