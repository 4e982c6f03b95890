"""``discord_server`` and ``discord_managed_server``: guild-level settings.

``discord_server`` creates (and deletes) a guild owned by the bot.
``discord_managed_server`` adopts an existing guild by id and only edits it;
deleting it leaves the guild alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Optional

from modules.provider.base import Resource, ResourceResult, fetch_or_none, remote_call
from modules.provider.client import DiscordAPI
from modules.provider.images import data_uri_from_url
from modules.provider.models import Guild
from modules.provider.schema import conflicts_with, get_int, get_str
from shared.errors import ValidationError
from shared.ids import get_minor_id

__all__ = [
    "AFK_TIMEOUTS",
    "ManagedServerResource",
    "ServerConfig",
    "ServerResource",
]

log = logging.getLogger("provider.resources.server")

AFK_TIMEOUTS = (60, 300, 900, 1800, 3600)

# settings sent to Discord under the same name they carry in config
_SETTINGS = (
    "name",
    "region",
    "verification_level",
    "default_message_notifications",
    "explicit_content_filter",
    "afk_timeout",
    "afk_channel_id",
)


def _ranged(values: Mapping[str, Any], key: str, low: int, high: int) -> int:
    value = get_int(values, key, default=0)
    if value < low or value > high:
        raise ValidationError(
            f"{key} must be between {low} and {high} inclusive, got: {value}", attribute=key
        )
    return value


@dataclass(frozen=True, slots=True)
class ServerConfig:
    server_id: Optional[str] = None
    name: Optional[str] = None
    region: Optional[str] = None
    verification_level: int = 0
    explicit_content_filter: int = 0
    default_message_notifications: int = 0
    afk_channel_id: Optional[str] = None
    afk_timeout: int = 300
    icon_url: Optional[str] = None
    icon_data_uri: Optional[str] = None
    splash_url: Optional[str] = None
    splash_data_uri: Optional[str] = None
    owner_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], *, managed: bool = False) -> "ServerConfig":
        conflicts_with(values, "icon_url", "icon_data_uri")
        conflicts_with(values, "splash_url", "splash_data_uri")

        notifications = get_int(values, "default_message_notifications", default=0)
        if notifications not in (0, 1):
            raise ValidationError(
                f"default_message_notifications must be 0 or 1, got: {notifications}",
                attribute="default_message_notifications",
            )
        afk_timeout = get_int(values, "afk_timeout", default=300)
        if afk_timeout not in AFK_TIMEOUTS:
            raise ValidationError(
                "afk_timeout must be set to one of the following values: "
                f"{list(AFK_TIMEOUTS)}, but got: {afk_timeout}",
                attribute="afk_timeout",
            )
        afk_channel = get_str(values, "afk_channel_id")

        return cls(
            server_id=get_str(values, "server_id", required=managed),
            name=get_str(values, "name", required=not managed),
            region=get_str(values, "region"),
            verification_level=_ranged(values, "verification_level", 0, 4),
            explicit_content_filter=_ranged(values, "explicit_content_filter", 0, 2),
            default_message_notifications=notifications,
            afk_channel_id=get_minor_id(afk_channel) if afk_channel else None,
            afk_timeout=afk_timeout,
            icon_url=get_str(values, "icon_url"),
            icon_data_uri=get_str(values, "icon_data_uri"),
            splash_url=get_str(values, "splash_url"),
            splash_data_uri=get_str(values, "splash_data_uri"),
            owner_id=get_str(values, "owner_id"),
        )


async def _image(data_uri: Optional[str], url: Optional[str]) -> Optional[str]:
    if data_uri:
        return data_uri
    if url:
        return await data_uri_from_url(url)
    return None


class ServerResource(Resource[ServerConfig]):
    """The resource id is the server id."""

    type_name = "discord_server"
    config_type = ServerConfig
    managed: ClassVar[bool] = False

    def parse(self, values: Mapping[str, Any]) -> ServerConfig:
        return ServerConfig.from_mapping(values, managed=self.managed)

    @staticmethod
    def _state(config: ServerConfig, guild: Guild) -> ResourceResult:
        attributes: dict[str, Any] = {
            "server_id": guild.id,
            "name": guild.name,
            "region": guild.region,
            "verification_level": guild.verification_level,
            "explicit_content_filter": guild.explicit_content_filter,
            "default_message_notifications": guild.default_message_notifications,
            "afk_channel_id": guild.afk_channel_id,
            "afk_timeout": guild.afk_timeout,
            "icon_hash": guild.icon,
            "splash_hash": guild.splash,
            "owner_id": guild.owner_id,
        }
        for key in ("icon_url", "icon_data_uri", "splash_url", "splash_data_uri"):
            value = getattr(config, key)
            if value:
                attributes[key] = value
        return ResourceResult(id=guild.id, attributes=attributes)

    @staticmethod
    async def _get(api: DiscordAPI, server_id: str) -> Guild:
        with remote_call("Error fetching server", operation="server.get", entity_id=server_id):
            return await api.get_guild(server_id)

    @staticmethod
    async def _edit(
        api: DiscordAPI, server_id: str, fields: dict[str, Any], *, message: str = "Failed to edit server"
    ) -> Guild:
        with remote_call(message, operation="server.edit", entity_id=server_id):
            return await api.edit_guild(server_id, **fields)

    async def _changes(
        self, config: ServerConfig, previous: Optional[ServerConfig], guild: Guild
    ) -> dict[str, Any]:
        """Settings that differ from ``previous``; every declared one when it is None."""

        def changed(*keys: str) -> bool:
            if previous is None:
                return any(getattr(config, key) is not None for key in keys)
            return any(getattr(config, key) != getattr(previous, key) for key in keys)

        fields: dict[str, Any] = {}
        for key in _SETTINGS:
            value = getattr(config, key)
            if not changed(key):
                continue
            if value is None and key != "afk_channel_id":
                continue
            fields[key] = value
        if changed("icon_url", "icon_data_uri"):
            fields["icon"] = await _image(config.icon_data_uri, config.icon_url)
        if changed("splash_url", "splash_data_uri"):
            fields["splash"] = await _image(config.splash_data_uri, config.splash_url)
        # Discord rejects a transfer to the current owner
        if config.owner_id and config.owner_id != guild.owner_id:
            fields["owner_id"] = config.owner_id
        return fields

    async def create(self, api: DiscordAPI, config: ServerConfig) -> ResourceResult:
        with remote_call("Failed to create server", operation="server.create"):
            guild = await api.create_guild(config.name)

        fields = await self._changes(config, None, guild)
        fields.pop("name", None)
        owner_id = fields.pop("owner_id", None)
        if fields:
            guild = await self._edit(api, guild.id, fields)

        # new guilds come with default channels
        with remote_call(
            "Failed to delete channel for new server",
            operation="server.clear_channels",
            entity_id=guild.id,
        ):
            for channel in await api.get_guild_channels(guild.id):
                await api.delete_channel(channel.id)

        if owner_id:
            guild = await self._edit(
                api,
                guild.id,
                {"owner_id": owner_id},
                message="Failed to transfer server ownership",
            )
        log.info("server created", extra={"server_id": guild.id, "server_name": guild.name})
        return self._state(config, guild)

    async def read(
        self, api: DiscordAPI, resource_id: str, config: ServerConfig
    ) -> Optional[ResourceResult]:
        guild = await fetch_or_none(
            api.get_guild(resource_id),
            "Error fetching server",
            operation="server.read",
            entity_id=resource_id,
        )
        if guild is None:
            return None
        return self._state(config, guild)

    async def update(
        self,
        api: DiscordAPI,
        resource_id: str,
        config: ServerConfig,
        previous: Optional[ServerConfig],
    ) -> ResourceResult:
        guild = await self._get(api, resource_id)
        fields = await self._changes(config, previous, guild)
        if fields:
            guild = await self._edit(api, resource_id, fields)
            log.info(
                "server updated",
                extra={"server_id": resource_id, "fields": sorted(fields)},
            )
        return self._state(config, guild)

    async def delete(self, api: DiscordAPI, resource_id: str, config: ServerConfig) -> list[str]:
        with remote_call("Failed to delete server", operation="server.delete", entity_id=resource_id):
            await api.delete_guild(resource_id)
        return []

    def import_state(self, import_id: str) -> tuple[str, dict[str, Any]]:
        return import_id, {"server_id": import_id}


class ManagedServerResource(ServerResource):
    type_name = "discord_managed_server"
    managed = True

    async def create(self, api: DiscordAPI, config: ServerConfig) -> ResourceResult:
        return await self.update(api, config.server_id, config, None)

    async def delete(self, api: DiscordAPI, resource_id: str, config: ServerConfig) -> list[str]:
        log.info("managed server released", extra={"server_id": resource_id})
        return []
