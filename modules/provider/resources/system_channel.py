"""``discord_system_channel``: the server's system message channel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from modules.provider.base import Resource, ResourceResult, fetch_or_none, remote_call
from modules.provider.client import DiscordAPI
from modules.provider.models import Guild
from modules.provider.schema import get_str
from shared.ids import get_major_id, get_minor_id

__all__ = ["SystemChannelConfig", "SystemChannelResource"]


@dataclass(frozen=True, slots=True)
class SystemChannelConfig:
    server_id: str
    system_channel_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "SystemChannelConfig":
        channel = get_str(values, "system_channel_id", required=True)
        return cls(
            server_id=get_major_id(get_str(values, "server_id", required=True)),
            system_channel_id=get_minor_id(channel),
        )


class SystemChannelResource(Resource[SystemChannelConfig]):
    """The resource id is the server id."""

    type_name = "discord_system_channel"
    config_type = SystemChannelConfig

    @staticmethod
    def _state(guild: Guild) -> ResourceResult:
        return ResourceResult(
            id=guild.id,
            attributes={"server_id": guild.id, "system_channel_id": guild.system_channel_id},
        )

    async def _get_guild(self, api: DiscordAPI, server_id: str) -> Guild:
        with remote_call(
            "Error fetching server", operation="system_channel.get_server", entity_id=server_id
        ):
            return await api.get_guild(server_id)

    async def _set(self, api: DiscordAPI, server_id: str, channel_id: Optional[str]) -> Guild:
        await self._get_guild(api, server_id)
        with remote_call(
            "Failed to edit server", operation="system_channel.edit", entity_id=server_id
        ):
            return await api.edit_guild(server_id, system_channel_id=channel_id)

    async def create(self, api: DiscordAPI, config: SystemChannelConfig) -> ResourceResult:
        guild = await self._set(api, config.server_id, config.system_channel_id)
        return self._state(guild)

    async def read(
        self, api: DiscordAPI, resource_id: str, config: SystemChannelConfig
    ) -> Optional[ResourceResult]:
        guild = await fetch_or_none(
            api.get_guild(resource_id),
            "Error fetching server",
            operation="system_channel.read",
            entity_id=resource_id,
        )
        if guild is None:
            return None
        return self._state(guild)

    async def update(
        self,
        api: DiscordAPI,
        resource_id: str,
        config: SystemChannelConfig,
        previous: Optional[SystemChannelConfig],
    ) -> ResourceResult:
        if previous is not None and previous.system_channel_id == config.system_channel_id:
            return self._state(await self._get_guild(api, config.server_id))
        guild = await self._set(api, config.server_id, config.system_channel_id)
        return self._state(guild)

    async def delete(
        self, api: DiscordAPI, resource_id: str, config: SystemChannelConfig
    ) -> list[str]:
        await self._set(api, config.server_id, None)
        return []

    def import_state(self, import_id: str) -> tuple[str, dict[str, Any]]:
        return import_id, {"server_id": import_id}
