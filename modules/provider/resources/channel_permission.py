"""``discord_channel_permission``: one permission overwrite on one channel."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from modules.permissions.overwrites import OverwriteType
from modules.provider.base import Resource, ResourceResult, fetch_or_none, remote_call
from modules.provider.client import DiscordAPI
from modules.provider.schema import at_least_one_of, get_int, get_str
from shared.ids import generate_three_part_id, migrate_legacy_id, parse_three_ids

__all__ = ["ChannelPermissionConfig", "ChannelPermissionResource"]

log = logging.getLogger("provider.resources.channel_permission")


@dataclass(frozen=True, slots=True)
class ChannelPermissionConfig:
    channel_id: str
    type: OverwriteType
    overwrite_id: str
    allow: int = 0
    deny: int = 0

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ChannelPermissionConfig":
        at_least_one_of(values, ("allow", "deny"))
        return cls(
            channel_id=get_str(values, "channel_id", required=True),
            type=OverwriteType.parse(get_str(values, "type", required=True)),
            overwrite_id=get_str(values, "overwrite_id", required=True),
            allow=get_int(values, "allow", default=0, min_value=0),
            deny=get_int(values, "deny", default=0, min_value=0),
        )


class ChannelPermissionResource(Resource[ChannelPermissionConfig]):
    type_name = "discord_channel_permission"
    config_type = ChannelPermissionConfig

    @staticmethod
    def _resource_id(config: ChannelPermissionConfig) -> str:
        return generate_three_part_id(config.channel_id, config.overwrite_id, config.type.value)

    def _state(self, config: ChannelPermissionConfig, allow: int, deny: int) -> ResourceResult:
        return ResourceResult(
            id=self._resource_id(config),
            attributes={
                "channel_id": config.channel_id,
                "type": config.type.value,
                "overwrite_id": config.overwrite_id,
                "allow": allow,
                "deny": deny,
            },
        )

    async def _apply(self, api: DiscordAPI, config: ChannelPermissionConfig) -> ResourceResult:
        with remote_call(
            f"Failed to update channel permissions {config.channel_id}",
            operation="channel_permission.set",
            entity_id=config.channel_id,
        ):
            await api.edit_channel_permissions(
                config.channel_id,
                config.overwrite_id,
                overwrite_type=config.type,
                allow=config.allow,
                deny=config.deny,
            )
        return self._state(config, config.allow, config.deny)

    async def create(self, api: DiscordAPI, config: ChannelPermissionConfig) -> ResourceResult:
        return await self._apply(api, config)

    async def read(
        self, api: DiscordAPI, resource_id: str, config: ChannelPermissionConfig
    ) -> Optional[ResourceResult]:
        channel_id, overwrite_id, raw_type = parse_three_ids(resource_id)
        overwrite_type = OverwriteType.parse(raw_type)
        identity = ChannelPermissionConfig(
            channel_id=channel_id,
            type=overwrite_type,
            overwrite_id=overwrite_id,
        )

        channel = await fetch_or_none(
            api.get_channel(channel_id),
            f"Failed to find channel {channel_id}",
            operation="channel_permission.read",
            entity_id=channel_id,
        )
        if channel is None:
            return None

        for overwrite in channel.permission_overwrites:
            if overwrite.id == overwrite_id and overwrite.type is overwrite_type:
                return self._state(identity, overwrite.allow, overwrite.deny)

        log.warning(
            "Permission overwrite not found. Removing from state",
            extra={"channel_id": channel_id, "overwrite_id": overwrite_id},
        )
        return None

    async def update(
        self,
        api: DiscordAPI,
        resource_id: str,
        config: ChannelPermissionConfig,
        previous: Optional[ChannelPermissionConfig],
    ) -> ResourceResult:
        return await self._apply(api, config)

    async def delete(
        self, api: DiscordAPI, resource_id: str, config: ChannelPermissionConfig
    ) -> list[str]:
        await fetch_or_none(
            api.delete_channel_permission(config.channel_id, config.overwrite_id),
            f"Failed to delete channel permissions {config.channel_id}",
            operation="channel_permission.delete",
            entity_id=config.channel_id,
        )
        return []

    def migrate_state(self, resource_id: Optional[str], attributes: Mapping[str, Any]) -> Optional[str]:
        return migrate_legacy_id(resource_id, attributes, ("channel_id", "overwrite_id", "type"))
