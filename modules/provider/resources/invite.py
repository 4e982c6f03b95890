"""``discord_invite``: a channel invite. Invites cannot be edited in place."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from modules.provider.base import Resource, ResourceResult, fetch_or_none, remote_call
from modules.provider.client import DiscordAPI
from modules.provider.models import Invite
from modules.provider.schema import get_bool, get_int, get_str
from shared.ids import get_minor_id

__all__ = ["InviteConfig", "InviteResource"]


@dataclass(frozen=True, slots=True)
class InviteConfig:
    channel_id: str
    max_age: int = 86400
    max_uses: int = 0
    temporary: bool = False
    unique: bool = False

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "InviteConfig":
        return cls(
            channel_id=get_minor_id(get_str(values, "channel_id", required=True)),
            max_age=get_int(values, "max_age", default=86400, min_value=0),
            max_uses=get_int(values, "max_uses", default=0, min_value=0),
            temporary=get_bool(values, "temporary"),
            unique=get_bool(values, "unique"),
        )


class InviteResource(Resource[InviteConfig]):
    type_name = "discord_invite"
    supports_update = False
    config_type = InviteConfig

    @staticmethod
    def _state(config: InviteConfig, invite: Invite) -> ResourceResult:
        return ResourceResult(
            id=invite.code,
            attributes={
                "channel_id": invite.channel_id or config.channel_id,
                "max_age": config.max_age,
                "max_uses": config.max_uses,
                "temporary": config.temporary,
                "unique": config.unique,
                "code": invite.code,
            },
        )

    async def create(self, api: DiscordAPI, config: InviteConfig) -> ResourceResult:
        with remote_call(
            "Failed to create a invite",
            operation="invite.create",
            entity_id=config.channel_id,
        ):
            invite = await api.create_invite(
                config.channel_id,
                max_age=config.max_age,
                max_uses=config.max_uses,
                temporary=config.temporary,
                unique=config.unique,
            )
        return self._state(config, invite)

    async def read(
        self, api: DiscordAPI, resource_id: str, config: InviteConfig
    ) -> Optional[ResourceResult]:
        invite = await fetch_or_none(
            api.get_invite(resource_id),
            f"Failed to fetch invite {resource_id}",
            operation="invite.read",
            entity_id=resource_id,
        )
        if invite is None:
            return None
        return self._state(config, invite)

    async def delete(self, api: DiscordAPI, resource_id: str, config: InviteConfig) -> list[str]:
        await fetch_or_none(
            api.delete_invite(resource_id),
            f"Failed to delete invite {resource_id}",
            operation="invite.delete",
            entity_id=resource_id,
        )
        return []
