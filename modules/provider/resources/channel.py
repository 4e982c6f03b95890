"""Guild channel resources: category, text, voice and news.

All four share one config shape and one implementation; each concrete
resource pins the channel type and the attributes that apply to it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Optional

from modules.permissions.overwrites import overwrites_synced, sync_overwrites
from modules.provider.base import Resource, ResourceResult, fetch_or_none, remote_call
from modules.provider.client import DiscordAPI
from modules.provider.models import Channel, channel_type_name, channel_type_value
from modules.provider.schema import get_bool, get_int, get_str, is_set
from shared.errors import ProviderError, RemoteCallError, ValidationError
from shared.ids import get_major_id, get_minor_id

__all__ = [
    "CategoryChannelResource",
    "ChannelConfig",
    "ChannelResource",
    "NewsChannelResource",
    "TextChannelResource",
    "VoiceChannelResource",
]

log = logging.getLogger("provider.resources.channel")

DEFAULT_BITRATE = 64000


def _given(values: Mapping[str, Any], key: str) -> bool:
    """Zero values count as absent, the way the schema layer reports them."""

    if not is_set(values, key):
        return False
    return values[key] not in (False, 0)


def _validate(channel_type: str, values: Mapping[str, Any]) -> None:
    declared = get_str(values, "type", default=channel_type)
    if declared != channel_type:
        raise ValidationError(
            f"type must be {channel_type}, {declared} passed", attribute="type"
        )

    if channel_type == "category":
        if _given(values, "category"):
            raise ValidationError(
                "category cannot be a child of another category", attribute="category"
            )
        if _given(values, "nsfw"):
            raise ValidationError("nsfw is not allowed on categories", attribute="nsfw")
    elif channel_type == "voice":
        if _given(values, "topic"):
            raise ValidationError("topic is not allowed on voice channels", attribute="topic")
        if _given(values, "nsfw"):
            raise ValidationError("nsfw is not allowed on voice channels", attribute="nsfw")
    elif channel_type in {"text", "news"}:
        if _given(values, "bitrate"):
            raise ValidationError(
                "bitrate is not allowed on text channels", attribute="bitrate"
            )
        if _given(values, "user_limit") and get_int(values, "user_limit", default=0) > 0:
            raise ValidationError(
                "user_limit is not allowed on text channels", attribute="user_limit"
            )
        name = get_str(values, "name", default="") or ""
        if name.lower() != name:
            raise ValidationError("name must be lowercase", attribute="name")


@dataclass(frozen=True, slots=True)
class ChannelConfig:
    type: str
    server_id: str
    name: str
    position: int = 1
    category: Optional[str] = None
    sync_perms_with_category: bool = True
    topic: str = ""
    nsfw: bool = False
    bitrate: int = DEFAULT_BITRATE
    user_limit: int = 0

    @classmethod
    def from_mapping(
        cls, values: Mapping[str, Any], *, channel_type: str = "text"
    ) -> "ChannelConfig":
        _validate(channel_type, values)
        position = get_int(values, "position", default=1)
        if position < 0:
            raise ValidationError(
                f"position must be greater than 0, got: {position}", attribute="position"
            )
        category = None
        sync = False
        if channel_type != "category":
            raw_category = get_str(values, "category")
            category = get_minor_id(raw_category) if raw_category else None
            sync = get_bool(values, "sync_perms_with_category", default=True)
        return cls(
            type=channel_type,
            server_id=get_major_id(get_str(values, "server_id", required=True)),
            name=get_str(values, "name", required=True),
            position=position,
            category=category,
            sync_perms_with_category=sync,
            topic=get_str(values, "topic", default="") or "",
            nsfw=get_bool(values, "nsfw"),
            bitrate=get_int(values, "bitrate", default=DEFAULT_BITRATE, min_value=0),
            user_limit=get_int(values, "user_limit", default=0, min_value=0),
        )

    @property
    def is_category(self) -> bool:
        return self.type == "category"

    @property
    def has_text(self) -> bool:
        return self.type in {"text", "news"}


class ChannelResource(Resource[ChannelConfig]):
    channel_type: ClassVar[str]
    config_type = ChannelConfig

    def parse(self, values: Mapping[str, Any]) -> ChannelConfig:
        return ChannelConfig.from_mapping(values, channel_type=self.channel_type)

    async def _get_channel(self, api: DiscordAPI, channel_id: str) -> Channel:
        with remote_call(
            f"Failed to fetch channel {channel_id}",
            operation="channel.get",
            entity_id=channel_id,
        ):
            return await api.get_channel(channel_id)

    async def _sync_with_category(
        self, api: DiscordAPI, config: ChannelConfig, channel: Channel
    ) -> None:
        if config.is_category or not config.sync_perms_with_category or not config.category:
            return
        if channel.parent_id is None:
            raise ProviderError(
                f"Can't sync permissions with category. Channel ({channel.id}) doesn't have a category"
            )
        try:
            parent = await self._get_channel(api, channel.parent_id)
        except RemoteCallError as exc:
            raise ProviderError(
                f"Can't sync permissions with category. Channel ({channel.id}) doesn't have a category"
            ) from exc
        await sync_overwrites(api, parent, channel)

    def _state(self, channel: Channel, synced: Optional[bool]) -> ResourceResult:
        name, _ = channel_type_name(channel.type)
        attributes: dict[str, Any] = {
            "server_id": channel.guild_id,
            "type": name,
            "name": channel.name,
            "position": channel.position,
            "channel_id": channel.id,
        }
        if name in {"text", "news"}:
            attributes["topic"] = channel.topic
            attributes["nsfw"] = channel.nsfw
        elif name == "voice":
            attributes["bitrate"] = channel.bitrate
            attributes["user_limit"] = channel.user_limit
        if name != "category":
            attributes["category"] = channel.parent_id
            attributes["sync_perms_with_category"] = synced
        return ResourceResult(id=channel.id, attributes=attributes)

    async def create(self, api: DiscordAPI, config: ChannelConfig) -> ResourceResult:
        type_value, _ = channel_type_value(config.type)
        fields: dict[str, Any] = {
            "name": config.name,
            "type": type_value,
            "position": config.position,
        }
        if config.has_text:
            fields["topic"] = config.topic
            fields["nsfw"] = config.nsfw
        elif config.type == "voice":
            fields["bitrate"] = config.bitrate
            fields["user_limit"] = config.user_limit
        if config.category:
            fields["parent_id"] = config.category

        with remote_call(
            "Failed to create channel", operation="channel.create", entity_id=config.server_id
        ):
            channel = await api.create_channel(config.server_id, **fields)
        if channel.guild_id is None:
            channel.guild_id = config.server_id

        log.info(
            "channel created",
            extra={"server_id": config.server_id, "channel_id": channel.id, "type": config.type},
        )
        await self._sync_with_category(api, config, channel)
        synced = None if config.is_category else bool(config.category and config.sync_perms_with_category)
        return self._state(channel, synced)

    async def read(
        self, api: DiscordAPI, resource_id: str, config: ChannelConfig
    ) -> Optional[ResourceResult]:
        channel_id = get_minor_id(resource_id)
        channel = await fetch_or_none(
            api.get_channel(channel_id),
            f"Failed to fetch channel {resource_id}",
            operation="channel.read",
            entity_id=channel_id,
        )
        if channel is None:
            return None

        name, known = channel_type_name(channel.type)
        if not known:
            raise ProviderError(f"Invalid channel type: {channel.type}")

        synced: Optional[bool] = None
        if name != "category":
            if channel.parent_id is None:
                synced = False
            else:
                with remote_call(
                    f"Failed to fetch category of channel {channel.id}",
                    operation="channel.read_category",
                    entity_id=channel.parent_id,
                ):
                    parent = await api.get_channel(channel.parent_id)
                synced = overwrites_synced(channel.permission_overwrites, parent.permission_overwrites)
        return self._state(channel, synced)

    async def update(
        self,
        api: DiscordAPI,
        resource_id: str,
        config: ChannelConfig,
        previous: Optional[ChannelConfig],
    ) -> ResourceResult:
        channel = await self._get_channel(api, get_minor_id(resource_id))

        def changed(attribute: str) -> bool:
            return previous is None or getattr(previous, attribute) != getattr(config, attribute)

        fields: dict[str, Any] = {
            "name": config.name if changed("name") else channel.name,
            "position": config.position if changed("position") else channel.position,
        }
        if config.has_text:
            fields["topic"] = config.topic if changed("topic") else channel.topic
            fields["nsfw"] = config.nsfw if changed("nsfw") else channel.nsfw
        elif config.type == "voice":
            fields["bitrate"] = config.bitrate if changed("bitrate") else channel.bitrate
            fields["user_limit"] = config.user_limit if changed("user_limit") else channel.user_limit
        if not config.is_category and changed("category"):
            fields["parent_id"] = config.category

        with remote_call(
            f"Failed to update channel {resource_id}",
            operation="channel.update",
            entity_id=channel.id,
        ):
            channel = await api.edit_channel(channel.id, **fields)

        await self._sync_with_category(api, config, channel)
        synced = None if config.is_category else bool(config.category and config.sync_perms_with_category)
        return self._state(channel, synced)

    async def delete(self, api: DiscordAPI, resource_id: str, config: ChannelConfig) -> list[str]:
        with remote_call(
            f"Failed to delete channel {resource_id}",
            operation="channel.delete",
            entity_id=resource_id,
        ):
            await api.delete_channel(get_minor_id(resource_id))
        return []


class CategoryChannelResource(ChannelResource):
    type_name = "discord_category_channel"
    channel_type = "category"


class TextChannelResource(ChannelResource):
    type_name = "discord_text_channel"
    channel_type = "text"


class VoiceChannelResource(ChannelResource):
    type_name = "discord_voice_channel"
    channel_type = "voice"


class NewsChannelResource(ChannelResource):
    type_name = "discord_news_channel"
    channel_type = "news"
