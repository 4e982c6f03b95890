"""``discord_message``: a bot-authored message with an optional embed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from modules.provider.base import Resource, ResourceResult, fetch_or_none, remote_call
from modules.provider.client import DiscordAPI
from modules.provider.embeds import parse_embed, unbuild_embed
from modules.provider.models import Message
from modules.provider.schema import at_least_one_of, get_bool, get_str
from shared.errors import RemoteCallError, ValidationError
from shared.ids import get_minor_id, parse_two_ids

__all__ = ["MessageConfig", "MessageResource"]

log = logging.getLogger("provider.resources.message")


@dataclass(frozen=True, slots=True)
class MessageConfig:
    channel_id: str
    content: str = ""
    tts: bool = False
    embed: Optional[dict[str, Any]] = None
    pinned: bool = False

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "MessageConfig":
        at_least_one_of(values, ("content", "embed"))
        content = get_str(values, "content", default="")
        return cls(
            channel_id=get_minor_id(get_str(values, "channel_id", required=True)),
            # heredoc content ends in a newline Discord does not keep
            content=content.removesuffix("\r\n").removesuffix("\n"),
            tts=get_bool(values, "tts"),
            embed=parse_embed(values.get("embed")),
            pinned=get_bool(values, "pinned"),
        )


class MessageResource(Resource[MessageConfig]):
    """Messages are addressed by their snowflake; ``channel_id`` rides along in config."""

    type_name = "discord_message"
    config_type = MessageConfig

    @staticmethod
    def _state(config: MessageConfig, message: Message) -> ResourceResult:
        return ResourceResult(
            id=message.id,
            attributes={
                "channel_id": message.channel_id or config.channel_id,
                "server_id": message.guild_id,
                "author": message.author_id,
                "content": message.content,
                "timestamp": message.timestamp,
                "edited_timestamp": message.edited_timestamp,
                "tts": message.tts,
                "pinned": message.pinned,
                "type": message.type,
                "embed": [unbuild_embed(message.embeds[0])] if message.embeds else [],
            },
        )

    async def _set_pinned(self, api: DiscordAPI, message: Message, pinned: bool) -> None:
        action = "pin" if pinned else "unpin"
        with remote_call(
            f"Failed to {action} message {message.id} in {message.channel_id}",
            operation=f"message.{action}",
            entity_id=message.id,
        ):
            if pinned:
                await api.pin_message(message.channel_id, message.id)
            else:
                await api.unpin_message(message.channel_id, message.id)
        message.pinned = pinned

    async def create(self, api: DiscordAPI, config: MessageConfig) -> ResourceResult:
        fields: dict[str, Any] = {"content": config.content, "tts": config.tts}
        if config.embed:
            fields["embeds"] = [config.embed]
        with remote_call(
            f"Failed to create message in {config.channel_id}",
            operation="message.create",
            entity_id=config.channel_id,
        ):
            message = await api.create_message(config.channel_id, **fields)
        log.info(
            "message created",
            extra={"channel_id": config.channel_id, "message_id": message.id},
        )

        warnings: list[str] = []
        if config.pinned:
            # the message stays when pinning fails
            try:
                await self._set_pinned(api, message, True)
            except RemoteCallError as exc:
                warnings.append(str(exc))
        result = self._state(config, message)
        result.warnings.extend(warnings)
        return result

    async def read(
        self, api: DiscordAPI, resource_id: str, config: MessageConfig
    ) -> Optional[ResourceResult]:
        message = await fetch_or_none(
            api.get_message(config.channel_id, resource_id),
            f"Failed to fetch message {resource_id} in {config.channel_id}",
            operation="message.read",
            entity_id=resource_id,
        )
        if message is None:
            return None
        return self._state(config, message)

    async def update(
        self,
        api: DiscordAPI,
        resource_id: str,
        config: MessageConfig,
        previous: Optional[MessageConfig],
    ) -> ResourceResult:
        if previous is not None and previous.channel_id != config.channel_id:
            raise ValidationError(
                "channel_id cannot change; the message must be replaced",
                attribute="channel_id",
            )
        with remote_call(
            f"Failed to fetch message {resource_id} in {config.channel_id}",
            operation="message.read",
            entity_id=resource_id,
        ):
            message = await api.get_message(config.channel_id, resource_id)

        fields: dict[str, Any] = {}
        if previous is None or previous.content != config.content:
            fields["content"] = config.content
        if previous is None or previous.embed != config.embed:
            fields["embeds"] = [config.embed] if config.embed else []
        if fields:
            with remote_call(
                f"Failed to update message {resource_id} in {config.channel_id}",
                operation="message.update",
                entity_id=resource_id,
            ):
                message = await api.edit_message(config.channel_id, resource_id, **fields)

        if message.pinned != config.pinned:
            await self._set_pinned(api, message, config.pinned)
        return self._state(config, message)

    async def delete(self, api: DiscordAPI, resource_id: str, config: MessageConfig) -> list[str]:
        with remote_call(
            f"Failed to delete message {resource_id} in {config.channel_id}",
            operation="message.delete",
            entity_id=resource_id,
        ):
            await api.delete_message(config.channel_id, resource_id)
        return []

    def import_state(self, import_id: str) -> tuple[str, dict[str, Any]]:
        channel_id, message_id = parse_two_ids(import_id)
        return message_id, {"channel_id": channel_id}
