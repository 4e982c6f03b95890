"""``discord_webhook``: a channel webhook and its derived URLs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from modules.provider.base import Resource, ResourceResult, fetch_or_none, remote_call
from modules.provider.client import DiscordAPI
from modules.provider.images import data_uri_from_url
from modules.provider.models import Webhook
from modules.provider.schema import conflicts_with, get_str
from shared.ids import get_minor_id

__all__ = ["WebhookConfig", "WebhookResource"]

log = logging.getLogger("provider.resources.webhook")


@dataclass(frozen=True, slots=True)
class WebhookConfig:
    channel_id: str
    name: str
    avatar_url: Optional[str] = None
    avatar_data_uri: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "WebhookConfig":
        conflicts_with(values, "avatar_url", "avatar_data_uri")
        return cls(
            channel_id=get_minor_id(get_str(values, "channel_id", required=True)),
            name=get_str(values, "name", required=True),
            avatar_url=get_str(values, "avatar_url"),
            avatar_data_uri=get_str(values, "avatar_data_uri"),
        )


async def resolve_avatar(config: WebhookConfig) -> str:
    if config.avatar_data_uri:
        return config.avatar_data_uri
    if config.avatar_url:
        return await data_uri_from_url(config.avatar_url)
    return ""


class WebhookResource(Resource[WebhookConfig]):
    type_name = "discord_webhook"
    config_type = WebhookConfig

    @staticmethod
    def _state(config: WebhookConfig, webhook: Webhook) -> ResourceResult:
        url = webhook.url
        attributes: dict[str, Any] = {
            "channel_id": webhook.channel_id or config.channel_id,
            "name": webhook.name,
            "avatar_hash": webhook.avatar,
            "token": webhook.token,
            "url": url,
            "slack_url": f"{url}/slack",
            "github_url": f"{url}/github",
        }
        if config.avatar_url:
            attributes["avatar_url"] = config.avatar_url
        if config.avatar_data_uri:
            attributes["avatar_data_uri"] = config.avatar_data_uri
        return ResourceResult(id=webhook.id, attributes=attributes)

    async def create(self, api: DiscordAPI, config: WebhookConfig) -> ResourceResult:
        avatar = await resolve_avatar(config)
        with remote_call(
            "Failed to create webhook",
            operation="webhook.create",
            entity_id=config.channel_id,
        ):
            webhook = await api.create_webhook(
                config.channel_id, name=config.name, avatar=avatar or None
            )
        log.info(
            "webhook created",
            extra={"channel_id": config.channel_id, "webhook_id": webhook.id},
        )
        return self._state(config, webhook)

    async def read(
        self, api: DiscordAPI, resource_id: str, config: WebhookConfig
    ) -> Optional[ResourceResult]:
        webhook = await fetch_or_none(
            api.get_webhook(get_minor_id(resource_id)),
            f"Failed to fetch webhook {resource_id}",
            operation="webhook.read",
            entity_id=resource_id,
        )
        if webhook is None:
            return None
        return self._state(config, webhook)

    async def update(
        self,
        api: DiscordAPI,
        resource_id: str,
        config: WebhookConfig,
        previous: Optional[WebhookConfig],
    ) -> ResourceResult:
        avatar = await resolve_avatar(config)
        with remote_call(
            f"Failed to update webhook {resource_id}",
            operation="webhook.update",
            entity_id=resource_id,
        ):
            webhook = await api.edit_webhook(
                get_minor_id(resource_id),
                channel_id=config.channel_id,
                name=config.name,
                avatar=avatar or None,
            )
        return self._state(config, webhook)

    async def delete(self, api: DiscordAPI, resource_id: str, config: WebhookConfig) -> list[str]:
        with remote_call(
            f"Failed to delete webhook {resource_id}",
            operation="webhook.delete",
            entity_id=resource_id,
        ):
            await api.delete_webhook(get_minor_id(resource_id))
        return []
