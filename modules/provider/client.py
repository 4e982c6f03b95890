"""Discord REST access used by provider resources.

Resources talk to :class:`DiscordAPI` only. The production implementation
rides on discord.py's HTTP client, which owns authentication and rate limits.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Optional, Protocol, Sequence

import discord
from discord.http import HTTPClient, Route

from modules.permissions.overwrites import OverwriteType
from shared.config import ProviderSettings
from shared.errors import RemoteCallError

from .models import Channel, Guild, Invite, Member, Message, Role, Webhook

__all__ = ["DiscordAPI", "DiscordHTTPClient", "open_client"]

log = logging.getLogger("provider.client")

AUDIT_REASON = "Managed by discord-provider"


class DiscordAPI(Protocol):
    """Operations the provider needs from Discord."""

    async def get_guild(self, guild_id: str) -> Guild: ...

    async def list_user_guilds(self) -> list[Guild]: ...

    async def edit_guild(self, guild_id: str, **fields: Any) -> Guild: ...

    async def create_guild(self, name: str) -> Guild: ...

    async def delete_guild(self, guild_id: str) -> None: ...

    async def get_guild_channels(self, guild_id: str) -> list[Channel]: ...

    async def get_channel(self, channel_id: str) -> Channel: ...

    async def create_channel(self, guild_id: str, **fields: Any) -> Channel: ...

    async def edit_channel(self, channel_id: str, **fields: Any) -> Channel: ...

    async def delete_channel(self, channel_id: str) -> None: ...

    async def edit_channel_permissions(
        self,
        channel_id: str,
        overwrite_id: str,
        *,
        overwrite_type: OverwriteType,
        allow: int,
        deny: int,
    ) -> None: ...

    async def delete_channel_permission(self, channel_id: str, overwrite_id: str) -> None: ...

    async def get_roles(self, guild_id: str) -> list[Role]: ...

    async def create_role(self, guild_id: str, **fields: Any) -> Role: ...

    async def edit_role(self, guild_id: str, role_id: str, **fields: Any) -> Role: ...

    async def delete_role(self, guild_id: str, role_id: str) -> None: ...

    async def reorder_roles(
        self, guild_id: str, positions: Sequence[tuple[str, int]]
    ) -> list[Role]: ...

    async def get_member(self, guild_id: str, user_id: str) -> Member: ...

    async def search_members(self, guild_id: str, query: str, *, limit: int = 1) -> list[Member]: ...

    async def edit_member_roles(
        self, guild_id: str, user_id: str, roles: Iterable[str]
    ) -> Member: ...

    async def create_invite(self, channel_id: str, **fields: Any) -> Invite: ...

    async def get_invite(self, code: str) -> Invite: ...

    async def delete_invite(self, code: str) -> None: ...

    async def create_webhook(
        self, channel_id: str, *, name: str, avatar: Optional[str] = None
    ) -> Webhook: ...

    async def get_webhook(self, webhook_id: str) -> Webhook: ...

    async def edit_webhook(self, webhook_id: str, **fields: Any) -> Webhook: ...

    async def delete_webhook(self, webhook_id: str) -> None: ...

    async def create_message(self, channel_id: str, **fields: Any) -> Message: ...

    async def get_message(self, channel_id: str, message_id: str) -> Message: ...

    async def edit_message(self, channel_id: str, message_id: str, **fields: Any) -> Message: ...

    async def delete_message(self, channel_id: str, message_id: str) -> None: ...

    async def pin_message(self, channel_id: str, message_id: str) -> None: ...

    async def unpin_message(self, channel_id: str, message_id: str) -> None: ...


class DiscordHTTPClient:
    """:class:`DiscordAPI` backed by a logged-in ``discord.http.HTTPClient``."""

    def __init__(self, http: HTTPClient, *, reason: str = AUDIT_REASON) -> None:
        self.http = http
        self.reason = reason

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        params = kwargs.pop("route_params", {})
        return await self.http.request(Route(method, path, **params), **kwargs)

    # guilds

    async def get_guild(self, guild_id: str) -> Guild:
        data = await self._request(
            "GET", "/guilds/{guild_id}", route_params={"guild_id": guild_id}
        )
        return Guild.from_payload(data)

    async def list_user_guilds(self) -> list[Guild]:
        data = await self._request("GET", "/users/@me/guilds", params={"limit": 200})
        return [Guild.from_payload(item) for item in data or []]

    async def edit_guild(self, guild_id: str, **fields: Any) -> Guild:
        data = await self._request(
            "PATCH",
            "/guilds/{guild_id}",
            route_params={"guild_id": guild_id},
            json=fields,
            reason=self.reason,
        )
        return Guild.from_payload(data)

    async def create_guild(self, name: str) -> Guild:
        data = await self._request("POST", "/guilds", json={"name": name})
        return Guild.from_payload(data)

    async def delete_guild(self, guild_id: str) -> None:
        await self._request(
            "DELETE", "/guilds/{guild_id}", route_params={"guild_id": guild_id}
        )

    async def get_guild_channels(self, guild_id: str) -> list[Channel]:
        data = await self._request(
            "GET", "/guilds/{guild_id}/channels", route_params={"guild_id": guild_id}
        )
        return [Channel.from_payload(item) for item in data or []]

    # channels

    async def get_channel(self, channel_id: str) -> Channel:
        data = await self._request(
            "GET", "/channels/{channel_id}", route_params={"channel_id": channel_id}
        )
        return Channel.from_payload(data)

    async def create_channel(self, guild_id: str, **fields: Any) -> Channel:
        data = await self._request(
            "POST",
            "/guilds/{guild_id}/channels",
            route_params={"guild_id": guild_id},
            json=fields,
            reason=self.reason,
        )
        return Channel.from_payload(data)

    async def edit_channel(self, channel_id: str, **fields: Any) -> Channel:
        data = await self._request(
            "PATCH",
            "/channels/{channel_id}",
            route_params={"channel_id": channel_id},
            json=fields,
            reason=self.reason,
        )
        return Channel.from_payload(data)

    async def delete_channel(self, channel_id: str) -> None:
        await self._request(
            "DELETE",
            "/channels/{channel_id}",
            route_params={"channel_id": channel_id},
            reason=self.reason,
        )

    async def edit_channel_permissions(
        self,
        channel_id: str,
        overwrite_id: str,
        *,
        overwrite_type: OverwriteType,
        allow: int,
        deny: int,
    ) -> None:
        await self._request(
            "PUT",
            "/channels/{channel_id}/permissions/{target}",
            route_params={"channel_id": channel_id, "target": overwrite_id},
            json={"allow": str(allow), "deny": str(deny), "type": overwrite_type.api_value},
            reason=self.reason,
        )

    async def delete_channel_permission(self, channel_id: str, overwrite_id: str) -> None:
        await self._request(
            "DELETE",
            "/channels/{channel_id}/permissions/{target}",
            route_params={"channel_id": channel_id, "target": overwrite_id},
            reason=self.reason,
        )

    # roles

    async def get_roles(self, guild_id: str) -> list[Role]:
        data = await self._request(
            "GET", "/guilds/{guild_id}/roles", route_params={"guild_id": guild_id}
        )
        return [Role.from_payload(item) for item in data or []]

    async def create_role(self, guild_id: str, **fields: Any) -> Role:
        if "permissions" in fields:
            fields["permissions"] = str(fields["permissions"])
        data = await self._request(
            "POST",
            "/guilds/{guild_id}/roles",
            route_params={"guild_id": guild_id},
            json=fields,
            reason=self.reason,
        )
        return Role.from_payload(data)

    async def edit_role(self, guild_id: str, role_id: str, **fields: Any) -> Role:
        if "permissions" in fields:
            fields["permissions"] = str(fields["permissions"])
        data = await self._request(
            "PATCH",
            "/guilds/{guild_id}/roles/{role_id}",
            route_params={"guild_id": guild_id, "role_id": role_id},
            json=fields,
            reason=self.reason,
        )
        return Role.from_payload(data)

    async def delete_role(self, guild_id: str, role_id: str) -> None:
        await self._request(
            "DELETE",
            "/guilds/{guild_id}/roles/{role_id}",
            route_params={"guild_id": guild_id, "role_id": role_id},
            reason=self.reason,
        )

    async def reorder_roles(
        self, guild_id: str, positions: Sequence[tuple[str, int]]
    ) -> list[Role]:
        payload = [{"id": role_id, "position": position} for role_id, position in positions]
        data = await self._request(
            "PATCH",
            "/guilds/{guild_id}/roles",
            route_params={"guild_id": guild_id},
            json=payload,
            reason=self.reason,
        )
        return [Role.from_payload(item) for item in data or []]

    # members

    async def get_member(self, guild_id: str, user_id: str) -> Member:
        data = await self._request(
            "GET",
            "/guilds/{guild_id}/members/{user_id}",
            route_params={"guild_id": guild_id, "user_id": user_id},
        )
        return Member.from_payload(data)

    async def search_members(self, guild_id: str, query: str, *, limit: int = 1) -> list[Member]:
        data = await self._request(
            "GET",
            "/guilds/{guild_id}/members/search",
            route_params={"guild_id": guild_id},
            params={"query": query, "limit": limit},
        )
        return [Member.from_payload(item) for item in data or []]

    async def edit_member_roles(
        self, guild_id: str, user_id: str, roles: Iterable[str]
    ) -> Member:
        data = await self._request(
            "PATCH",
            "/guilds/{guild_id}/members/{user_id}",
            route_params={"guild_id": guild_id, "user_id": user_id},
            json={"roles": list(roles)},
            reason=self.reason,
        )
        return Member.from_payload(data)

    # invites

    async def create_invite(self, channel_id: str, **fields: Any) -> Invite:
        data = await self._request(
            "POST",
            "/channels/{channel_id}/invites",
            route_params={"channel_id": channel_id},
            json=fields,
            reason=self.reason,
        )
        return Invite.from_payload(data)

    async def get_invite(self, code: str) -> Invite:
        data = await self._request(
            "GET", "/invites/{invite_id}", route_params={"invite_id": code}
        )
        return Invite.from_payload(data)

    async def delete_invite(self, code: str) -> None:
        await self._request(
            "DELETE",
            "/invites/{invite_id}",
            route_params={"invite_id": code},
            reason=self.reason,
        )

    # webhooks

    async def create_webhook(
        self, channel_id: str, *, name: str, avatar: Optional[str] = None
    ) -> Webhook:
        payload: dict[str, Any] = {"name": name}
        if avatar:
            payload["avatar"] = avatar
        data = await self._request(
            "POST",
            "/channels/{channel_id}/webhooks",
            route_params={"channel_id": channel_id},
            json=payload,
            reason=self.reason,
        )
        return Webhook.from_payload(data)

    async def get_webhook(self, webhook_id: str) -> Webhook:
        data = await self._request(
            "GET", "/webhooks/{webhook_id}", route_params={"webhook_id": webhook_id}
        )
        return Webhook.from_payload(data)

    async def edit_webhook(self, webhook_id: str, **fields: Any) -> Webhook:
        data = await self._request(
            "PATCH",
            "/webhooks/{webhook_id}",
            route_params={"webhook_id": webhook_id},
            json=fields,
            reason=self.reason,
        )
        return Webhook.from_payload(data)

    async def delete_webhook(self, webhook_id: str) -> None:
        await self._request(
            "DELETE",
            "/webhooks/{webhook_id}",
            route_params={"webhook_id": webhook_id},
            reason=self.reason,
        )

    # messages

    async def create_message(self, channel_id: str, **fields: Any) -> Message:
        data = await self._request(
            "POST",
            "/channels/{channel_id}/messages",
            route_params={"channel_id": channel_id},
            json=fields,
        )
        return Message.from_payload(data)

    async def get_message(self, channel_id: str, message_id: str) -> Message:
        data = await self._request(
            "GET",
            "/channels/{channel_id}/messages/{message_id}",
            route_params={"channel_id": channel_id, "message_id": message_id},
        )
        return Message.from_payload(data)

    async def edit_message(self, channel_id: str, message_id: str, **fields: Any) -> Message:
        data = await self._request(
            "PATCH",
            "/channels/{channel_id}/messages/{message_id}",
            route_params={"channel_id": channel_id, "message_id": message_id},
            json=fields,
        )
        return Message.from_payload(data)

    async def delete_message(self, channel_id: str, message_id: str) -> None:
        await self._request(
            "DELETE",
            "/channels/{channel_id}/messages/{message_id}",
            route_params={"channel_id": channel_id, "message_id": message_id},
            reason=self.reason,
        )

    async def pin_message(self, channel_id: str, message_id: str) -> None:
        await self._request(
            "PUT",
            "/channels/{channel_id}/pins/{message_id}",
            route_params={"channel_id": channel_id, "message_id": message_id},
            reason=self.reason,
        )

    async def unpin_message(self, channel_id: str, message_id: str) -> None:
        await self._request(
            "DELETE",
            "/channels/{channel_id}/pins/{message_id}",
            route_params={"channel_id": channel_id, "message_id": message_id},
            reason=self.reason,
        )


@asynccontextmanager
async def open_client(settings: ProviderSettings) -> AsyncIterator[DiscordHTTPClient]:
    """Log in with the bot token and yield a REST-only client.

    No gateway connection is opened.
    """

    options: dict[str, Any] = {}
    if settings.max_ratelimit_timeout is not None:
        options["max_ratelimit_timeout"] = settings.max_ratelimit_timeout
    client = discord.Client(intents=discord.Intents.none(), **options)
    try:
        try:
            await client.login(settings.token)
        except discord.LoginFailure as exc:
            raise RemoteCallError(
                f"Failed to log in to Discord: {exc}", operation="login"
            ) from exc
        log.debug("discord client logged in", extra={"client_id": settings.client_id})
        yield DiscordHTTPClient(client.http)
    finally:
        await client.close()
