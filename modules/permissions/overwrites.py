"""Channel permission overwrites and category sync."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Mapping

import discord

from shared.errors import SyncError, ValidationError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from modules.provider.client import DiscordAPI
    from modules.provider.models import Channel

__all__ = [
    "OverwriteType",
    "PermissionOverwrite",
    "overwrites_synced",
    "sync_overwrites",
]

log = logging.getLogger("provider.permissions.overwrites")


class OverwriteType(str, Enum):
    ROLE = "role"
    USER = "user"

    @property
    def api_value(self) -> int:
        return 0 if self is OverwriteType.ROLE else 1

    @classmethod
    def from_api(cls, value: object) -> "OverwriteType":
        # Older API versions sent the type as "role"/"member".
        if value in (0, "0", "role"):
            return cls.ROLE
        if value in (1, "1", "member", "user"):
            return cls.USER
        raise ValueError(f"unknown overwrite type: {value!r}")

    @classmethod
    def parse(cls, value: object) -> "OverwriteType":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                f"expected type to be one of ['role', 'user'], got {value}",
                attribute="type",
            ) from None


@dataclass(frozen=True, slots=True)
class PermissionOverwrite:
    id: str
    type: OverwriteType
    allow: int = 0
    deny: int = 0

    @property
    def key(self) -> tuple[str, OverwriteType]:
        return (self.id, self.type)

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> "PermissionOverwrite":
        return cls(
            id=str(payload["id"]),
            type=OverwriteType.from_api(payload.get("type")),
            allow=int(payload.get("allow") or 0),
            deny=int(payload.get("deny") or 0),
        )


def overwrites_synced(
    first: Iterable[PermissionOverwrite],
    second: Iterable[PermissionOverwrite],
) -> bool:
    """Return True when both lists hold the same overwrites, ignoring order."""

    left = {(item.id, item.type, item.allow, item.deny) for item in first}
    right = {(item.id, item.type, item.allow, item.deny) for item in second}
    return left == right


async def sync_overwrites(api: "DiscordAPI", source: "Channel", target: "Channel") -> None:
    """Replace every overwrite on ``target`` with the overwrites of ``source``.

    Deletes first, then recreates. The sequence is not atomic: a failure stops
    at the failing step and leaves ``target`` partially rewritten.
    """

    for overwrite in target.permission_overwrites:
        try:
            await api.delete_channel_permission(target.id, overwrite.id)
        except discord.HTTPException as exc:
            log.warning(
                "overwrite sync failed while deleting",
                extra={"channel_id": target.id, "overwrite_id": overwrite.id, "status": exc.status},
            )
            raise SyncError(
                f"Can't sync permissions with category: failed to delete overwrite "
                f"{overwrite.id} on channel {target.id}: {exc}",
                step="delete",
                channel_id=target.id,
                overwrite_id=overwrite.id,
                status=exc.status,
            ) from exc

    for overwrite in source.permission_overwrites:
        try:
            await api.edit_channel_permissions(
                target.id,
                overwrite.id,
                overwrite_type=overwrite.type,
                allow=overwrite.allow,
                deny=overwrite.deny,
            )
        except discord.HTTPException as exc:
            log.warning(
                "overwrite sync failed while creating",
                extra={"channel_id": target.id, "overwrite_id": overwrite.id, "status": exc.status},
            )
            raise SyncError(
                f"Can't sync permissions with category: failed to create overwrite "
                f"{overwrite.id} on channel {target.id}: {exc}",
                step="create",
                channel_id=target.id,
                overwrite_id=overwrite.id,
                status=exc.status,
            ) from exc

    log.info(
        "synced channel overwrites",
        extra={
            "channel_id": target.id,
            "source_id": source.id,
            "deleted": len(target.permission_overwrites),
            "created": len(source.permission_overwrites),
        },
    )
