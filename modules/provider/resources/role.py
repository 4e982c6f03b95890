"""``discord_role`` and ``discord_role_everyone``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from modules.provider.base import Resource, ResourceResult, remote_call
from modules.provider.client import DiscordAPI
from modules.provider.models import Role
from modules.provider.schema import get_bool, get_int, get_str
from shared.errors import RemoteCallError
from shared.ids import parse_two_ids

__all__ = [
    "EveryoneRoleConfig",
    "EveryoneRoleResource",
    "RoleConfig",
    "RoleResource",
    "find_role",
]

log = logging.getLogger("provider.resources.role")


def find_role(roles: list[Role], role_id: str) -> Optional[Role]:
    for role in roles:
        if role.id == role_id:
            return role
    return None


async def _fetch_roles(api: DiscordAPI, server_id: str, role_id: str) -> list[Role]:
    with remote_call(
        f"Failed to fetch role {role_id}", operation="role.list", entity_id=server_id
    ):
        return await api.get_roles(server_id)


@dataclass(frozen=True, slots=True)
class RoleConfig:
    server_id: str
    name: str
    permissions: int = 0
    color: Optional[int] = None
    hoist: bool = False
    mentionable: bool = False
    position: Optional[int] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "RoleConfig":
        return cls(
            server_id=get_str(values, "server_id", required=True),
            name=get_str(values, "name", required=True),
            permissions=get_int(values, "permissions", default=0, min_value=0),
            color=get_int(values, "color", min_value=0),
            hoist=get_bool(values, "hoist"),
            mentionable=get_bool(values, "mentionable"),
            position=get_int(values, "position", min_value=1),
        )


class RoleResource(Resource[RoleConfig]):
    """Roles are addressed by their snowflake; ``server_id`` rides along in config."""

    type_name = "discord_role"
    config_type = RoleConfig

    @staticmethod
    def _state(server_id: str, role: Role) -> ResourceResult:
        return ResourceResult(
            id=role.id,
            attributes={
                "server_id": server_id,
                "name": role.name,
                "permissions": role.permissions,
                "color": role.color,
                "hoist": role.hoist,
                "mentionable": role.mentionable,
                "position": role.position,
                "managed": role.managed,
            },
        )

    async def _move(
        self, api: DiscordAPI, server_id: str, role: Role, roles: list[Role], position: int
    ) -> tuple[Role, list[str]]:
        """Swap ``role`` with whichever role currently holds ``position``."""

        if role.position == position:
            return role, []
        positions = [(role.id, position)]
        for other in roles:
            if other.position == position and other.id != role.id:
                positions.append((other.id, role.position))
                break
        try:
            with remote_call(
                "Failed to re-order roles", operation="role.reorder", entity_id=role.id
            ):
                await api.reorder_roles(server_id, positions)
        except RemoteCallError as exc:
            log.warning(
                "role reorder failed",
                extra={"server_id": server_id, "role_id": role.id, "position": position},
            )
            return role, [str(exc)]
        role.position = position
        return role, []

    async def create(self, api: DiscordAPI, config: RoleConfig) -> ResourceResult:
        fields: dict[str, Any] = {
            "name": config.name,
            "permissions": config.permissions,
            "hoist": config.hoist,
            "mentionable": config.mentionable,
        }
        if config.color is not None:
            fields["color"] = config.color
        with remote_call(
            f"Failed to create role for {config.server_id}",
            operation="role.create",
            entity_id=config.server_id,
        ):
            role = await api.create_role(config.server_id, **fields)

        warnings: list[str] = []
        if config.position is not None:
            roles = await _fetch_roles(api, config.server_id, role.id)
            role, warnings = await self._move(api, config.server_id, role, roles, config.position)

        log.info("role created", extra={"server_id": config.server_id, "role_id": role.id})
        result = self._state(config.server_id, role)
        result.warnings.extend(warnings)
        return result

    async def read(
        self, api: DiscordAPI, resource_id: str, config: RoleConfig
    ) -> Optional[ResourceResult]:
        roles = await _fetch_roles(api, config.server_id, resource_id)
        role = find_role(roles, resource_id)
        if role is None:
            log.warning(
                "Role not found. Removing from state",
                extra={"role_id": resource_id, "server_id": config.server_id},
            )
            return None
        return self._state(config.server_id, role)

    async def update(
        self,
        api: DiscordAPI,
        resource_id: str,
        config: RoleConfig,
        previous: Optional[RoleConfig],
    ) -> Optional[ResourceResult]:
        roles = await _fetch_roles(api, config.server_id, resource_id)
        role = find_role(roles, resource_id)
        if role is None:
            log.warning(
                "Role not found. Removing from state",
                extra={"role_id": resource_id, "server_id": config.server_id},
            )
            return None

        warnings: list[str] = []
        previous_position = previous.position if previous else None
        if config.position is not None and config.position != previous_position:
            role, warnings = await self._move(api, config.server_id, role, roles, config.position)

        # an unset or zero color keeps whatever Discord currently has
        color = config.color if config.color else role.color
        with remote_call(
            f"Failed to update role {resource_id}", operation="role.update", entity_id=resource_id
        ):
            updated = await api.edit_role(
                config.server_id,
                resource_id,
                name=config.name,
                color=color,
                hoist=config.hoist,
                mentionable=config.mentionable,
                permissions=config.permissions,
            )
        result = self._state(config.server_id, updated)
        result.warnings.extend(warnings)
        return result

    async def delete(self, api: DiscordAPI, resource_id: str, config: RoleConfig) -> list[str]:
        with remote_call(
            "Failed to delete role", operation="role.delete", entity_id=resource_id
        ):
            await api.delete_role(config.server_id, resource_id)
        return []

    def import_state(self, import_id: str) -> tuple[str, dict[str, Any]]:
        server_id, role_id = parse_two_ids(import_id)
        return role_id, {"server_id": server_id}


@dataclass(frozen=True, slots=True)
class EveryoneRoleConfig:
    server_id: str
    permissions: int = 0

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "EveryoneRoleConfig":
        return cls(
            server_id=get_str(values, "server_id", required=True),
            permissions=get_int(values, "permissions", default=0, min_value=0),
        )


class EveryoneRoleResource(Resource[EveryoneRoleConfig]):
    """The ``@everyone`` role shares its id with the server."""

    type_name = "discord_role_everyone"
    config_type = EveryoneRoleConfig

    @staticmethod
    def _state(server_id: str, permissions: int) -> ResourceResult:
        return ResourceResult(
            id=server_id,
            attributes={"server_id": server_id, "permissions": permissions},
        )

    async def create(self, api: DiscordAPI, config: EveryoneRoleConfig) -> ResourceResult:
        return await self.update(api, config.server_id, config, None)

    async def read(
        self, api: DiscordAPI, resource_id: str, config: EveryoneRoleConfig
    ) -> Optional[ResourceResult]:
        roles = await _fetch_roles(api, resource_id, resource_id)
        role = find_role(roles, resource_id)
        if role is None:
            return None
        return self._state(resource_id, role.permissions)

    async def update(
        self,
        api: DiscordAPI,
        resource_id: str,
        config: EveryoneRoleConfig,
        previous: Optional[EveryoneRoleConfig],
    ) -> ResourceResult:
        with remote_call(
            f"Failed to update role {config.server_id}",
            operation="role_everyone.update",
            entity_id=config.server_id,
        ):
            role = await api.edit_role(
                config.server_id, config.server_id, permissions=config.permissions
            )
        return self._state(config.server_id, role.permissions)

    async def delete(
        self, api: DiscordAPI, resource_id: str, config: EveryoneRoleConfig
    ) -> list[str]:
        return ["Deleting the everyone role is not allowed"]

    def import_state(self, import_id: str) -> tuple[str, dict[str, Any]]:
        return import_id, {"server_id": import_id}
