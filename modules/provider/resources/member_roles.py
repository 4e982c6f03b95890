"""``discord_member_roles``: declared role assignments for one member."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from modules.permissions.member_roles import (
    RoleAssignment,
    observe_assignments,
    parse_assignments,
    reconcile_roles,
    revoke_declared_roles,
)
from modules.provider.base import Resource, ResourceResult, fetch_or_none, remote_call
from modules.provider.client import DiscordAPI
from modules.provider.models import Member
from modules.provider.schema import get_str
from shared.errors import ValidationError
from shared.ids import generate_two_part_id, migrate_legacy_id, parse_two_ids

__all__ = ["MemberRolesConfig", "MemberRolesResource"]

log = logging.getLogger("provider.resources.member_roles")


@dataclass(frozen=True, slots=True)
class MemberRolesConfig:
    server_id: str
    user_id: str
    roles: tuple[RoleAssignment, ...] = ()

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "MemberRolesConfig":
        raw_roles = values.get("role")
        if raw_roles is None:
            raise ValidationError("role is required", attribute="role")
        if isinstance(raw_roles, Mapping) or isinstance(raw_roles, (str, bytes)):
            raise ValidationError("role must be a list of role blocks", attribute="role")
        return cls(
            server_id=get_str(values, "server_id", required=True),
            user_id=get_str(values, "user_id", required=True),
            roles=parse_assignments(raw_roles),
        )


def _role_blocks(assignments: tuple[RoleAssignment, ...]) -> list[dict[str, Any]]:
    return [
        {"role_id": assignment.role_id, "has_role": assignment.has_role}
        for assignment in assignments
    ]


class MemberRolesResource(Resource[MemberRolesConfig]):
    type_name = "discord_member_roles"
    config_type = MemberRolesConfig

    async def _member(self, api: DiscordAPI, server_id: str, user_id: str) -> Member:
        with remote_call(
            f"Could not get member {user_id} in {server_id}",
            operation="member_roles.get_member",
            entity_id=user_id,
        ):
            return await api.get_member(server_id, user_id)

    async def _write(
        self,
        api: DiscordAPI,
        config: MemberRolesConfig,
        roles: list[str],
        *,
        message: str,
        operation: str,
    ) -> None:
        with remote_call(
            f"{message} {config.user_id}",
            operation=operation,
            entity_id=config.user_id,
        ):
            await api.edit_member_roles(config.server_id, config.user_id, roles)

    def _state(self, config: MemberRolesConfig, observed: tuple[RoleAssignment, ...]) -> ResourceResult:
        return ResourceResult(
            id=generate_two_part_id(config.server_id, config.user_id),
            attributes={
                "server_id": config.server_id,
                "user_id": config.user_id,
                "role": _role_blocks(observed),
            },
        )

    async def _apply(
        self,
        api: DiscordAPI,
        config: MemberRolesConfig,
        previous: tuple[RoleAssignment, ...],
    ) -> ResourceResult:
        member = await self._member(api, config.server_id, config.user_id)
        roles = reconcile_roles(member.roles, config.roles, previous)
        if roles != member.roles:
            await self._write(
                api, config, roles, message="Failed to edit member", operation="member_roles.edit"
            )
        log.info(
            "member roles reconciled",
            extra={
                "server_id": config.server_id,
                "user_id": config.user_id,
                "declared": len(config.roles),
                "changed": roles != member.roles,
            },
        )
        return self._state(config, observe_assignments(roles, config.roles))

    async def create(self, api: DiscordAPI, config: MemberRolesConfig) -> ResourceResult:
        return await self._apply(api, config, ())

    async def read(
        self, api: DiscordAPI, resource_id: str, config: MemberRolesConfig
    ) -> Optional[ResourceResult]:
        server_id, user_id = parse_two_ids(resource_id)
        member = await fetch_or_none(
            api.get_member(server_id, user_id),
            f"Could not get member {user_id} in {server_id}",
            operation="member_roles.read",
            entity_id=user_id,
        )
        if member is None:
            return None
        identity = MemberRolesConfig(server_id=server_id, user_id=user_id, roles=config.roles)
        return self._state(identity, observe_assignments(member.roles, config.roles))

    async def update(
        self,
        api: DiscordAPI,
        resource_id: str,
        config: MemberRolesConfig,
        previous: Optional[MemberRolesConfig],
    ) -> ResourceResult:
        return await self._apply(api, config, previous.roles if previous else ())

    async def delete(
        self, api: DiscordAPI, resource_id: str, config: MemberRolesConfig
    ) -> list[str]:
        member = await self._member(api, config.server_id, config.user_id)
        roles = revoke_declared_roles(member.roles, config.roles)
        if roles != member.roles:
            await self._write(
                api, config, roles, message="Failed to delete member roles", operation="member_roles.delete"
            )
        return []

    def migrate_state(self, resource_id: Optional[str], attributes: Mapping[str, Any]) -> Optional[str]:
        return migrate_legacy_id(resource_id, attributes, ("server_id", "user_id"))
