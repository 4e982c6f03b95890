"""Provider entry point: named resources and data sources over one Discord client."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from shared.errors import ProviderError, ValidationError
from shared.ids import InvalidIdError
from shared.logging import set_trace_id

from .base import DataSource, Resource
from .client import DiscordAPI
from .data_sources import (
    ColorDataSource,
    LocalImageDataSource,
    MemberDataSource,
    PermissionDataSource,
    RoleDataSource,
    ServerDataSource,
    SystemChannelDataSource,
)
from .resources import (
    CategoryChannelResource,
    ChannelPermissionResource,
    EveryoneRoleResource,
    InviteResource,
    ManagedServerResource,
    MemberRolesResource,
    MessageResource,
    NewsChannelResource,
    RoleResource,
    ServerResource,
    SystemChannelResource,
    TextChannelResource,
    VoiceChannelResource,
    WebhookResource,
)

__all__ = ["DATA_SOURCES", "RESOURCES", "Provider"]

log = logging.getLogger("provider.registry")

RESOURCES: dict[str, type[Resource]] = {
    cls.type_name: cls
    for cls in (
        CategoryChannelResource,
        ChannelPermissionResource,
        EveryoneRoleResource,
        InviteResource,
        ManagedServerResource,
        MemberRolesResource,
        MessageResource,
        NewsChannelResource,
        RoleResource,
        ServerResource,
        SystemChannelResource,
        TextChannelResource,
        VoiceChannelResource,
        WebhookResource,
    )
}

DATA_SOURCES: dict[str, type[DataSource]] = {
    cls.type_name: cls
    for cls in (
        ColorDataSource,
        LocalImageDataSource,
        MemberDataSource,
        PermissionDataSource,
        RoleDataSource,
        ServerDataSource,
        SystemChannelDataSource,
    )
}


def _bad_id(exc: InvalidIdError) -> ValidationError:
    return ValidationError(str(exc), attribute="id")


class Provider:
    """Dispatch CRUD calls to resources and reads to data sources.

    Every call takes and returns plain attribute mappings. A read that returns
    ``None`` means the entity is gone and the caller should drop its id.
    """

    def __init__(self, api: Optional[DiscordAPI] = None) -> None:
        self.api = api
        self._resources = {name: cls() for name, cls in RESOURCES.items()}
        self._data_sources = {name: cls() for name, cls in DATA_SOURCES.items()}

    def resource(self, type_name: str) -> Resource:
        try:
            return self._resources[type_name]
        except KeyError:
            raise ValidationError(f"unknown resource type: {type_name}") from None

    def data_source(self, type_name: str) -> DataSource:
        try:
            return self._data_sources[type_name]
        except KeyError:
            raise ValidationError(f"unknown data source type: {type_name}") from None

    def _require_api(self, type_name: str) -> DiscordAPI:
        if self.api is None:
            raise ProviderError(f"{type_name} needs a Discord client; set DISCORD_TOKEN")
        return self.api

    @staticmethod
    def _begin(action: str, type_name: str, resource_id: Optional[str] = None) -> None:
        trace = set_trace_id()
        log.debug(
            "provider call",
            extra={"action": action, "type": type_name, "resource_id": resource_id, "trace": trace},
        )

    @staticmethod
    def _report(type_name: str, resource_id: Optional[str], warnings: list[str]) -> None:
        for warning in warnings:
            log.warning(warning, extra={"type": type_name, "resource_id": resource_id})

    async def create(self, type_name: str, values: Mapping[str, Any]) -> dict[str, Any]:
        self._begin("create", type_name)
        resource = self.resource(type_name)
        config = resource.parse(values)
        result = await resource.create(self._require_api(type_name), config)
        log.info("resource created", extra={"type": type_name, "resource_id": result.id})
        self._report(type_name, result.id, result.warnings)
        return result.as_dict()

    async def read(
        self, type_name: str, resource_id: str, values: Mapping[str, Any]
    ) -> Optional[dict[str, Any]]:
        self._begin("read", type_name, resource_id)
        resource = self.resource(type_name)
        config = resource.parse(values)
        try:
            result = await resource.read(self._require_api(type_name), resource_id, config)
        except InvalidIdError as exc:
            raise _bad_id(exc) from exc
        if result is None:
            log.warning(
                "resource gone; clearing id",
                extra={"type": type_name, "resource_id": resource_id},
            )
            return None
        return result.as_dict()

    async def update(
        self,
        type_name: str,
        resource_id: str,
        values: Mapping[str, Any],
        previous: Optional[Mapping[str, Any]] = None,
    ) -> Optional[dict[str, Any]]:
        self._begin("update", type_name, resource_id)
        resource = self.resource(type_name)
        if not resource.supports_update:
            raise ValidationError(f"{type_name} must be replaced to change")
        config = resource.parse(values)
        prior = resource.parse(previous) if previous is not None else None
        try:
            result = await resource.update(self._require_api(type_name), resource_id, config, prior)
        except InvalidIdError as exc:
            raise _bad_id(exc) from exc
        if result is None:
            return None
        log.info("resource updated", extra={"type": type_name, "resource_id": result.id})
        self._report(type_name, result.id, result.warnings)
        return result.as_dict()

    async def delete(
        self, type_name: str, resource_id: str, values: Mapping[str, Any]
    ) -> list[str]:
        self._begin("delete", type_name, resource_id)
        resource = self.resource(type_name)
        config = resource.parse(values)
        try:
            warnings = await resource.delete(self._require_api(type_name), resource_id, config)
        except InvalidIdError as exc:
            raise _bad_id(exc) from exc
        self._report(type_name, resource_id, warnings)
        log.info("resource deleted", extra={"type": type_name, "resource_id": resource_id})
        return warnings

    async def read_data(self, type_name: str, values: Mapping[str, Any]) -> dict[str, Any]:
        self._begin("read_data", type_name)
        source = self.data_source(type_name)
        config = source.parse(values)
        api = self._require_api(type_name) if source.needs_api else self.api
        result = await source.read(api, config)
        return result.as_dict()

    def import_resource(self, type_name: str, import_id: str) -> tuple[str, dict[str, Any]]:
        self._begin("import", type_name, import_id)
        try:
            return self.resource(type_name).import_state(import_id)
        except InvalidIdError as exc:
            raise _bad_id(exc) from exc

    def migrate_state(
        self, type_name: str, resource_id: Optional[str], attributes: Mapping[str, Any]
    ) -> Optional[str]:
        self._begin("migrate", type_name, resource_id)
        try:
            return self.resource(type_name).migrate_state(resource_id, attributes)
        except InvalidIdError as exc:
            raise _bad_id(exc) from exc
