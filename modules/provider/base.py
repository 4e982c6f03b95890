"""Resource and data-source contracts shared by every provider entry."""

from __future__ import annotations

import abc
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Awaitable, ClassVar, Generic, Iterator, Mapping, Optional, TypeVar

import discord

from shared.errors import RemoteCallError, ValidationError

from .client import DiscordAPI

__all__ = [
    "DataSource",
    "Resource",
    "ResourceResult",
    "fetch_or_none",
    "remote_call",
    "summarize_exception",
    "wrap_http_error",
]

log = logging.getLogger("provider.base")

ConfigT = TypeVar("ConfigT")
T = TypeVar("T")


@dataclass(slots=True)
class ResourceResult:
    id: Optional[str]
    attributes: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        payload = dict(self.attributes)
        payload["id"] = self.id
        if self.warnings:
            payload["warnings"] = list(self.warnings)
        return payload


def summarize_exception(exc: BaseException) -> str:
    message = str(exc).strip()
    if not message:
        message = exc.__class__.__name__
    sanitized = " ".join(message.split())
    return sanitized[:200]


def wrap_http_error(
    exc: discord.HTTPException,
    message: str,
    *,
    operation: str,
    entity_id: Optional[str] = None,
) -> RemoteCallError:
    reason = summarize_exception(exc)
    log.warning(
        "discord call failed",
        extra={
            "operation": operation,
            "entity_id": entity_id,
            "status": exc.status,
            "error_reason": reason,
        },
    )
    return RemoteCallError(
        f"{message}: {reason}",
        operation=operation,
        entity_id=entity_id,
        status=exc.status,
    )


@contextmanager
def remote_call(message: str, *, operation: str, entity_id: Optional[str] = None) -> Iterator[None]:
    """Wrap Discord HTTP failures into :class:`RemoteCallError` with context."""

    try:
        yield
    except discord.HTTPException as exc:
        raise wrap_http_error(exc, message, operation=operation, entity_id=entity_id) from exc


async def fetch_or_none(
    awaitable: Awaitable[T],
    message: str,
    *,
    operation: str,
    entity_id: Optional[str] = None,
) -> Optional[T]:
    """Await a lookup; a 404 yields ``None`` instead of an error."""

    try:
        return await awaitable
    except discord.NotFound:
        log.warning(
            "discord entity not found",
            extra={"operation": operation, "entity_id": entity_id},
        )
        return None
    except discord.HTTPException as exc:
        raise wrap_http_error(exc, message, operation=operation, entity_id=entity_id) from exc


class Resource(abc.ABC, Generic[ConfigT]):
    """A managed Discord entity with create/read/update/delete semantics."""

    type_name: ClassVar[str]
    config_type: ClassVar[type]
    # False for entities that must be replaced to change
    supports_update: ClassVar[bool] = True

    def parse(self, values: Mapping[str, Any]) -> ConfigT:
        return self.config_type.from_mapping(values)

    @abc.abstractmethod
    async def create(self, api: DiscordAPI, config: ConfigT) -> ResourceResult:
        """Create the entity and return its state."""

    @abc.abstractmethod
    async def read(
        self, api: DiscordAPI, resource_id: str, config: ConfigT
    ) -> Optional[ResourceResult]:
        """Return current state, or ``None`` when the entity no longer exists."""

    async def update(
        self,
        api: DiscordAPI,
        resource_id: str,
        config: ConfigT,
        previous: Optional[ConfigT],
    ) -> ResourceResult:
        raise ValidationError(f"{self.type_name} must be replaced to change")

    @abc.abstractmethod
    async def delete(self, api: DiscordAPI, resource_id: str, config: ConfigT) -> list[str]:
        """Delete the entity; returns warnings."""

    def import_state(self, import_id: str) -> tuple[str, dict[str, Any]]:
        """Turn an import identifier into a resource id plus known attributes."""

        return import_id, {}

    def migrate_state(self, resource_id: Optional[str], attributes: Mapping[str, Any]) -> Optional[str]:
        return resource_id


class DataSource(abc.ABC, Generic[ConfigT]):
    """A read-only lookup."""

    type_name: ClassVar[str]
    config_type: ClassVar[type]
    needs_api: ClassVar[bool] = True

    def parse(self, values: Mapping[str, Any]) -> ConfigT:
        return self.config_type.from_mapping(values)

    @abc.abstractmethod
    async def read(self, api: Optional[DiscordAPI], config: ConfigT) -> ResourceResult:
        """Compute the data source attributes."""
