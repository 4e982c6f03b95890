"""``discord_permission``: fold per-flag states into allow/deny bits offline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from modules.permissions.codec import encode, permission_set_id
from modules.permissions.flags import PERMISSION_FLAGS, PermissionState, parse_state
from modules.provider.base import DataSource, ResourceResult
from modules.provider.client import DiscordAPI
from modules.provider.schema import get_int
from shared.errors import ValidationError

__all__ = ["PermissionConfig", "PermissionDataSource"]

_EXTENDS = ("allow_extends", "deny_extends")
# reported back by read; accepted and ignored on input
_COMPUTED = ("id", "allow_bits", "deny_bits")
_KNOWN = frozenset(PERMISSION_FLAGS) | frozenset(_EXTENDS) | frozenset(_COMPUTED)


@dataclass(frozen=True, slots=True)
class PermissionConfig:
    flags: Mapping[str, PermissionState] = field(default_factory=dict)
    allow_extends: int = 0
    deny_extends: int = 0

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "PermissionConfig":
        unknown = sorted(key for key in values if key not in _KNOWN)
        if unknown:
            raise ValidationError(
                f"unknown permission flag: {unknown[0]}", attribute=unknown[0]
            )
        flags = {
            name: parse_state(values.get(name), flag=name)
            for name in PERMISSION_FLAGS
        }
        return cls(
            flags=flags,
            allow_extends=get_int(values, "allow_extends", default=0, min_value=0),
            deny_extends=get_int(values, "deny_extends", default=0, min_value=0),
        )


class PermissionDataSource(DataSource[PermissionConfig]):
    type_name = "discord_permission"
    config_type = PermissionConfig
    needs_api = False

    async def read(self, api: Optional[DiscordAPI], config: PermissionConfig) -> ResourceResult:
        base = encode(config.flags)
        extended = encode(config.flags, config.allow_extends, config.deny_extends)
        attributes: dict[str, Any] = {name: state.value for name, state in config.flags.items()}
        attributes.update(
            allow_extends=config.allow_extends,
            deny_extends=config.deny_extends,
            allow_bits=extended.allow_bits,
            deny_bits=extended.deny_bits,
        )
        # the id tracks the declared flags only, extends excluded
        return ResourceResult(
            id=permission_set_id(base.allow_bits, base.deny_bits),
            attributes=attributes,
        )
