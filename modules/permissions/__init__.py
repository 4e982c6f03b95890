"""Permission model: flag table, bitmask codec, overwrite sync, role reconciliation."""

from __future__ import annotations

from modules.permissions.codec import PermissionSet, decode, encode, permission_set_id
from modules.permissions.flags import PERMISSION_FLAGS, PermissionState, parse_state
from modules.permissions.member_roles import (
    RoleAssignment,
    observe_assignments,
    parse_assignments,
    reconcile_roles,
    revoke_declared_roles,
)
from modules.permissions.overwrites import (
    OverwriteType,
    PermissionOverwrite,
    overwrites_synced,
    sync_overwrites,
)

__all__ = [
    "PERMISSION_FLAGS",
    "OverwriteType",
    "PermissionOverwrite",
    "PermissionSet",
    "PermissionState",
    "RoleAssignment",
    "decode",
    "encode",
    "observe_assignments",
    "overwrites_synced",
    "parse_assignments",
    "parse_state",
    "permission_set_id",
    "reconcile_roles",
    "revoke_declared_roles",
    "sync_overwrites",
]
