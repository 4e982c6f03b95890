"""Reconcile a member's role list against declared role assignments.

Only roles named by a declaration are ever added or removed. Every other role
keeps its place in the member's list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from shared.errors import ValidationError

__all__ = [
    "RoleAssignment",
    "parse_assignments",
    "reconcile_roles",
    "revoke_declared_roles",
    "observe_assignments",
]


@dataclass(frozen=True, slots=True)
class RoleAssignment:
    role_id: str
    has_role: bool = True

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "RoleAssignment":
        role_id = str(values.get("role_id") or "").strip()
        if not role_id:
            raise ValidationError("role_id is required for every role block", attribute="role")
        has_role = values.get("has_role", True)
        if not isinstance(has_role, bool):
            raise ValidationError(
                f"has_role must be a boolean, got {has_role!r}", attribute="role"
            )
        return cls(role_id=role_id, has_role=has_role)


def parse_assignments(raw: Iterable[Mapping[str, object] | RoleAssignment] | None) -> tuple[RoleAssignment, ...]:
    """Build a de-duplicated assignment set; the last block for a role wins."""

    by_role: dict[str, RoleAssignment] = {}
    for item in raw or ():
        assignment = item if isinstance(item, RoleAssignment) else RoleAssignment.from_mapping(item)
        by_role[assignment.role_id] = assignment
    return tuple(by_role.values())


def _without(roles: list[str], role_id: str) -> list[str]:
    return [role for role in roles if role != role_id]


def reconcile_roles(
    current: Sequence[str],
    declared: Iterable[RoleAssignment],
    previous: Iterable[RoleAssignment] = (),
) -> list[str]:
    """Return the role list to write back for a member.

    ``current`` must be the live role list fetched just before the write.
    ``previous`` is the declaration set from the prior apply; any role it
    granted that is no longer declared is revoked.
    """

    roles = [str(role) for role in current]
    declared = list(declared)

    for assignment in declared:
        holds = assignment.role_id in roles
        if assignment.has_role and not holds:
            roles.append(assignment.role_id)
        elif not assignment.has_role and holds:
            roles = _without(roles, assignment.role_id)

    declared_ids = {assignment.role_id for assignment in declared}
    for assignment in previous:
        if assignment.role_id in declared_ids:
            continue
        if assignment.has_role:
            roles = _without(roles, assignment.role_id)

    return roles


def revoke_declared_roles(
    current: Sequence[str],
    declared: Iterable[RoleAssignment],
) -> list[str]:
    roles = [str(role) for role in current]
    for assignment in declared:
        if assignment.has_role and assignment.role_id in roles:
            roles = _without(roles, assignment.role_id)
    return roles


def observe_assignments(
    current: Sequence[str],
    declared: Iterable[RoleAssignment],
) -> tuple[RoleAssignment, ...]:
    held = {str(role) for role in current}
    return tuple(
        RoleAssignment(role_id=assignment.role_id, has_role=assignment.role_id in held)
        for assignment in declared
    )
