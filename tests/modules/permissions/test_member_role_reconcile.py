import pytest

from modules.permissions import (
    RoleAssignment,
    observe_assignments,
    parse_assignments,
    reconcile_roles,
    revoke_declared_roles,
)
from shared.errors import ValidationError


def test_declared_absence_removes_only_that_role():
    result = reconcile_roles(["A", "B", "C"], [RoleAssignment("B", has_role=False)])
    assert result == ["A", "C"]


def test_missing_grant_is_appended_in_order():
    result = reconcile_roles(["A", "C"], [RoleAssignment("B")])
    assert result == ["A", "C", "B"]


def test_roles_not_named_by_any_declaration_are_untouched():
    current = ["X", "A", "Y"]
    result = reconcile_roles(current, [RoleAssignment("A"), RoleAssignment("Z", has_role=False)])
    assert result == ["X", "A", "Y"]


def test_dropped_declaration_revokes_previously_granted_role():
    previous = [RoleAssignment("A"), RoleAssignment("B")]
    declared = [RoleAssignment("A")]
    result = reconcile_roles(["A", "B", "C"], declared, previous)
    assert result == ["A", "C"]


def test_dropped_absence_declaration_does_not_grant():
    previous = [RoleAssignment("B", has_role=False)]
    result = reconcile_roles(["A"], [], previous)
    assert result == ["A"]


def test_reconcile_is_idempotent():
    declared = [RoleAssignment("A"), RoleAssignment("B", has_role=False)]
    once = reconcile_roles(["B", "C"], declared)
    assert reconcile_roles(once, declared) == once


def test_revoke_removes_granted_roles_only():
    declared = [RoleAssignment("A"), RoleAssignment("B", has_role=False)]
    assert revoke_declared_roles(["A", "B", "C"], declared) == ["B", "C"]


def test_observe_reports_current_holdings():
    declared = [RoleAssignment("A"), RoleAssignment("B", has_role=False)]
    observed = observe_assignments(["B"], declared)
    assert observed == (RoleAssignment("A", has_role=False), RoleAssignment("B", has_role=True))


def test_parse_assignments_defaults_and_dedupes():
    parsed = parse_assignments(
        [{"role_id": "A"}, {"role_id": 7, "has_role": False}, {"role_id": "A", "has_role": False}]
    )
    assert parsed == (RoleAssignment("A", has_role=False), RoleAssignment("7", has_role=False))


def test_parse_assignments_rejects_missing_role_id():
    with pytest.raises(ValidationError):
        parse_assignments([{"has_role": True}])


def test_parse_assignments_rejects_non_boolean_has_role():
    with pytest.raises(ValidationError):
        parse_assignments([{"role_id": "A", "has_role": "yes"}])
