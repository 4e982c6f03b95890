import asyncio

import pytest

from modules.provider.resources import MemberRolesResource
from shared.errors import RemoteCallError


@pytest.fixture
def resource():
    return MemberRolesResource()


@pytest.fixture
def member_api(fake_api):
    fake_api.add_member("1", "500", "alice", roles=["A", "B", "C"])
    return fake_api


def _config(resource, roles):
    return resource.parse({"server_id": "1", "user_id": "500", "role": roles})


def test_create_applies_declarations(resource, member_api):
    config = _config(resource, [{"role_id": "B", "has_role": False}, {"role_id": "D"}])
    result = asyncio.run(resource.create(member_api, config))

    assert result.id == "1:500"
    assert member_api.members[("1", "500")].roles == ["A", "C", "D"]
    assert result.attributes["role"] == [
        {"role_id": "B", "has_role": False},
        {"role_id": "D", "has_role": True},
    ]


def test_create_requires_member(resource, fake_api):
    with pytest.raises(RemoteCallError) as excinfo:
        asyncio.run(resource.create(fake_api, _config(resource, [{"role_id": "A"}])))
    assert "Could not get member 500 in 1" in str(excinfo.value)


def test_update_revokes_dropped_grant(resource, member_api):
    previous = _config(resource, [{"role_id": "A"}, {"role_id": "B"}])
    config = _config(resource, [{"role_id": "A"}])
    asyncio.run(resource.update(member_api, "1:500", config, previous))
    assert member_api.members[("1", "500")].roles == ["A", "C"]


def test_update_without_changes_skips_write(resource, member_api):
    config = _config(resource, [{"role_id": "A"}])
    asyncio.run(resource.update(member_api, "1:500", config, config))
    assert not member_api.calls_to("edit_member_roles")


def test_read_reports_observed_assignments(resource, member_api):
    config = _config(resource, [{"role_id": "A"}, {"role_id": "Z"}])
    result = asyncio.run(resource.read(member_api, "1:500", config))
    assert result.attributes["role"] == [
        {"role_id": "A", "has_role": True},
        {"role_id": "Z", "has_role": False},
    ]


def test_read_of_departed_member_clears_state(resource, member_api):
    config = _config(resource, [{"role_id": "A"}])
    assert asyncio.run(resource.read(member_api, "1:404", config)) is None


def test_delete_revokes_declared_grants_only(resource, member_api):
    config = _config(resource, [{"role_id": "A"}, {"role_id": "C", "has_role": False}])
    asyncio.run(resource.delete(member_api, "1:500", config))
    assert member_api.members[("1", "500")].roles == ["B", "C"]


def test_migrate_state_builds_two_part_id(resource):
    assert resource.migrate_state("12345", {"server_id": "1", "user_id": "500"}) == "1:500"
