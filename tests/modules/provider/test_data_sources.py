import asyncio

import pytest
from PIL import Image

from modules.permissions import permission_set_id
from modules.provider.data_sources import (
    ColorDataSource,
    LocalImageDataSource,
    MemberDataSource,
    PermissionDataSource,
    RoleDataSource,
    ServerDataSource,
    SystemChannelDataSource,
)
from shared.errors import ProviderError, ValidationError
from shared.ids import hashcode


def _read(source, api, values):
    return asyncio.run(source.read(api, source.parse(values)))


def test_permission_bits_and_id_exclude_extends():
    source = PermissionDataSource()
    result = _read(
        source,
        None,
        {"send_messages": "allow", "administrator": "deny", "allow_extends": 8},
    )
    assert result.attributes["allow_bits"] == 2048 | 8
    assert result.attributes["deny_bits"] == 8
    assert result.attributes["kick_members"] == "unset"
    assert result.id == permission_set_id(2048, 8)


def test_permission_rejects_unknown_attributes():
    with pytest.raises(ValidationError):
        PermissionDataSource().parse({"fly": "allow"})


def test_permission_accepts_its_own_read_output():
    source = PermissionDataSource()
    first = _read(source, None, {"send_messages": "allow", "administrator": "deny"})

    second = _read(source, None, first.as_dict())

    assert second.id == first.id
    assert second.attributes["allow_bits"] == 2048
    assert second.attributes["deny_bits"] == 8


@pytest.mark.parametrize(
    ("values", "expected"),
    [
        ({"hex": "#2ecc71"}, 3066993),
        ({"hex": "2ECC71"}, 3066993),
        ({"rgb": "rgb(46, 204, 113)"}, 3066993),
        ({"hex": "#fff"}, 0xFFFFFF),
    ],
)
def test_color_conversion(values, expected):
    result = _read(ColorDataSource(), None, values)
    assert result.attributes["dec"] == expected
    assert result.id == str(expected)


@pytest.mark.parametrize("values", [{}, {"hex": "#fff", "rgb": "rgb(1, 2, 3)"}, {"hex": "zzz"}])
def test_color_rejects_bad_input(values):
    source = ColorDataSource()
    with pytest.raises(ValidationError):
        _read(source, None, values)


def test_local_image_data_uri(tmp_path):
    path = tmp_path / "icon.png"
    Image.new("RGB", (2, 2), (255, 0, 0)).save(path, format="PNG")

    result = _read(LocalImageDataSource(), None, {"file": str(path)})
    assert result.attributes["data_uri"].startswith("data:image/png;base64,")
    assert result.id == str(hashcode(result.attributes["data_uri"]))


def test_local_image_missing_file(tmp_path):
    with pytest.raises(ValidationError):
        _read(LocalImageDataSource(), None, {"file": str(tmp_path / "missing.png")})


def test_role_lookup_by_name_reports_top_down_position(fake_api):
    fake_api.add_role("1", "20", "admin", position=2)
    admin = _read(RoleDataSource(), fake_api, {"server_id": "1", "name": "admin"})
    member = _read(RoleDataSource(), fake_api, {"server_id": "1", "role_id": "10"})

    assert admin.id == "20"
    assert admin.attributes["position"] == 1
    assert member.attributes["position"] == 2


def test_role_lookup_unknown_role(fake_api):
    with pytest.raises(ProviderError):
        _read(RoleDataSource(), fake_api, {"server_id": "1", "name": "nobody"})


def test_member_lookup_by_username(fake_api):
    fake_api.add_member("1", "500", "alice", roles=["10"], nick="Al")
    result = _read(MemberDataSource(), fake_api, {"server_id": "1", "username": "alice"})

    assert result.id == "500"
    assert result.attributes["in_server"] is True
    assert result.attributes["roles"] == ["10"]
    assert result.attributes["nick"] == "Al"


def test_member_lookup_absent_member(fake_api):
    result = _read(MemberDataSource(), fake_api, {"server_id": "1", "user_id": "404"})
    assert result.attributes["in_server"] is False
    assert result.attributes["roles"] == []


def test_member_lookup_needs_exactly_one_key():
    with pytest.raises(ValidationError):
        MemberDataSource().parse({"server_id": "1", "user_id": "1", "username": "alice"})


def test_server_lookup_by_name(fake_api):
    fake_api.add_guild("2", name="Other", owner_id="900")
    result = _read(ServerDataSource(), fake_api, {"name": "Other"})
    assert result.id == "2"
    assert result.attributes["owner_id"] == "900"


def test_server_lookup_unknown_name(fake_api):
    with pytest.raises(ProviderError):
        _read(ServerDataSource(), fake_api, {"name": "Nope"})


def test_system_channel_lookup(fake_api):
    result = _read(SystemChannelDataSource(), fake_api, {"server_id": "1"})
    assert result.attributes["system_channel_id"] == "50"
