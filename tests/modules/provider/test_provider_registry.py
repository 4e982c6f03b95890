import asyncio

import pytest

from modules.provider import DATA_SOURCES, RESOURCES, Provider
from modules.permissions import OverwriteType, PermissionOverwrite
from shared.errors import ProviderError, ValidationError
from shared.testing.fake_discord import http_error


def test_registry_names():
    assert set(RESOURCES) == {
        "discord_category_channel",
        "discord_channel_permission",
        "discord_role_everyone",
        "discord_invite",
        "discord_managed_server",
        "discord_member_roles",
        "discord_message",
        "discord_news_channel",
        "discord_role",
        "discord_server",
        "discord_system_channel",
        "discord_text_channel",
        "discord_voice_channel",
        "discord_webhook",
    }
    assert set(DATA_SOURCES) == {
        "discord_color",
        "discord_local_image",
        "discord_member",
        "discord_permission",
        "discord_role",
        "discord_server",
        "discord_system_channel",
    }


def test_unknown_types_are_rejected():
    provider = Provider()
    with pytest.raises(ValidationError):
        provider.resource("discord_forum_channel")
    with pytest.raises(ValidationError):
        provider.data_source("discord_emoji")


def test_remote_resources_need_a_client():
    provider = Provider()
    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(
            provider.create("discord_role", {"server_id": "1", "name": "mods"})
        )
    assert "DISCORD_TOKEN" in str(excinfo.value)


def test_offline_data_sources_run_without_client():
    result = asyncio.run(Provider().read_data("discord_color", {"hex": "#000001"}))
    assert result == {"id": "1", "hex": "#000001", "dec": 1}


def test_read_returns_none_when_entity_is_gone(fake_api):
    fake_api.add_channel("1", "100", "general")
    provider = Provider(fake_api)
    config = {"channel_id": "100", "type": "role", "overwrite_id": "10", "allow": 1024}

    assert asyncio.run(provider.read("discord_channel_permission", "100:10:role", config)) is None


def test_read_round_trips_attributes(fake_api):
    fake_api.add_channel(
        "1",
        "100",
        "general",
        overwrites=[PermissionOverwrite(id="10", type=OverwriteType.ROLE, allow=1024, deny=0)],
    )
    provider = Provider(fake_api)
    config = {"channel_id": "100", "type": "role", "overwrite_id": "10", "allow": 1024}

    state = asyncio.run(provider.read("discord_channel_permission", "100:10:role", config))
    assert state["id"] == "100:10:role"
    assert state["allow"] == 1024


def test_malformed_id_is_a_validation_error(fake_api):
    provider = Provider(fake_api)
    config = {"channel_id": "100", "type": "role", "overwrite_id": "10", "allow": 1024}

    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(provider.read("discord_channel_permission", "1234567", config))
    assert excinfo.value.attribute == "id"
    assert fake_api.calls == []


def test_update_without_in_place_support_is_rejected(fake_api):
    fake_api.add_channel("1", "100", "general")
    provider = Provider(fake_api)
    config = {"channel_id": "100"}

    assert provider.resource("discord_invite").supports_update is False
    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(provider.update("discord_invite", "inv1", config))
    assert "must be replaced" in str(excinfo.value)
    assert fake_api.calls == []


def test_updatable_resources_advertise_it():
    provider = Provider()
    assert provider.resource("discord_role").supports_update is True
    assert provider.resource("discord_message").supports_update is True


def test_create_returns_reorder_warning(fake_api):
    fake_api.fail("reorder_roles", http_error(403, "Missing Permissions"))
    provider = Provider(fake_api)

    state = asyncio.run(
        provider.create("discord_role", {"server_id": "1", "name": "mods", "position": 2})
    )

    assert state["name"] == "mods"
    assert len(state["warnings"]) == 1
    assert "Failed to re-order roles" in state["warnings"][0]


def test_create_without_warnings_has_no_warning_key(fake_api):
    state = asyncio.run(Provider(fake_api).create("discord_role", {"server_id": "1", "name": "mods"}))
    assert "warnings" not in state


def test_delete_reports_warnings(fake_api):
    provider = Provider(fake_api)
    warnings = asyncio.run(
        provider.delete("discord_role_everyone", "1", {"server_id": "1"})
    )
    assert warnings == ["Deleting the everyone role is not allowed"]


def test_import_and_migrate():
    provider = Provider()

    assert provider.import_resource("discord_role", "1:10") == ("10", {"server_id": "1"})
    assert provider.import_resource("discord_system_channel", "1") == ("1", {"server_id": "1"})
    assert (
        provider.migrate_state(
            "discord_member_roles", "3112345", {"server_id": "1", "user_id": "500"}
        )
        == "1:500"
    )
    with pytest.raises(ValidationError):
        provider.import_resource("discord_role", "10")
