import json
from contextlib import asynccontextmanager

import pytest

import app
from shared.testing.fake_discord import http_error


def _run(capsys, *argv):
    code = app.main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def test_encode_prints_bits_and_id(capsys):
    code, out, _ = _run(
        capsys, "encode", '{"send_messages": "allow", "administrator": "deny"}', "--allow-extends", "1"
    )
    assert code == 0
    payload = json.loads(out)
    assert payload["allow_bits"] == 2048 | 1
    assert payload["deny_bits"] == 8
    assert payload["id"] == app.permission_set_id(2048, 8)


def test_encode_reads_flags_from_file(capsys, tmp_path):
    flags = tmp_path / "flags.json"
    flags.write_text('{"view_channel": "allow"}', encoding="utf-8")

    code, out, _ = _run(capsys, "encode", f"@{flags}")
    assert code == 0
    assert json.loads(out)["allow_bits"] == 1024


def test_decode_lists_set_flags(capsys):
    code, out, _ = _run(capsys, "decode", "2048", "8")
    assert code == 0
    assert json.loads(out) == {"send_messages": "allow", "administrator": "deny"}


def test_decode_all_includes_unset(capsys):
    _, out, _ = _run(capsys, "decode", "0", "0", "--all")
    payload = json.loads(out)
    assert payload["kick_members"] == "unset"
    assert set(payload.values()) == {"unset"}


def test_unknown_flag_exits_with_error(capsys):
    code, out, err = _run(capsys, "encode", '{"fly": "allow"}')
    assert code == 1
    assert out == ""
    assert "error: unknown permission flag: fly" in err


def test_offline_data_source(capsys):
    code, out, _ = _run(capsys, "data", "discord_color", '{"rgb": "rgb(0, 0, 255)"}')
    assert code == 0
    assert json.loads(out)["dec"] == 255


def test_import_and_migrate_commands(capsys):
    _, out, _ = _run(capsys, "import", "discord_role", "1:10")
    assert json.loads(out) == {"id": "10", "server_id": "1"}

    _, out, _ = _run(
        capsys,
        "migrate",
        "discord_channel_permission",
        '{"channel_id": "100", "overwrite_id": "10", "type": "role"}',
        "--id",
        "99887766",
    )
    assert json.loads(out) == {"id": "100:10:role"}


def test_missing_flags_file_is_a_usage_error(capsys, tmp_path):
    missing = tmp_path / "missing.json"

    with pytest.raises(SystemExit) as excinfo:
        app.main(["encode", f"@{missing}"])
    assert excinfo.value.code == 2
    err = capsys.readouterr().err
    assert f"Cannot read {missing}" in err


def test_invalid_json_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        app.main(["encode", "{not json"])
    assert excinfo.value.code == 2
    assert "Invalid attributes payload" in capsys.readouterr().err


def test_create_prints_warnings_to_stderr(capsys, monkeypatch, fake_api):
    @asynccontextmanager
    async def fake_client(settings):
        yield fake_api

    monkeypatch.setattr(app, "open_client", fake_client)
    fake_api.fail("reorder_roles", http_error(403, "Missing Permissions"))

    code, out, err = _run(
        capsys,
        "--token",
        "Bot abc",
        "create",
        "discord_role",
        '{"server_id": "1", "name": "mods", "position": 2}',
    )

    assert code == 0
    payload = json.loads(out)
    assert payload["name"] == "mods"
    assert "Failed to re-order roles" in payload["warnings"][0]
    assert "warning: Failed to re-order roles" in err
