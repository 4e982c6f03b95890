import importlib

import pytest

from shared.errors import ValidationError


@pytest.fixture
def config(monkeypatch):
    module = importlib.import_module("shared.config")
    yield module
    monkeypatch.undo()
    module.reload_config()


def test_token_bot_prefix_is_stripped(config, monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "Bot abc.def.ghi")
    config.reload_config()
    assert config.get_discord_token() == "abc.def.ghi"


def test_missing_token_is_a_validation_error(config, monkeypatch):
    monkeypatch.delenv("DISCORD_TOKEN", raising=False)
    config.reload_config()
    with pytest.raises(ValidationError) as excinfo:
        config.load_settings()
    assert "DISCORD_TOKEN" in str(excinfo.value)


def test_explicit_token_wins(config, monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "env-token")
    config.reload_config()
    settings = config.load_settings("Bot explicit-token")
    assert settings.token == "explicit-token"
    assert "explicit-token" not in repr(settings)


def test_numeric_settings_fall_back_on_bad_values(config, monkeypatch):
    monkeypatch.setenv("AVATAR_MAX_BYTES", "lots")
    monkeypatch.setenv("AVATAR_FETCH_TIMEOUT_SEC", "500")
    monkeypatch.setenv("DISCORD_MAX_RATELIMIT_TIMEOUT", "0")
    config.reload_config()
    assert config.get_avatar_max_bytes() == 8_000_000
    assert config.get_avatar_fetch_timeout_sec() <= 120.0
    assert config.get_max_ratelimit_timeout() is None


def test_ratelimit_timeout_is_passed_through(config, monkeypatch):
    monkeypatch.setenv("DISCORD_MAX_RATELIMIT_TIMEOUT", "30")
    config.reload_config()
    assert config.load_settings().max_ratelimit_timeout == 30.0


def test_invalid_log_format_defaults_to_json(config, monkeypatch):
    monkeypatch.setenv("LOG_FORMAT", "xml")
    config.reload_config()
    assert config.get_log_format() == "json"


def test_snapshot_redacts_secrets(config, monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "super-secret-token-value")
    config.reload_config()
    assert config.redact_value("DISCORD_TOKEN", config.cfg.get("discord_token")) != "super-secret-token-value"
    assert config.cfg.get("env_name") == config.get_env_name()
