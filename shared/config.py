"""Runtime configuration helpers for the Discord provider."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

from config import runtime as _runtime
from shared.errors import ValidationError
from shared.redaction import mask_secret, sanitize_text

__all__ = [
    "ProviderSettings",
    "cfg",
    "reload_config",
    "load_settings",
    "get_env_name",
    "get_discord_token",
    "get_client_id",
    "get_client_secret",
    "get_log_level",
    "get_log_format",
    "get_max_ratelimit_timeout",
    "get_avatar_max_bytes",
    "get_avatar_fetch_timeout_sec",
    "normalize_token",
    "redact_token",
    "redact_value",
]

log = logging.getLogger("provider.config")

_MISSING_VALUE = "—"
_BOT_PREFIX = "Bot "

_CONFIG: Dict[str, object] = {}

_SECRET_KEYS = {
    "DISCORD_TOKEN",
    "DISCORD_SECRET",
}


def _int_env(
    key: str,
    default: int,
    *,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Parse an optional integer environment variable defensively."""

    raw = os.getenv(key)
    if raw is None:
        return default

    text = str(raw).strip()
    if not text:
        return default

    try:
        value = int(text)
    except ValueError:
        logging.warning("config: %s='%s' invalid; using default %s", key, text, default)
        return default

    if min_value is not None and value < min_value:
        logging.warning("config: %s=%s < min %s; clamping", key, value, min_value)
        value = min_value

    if max_value is not None and value > max_value:
        logging.warning("config: %s=%s > max %s; clamping", key, value, max_value)
        value = max_value

    return value


def _float_env(
    key: str,
    default: float,
    *,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """Parse an optional float environment variable defensively."""

    raw = os.getenv(key)
    if raw is None:
        return default

    text = str(raw).strip()
    if not text:
        return default

    try:
        value = float(text)
    except ValueError:
        logging.warning("config: %s='%s' invalid; using default %s", key, text, default)
        return default

    if min_value is not None and value < min_value:
        logging.warning("config: %s=%s < min %s; clamping", key, value, min_value)
        value = min_value

    if max_value is not None and value > max_value:
        logging.warning("config: %s=%s > max %s; clamping", key, value, max_value)
        value = max_value

    return value


def normalize_token(raw: Optional[str]) -> str:
    """Strip whitespace and an optional ``Bot`` prefix from a token."""

    text = (raw or "").strip()
    if text.startswith(_BOT_PREFIX):
        text = text[len(_BOT_PREFIX):].strip()
    return text


def redact_token(token: Optional[str]) -> str:
    text = (token or "").strip()
    if not text:
        return _MISSING_VALUE
    return mask_secret(text)


def redact_value(key: str, value: object) -> str:
    key_upper = str(key).upper()
    if key_upper in _SECRET_KEYS or "TOKEN" in key_upper or key_upper.endswith("_SECRET"):
        if value in (None, ""):
            return _MISSING_VALUE
        return mask_secret(str(value))
    if value in (None, "", [], (), {}):
        return _MISSING_VALUE
    return str(sanitize_text(value))


def _log_snapshot(snapshot: Dict[str, object]) -> None:
    redacted = {key: redact_value(key, value) for key, value in snapshot.items()}
    log.debug("config loaded", extra={"config": redacted})


def _load_config() -> Dict[str, object]:
    log_format = (os.getenv("LOG_FORMAT") or "json").strip().lower()
    if log_format not in {"json", "plain"}:
        logging.warning("config: LOG_FORMAT='%s' invalid; using json", log_format)
        log_format = "json"

    return {
        "APP_NAME": _runtime.get_app_name(),
        "ENV_NAME": _runtime.get_env_name(),
        "DISCORD_TOKEN": normalize_token(os.getenv("DISCORD_TOKEN")),
        "DISCORD_CLIENT_ID": (os.getenv("DISCORD_CLIENT_ID") or "").strip(),
        "DISCORD_SECRET": (os.getenv("DISCORD_SECRET") or "").strip(),
        "LOG_LEVEL": (os.getenv("LOG_LEVEL") or "INFO").strip().upper() or "INFO",
        "LOG_FORMAT": log_format,
        "DISCORD_MAX_RATELIMIT_TIMEOUT": _float_env(
            "DISCORD_MAX_RATELIMIT_TIMEOUT", 0.0, min_value=0.0
        ),
        "AVATAR_MAX_BYTES": _int_env("AVATAR_MAX_BYTES", 8_000_000, min_value=1),
        "AVATAR_FETCH_TIMEOUT_SEC": _float_env(
            "AVATAR_FETCH_TIMEOUT_SEC", 15.0, min_value=1.0, max_value=120.0
        ),
    }


def reload_config() -> Dict[str, object]:
    """Reload configuration from environment and return a snapshot."""

    snapshot = _load_config()

    global _CONFIG
    _CONFIG = snapshot
    _log_snapshot(snapshot)
    return dict(_CONFIG)


reload_config()


class _ConfigFacade:
    __slots__ = ()

    def get(self, key: object, default: object | None = None) -> object | None:
        return _CONFIG.get(str(key).strip().upper(), default)

    def __contains__(self, key: object) -> bool:  # pragma: no cover - convenience
        return str(key).strip().upper() in _CONFIG


cfg = _ConfigFacade()


def get_env_name(default: str = "dev") -> str:
    value = _CONFIG.get("ENV_NAME")
    return str(value) if isinstance(value, str) and value else default


def get_discord_token() -> str:
    return str(_CONFIG.get("DISCORD_TOKEN", ""))


def get_client_id() -> str:
    return str(_CONFIG.get("DISCORD_CLIENT_ID", ""))


def get_client_secret() -> str:
    return str(_CONFIG.get("DISCORD_SECRET", ""))


def get_log_level(default: str = "INFO") -> str:
    value = _CONFIG.get("LOG_LEVEL")
    return str(value) if isinstance(value, str) and value else default


def get_log_format(default: str = "json") -> str:
    value = _CONFIG.get("LOG_FORMAT")
    return str(value) if isinstance(value, str) and value else default


def get_max_ratelimit_timeout() -> Optional[float]:
    value = _CONFIG.get("DISCORD_MAX_RATELIMIT_TIMEOUT")
    if isinstance(value, (int, float)) and value > 0:
        return float(value)
    return None


def get_avatar_max_bytes(default: int = 8_000_000) -> int:
    value = _CONFIG.get("AVATAR_MAX_BYTES")
    return int(value) if isinstance(value, int) else default


def get_avatar_fetch_timeout_sec(default: float = 15.0) -> float:
    value = _CONFIG.get("AVATAR_FETCH_TIMEOUT_SEC")
    return float(value) if isinstance(value, (int, float)) else default


@dataclass(frozen=True, slots=True)
class ProviderSettings:
    token: str
    client_id: str = ""
    secret: str = ""
    max_ratelimit_timeout: Optional[float] = None

    def __repr__(self) -> str:
        return (
            f"ProviderSettings(token={redact_token(self.token)!r}, "
            f"client_id={self.client_id!r})"
        )


def load_settings(token: Optional[str] = None) -> ProviderSettings:
    """Resolve provider settings; an explicit ``token`` wins over ``DISCORD_TOKEN``."""

    resolved = normalize_token(token) if token else get_discord_token()
    if not resolved:
        raise ValidationError(
            "Missing required token: the `token` argument or `DISCORD_TOKEN` "
            "environment variable must be set",
            attribute="token",
        )
    return ProviderSettings(
        token=resolved,
        client_id=get_client_id(),
        secret=get_client_secret(),
        max_ratelimit_timeout=get_max_ratelimit_timeout(),
    )
