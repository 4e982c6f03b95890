from __future__ import annotations

# config/runtime.py
import os


def get_env_name(default: str = "dev") -> str:
    return os.getenv("ENV_NAME", default)


def get_app_name(default: str = "discord-provider") -> str:
    return os.getenv("APP_NAME", default)
