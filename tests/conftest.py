"""Pytest configuration for shared test fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path(source_file: Path) -> None:
    """Add the repository root to ``sys.path`` when running from subpackages."""

    for candidate in [source_file.parent, *source_file.parents]:
        shared_dir = candidate / "shared"
        if shared_dir.is_dir():
            project_root = str(candidate)
            if project_root not in sys.path:
                sys.path.insert(0, project_root)
            break


_ensure_project_root_on_path(Path(__file__).resolve())

from shared.testing.environment import apply_required_test_environment

apply_required_test_environment()

from shared.testing.fake_discord import FakeDiscordAPI


@pytest.fixture
def fake_api() -> FakeDiscordAPI:
    """A fresh in-memory Discord with one guild (``1``) and a member role."""

    api = FakeDiscordAPI()
    api.add_guild("1", name="Test Guild", system_channel_id="50")
    api.add_role("1", "10", "member", position=1)
    return api
