"""``discord_local_image``: a local image file as a data URI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from modules.provider.base import DataSource, ResourceResult
from modules.provider.client import DiscordAPI
from modules.provider.images import data_uri_from_file
from modules.provider.schema import get_str
from shared.ids import hashcode

__all__ = ["LocalImageConfig", "LocalImageDataSource"]


@dataclass(frozen=True, slots=True)
class LocalImageConfig:
    file: str

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "LocalImageConfig":
        return cls(file=get_str(values, "file", required=True))


class LocalImageDataSource(DataSource[LocalImageConfig]):
    type_name = "discord_local_image"
    config_type = LocalImageConfig
    needs_api = False

    async def read(self, api: Optional[DiscordAPI], config: LocalImageConfig) -> ResourceResult:
        data_uri = data_uri_from_file(config.file)
        return ResourceResult(
            id=str(hashcode(data_uri)),
            attributes={"file": config.file, "data_uri": data_uri},
        )
