"""``discord_color``: hex or rgb() notation to Discord's integer color."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from PIL import ImageColor

from modules.provider.base import DataSource, ResourceResult
from modules.provider.client import DiscordAPI
from modules.provider.schema import exactly_one_of, get_str
from shared.errors import ValidationError

__all__ = ["ColorConfig", "ColorDataSource", "color_to_int"]

_HEX_RE = re.compile(r"^#?(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_RGB_RE = re.compile(r"^rgb\(\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*\d{1,3}\s*\)$", re.IGNORECASE)


def color_to_int(value: str, *, notation: str) -> int:
    text = value.strip()
    if notation == "hex":
        if not _HEX_RE.match(text):
            raise ValidationError(f"Failed to parse hex {value}", attribute="hex")
        color_spec = text if text.startswith("#") else f"#{text}"
    else:
        if not _RGB_RE.match(text):
            raise ValidationError(f"Failed to parse rgb {value}", attribute="rgb")
        color_spec = text.lower()
    try:
        red, green, blue = ImageColor.getrgb(color_spec)[:3]
    except ValueError as exc:
        raise ValidationError(f"Failed to parse {notation} {value}", attribute=notation) from exc
    return (red << 16) | (green << 8) | blue


@dataclass(frozen=True, slots=True)
class ColorConfig:
    notation: str
    value: str

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ColorConfig":
        notation = exactly_one_of(values, ("hex", "rgb"))
        return cls(notation=notation, value=get_str(values, notation, required=True))


class ColorDataSource(DataSource[ColorConfig]):
    type_name = "discord_color"
    config_type = ColorConfig
    needs_api = False

    async def read(self, api: Optional[DiscordAPI], config: ColorConfig) -> ResourceResult:
        dec = color_to_int(config.value, notation=config.notation)
        return ResourceResult(id=str(dec), attributes={config.notation: config.value, "dec": dec})
