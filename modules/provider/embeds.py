"""Map ``embed`` attribute blocks to Discord embed payloads and back.

The attribute shape nests every sub-object (footer, image, author, ...) in a
list holding at most one mapping; Discord's payload uses plain objects.
Payloads are normalised through :class:`discord.Embed` so timestamps and
colours read back the way they were sent.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import discord

from shared.errors import ValidationError

from .schema import get_bool, get_int, get_str, is_set

__all__ = ["build_embed", "parse_embed", "unbuild_embed"]

_TEXT_KEYS = ("title", "description", "url", "timestamp")
_MEDIA_KEYS = ("image", "thumbnail", "video")
_SINGLE_BLOCKS = ("footer", "image", "thumbnail", "video", "provider", "author")


def _block(values: Mapping[str, Any], key: str, *, where: str) -> Optional[Mapping[str, Any]]:
    raw = values.get(key)
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, (list, tuple)):
        if not raw:
            return None
        if len(raw) > 1:
            raise ValidationError(f"{where}.{key}: at most one item allowed", attribute=key)
        if isinstance(raw[0], Mapping):
            return raw[0]
    raise ValidationError(f"{where}.{key} must be an object", attribute=key)


def _media(block: Mapping[str, Any], key: str) -> dict[str, Any]:
    media: dict[str, Any] = {"url": get_str(block, "url", required=True)}
    for size in ("width", "height"):
        value = get_int(block, size, min_value=0)
        if value:
            media[size] = value
    return media


def _optional(block: Mapping[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    return {key: get_str(block, key) for key in keys if is_set(block, key)}


def build_embed(values: Mapping[str, Any]) -> discord.Embed:
    """Validate an ``embed`` attribute block and build the embed it describes."""

    data: dict[str, Any] = {"type": "rich"}
    for key in _TEXT_KEYS:
        if is_set(values, key):
            data[key] = get_str(values, key)
    color = get_int(values, "color", min_value=0)
    if color:
        data["color"] = color

    footer = _block(values, "footer", where="embed")
    if footer is not None:
        data["footer"] = {
            "text": get_str(footer, "text", required=True),
            **_optional(footer, ("icon_url",)),
        }
    for key in _MEDIA_KEYS:
        block = _block(values, key, where="embed")
        if block is not None:
            data[key] = _media(block, key)
    provider = _block(values, "provider", where="embed")
    if provider is not None:
        data["provider"] = _optional(provider, ("name", "url"))
    author = _block(values, "author", where="embed")
    if author is not None:
        data["author"] = _optional(author, ("name", "url", "icon_url"))

    fields = values.get("fields") or []
    if not isinstance(fields, (list, tuple)):
        raise ValidationError("embed.fields must be a list", attribute="fields")
    data["fields"] = [
        {
            "name": get_str(field, "name", required=True),
            "value": get_str(field, "value", default=""),
            "inline": get_bool(field, "inline"),
        }
        for field in fields
    ]

    try:
        return discord.Embed.from_dict(data)
    except ValueError as exc:
        raise ValidationError(
            f"embed.timestamp must be an ISO 8601 timestamp: {exc}", attribute="timestamp"
        ) from exc


def parse_embed(raw: Any) -> Optional[dict[str, Any]]:
    """Turn the ``embed`` attribute (a one-item list or a mapping) into a payload."""

    block = _block({"embed": raw}, "embed", where="message")
    if block is None:
        return None
    return build_embed(block).to_dict()


def unbuild_embed(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Expand a Discord embed payload into the ``embed`` attribute shape."""

    data = discord.Embed.from_dict(dict(payload)).to_dict()
    result: dict[str, Any] = {key: data.get(key, "") for key in _TEXT_KEYS}
    result["color"] = data.get("color", 0)
    for key in _SINGLE_BLOCKS:
        result[key] = [dict(data[key])] if data.get(key) else []
    result["fields"] = [
        {
            "name": field.get("name", ""),
            "value": field.get("value", ""),
            "inline": bool(field.get("inline")),
        }
        for field in data.get("fields") or []
    ]
    return result
