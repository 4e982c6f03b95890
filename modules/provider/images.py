"""Image helpers: data URIs for local files and remote avatars."""

from __future__ import annotations

import asyncio
import base64
import io
import logging
from pathlib import Path
from typing import Optional

from aiohttp import ClientError, ClientSession, ClientTimeout
from PIL import Image, UnidentifiedImageError

from shared.config import get_avatar_fetch_timeout_sec, get_avatar_max_bytes
from shared.errors import RemoteCallError, ValidationError

__all__ = [
    "data_uri_from_file",
    "data_uri_from_url",
    "fetch_image_bytes",
    "sniff_mime_type",
    "to_data_uri",
]

log = logging.getLogger("provider.images")

_USER_AGENT = "discord-provider/avatar-fetch"


def sniff_mime_type(data: bytes) -> str:
    """Return the image MIME type Pillow detects for ``data``."""

    try:
        with Image.open(io.BytesIO(data)) as image:
            fmt = image.format
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationError("unsupported image format") from exc
    mime = Image.MIME.get(fmt or "")
    if not mime:
        raise ValidationError(f"unsupported image format: {fmt}")
    return mime


def to_data_uri(data: bytes, mime: Optional[str] = None) -> str:
    mime = mime or sniff_mime_type(data)
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def data_uri_from_file(path: str | Path) -> str:
    target = Path(path)
    try:
        data = target.read_bytes()
    except OSError as exc:
        raise ValidationError(
            f"Failed to process {target}: {exc.strerror or exc}", attribute="file"
        ) from exc
    return to_data_uri(data)


async def fetch_image_bytes(
    url: str,
    *,
    max_bytes: Optional[int] = None,
    timeout: Optional[float] = None,
) -> bytes:
    """Download an image, refusing non-image responses and oversized bodies."""

    limit = max_bytes if max_bytes is not None else get_avatar_max_bytes()
    total = timeout if timeout is not None else get_avatar_fetch_timeout_sec()
    async with ClientSession(timeout=ClientTimeout(total=total)) as session:
        try:
            async with session.get(url, headers={"User-Agent": _USER_AGENT}) as resp:
                if resp.status != 200:
                    raise RemoteCallError(
                        f"Failed to fetch avatar: upstream status {resp.status}",
                        operation="avatar.fetch",
                        status=resp.status,
                    )

                content_type = resp.headers.get("Content-Type", "").lower()
                if "image" not in content_type:
                    raise ValidationError(
                        f"avatar_url did not return an image ({content_type or 'no content type'})",
                        attribute="avatar_url",
                    )

                length = resp.content_length
                if length and length > limit:
                    raise ValidationError("avatar image too large", attribute="avatar_url")

                data = bytearray()
                async for chunk in resp.content.iter_chunked(65536):
                    data.extend(chunk)
                    if len(data) > limit:
                        raise ValidationError("avatar image too large", attribute="avatar_url")
                return bytes(data)
        except asyncio.TimeoutError as exc:
            raise RemoteCallError(
                "Failed to fetch avatar: timeout", operation="avatar.fetch"
            ) from exc
        except ClientError as exc:
            raise RemoteCallError(
                f"Failed to fetch avatar: {exc}", operation="avatar.fetch"
            ) from exc


async def data_uri_from_url(url: str) -> str:
    data = await fetch_image_bytes(url)
    uri = to_data_uri(data)
    log.debug("avatar fetched", extra={"bytes": len(data)})
    return uri
