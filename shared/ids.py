"""Composite resource identifiers and stable hashing helpers."""

from __future__ import annotations

import logging
import zlib
from typing import Mapping, Optional

__all__ = [
    "ID_DELIMITER",
    "InvalidIdError",
    "generate_two_part_id",
    "parse_two_ids",
    "generate_three_part_id",
    "parse_three_ids",
    "get_major_id",
    "get_minor_id",
    "hashcode",
    "migrate_legacy_id",
]

log = logging.getLogger("provider.ids")

ID_DELIMITER = ":"


class InvalidIdError(ValueError):
    """Raised when a composite identifier does not have the expected shape."""


def _split(value: str, parts: int) -> list[str]:
    segments = str(value).split(ID_DELIMITER, parts - 1)
    if len(segments) != parts or any(segment == "" for segment in segments):
        labels = ID_DELIMITER.join(f"attribute{index}" for index in range(1, parts + 1))
        raise InvalidIdError(
            f"unexpected format of ID ({value}), expected {labels}"
        )
    return segments


def generate_two_part_id(one: str, two: str) -> str:
    return f"{one}{ID_DELIMITER}{two}"


def parse_two_ids(value: str) -> tuple[str, str]:
    """Split ``first:second``; the second part keeps any further delimiters."""

    first, second = _split(value, 2)
    return first, second


def generate_three_part_id(one: str, two: str, three: str) -> str:
    return f"{one}{ID_DELIMITER}{two}{ID_DELIMITER}{three}"


def parse_three_ids(value: str) -> tuple[str, str, str]:
    first, second, third = _split(value, 3)
    return first, second, third


def get_major_id(value: str) -> str:
    """Return the first id of a two-part id, or ``value`` when it is a plain id."""

    text = str(value)
    if ID_DELIMITER in text:
        return parse_two_ids(text)[0]
    return text


def get_minor_id(value: str) -> str:
    """Return the second id of a two-part id, or ``value`` when it is a plain id."""

    text = str(value)
    if ID_DELIMITER in text:
        return parse_two_ids(text)[1]
    return text


def hashcode(text: str) -> int:
    """CRC32 (IEEE) of ``text`` as a non-negative integer."""

    return zlib.crc32(text.encode("utf-8")) & 0xFFFFFFFF


def migrate_legacy_id(
    resource_id: Optional[str],
    attributes: Mapping[str, object],
    fields: tuple[str, ...],
) -> str:
    """Rewrite a legacy identifier into the composite scheme.

    Older states stored a bare hash (or a single snowflake) as the id and kept
    the identifying values in separate attributes. ``fields`` names those
    attributes in composite order. Identifiers that already parse are returned
    unchanged.
    """

    parts = len(fields)
    if resource_id:
        try:
            _split(resource_id, parts)
        except InvalidIdError:
            pass
        else:
            return str(resource_id)

    values: list[str] = []
    for name in fields:
        raw = attributes.get(name)
        text = "" if raw is None else str(raw).strip()
        if not text:
            raise InvalidIdError(
                f"cannot migrate ID ({resource_id}): attribute {name!r} is empty"
            )
        values.append(text)

    migrated = ID_DELIMITER.join(values)
    log.info(
        "migrated legacy resource id",
        extra={"legacy_id": resource_id or "", "resource_id": migrated},
    )
    return migrated
