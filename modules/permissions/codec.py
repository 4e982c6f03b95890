"""Translate between per-flag permission states and allow/deny bit pairs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping

from shared.ids import hashcode

from .flags import PERMISSION_FLAGS, PermissionState, flag_bit, parse_state

__all__ = [
    "PermissionSet",
    "encode",
    "decode",
    "permission_set_id",
]


@dataclass(frozen=True, slots=True)
class PermissionSet:
    allow_bits: int = 0
    deny_bits: int = 0

    @property
    def conflicts(self) -> int:
        """Bits present in both accumulators (only possible via extends)."""

        return self.allow_bits & self.deny_bits


def encode(
    flags: Mapping[str, object],
    allow_extends: int = 0,
    deny_extends: int = 0,
) -> PermissionSet:
    """Fold flag states into allow/deny integers.

    Each flag lands in at most one accumulator. ``allow_extends`` and
    ``deny_extends`` are OR'd in last, so any overlap in the result comes from
    those inputs.
    """

    allow_bits = 0
    deny_bits = 0
    for name, raw_state in flags.items():
        bit = flag_bit(name)
        state = parse_state(raw_state, flag=name)
        if state is PermissionState.ALLOW:
            allow_bits |= bit
        elif state is PermissionState.DENY:
            deny_bits |= bit
    return PermissionSet(
        allow_bits=allow_bits | int(allow_extends or 0),
        deny_bits=deny_bits | int(deny_extends or 0),
    )


def decode(allow_bits: int, deny_bits: int) -> Dict[str, PermissionState]:
    """Expand a bit pair into a state for every known flag; allow wins ties."""

    states: Dict[str, PermissionState] = {}
    for name, bit in PERMISSION_FLAGS.items():
        if allow_bits & bit:
            states[name] = PermissionState.ALLOW
        elif deny_bits & bit:
            states[name] = PermissionState.DENY
        else:
            states[name] = PermissionState.UNSET
    return states


def permission_set_id(allow_bits: int, deny_bits: int) -> str:
    return str(hashcode(f"{allow_bits}:{deny_bits}"))
