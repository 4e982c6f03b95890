#!/usr/bin/env python3
"""Drive the Discord provider from the command line with JSON attribute documents."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional

from config.runtime import get_app_name, get_env_name
from modules.permissions import decode, encode, permission_set_id
from modules.provider import Provider, open_client
from shared.config import get_log_format, get_log_level, load_settings
from shared.errors import ProviderError
from shared.logging import setup_logging
from shared.redaction import sanitize_text

log = logging.getLogger("provider.app")


class UsageError(Exception):
    """A command-line argument could not be turned into a document."""


def _load_document(source: str) -> Mapping[str, Any]:
    if source.startswith("@"):
        try:
            text = Path(source[1:]).read_text(encoding="utf-8")
        except OSError as exc:
            raise UsageError(f"Cannot read {source[1:]}: {exc.strerror or exc}") from exc
    else:
        text = source
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise UsageError(f"Invalid attributes payload: {exc}") from exc
    if not isinstance(data, Mapping):
        raise UsageError("Attributes payload must be a JSON object")
    return data


def _dump(data: Any) -> None:
    json.dump(data, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")
    warnings = data.get("warnings") if isinstance(data, Mapping) else None
    for warning in warnings or ():
        sys.stderr.write(f"warning: {sanitize_text(warning)}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--token",
        default=None,
        help="Bot token (defaults to DISCORD_TOKEN)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    encode_cmd = sub.add_parser("encode", help="Fold permission flag states into bits")
    encode_cmd.add_argument("flags", help="JSON object of flag -> allow|deny|unset (@file ok)")
    encode_cmd.add_argument("--allow-extends", type=int, default=0)
    encode_cmd.add_argument("--deny-extends", type=int, default=0)

    decode_cmd = sub.add_parser("decode", help="Expand allow/deny bits into flag states")
    decode_cmd.add_argument("allow", type=int)
    decode_cmd.add_argument("deny", type=int)
    decode_cmd.add_argument(
        "--all", action="store_true", help="Include flags that are unset"
    )

    data_cmd = sub.add_parser("data", help="Read a data source")
    data_cmd.add_argument("type")
    data_cmd.add_argument("config")

    create_cmd = sub.add_parser("create", help="Create a resource")
    create_cmd.add_argument("type")
    create_cmd.add_argument("config")

    read_cmd = sub.add_parser("read", help="Read a resource")
    read_cmd.add_argument("type")
    read_cmd.add_argument("id")
    read_cmd.add_argument("config")

    update_cmd = sub.add_parser("update", help="Update a resource in place")
    update_cmd.add_argument("type")
    update_cmd.add_argument("id")
    update_cmd.add_argument("config")
    update_cmd.add_argument("--previous", default=None, help="Prior attributes (JSON, @file ok)")

    delete_cmd = sub.add_parser("delete", help="Delete a resource")
    delete_cmd.add_argument("type")
    delete_cmd.add_argument("id")
    delete_cmd.add_argument("config")

    import_cmd = sub.add_parser("import", help="Resolve an import id")
    import_cmd.add_argument("type")
    import_cmd.add_argument("id")

    migrate_cmd = sub.add_parser("migrate", help="Rewrite a legacy resource id")
    migrate_cmd.add_argument("type")
    migrate_cmd.add_argument("attributes", help="Stored attributes (JSON, @file ok)")
    migrate_cmd.add_argument("--id", default=None, help="Stored resource id")

    return parser


async def _with_provider(
    token: Optional[str],
    needs_api: bool,
    action: Callable[[Provider], Awaitable[Any]],
) -> Any:
    if not needs_api:
        return await action(Provider())
    async with open_client(load_settings(token)) as api:
        return await action(Provider(api))


async def _run(args: argparse.Namespace) -> Any:
    if args.command == "encode":
        flags = _load_document(args.flags)
        base = encode(flags)
        result = encode(flags, args.allow_extends, args.deny_extends)
        return {
            "id": permission_set_id(base.allow_bits, base.deny_bits),
            "allow_bits": result.allow_bits,
            "deny_bits": result.deny_bits,
        }

    if args.command == "decode":
        states = decode(args.allow, args.deny)
        return {
            name: state.value
            for name, state in states.items()
            if args.all or state.value != "unset"
        }

    if args.command == "import":
        resource_id, attributes = Provider().import_resource(args.type, args.id)
        return {"id": resource_id, **attributes}

    if args.command == "migrate":
        attributes = _load_document(args.attributes)
        return {"id": Provider().migrate_state(args.type, args.id, attributes)}

    if args.command == "data":
        config = _load_document(args.config)
        needs_api = Provider().data_source(args.type).needs_api
        return await _with_provider(
            args.token, needs_api, lambda provider: provider.read_data(args.type, config)
        )

    config = _load_document(args.config)
    if args.command == "create":
        return await _with_provider(
            args.token, True, lambda provider: provider.create(args.type, config)
        )
    if args.command == "read":
        return await _with_provider(
            args.token, True, lambda provider: provider.read(args.type, args.id, config)
        )
    if args.command == "update":
        previous = _load_document(args.previous) if args.previous else None
        return await _with_provider(
            args.token,
            True,
            lambda provider: provider.update(args.type, args.id, config, previous),
        )
    warnings = await _with_provider(
        args.token, True, lambda provider: provider.delete(args.type, args.id, config)
    )
    return {"deleted": args.id, "warnings": warnings}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        level=get_log_level(),
        fmt=get_log_format(),
        static_fields={"app": get_app_name(), "env": get_env_name()},
    )
    try:
        result = asyncio.run(_run(args))
    except UsageError as exc:
        parser.error(str(exc))
    except ProviderError as exc:
        message = sanitize_text(str(exc))
        log.error("provider call failed", extra={"command": args.command, "error": message})
        sys.stderr.write(f"error: {message}\n")
        return 1
    _dump(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
