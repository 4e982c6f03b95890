"""Runtime logging configuration utilities."""

from __future__ import annotations

import logging
from typing import Mapping

from .structured import JsonFormatter

__all__ = ["PLAIN_FORMAT", "setup_logging"]

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _ensure_stream_handler(logger: logging.Logger, formatter: logging.Formatter) -> None:
    """Ensure ``logger`` has a stream handler using ``formatter``."""

    stream_handler_found = False
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            handler.setFormatter(formatter)
            stream_handler_found = True
    if not stream_handler_found:
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)


def setup_logging(
    *,
    level: str | int = logging.INFO,
    fmt: str = "json",
    static_fields: Mapping[str, str] | None = None,
    http_logger_name: str = "discord.http",
    http_level: str | int = logging.WARNING,
) -> logging.Logger:
    """Configure logging for the provider runtime.

    Parameters
    ----------
    level:
        Root log level.
    fmt:
        ``"json"`` for one JSON object per line, ``"plain"`` for the classic
        text layout.
    static_fields:
        Base static fields included with every structured log event.
    http_logger_name:
        Name of the discord.py HTTP logger, which is noisy at INFO.
    http_level:
        Level applied to ``http_logger_name``.

    Returns
    -------
    logging.Logger
        The configured root logger.
    """

    if fmt == "plain":
        formatter: logging.Formatter = logging.Formatter(PLAIN_FORMAT)
    else:
        formatter = JsonFormatter(static=dict(static_fields or {}))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _ensure_stream_handler(root_logger, formatter)

    logging.getLogger(http_logger_name).setLevel(http_level)

    return root_logger
