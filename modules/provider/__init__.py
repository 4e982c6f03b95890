"""Declarative management of Discord servers over the REST API."""

from modules.provider.client import DiscordAPI, DiscordHTTPClient, open_client
from modules.provider.registry import DATA_SOURCES, RESOURCES, Provider

__all__ = [
    "DATA_SOURCES",
    "DiscordAPI",
    "DiscordHTTPClient",
    "Provider",
    "RESOURCES",
    "open_client",
]
