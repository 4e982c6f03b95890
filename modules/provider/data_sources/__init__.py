"""Read-only provider data sources."""

from .color import ColorDataSource
from .local_image import LocalImageDataSource
from .lookup import MemberDataSource, RoleDataSource, ServerDataSource, SystemChannelDataSource
from .permission import PermissionDataSource

__all__ = [
    "ColorDataSource",
    "LocalImageDataSource",
    "MemberDataSource",
    "PermissionDataSource",
    "RoleDataSource",
    "ServerDataSource",
    "SystemChannelDataSource",
]
