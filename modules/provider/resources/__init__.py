"""Managed Discord resources."""

from .channel import (
    CategoryChannelResource,
    ChannelResource,
    NewsChannelResource,
    TextChannelResource,
    VoiceChannelResource,
)
from .channel_permission import ChannelPermissionResource
from .invite import InviteResource
from .member_roles import MemberRolesResource
from .message import MessageResource
from .role import EveryoneRoleResource, RoleResource
from .server import ManagedServerResource, ServerResource
from .system_channel import SystemChannelResource
from .webhook import WebhookResource

__all__ = [
    "CategoryChannelResource",
    "ChannelPermissionResource",
    "ChannelResource",
    "EveryoneRoleResource",
    "InviteResource",
    "ManagedServerResource",
    "MemberRolesResource",
    "MessageResource",
    "NewsChannelResource",
    "RoleResource",
    "ServerResource",
    "SystemChannelResource",
    "TextChannelResource",
    "VoiceChannelResource",
    "WebhookResource",
]
