"""Exception hierarchy shared by the permission core and the provider."""

from __future__ import annotations

from typing import Optional

__all__ = [
    "ProviderError",
    "ValidationError",
    "RemoteCallError",
    "SyncError",
]


class ProviderError(Exception):
    """Base class for every error surfaced to provider callers."""


class ValidationError(ProviderError):
    """Configuration rejected before any remote call was made."""

    def __init__(self, message: str, *, attribute: Optional[str] = None) -> None:
        super().__init__(message)
        self.attribute = attribute


class RemoteCallError(ProviderError):
    """A Discord API call failed; carries the operation and entity context."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        entity_id: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.entity_id = entity_id
        self.status = status


class SyncError(RemoteCallError):
    """Overwrite sync stopped part-way; earlier steps are not rolled back."""

    def __init__(
        self,
        message: str,
        *,
        step: str,
        channel_id: str,
        overwrite_id: str,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(
            message,
            operation=f"sync:{step}",
            entity_id=channel_id,
            status=status,
        )
        self.step = step
        self.overwrite_id = overwrite_id
