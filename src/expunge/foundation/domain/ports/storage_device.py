"""Port interfaces for rooted block storage (uploads, cache, function code)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path


@runtime_checkable
class StorageDevice(Protocol):
    """A file tree rooted at one directory."""

    @property
    def root(self) -> Path:
        """Root directory of the device."""
        ...

    def exists(self, path: str | Path) -> bool:
        """Whether a file or directory exists inside the device."""
        ...

    def delete(self, path: str | Path, recursive: bool = False) -> bool:
        """Delete a file, or a directory tree when ``recursive`` is set.

        Returns:
            True if something was deleted, False if the path was absent or
            rejected (for example because it resolves outside the root).
        """
        ...


@runtime_checkable
class DeviceProvider(Protocol):
    """Resolves the per-tenant storage devices and the certificates root."""

    @property
    def certificates_root(self) -> Path:
        """Directory holding one sub-directory per certificate domain."""
        ...

    def uploads(self, tenant_id: str) -> StorageDevice: ...

    def cache(self, tenant_id: str) -> StorageDevice: ...

    def functions(self, tenant_id: str) -> StorageDevice: ...
