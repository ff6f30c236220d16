"""Local filesystem storage devices.

A :class:`LocalDevice` is a directory tree; paths handed to it are relative
to its root (absolute paths are accepted when they point inside it). Paths
that resolve outside the root are refused and reported as not deleted.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from expunge.infra.storage.settings import get_storage_settings

if TYPE_CHECKING:
    from expunge.infra.storage.settings import StorageSettings

logger = logging.getLogger(__name__)


class LocalDevice:
    """Storage device rooted at a local directory.

    Args:
        root: Root directory; it does not have to exist yet.
    """

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def __repr__(self) -> str:
        return f"LocalDevice({str(self._root)!r})"

    def exists(self, path: Path | str) -> bool:
        target = self._resolve(path)
        return target is not None and os.path.lexists(target)

    def delete(self, path: Path | str, recursive: bool = False) -> bool:
        """Delete a file, a symlink, or a directory.

        A directory is removed with its contents when ``recursive`` is set;
        otherwise it must be empty.

        Returns:
            True if something was deleted, False if the path was absent or
            outside the root.

        Raises:
            OSError: If an existing path cannot be removed.
        """
        target = self._resolve(path)
        if target is None:
            logger.warning(
                "storage_path_rejected",
                extra={"root": str(self._root), "path": str(path)},
            )
            return False
        if not os.path.lexists(target):
            return False

        if target.is_symlink() or not target.is_dir():
            target.unlink()
        elif recursive:
            shutil.rmtree(target)
        else:
            target.rmdir()
        logger.debug("storage_path_deleted", extra={"path": str(target), "recursive": recursive})
        return True

    def _resolve(self, path: Path | str) -> Path | None:
        """Resolve ``path`` against the root without following its last component."""
        root = self._root.resolve()
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self._root / candidate
        if candidate.resolve() == root:
            return root
        if candidate.name in ("", ".", ".."):
            return None
        target = candidate.parent.resolve() / candidate.name
        if root not in target.parents:
            return None
        return target


class LocalDeviceProvider:
    """Resolves per-tenant local devices from :class:`StorageSettings`."""

    def __init__(self, settings: StorageSettings | None = None) -> None:
        self._settings = settings or get_storage_settings()

    @property
    def certificates_root(self) -> Path:
        return self._settings.certificates_root

    def uploads(self, tenant_id: str) -> LocalDevice:
        return LocalDevice(self._settings.uploads_root / self._settings.tenant_dir(tenant_id))

    def cache(self, tenant_id: str) -> LocalDevice:
        return LocalDevice(self._settings.cache_root / self._settings.tenant_dir(tenant_id))

    def functions(self, tenant_id: str) -> LocalDevice:
        return LocalDevice(self._settings.functions_root / self._settings.tenant_dir(tenant_id))
