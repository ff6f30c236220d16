"""Certificate file cleanup for removed domains.

Each issued certificate is stored in ``<certificates root>/<domain>/``. The
domain value comes from upstream data, so the directory is only touched when
its canonical path equals the naively joined one: any traversal sequence,
symlink or redundant separator makes the two differ and the domain is then
treated as having no files.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def certificate_directory(domain: str, certificates_root: Path | str) -> str | None:
    """Return the directory of ``domain`` if it is safely inside the root.

    Args:
        domain: Domain name as provided by the job.
        certificates_root: Directory holding one sub-directory per domain.

    Returns:
        The directory path, or None if the domain is empty or the path
        does not resolve to itself.
    """
    if not domain:
        return None
    root = os.path.realpath(certificates_root)
    directory = f"{root}/{domain}"
    if os.path.realpath(directory) != directory:
        return None
    return directory


def delete_certificates(domain: str, certificates_root: Path | str) -> bool:
    """Delete the stored certificate files of ``domain``.

    Absence is a valid terminal state (never issued, or already cleaned), so
    a missing or rejected directory is a no-op rather than an error. A
    directory holding anything other than files is left untouched.

    Args:
        domain: Domain whose certificate files should be removed.
        certificates_root: Directory holding one sub-directory per domain.

    Returns:
        True if a directory was removed, False if nothing was removed.

    Raises:
        OSError: If an existing directory cannot be emptied or removed.
    """
    directory = certificate_directory(domain, certificates_root)
    if directory is None or not os.path.isdir(directory):
        logger.info("certificates_not_found", extra={"domain": domain})
        return False

    files: list[str] = []
    leftovers: list[str] = []
    with os.scandir(directory) as entries:
        for entry in entries:
            if entry.is_symlink() or entry.is_file(follow_symlinks=False):
                files.append(entry.path)
            else:
                leftovers.append(entry.name)
    if leftovers:
        # Only flat directories of files are removed; nothing is touched here.
        logger.warning(
            "certificates_directory_not_flat",
            extra={"domain": domain, "entries": sorted(leftovers)},
        )
        return False

    for path in files:
        os.unlink(path)
    os.rmdir(directory)

    logger.info("certificates_deleted", extra={"domain": domain, "files": len(files)})
    return True
