"""Block storage configuration using Pydantic settings.

Settings are loaded from environment variables with ``STORAGE_`` prefix.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Roots of the local storage trees.

    Uploads, cache and function code are stored per tenant under
    ``<root>/<tenant_dir_prefix><tenant id>``; certificates per domain under
    ``<certificates_root>/<domain>``.

    Environment Variables:
        STORAGE_UPLOADS_ROOT: Root of uploaded files (default: /storage/uploads)
        STORAGE_CACHE_ROOT: Root of cached files (default: /storage/cache)
        STORAGE_FUNCTIONS_ROOT: Root of function code bundles (default: /storage/functions)
        STORAGE_CERTIFICATES_ROOT: Root of issued certificates (default: /storage/certificates)
        STORAGE_TENANT_DIR_PREFIX: Prefix of per-tenant directories (default: app-)

    Example:
        >>> StorageSettings().tenant_dir("acme")
        'app-acme'
    """

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    uploads_root: Path = Field(default=Path("/storage/uploads"), description="Uploads root")
    cache_root: Path = Field(default=Path("/storage/cache"), description="Cache root")
    functions_root: Path = Field(
        default=Path("/storage/functions"), description="Function code root"
    )
    certificates_root: Path = Field(
        default=Path("/storage/certificates"), description="Certificates root"
    )
    tenant_dir_prefix: str = Field(default="app-", description="Per-tenant directory prefix")

    def tenant_dir(self, tenant_id: str) -> str:
        return f"{self.tenant_dir_prefix}{tenant_id}"


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    """Get cached StorageSettings instance."""
    return StorageSettings()
