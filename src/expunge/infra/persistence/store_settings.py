"""Namespace naming for the document store."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Document store namespace configuration from environment variables.

    Loads configuration from environment variables with ``STORE_`` prefix:
    - STORE_CONTROL_PLANE_NAMESPACE: Namespace holding the tenant list
      (default: console)
    - STORE_TENANT_NAMESPACE_PREFIX: Prefix of tenant namespaces (default: app_)

    Example:
        >>> StoreSettings().tenant_namespace("acme")
        'app_acme'
    """

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    control_plane_namespace: str = Field(
        default="console", min_length=1, description="Control-plane namespace"
    )
    tenant_namespace_prefix: str = Field(default="app_", description="Tenant namespace prefix")

    def tenant_namespace(self, tenant_id: str) -> str:
        return f"{self.tenant_namespace_prefix}{tenant_id}"


@lru_cache(maxsize=1)
def get_store_settings() -> StoreSettings:
    """Get cached StoreSettings instance."""
    return StoreSettings()
