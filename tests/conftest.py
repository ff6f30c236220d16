"""Shared fixtures: in-memory stores, tmp_path storage roots and fake retention logs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pytest
import structlog

from expunge.domain.deletes.context import DeletionContext
from expunge.foundation.domain.records import Collection, Record
from expunge.infra.observability.logging import HANDLER_NAME
from expunge.infra.persistence.memory_store import InMemoryStoreProvider
from expunge.infra.persistence.store_settings import StoreSettings
from expunge.infra.storage.local_device import LocalDeviceProvider
from expunge.infra.storage.settings import StorageSettings

if TYPE_CHECKING:
    from pathlib import Path


def _record(
    record_id: str,
    collection: str,
    write_roles: tuple[str, ...] = (),
    **attributes: Any,
) -> Record:
    """Build a record with the given attributes."""
    return Record(
        id=record_id,
        collection=str(collection),
        attributes=attributes,
        write_roles=write_roles,
    )


class FakeRetentionLog:
    """Retention log recording cleanups; fails for the namespaces in ``failing``."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.namespace: str | None = None
        self.cleaned: list[tuple[str, int]] = []

    def set_namespace(self, namespace: str) -> None:
        self.namespace = namespace

    def cleanup(self, before: int) -> bool:
        assert self.namespace is not None
        if self.namespace in self.failing:
            return False
        self.cleaned.append((self.namespace, before))
        return True


class FakeRetentionLogProvider:
    def __init__(self) -> None:
        self.audit_log = FakeRetentionLog()
        self.abuse_log = FakeRetentionLog()

    def audit(self) -> FakeRetentionLog:
        return self.audit_log

    def abuse(self) -> FakeRetentionLog:
        return self.abuse_log


@pytest.fixture()
def store_settings() -> StoreSettings:
    return StoreSettings(control_plane_namespace="console", tenant_namespace_prefix="app_")


@pytest.fixture()
def stores(store_settings: StoreSettings) -> InMemoryStoreProvider:
    return InMemoryStoreProvider(store_settings)


@pytest.fixture()
def storage_settings(tmp_path: Path) -> StorageSettings:
    return StorageSettings(
        uploads_root=tmp_path / "uploads",
        cache_root=tmp_path / "cache",
        functions_root=tmp_path / "functions",
        certificates_root=tmp_path / "certificates",
        tenant_dir_prefix="app-",
    )


@pytest.fixture()
def devices(storage_settings: StorageSettings) -> LocalDeviceProvider:
    return LocalDeviceProvider(storage_settings)


@pytest.fixture()
def retention_logs() -> FakeRetentionLogProvider:
    return FakeRetentionLogProvider()


@pytest.fixture()
def context(
    stores: InMemoryStoreProvider,
    devices: LocalDeviceProvider,
    retention_logs: FakeRetentionLogProvider,
) -> DeletionContext:
    return DeletionContext(stores=stores, devices=devices, retention_logs=retention_logs)


@pytest.fixture()
def tenants(stores: InMemoryStoreProvider) -> list[str]:
    """Three tenants registered in the control plane."""
    ids = ["acme", "globex", "initech"]
    control_plane = stores.control_plane()
    for tenant_id in ids:
        control_plane.insert(_record(tenant_id, Collection.PROJECTS, name=tenant_id))
    return ids


@pytest.fixture(autouse=True)
def _reset_structlog() -> Any:
    """Undo any structlog configuration a test applied."""
    root = logging.getLogger()
    level = root.level
    yield
    structlog.reset_defaults()
    root.setLevel(level)
    for handler in list(root.handlers):
        if handler.get_name() == HANDLER_NAME:
            root.removeHandler(handler)

