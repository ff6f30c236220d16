"""Expunge Infra Storage -- local block storage devices."""

from expunge.infra.storage.local_device import LocalDevice, LocalDeviceProvider
from expunge.infra.storage.settings import StorageSettings, get_storage_settings

__all__ = [
    "LocalDevice",
    "LocalDeviceProvider",
    "StorageSettings",
    "get_storage_settings",
]
