"""Port interfaces implemented by infrastructure adapters."""

from expunge.foundation.domain.ports.document_store import DocumentStore, StoreProvider
from expunge.foundation.domain.ports.log_retention import RetentionLog, RetentionLogProvider
from expunge.foundation.domain.ports.storage_device import DeviceProvider, StorageDevice

__all__ = [
    "DeviceProvider",
    "DocumentStore",
    "RetentionLog",
    "RetentionLogProvider",
    "StorageDevice",
    "StoreProvider",
]
