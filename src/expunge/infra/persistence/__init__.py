"""Expunge Infra Persistence -- database sessions, document store and retention log adapters."""

from expunge.infra.persistence.database import (
    DatabaseManager,
    DatabaseSettings,
    dispose_engine,
    get_database_manager,
    get_sync_session_factory,
)
from expunge.infra.persistence.document_store import SqlDocumentStore, SqlStoreProvider
from expunge.infra.persistence.log_retention import SqlRetentionLog, SqlRetentionLogProvider
from expunge.infra.persistence.memory_store import InMemoryDocumentStore, InMemoryStoreProvider
from expunge.infra.persistence.store_settings import StoreSettings, get_store_settings

__all__ = [
    "DatabaseManager",
    "DatabaseSettings",
    "InMemoryDocumentStore",
    "InMemoryStoreProvider",
    "SqlDocumentStore",
    "SqlRetentionLog",
    "SqlRetentionLogProvider",
    "SqlStoreProvider",
    "StoreSettings",
    "dispose_engine",
    "get_database_manager",
    "get_store_settings",
    "get_sync_session_factory",
]
