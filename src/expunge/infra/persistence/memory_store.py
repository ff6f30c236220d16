"""Dictionary-backed document store for local runs and tests.

Honors the same contract as the SQL adapter: id-ordered pages with binary
string collation, write-role checks unless an active elevated access token
is passed, and idempotent namespace drops.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from expunge.foundation.application.access import authorize_write
from expunge.foundation.domain.exceptions import StoreError
from expunge.infra.persistence.store_settings import StoreSettings

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from expunge.foundation.application.access import ElevatedAccess
    from expunge.foundation.domain.records import Filter, Record

logger = logging.getLogger(__name__)


class InMemoryDocumentStore:
    """Records of one namespace held in a dict keyed by id."""

    def __init__(self, namespace: str, records: Iterable[Record] = ()) -> None:
        self._namespace = namespace
        self._records: dict[str, Record] = {}
        for record in records:
            self.insert(record)

    @property
    def namespace(self) -> str:
        return self._namespace

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def insert(self, record: Record) -> Record:
        if record.id in self._records:
            raise StoreError(
                "Duplicate record id",
                context={"namespace": self._namespace, "record_id": record.id},
            )
        self._records[record.id] = record
        return record

    def get(self, record_id: str, *, access: ElevatedAccess | None = None) -> Record | None:
        return self._records.get(record_id)

    def find(
        self,
        filters: Sequence[Filter],
        *,
        limit: int,
        access: ElevatedAccess | None = None,
    ) -> list[Record]:
        # Python str ordering compares code points, same as the binary collation.
        matching = (
            record
            for _, record in sorted(self._records.items())
            if all(f.matches(record) for f in filters)
        )
        return [record for _, record in zip(range(limit), matching, strict=False)]

    def update(self, record: Record, *, access: ElevatedAccess | None = None) -> Record:
        existing = self._records.get(record.id)
        if existing is None:
            raise StoreError(
                "Document not found",
                context={"namespace": self._namespace, "record_id": record.id},
            )
        authorize_write(existing, access)
        self._records[record.id] = record
        return record

    def delete(self, record_id: str, *, access: ElevatedAccess | None = None) -> bool:
        existing = self._records.get(record_id)
        if existing is None:
            return False
        authorize_write(existing, access)
        del self._records[record_id]
        return True


class InMemoryStoreProvider:
    """Holds one :class:`InMemoryDocumentStore` per namespace, created on demand.

    Args:
        settings: Namespace naming; defaults to ``StoreSettings()`` built from
            the environment.
    """

    def __init__(self, settings: StoreSettings | None = None) -> None:
        self._settings = settings or StoreSettings()
        self._stores: dict[str, InMemoryDocumentStore] = {}

    def namespace(self, name: str) -> InMemoryDocumentStore:
        """Store of an arbitrary namespace, created empty if needed."""
        store = self._stores.get(name)
        if store is None:
            store = self._stores[name] = InMemoryDocumentStore(name)
        return store

    def has_namespace(self, name: str) -> bool:
        return name in self._stores

    def for_tenant(self, tenant_id: str) -> InMemoryDocumentStore:
        return self.namespace(self.tenant_namespace(tenant_id))

    def control_plane(self) -> InMemoryDocumentStore:
        return self.namespace(self._settings.control_plane_namespace)

    def tenant_namespace(self, tenant_id: str) -> str:
        return self._settings.tenant_namespace(tenant_id)

    def drop_tenant(self, tenant_id: str) -> None:
        namespace = self.tenant_namespace(tenant_id)
        dropped = self._stores.pop(namespace, None)
        logger.info(
            "tenant_namespace_dropped",
            extra={"namespace": namespace, "records": len(dropped) if dropped is not None else 0},
        )
