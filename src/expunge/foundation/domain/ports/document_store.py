"""Port interfaces for tenant-namespaced document storage.

The deletion engine never talks to a database directly. It receives a
:class:`StoreProvider`, asks it for the store of one namespace, and uses the
small record API below. Adapters live in ``expunge.infra.persistence``.

Example:
    >>> def count_tags(store: DocumentStore) -> int:
    ...     return len(store.find([Filter.collection("tags")], limit=50))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from expunge.foundation.application.access import ElevatedAccess
    from expunge.foundation.domain.records import Filter, Record


@runtime_checkable
class DocumentStore(Protocol):
    """Record access within one namespace.

    Write operations consult the record's write roles unless an active
    :class:`ElevatedAccess` token is passed.
    """

    @property
    def namespace(self) -> str:
        """Namespace this store is bound to."""
        ...

    def get(self, record_id: str, *, access: ElevatedAccess | None = None) -> Record | None:
        """Fetch a record by id.

        Returns:
            The record, or None if it does not exist.
        """
        ...

    def find(
        self,
        filters: Sequence[Filter],
        *,
        limit: int,
        access: ElevatedAccess | None = None,
    ) -> list[Record]:
        """List up to ``limit`` records matching every filter.

        Results are ordered by id ascending using string (binary) collation,
        so repeated calls over a shrinking set behave like a cursor.
        """
        ...

    def update(self, record: Record, *, access: ElevatedAccess | None = None) -> Record:
        """Replace a stored record.

        Raises:
            StoreError: If the record does not exist or cannot be written.
            AuthorizationError: If the caller may not write the record.
        """
        ...

    def delete(self, record_id: str, *, access: ElevatedAccess | None = None) -> bool:
        """Delete a record by id.

        Returns:
            True when the record was deleted, False when nothing was deleted.

        Raises:
            StoreError: If the backend fails.
            AuthorizationError: If the caller may not write the record.
        """
        ...


@runtime_checkable
class StoreProvider(Protocol):
    """Hands out namespace-bound stores and destroys tenant namespaces."""

    def for_tenant(self, tenant_id: str) -> DocumentStore:
        """Store of a tenant's namespace."""
        ...

    def control_plane(self) -> DocumentStore:
        """Store of the control-plane namespace (tenant list, realtime connections)."""
        ...

    def tenant_namespace(self, tenant_id: str) -> str:
        """Namespace name for a tenant (shared with the log retention adapters)."""
        ...

    def drop_tenant(self, tenant_id: str) -> None:
        """Destroy a tenant's whole namespace in one operation.

        Idempotent: dropping an absent namespace is a no-op.
        """
        ...
