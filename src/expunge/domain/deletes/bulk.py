"""Paginated bulk deletion and tenant fan-out.

``delete_by_group`` deletes every record currently matching a filter set by
re-running the same query after each page. Deletions shrink the matching
set and the filter is re-evaluated on every page; records inserted
concurrently may or may not be swept by the same run, which is fine because
the operation is idempotent.

Failure policy is tolerant: a record whose delete fails is logged and
skipped. A failed record still matches the filter, so once a page has a
failure the following queries start after that page's last id and each
record is attempted at most once per run.

``for_each_tenant`` uses the same page walk over the control-plane tenant
list to fan a per-tenant operation out across every tenant.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from expunge.foundation.application.access import elevated_access
from expunge.foundation.domain.exceptions import AuthorizationError, StoreError
from expunge.foundation.domain.records import ID_FIELD, Collection, Filter

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from expunge.foundation.application.access import ElevatedAccess
    from expunge.foundation.domain.ports import DocumentStore, StoreProvider
    from expunge.foundation.domain.records import Record

    #: Side effect run for each deleted record, inside the same access window.
    OnDeleted = Callable[[Record, ElevatedAccess], None]

logger = logging.getLogger(__name__)

GROUP_PAGE_SIZE = 50


@dataclass
class GroupDeleteResult:
    """Outcome of one group delete.

    Attributes:
        deleted: Records deleted.
        failed: Records whose delete failed (soft failures).
        page_sizes: Number of records returned by each page query, in order.
        elapsed_seconds: Wall-clock duration of the whole group delete.
    """

    deleted: int = 0
    failed: int = 0
    page_sizes: list[int] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def chunks(self) -> int:
        """Number of page queries issued."""
        return len(self.page_sizes)


def delete_by_group(
    filters: Sequence[Filter],
    store: DocumentStore,
    on_deleted: OnDeleted | None = None,
) -> GroupDeleteResult:
    """Delete every record of ``store`` matching ``filters``.

    Fetches pages of up to ``GROUP_PAGE_SIZE`` records ordered by id and
    deletes each under one elevated access window that stays open for the
    whole call and is closed on every exit path. The loop stops on the first
    page shorter than ``GROUP_PAGE_SIZE``.

    Args:
        filters: Conjunction of predicates selecting the records.
        store: Namespace-bound store to delete from.
        on_deleted: Optional side effect called with the pre-delete snapshot
            and the open access token after each successful delete.

    Returns:
        GroupDeleteResult with counts and page sizes.
    """
    result = GroupDeleteResult()
    started = time.monotonic()
    filter_labels = [str(f) for f in filters]
    last_id: str | None = None

    with elevated_access("delete_by_group") as access:
        while True:
            page = store.find(
                _after(list(filters), last_id), limit=GROUP_PAGE_SIZE, access=access
            )
            result.page_sizes.append(len(page))
            logger.info(
                "group_delete_chunk",
                extra={
                    "namespace": store.namespace,
                    "chunk": result.chunks,
                    "found": len(page),
                    "filters": filter_labels,
                },
            )

            failed_before = result.failed
            for record in page:
                if _delete_record(record, store, access, on_deleted):
                    result.deleted += 1
                else:
                    result.failed += 1

            if len(page) < GROUP_PAGE_SIZE:
                break
            if last_id is not None or result.failed > failed_before:
                # Everything up to here was deleted or has failed once.
                last_id = page[-1].id

    result.elapsed_seconds = time.monotonic() - started
    logger.info(
        "group_delete_completed",
        extra={
            "namespace": store.namespace,
            "deleted": result.deleted,
            "failed": result.failed,
            "chunks": result.chunks,
            "elapsed_seconds": round(result.elapsed_seconds, 6),
        },
    )
    return result


def _delete_record(
    record: Record,
    store: DocumentStore,
    access: ElevatedAccess,
    on_deleted: OnDeleted | None,
) -> bool:
    """Delete one record; a failure is logged, never raised."""
    try:
        deleted = store.delete(record.id, access=access)
    except (StoreError, AuthorizationError) as exc:
        logger.error(
            "group_delete_record_failed",
            extra={"record_id": record.id, "namespace": store.namespace, "error": str(exc)},
        )
        return False

    if not deleted:
        logger.error(
            "group_delete_record_failed",
            extra={"record_id": record.id, "namespace": store.namespace},
        )
        return False

    logger.debug("group_delete_record_deleted", extra={"record_id": record.id})
    if on_deleted is not None:
        on_deleted(record, access)
    return True


def for_each_tenant(stores: StoreProvider, callback: Callable[[str], None]) -> int:
    """Invoke ``callback`` with the id of every tenant.

    Pages through the control-plane tenant list in id order. Each page is
    listed under its own short elevated window, closed before the callbacks
    run so they can open their own. Exceptions raised by the callback
    propagate and stop the walk.

    Args:
        stores: Store provider exposing the control-plane namespace.
        callback: Operation to run per tenant id.

    Returns:
        Number of tenants visited.
    """
    control_plane = stores.control_plane()
    tenant_filter = [Filter.collection(Collection.PROJECTS)]
    count = 0
    chunk = 0
    started = time.monotonic()
    last_id: str | None = None

    while True:
        chunk += 1
        with elevated_access("for_each_tenant") as access:
            page = control_plane.find(
                _after(tenant_filter, last_id),
                limit=GROUP_PAGE_SIZE,
                access=access,
            )
        logger.info("tenant_fanout_chunk", extra={"chunk": chunk, "found": len(page)})

        for tenant in page:
            callback(tenant.id)
            count += 1
            last_id = tenant.id

        if len(page) < GROUP_PAGE_SIZE:
            break

    logger.info(
        "tenant_fanout_completed",
        extra={"tenants": count, "elapsed_seconds": round(time.monotonic() - started, 6)},
    )
    return count


def _after(filters: list[Filter], last_id: str | None) -> list[Filter]:
    if last_id is None:
        return filters
    return [*filters, Filter.greater_than(ID_FIELD, last_id)]
