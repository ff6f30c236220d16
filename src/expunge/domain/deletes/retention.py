"""Time-threshold purges of aged execution, audit, abuse and realtime data.

Execution and audit/abuse purges fan out across every tenant. Audit and
abuse logs live behind an external retention adapter whose ``cleanup`` is
called once per tenant namespace; a tenant failing there aborts the whole
purge. Realtime connections are tracked in the control plane only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from expunge.domain.deletes.bulk import delete_by_group, for_each_tenant
from expunge.foundation.domain.exceptions import MissingTimestampError, RetentionPurgeError
from expunge.foundation.domain.jobs import PurgeKind
from expunge.foundation.domain.records import Collection, Filter

if TYPE_CHECKING:
    from expunge.domain.deletes.bulk import GroupDeleteResult
    from expunge.domain.deletes.context import DeletionContext
    from expunge.foundation.domain.ports import RetentionLog

logger = logging.getLogger(__name__)


def purge_executions(ctx: DeletionContext, timestamp: int) -> int:
    """Delete every tenant's executions created before ``timestamp``.

    Returns:
        Number of tenants visited.
    """

    def purge_tenant(tenant_id: str) -> None:
        delete_by_group(
            [
                Filter.collection(Collection.EXECUTIONS),
                Filter.less_than("createdAt", timestamp),
            ],
            ctx.stores.for_tenant(tenant_id),
        )

    tenants = for_each_tenant(ctx.stores, purge_tenant)
    logger.info("executions_purged", extra={"timestamp": timestamp, "tenants": tenants})
    return tenants


def purge_audit_logs(ctx: DeletionContext, timestamp: int) -> int:
    """Delete every tenant's audit log entries older than ``timestamp``.

    Raises:
        MissingTimestampError: If ``timestamp`` is zero; no tenant is read.
        RetentionPurgeError: If the cleanup fails for a tenant; later
            tenants are not visited.
    """
    return _purge_logs(ctx, PurgeKind.AUDIT, ctx.retention_logs.audit(), timestamp)


def purge_abuse_logs(ctx: DeletionContext, timestamp: int) -> int:
    """Delete every tenant's abuse-limit entries older than ``timestamp``.

    Raises:
        MissingTimestampError: If ``timestamp`` is zero; no tenant is read.
        RetentionPurgeError: If the cleanup fails for a tenant; later
            tenants are not visited.
    """
    return _purge_logs(ctx, PurgeKind.ABUSE, ctx.retention_logs.abuse(), timestamp)


def _purge_logs(ctx: DeletionContext, kind: PurgeKind, log: RetentionLog, timestamp: int) -> int:
    if not timestamp:
        raise MissingTimestampError(str(kind))

    def purge_tenant(tenant_id: str) -> None:
        log.set_namespace(ctx.stores.tenant_namespace(tenant_id))
        if not log.cleanup(timestamp):
            raise RetentionPurgeError(str(kind), tenant_id)
        logger.debug("retention_log_cleaned", extra={"kind": str(kind), "tenant_id": tenant_id})

    tenants = for_each_tenant(ctx.stores, purge_tenant)
    logger.info(
        "retention_logs_purged",
        extra={"kind": str(kind), "timestamp": timestamp, "tenants": tenants},
    )
    return tenants


def purge_realtime_connections(ctx: DeletionContext, timestamp: int) -> GroupDeleteResult:
    """Delete control-plane realtime connection records older than ``timestamp``."""
    return delete_by_group(
        [
            Filter.collection(Collection.REALTIME_CONNECTIONS),
            Filter.less_than("timestamp", timestamp),
        ],
        ctx.stores.control_plane(),
    )


@dataclass(frozen=True, slots=True)
class RetentionWindow:
    """How long each kind of aged data is kept, in seconds."""

    executions: int
    audit: int
    abuse: int
    realtime: int


def retention_thresholds(now: int, window: RetentionWindow) -> dict[PurgeKind, int]:
    """Compute the purge threshold of each kind at ``now`` (unix seconds).

    Example:
        >>> retention_thresholds(1000, RetentionWindow(100, 200, 300, 60))[PurgeKind.AUDIT]
        800
    """
    return {
        PurgeKind.EXECUTIONS: now - window.executions,
        PurgeKind.AUDIT: now - window.audit,
        PurgeKind.ABUSE: now - window.abuse,
        PurgeKind.REALTIME: now - window.realtime,
    }
