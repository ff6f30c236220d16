"""Cascading deletion of tenant records and files, driven by delete jobs."""

from expunge.domain.deletes.bulk import (
    GROUP_PAGE_SIZE,
    GroupDeleteResult,
    delete_by_group,
    for_each_tenant,
)
from expunge.domain.deletes.cascades import CascadeDeletionService, CascadeResult
from expunge.domain.deletes.certificates import delete_certificates
from expunge.domain.deletes.context import DeletionContext
from expunge.domain.deletes.dispatcher import DeleteDispatcher
from expunge.domain.deletes.retention import (
    RetentionWindow,
    purge_abuse_logs,
    purge_audit_logs,
    purge_executions,
    purge_realtime_connections,
    retention_thresholds,
)

__all__ = [
    "GROUP_PAGE_SIZE",
    "CascadeDeletionService",
    "CascadeResult",
    "DeleteDispatcher",
    "DeletionContext",
    "GroupDeleteResult",
    "RetentionWindow",
    "delete_by_group",
    "delete_certificates",
    "for_each_tenant",
    "purge_abuse_logs",
    "purge_audit_logs",
    "purge_executions",
    "purge_realtime_connections",
    "retention_thresholds",
]
