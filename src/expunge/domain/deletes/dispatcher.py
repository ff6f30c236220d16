"""Routes one delete job to the handler that owns it.

Resource deletes are routed a second time by the removed resource's
collection tag. Unrecognized job types and collections are logged and
ignored, so jobs introduced by newer producers never fail older workers.
"""

from __future__ import annotations

import logging
from functools import singledispatchmethod
from typing import TYPE_CHECKING, Any, ClassVar

from expunge.domain.deletes import retention
from expunge.domain.deletes.cascades import CascadeDeletionService
from expunge.domain.deletes.certificates import delete_certificates
from expunge.foundation.domain.exceptions import InvalidJobError
from expunge.foundation.domain.jobs import (
    CertificatePurgeJob,
    PurgeKind,
    ResourceDeleteJob,
    TimeThresholdPurgeJob,
    parse_job,
)
from expunge.foundation.domain.records import Collection

if TYPE_CHECKING:
    from collections.abc import Callable

    from expunge.domain.deletes.context import DeletionContext
    from expunge.foundation.domain.records import Record

logger = logging.getLogger(__name__)


class DeleteDispatcher:
    """Consumes delete jobs for one :class:`DeletionContext`.

    Example:
        >>> dispatcher = DeleteDispatcher(context)
        >>> dispatcher.run({"type": "audit", "timestamp": 1700000000})
    """

    def __init__(self, context: DeletionContext) -> None:
        self._ctx = context
        self._cascades = CascadeDeletionService(context)

    def run(self, payload: dict[str, Any]) -> Any:
        """Parse a raw queue payload and dispatch it.

        Raises:
            InvalidJobError: If a recognized job type carries a malformed payload.
        """
        return self.dispatch(parse_job(payload))

    @singledispatchmethod
    def dispatch(self, job: Any) -> Any:
        """Route a job by its class; unknown job types are a no-op."""
        logger.warning("delete_job_unhandled", extra={"job_type": getattr(job, "type", None)})
        return None

    @dispatch.register(ResourceDeleteJob)
    def _dispatch_resource(self, job: ResourceDeleteJob) -> Any:
        resource = job.resource
        handler = self._handlers.get(resource.collection)
        if handler is None:
            logger.warning(
                "delete_job_unhandled",
                extra={"job_type": job.type, "collection": resource.collection},
            )
            return None
        logger.info(
            "resource_delete_started",
            extra={
                "collection": resource.collection,
                "record_id": resource.id,
                "project_id": job.project_id,
            },
        )
        return handler(self, resource, job.project_id)

    @dispatch.register(TimeThresholdPurgeJob)
    def _dispatch_purge(self, job: TimeThresholdPurgeJob) -> Any:
        logger.info(
            "retention_purge_started",
            extra={"kind": str(job.kind), "timestamp": job.timestamp},
        )
        return self._purgers[job.kind](self._ctx, job.timestamp)

    @dispatch.register(CertificatePurgeJob)
    def _dispatch_certificates(self, job: CertificatePurgeJob) -> bool:
        return delete_certificates(job.domain, self._ctx.devices.certificates_root)

    _handlers: ClassVar[dict[str, Callable[..., Any]]] = {}
    _purgers: ClassVar[dict[PurgeKind, Callable[[DeletionContext, int], Any]]] = {
        PurgeKind.EXECUTIONS: retention.purge_executions,
        PurgeKind.AUDIT: retention.purge_audit_logs,
        PurgeKind.ABUSE: retention.purge_abuse_logs,
        PurgeKind.REALTIME: retention.purge_realtime_connections,
    }

    def _delete_project(self, project: Record, project_id: str | None) -> Any:
        return self._cascades.delete_project(project)

    def _delete_user(self, user: Record, project_id: str | None) -> Any:
        return self._cascades.delete_user(user, _require_tenant(project_id, user))

    def _delete_function(self, function: Record, project_id: str | None) -> Any:
        return self._cascades.delete_function(function, _require_tenant(project_id, function))

    def _delete_collection(self, collection: Record, project_id: str | None) -> Any:
        return self._cascades.delete_collection_documents(
            collection, _require_tenant(project_id, collection)
        )

    def _delete_team(self, team: Record, project_id: str | None) -> Any:
        return self._cascades.delete_team_memberships(team, _require_tenant(project_id, team))


def _require_tenant(project_id: str | None, resource: Record) -> str:
    if not project_id:
        raise InvalidJobError(
            "projectId",
            f"required to delete a resource of collection '{resource.collection}'",
            record_id=resource.id,
        )
    return project_id


# Register resource handlers by collection tag
DeleteDispatcher._handlers = {
    Collection.PROJECTS: DeleteDispatcher._delete_project,
    Collection.USERS: DeleteDispatcher._delete_user,
    Collection.FUNCTIONS: DeleteDispatcher._delete_function,
    Collection.COLLECTIONS: DeleteDispatcher._delete_collection,
    Collection.TEAMS: DeleteDispatcher._delete_team,
}
