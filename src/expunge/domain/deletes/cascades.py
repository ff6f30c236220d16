"""Cascade deletion of the records and files owned by a removed resource.

One method per resource collection. Each runs synchronously inside the
worker's job and commits every delete independently; a job failing partway
leaves a partial cascade that a re-run completes.

Failure policy differs by step:

- Group deletes (memberships, tags, executions, documents) are tolerant;
  failed records are logged and skipped.
- A deleted user's tokens and sessions must all go. The first one that
  cannot be removed aborts the job before any membership is touched.
- Function code files are best effort; each outcome is logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from expunge.domain.deletes.bulk import delete_by_group
from expunge.foundation.application.access import elevated_access
from expunge.foundation.domain.exceptions import CredentialRemovalError, StoreError
from expunge.foundation.domain.records import Collection, Filter, Record

if TYPE_CHECKING:
    from expunge.domain.deletes.bulk import GroupDeleteResult
    from expunge.domain.deletes.context import DeletionContext
    from expunge.foundation.application.access import ElevatedAccess
    from expunge.foundation.domain.ports import DocumentStore, StorageDevice

logger = logging.getLogger(__name__)


@dataclass
class CascadeResult:
    """Result of one cascade.

    Attributes:
        categories_processed: Data categories handled, in order.
        records_deleted: Dependent records deleted.
        records_failed: Dependent records whose delete failed softly.
        files_deleted: Files or trees removed from block storage.
        files_failed: File deletions that failed.
    """

    categories_processed: list[str] = field(default_factory=list)
    records_deleted: int = 0
    records_failed: int = 0
    files_deleted: int = 0
    files_failed: int = 0

    def add_group(self, category: str, group: GroupDeleteResult) -> None:
        self.categories_processed.append(category)
        self.records_deleted += group.deleted
        self.records_failed += group.failed


class CascadeDeletionService:
    """Deletes what depends on a removed project, user, function, collection or team.

    Args:
        context: Collaborators of the current job.
    """

    def __init__(self, context: DeletionContext) -> None:
        self._ctx = context

    def delete_project(self, project: Record) -> CascadeResult:
        """Drop a project's namespace and its storage trees.

        Dropping the namespace removes every record of the tenant at once, so
        no row-level cascade runs. Re-running on an already deleted project
        is a no-op.
        """
        result = CascadeResult()
        self._ctx.stores.drop_tenant(project.id)
        result.categories_processed.append("namespace")

        for category, device in (
            ("uploads", self._ctx.devices.uploads(project.id)),
            ("cache", self._ctx.devices.cache(project.id)),
        ):
            if device.delete(device.root, recursive=True):
                result.files_deleted += 1
            else:
                logger.info(
                    "project_storage_absent",
                    extra={"project_id": project.id, "category": category},
                )
            result.categories_processed.append(category)

        logger.info(
            "project_deleted",
            extra={"project_id": project.id, "categories": result.categories_processed},
        )
        return result

    def delete_user(self, user: Record, tenant_id: str) -> CascadeResult:
        """Remove a user's credentials, then their memberships.

        Tokens and sessions listed on the snapshot are deleted one by one;
        any failure raises before memberships are touched. Each deleted
        confirmed membership decrements its team's member count, floored at
        zero.

        Raises:
            CredentialRemovalError: If a token or session survives.
        """
        store = self._ctx.stores.for_tenant(tenant_id)
        result = CascadeResult()

        with elevated_access("delete_user_credentials") as access:
            for collection in (Collection.TOKENS, Collection.SESSIONS):
                for credential_id in _credential_ids(user, collection):
                    _remove_credential(store, collection, credential_id, access, user.id)
                    result.records_deleted += 1
                result.categories_processed.append(str(collection))

        group = delete_by_group(
            [Filter.collection(Collection.MEMBERSHIPS), Filter.equal("userId", user.id)],
            store,
            on_deleted=lambda membership, access: _decrement_team_members(
                store, membership, access
            ),
        )
        result.add_group(str(Collection.MEMBERSHIPS), group)
        return result

    def delete_function(self, function: Record, tenant_id: str) -> CascadeResult:
        """Delete a function's tags with their code bundles, then its executions."""
        store = self._ctx.stores.for_tenant(tenant_id)
        device = self._ctx.devices.functions(tenant_id)
        result = CascadeResult()

        def delete_code(tag: Record, access: ElevatedAccess) -> None:
            if _delete_code_bundle(device, tag):
                result.files_deleted += 1
            else:
                result.files_failed += 1

        tags = delete_by_group(
            [Filter.collection(Collection.TAGS), Filter.equal("functionId", function.id)],
            store,
            on_deleted=delete_code,
        )
        result.add_group(str(Collection.TAGS), tags)

        executions = delete_by_group(
            [Filter.collection(Collection.EXECUTIONS), Filter.equal("functionId", function.id)],
            store,
        )
        result.add_group(str(Collection.EXECUTIONS), executions)
        return result

    def delete_collection_documents(self, collection: Record, tenant_id: str) -> CascadeResult:
        """Delete every document stored in a removed collection."""
        result = CascadeResult()
        group = delete_by_group(
            [Filter.collection(collection.id)],
            self._ctx.stores.for_tenant(tenant_id),
        )
        result.add_group("documents", group)
        return result

    def delete_team_memberships(self, team: Record, tenant_id: str) -> CascadeResult:
        """Delete the memberships of a removed team."""
        result = CascadeResult()
        group = delete_by_group(
            [Filter.collection(Collection.MEMBERSHIPS), Filter.equal("teamId", team.id)],
            self._ctx.stores.for_tenant(tenant_id),
        )
        result.add_group(str(Collection.MEMBERSHIPS), group)
        return result


def _credential_ids(user: Record, collection: Collection) -> list[str]:
    """Ids of the tokens or sessions listed on a user snapshot."""
    ids = []
    for item in user.get(str(collection)) or []:
        if isinstance(item, Record):
            ids.append(item.id)
        elif item:
            ids.append(str(item))
    return ids


def _remove_credential(
    store: DocumentStore,
    collection: Collection,
    credential_id: str,
    access: ElevatedAccess,
    user_id: str,
) -> None:
    try:
        deleted = store.delete(credential_id, access=access)
        # Already gone counts as removed; a re-run must not fail on it.
        if not deleted and store.get(credential_id, access=access) is not None:
            raise CredentialRemovalError(str(collection), credential_id, user_id=user_id)
    except StoreError as exc:
        raise CredentialRemovalError(str(collection), credential_id, user_id=user_id) from exc
    logger.info(
        "user_credential_deleted",
        extra={"collection": str(collection), "record_id": credential_id, "user_id": user_id},
    )


def _decrement_team_members(
    store: DocumentStore, membership: Record, access: ElevatedAccess
) -> None:
    """Decrement the member count of a deleted confirmed membership's team."""
    if not membership.get("confirm"):
        return
    team_id = membership.get("teamId")
    team = store.get(str(team_id), access=access) if team_id else None
    if team is None:
        logger.debug(
            "team_not_found",
            extra={"team_id": team_id, "membership_id": membership.id},
        )
        return
    members = max(int(team.get("sum", 0) or 0) - 1, 0)
    store.update(team.with_attributes(sum=members), access=access)


def _delete_code_bundle(device: StorageDevice, tag: Record) -> bool:
    path = str(tag.get("path", "") or "")
    try:
        deleted = bool(path) and device.delete(path)
    except OSError as exc:
        logger.error(
            "function_code_delete_failed",
            extra={"path": path, "tag_id": tag.id, "error": str(exc)},
        )
        return False
    if deleted:
        logger.info("function_code_deleted", extra={"path": path, "tag_id": tag.id})
    else:
        logger.error("function_code_delete_failed", extra={"path": path, "tag_id": tag.id})
    return deleted
