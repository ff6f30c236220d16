"""Unit tests for expunge.domain.deletes.retention."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from expunge.domain.deletes.retention import (
    RetentionWindow,
    purge_abuse_logs,
    purge_audit_logs,
    purge_executions,
    purge_realtime_connections,
    retention_thresholds,
)
from expunge.foundation.domain.exceptions import MissingTimestampError, RetentionPurgeError
from expunge.foundation.domain.jobs import PurgeKind
from expunge.foundation.domain.records import Collection, Record

if TYPE_CHECKING:
    from conftest import FakeRetentionLogProvider

    from expunge.domain.deletes.context import DeletionContext
    from expunge.infra.persistence.memory_store import InMemoryStoreProvider


@pytest.mark.unit
class TestPurgeExecutions:
    def test_deletes_old_executions_in_every_tenant(
        self,
        context: DeletionContext,
        stores: InMemoryStoreProvider,
        tenants: list[str],
    ) -> None:
        for tenant_id in tenants:
            store = stores.for_tenant(tenant_id)
            for created_at in (100, 200, 300):
                store.insert(
                    Record(
                        id=f"exec-{created_at}",
                        collection=Collection.EXECUTIONS,
                        attributes={"createdAt": created_at},
                    )
                )
            store.insert(
                Record(id="tag-1", collection=Collection.TAGS, attributes={"createdAt": 1})
            )

        visited = purge_executions(context, 250)

        assert visited == 3
        for tenant_id in tenants:
            remaining = [r.id for r in stores.for_tenant(tenant_id).find([], limit=50)]
            assert remaining == ["exec-300", "tag-1"]


@pytest.mark.unit
class TestPurgeLogs:
    def test_zero_timestamp_fails_before_any_tenant(
        self,
        context: DeletionContext,
        retention_logs: FakeRetentionLogProvider,
        tenants: list[str],
    ) -> None:
        with pytest.raises(MissingTimestampError) as exc_info:
            purge_audit_logs(context, 0)

        assert exc_info.value.context["kind"] == "audit"
        assert exc_info.value.message == (
            "Invalid 'timestamp': no timestamp provided for audit log purge"
        )
        assert retention_logs.audit_log.namespace is None
        assert retention_logs.audit_log.cleaned == []

    def test_abuse_zero_timestamp(self, context: DeletionContext, tenants: list[str]) -> None:
        with pytest.raises(MissingTimestampError):
            purge_abuse_logs(context, 0)

    def test_cleans_every_tenant_namespace(
        self,
        context: DeletionContext,
        retention_logs: FakeRetentionLogProvider,
        tenants: list[str],
    ) -> None:
        visited = purge_audit_logs(context, 1700000000)

        assert visited == 3
        assert retention_logs.audit_log.cleaned == [
            ("app_acme", 1700000000),
            ("app_globex", 1700000000),
            ("app_initech", 1700000000),
        ]
        assert retention_logs.abuse_log.cleaned == []

    def test_failure_aborts_remaining_tenants(
        self,
        context: DeletionContext,
        retention_logs: FakeRetentionLogProvider,
        tenants: list[str],
    ) -> None:
        retention_logs.abuse_log.failing = {"app_globex"}

        with pytest.raises(RetentionPurgeError) as exc_info:
            purge_abuse_logs(context, 1700000000)

        assert exc_info.value.tenant_id == "globex"
        assert exc_info.value.kind == "abuse"
        assert retention_logs.abuse_log.cleaned == [("app_acme", 1700000000)]


@pytest.mark.unit
class TestPurgeRealtimeConnections:
    def test_deletes_stale_connections_in_control_plane(
        self,
        context: DeletionContext,
        stores: InMemoryStoreProvider,
        tenants: list[str],
    ) -> None:
        control_plane = stores.control_plane()
        for i, timestamp in enumerate((10, 20, 30)):
            control_plane.insert(
                Record(
                    id=f"conn-{i}",
                    collection=Collection.REALTIME_CONNECTIONS,
                    attributes={"timestamp": timestamp},
                )
            )
        tenant_store = stores.for_tenant("acme")
        tenant_store.insert(
            Record(
                id="conn-tenant",
                collection=Collection.REALTIME_CONNECTIONS,
                attributes={"timestamp": 1},
            )
        )

        result = purge_realtime_connections(context, 25)

        assert result.deleted == 2
        assert "conn-2" in control_plane
        assert "conn-tenant" in tenant_store
        assert len(control_plane) == 4


@pytest.mark.unit
class TestRetentionThresholds:
    def test_subtracts_each_window(self) -> None:
        window = RetentionWindow(executions=100, audit=200, abuse=300, realtime=60)

        thresholds = retention_thresholds(1000, window)

        assert thresholds == {
            PurgeKind.EXECUTIONS: 900,
            PurgeKind.AUDIT: 800,
            PurgeKind.ABUSE: 700,
            PurgeKind.REALTIME: 940,
        }
