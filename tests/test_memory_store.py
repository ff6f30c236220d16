"""Unit tests for expunge.infra.persistence.memory_store."""

from __future__ import annotations

import pytest

from expunge.foundation.application.access import elevated_access
from expunge.foundation.domain.exceptions import AuthorizationError, StoreError
from expunge.foundation.domain.ports import DocumentStore, StoreProvider
from expunge.foundation.domain.records import Filter, Record
from expunge.infra.persistence.memory_store import InMemoryDocumentStore, InMemoryStoreProvider
from expunge.infra.persistence.store_settings import StoreSettings


@pytest.mark.unit
class TestInMemoryDocumentStore:
    def test_satisfies_port(self) -> None:
        assert isinstance(InMemoryDocumentStore("app_x"), DocumentStore)

    def test_find_orders_by_binary_collation(self) -> None:
        store = InMemoryDocumentStore(
            "app_x",
            [Record(id=i, collection="c") for i in ("b", "B", "a", "A", "_")],
        )
        assert [r.id for r in store.find([], limit=10)] == ["A", "B", "_", "a", "b"]

    def test_find_respects_limit_and_filters(self) -> None:
        store = InMemoryDocumentStore(
            "app_x",
            [Record(id=f"r{i}", collection="c" if i % 2 else "d") for i in range(10)],
        )
        found = store.find([Filter.collection("c")], limit=3)
        assert [r.id for r in found] == ["r1", "r3", "r5"]

    def test_duplicate_insert_rejected(self) -> None:
        store = InMemoryDocumentStore("app_x", [Record(id="r1", collection="c")])
        with pytest.raises(StoreError):
            store.insert(Record(id="r1", collection="c"))

    def test_delete_requires_role_or_access(self) -> None:
        store = InMemoryDocumentStore("app_x", [Record(id="r1", collection="c")])
        with pytest.raises(AuthorizationError):
            store.delete("r1")
        with elevated_access("test") as access:
            assert store.delete("r1", access=access) is True
        assert "r1" not in store

    def test_delete_with_wildcard_role(self) -> None:
        record = Record(id="r1", collection="c", write_roles=("*",))
        store = InMemoryDocumentStore("app_x", [record])
        assert store.delete("r1") is True

    def test_delete_absent_returns_false(self) -> None:
        assert InMemoryDocumentStore("app_x").delete("missing") is False

    def test_update_missing_raises(self) -> None:
        with pytest.raises(StoreError):
            InMemoryDocumentStore("app_x").update(Record(id="r1", collection="c"))

    def test_update_replaces_record(self) -> None:
        store = InMemoryDocumentStore("app_x", [Record(id="t1", collection="teams")])
        with elevated_access("test") as access:
            store.update(Record(id="t1", collection="teams", attributes={"sum": 4}), access=access)
        assert store.get("t1").get("sum") == 4


@pytest.mark.unit
class TestInMemoryStoreProvider:
    def test_satisfies_port(self) -> None:
        assert isinstance(InMemoryStoreProvider(), StoreProvider)

    def test_namespaces(self) -> None:
        provider = InMemoryStoreProvider(
            StoreSettings(control_plane_namespace="console", tenant_namespace_prefix="app_")
        )
        assert provider.for_tenant("acme").namespace == "app_acme"
        assert provider.control_plane().namespace == "console"
        assert provider.for_tenant("acme") is provider.for_tenant("acme")

    def test_drop_tenant_is_idempotent(self) -> None:
        provider = InMemoryStoreProvider()
        provider.for_tenant("acme").insert(Record(id="r1", collection="c"))

        provider.drop_tenant("acme")
        provider.drop_tenant("acme")

        assert not provider.has_namespace(provider.tenant_namespace("acme"))
