"""SQL document store over a single namespaced ``documents`` table.

Every tenant namespace shares one table keyed by ``(namespace, id)``;
attributes are stored as JSON (JSONB on PostgreSQL). Filters compile to JSON
path expressions guarded by the JSON value type, so a filter comparing a
number never matches a string attribute, matching in-memory evaluation.

Sync repository: the worker processes one job at a time with blocking calls.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Column,
    ColumnElement,
    MetaData,
    String,
    Table,
    case,
    delete,
    false,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import SQLAlchemyError

from expunge.foundation.application.access import authorize_write
from expunge.foundation.domain.exceptions import StoreError
from expunge.foundation.domain.records import (
    COLLECTION_FIELD,
    ID_FIELD,
    WRITE_FIELD,
    Operator,
    Record,
)
from expunge.infra.persistence.store_settings import get_store_settings

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy.orm import Session

    from expunge.foundation.application.access import ElevatedAccess
    from expunge.foundation.domain.records import Filter
    from expunge.infra.persistence.store_settings import StoreSettings

logger = logging.getLogger(__name__)

_JsonDocument = JSON().with_variant(JSONB(), "postgresql")

metadata = MetaData()

documents = Table(
    "documents",
    metadata,
    Column("namespace", String(255), primary_key=True),
    Column("id", String(255), primary_key=True),
    Column("collection", String(255), nullable=False, index=True),
    Column("attributes", _JsonDocument, nullable=False),
    Column("write_roles", _JsonDocument, nullable=False),
)

# JSON type names reported by jsonb_typeof (PostgreSQL) and json_type (SQLite)
_JSON_TYPES: dict[str, dict[str, tuple[str, ...]]] = {
    "postgresql": {
        "number": ("number",),
        "string": ("string",),
        "boolean": ("boolean",),
        "null": ("null",),
    },
    "sqlite": {
        "number": ("integer", "real"),
        "string": ("text",),
        "boolean": ("true", "false"),
        "null": ("null",),
    },
}


class SqlDocumentStore:
    """Document store bound to one namespace.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
        namespace: Namespace every query is scoped to.
    """

    def __init__(self, session_factory: Callable[[], Session], namespace: str) -> None:
        self._session_factory = session_factory
        self._namespace = namespace

    @property
    def namespace(self) -> str:
        return self._namespace

    def get(self, record_id: str, *, access: ElevatedAccess | None = None) -> Record | None:
        try:
            with self._session_factory() as session:
                return self._get(session, record_id)
        except SQLAlchemyError as exc:
            raise StoreError(
                "Document read failed",
                context={"namespace": self._namespace, "record_id": record_id, "error": str(exc)},
            ) from exc

    def find(
        self,
        filters: Sequence[Filter],
        *,
        limit: int,
        access: ElevatedAccess | None = None,
    ) -> list[Record]:
        """List up to ``limit`` matching records ordered by id (binary collation)."""
        try:
            with self._session_factory() as session:
                dialect = session.get_bind().dialect.name
                order = documents.c.id
                if dialect == "postgresql":
                    order = order.collate("C")
                stmt = (
                    select(documents)
                    .where(
                        documents.c.namespace == self._namespace,
                        *(_compile_filter(f, dialect) for f in filters),
                    )
                    .order_by(order)
                    .limit(limit)
                )
                return [_row_to_record(row) for row in session.execute(stmt)]
        except SQLAlchemyError as exc:
            raise StoreError(
                "Document query failed",
                context={"namespace": self._namespace, "error": str(exc)},
            ) from exc

    def insert(self, record: Record) -> Record:
        """Store a new record (seeding and fixtures; the engine never creates records)."""
        attributes, write_roles = _record_columns(record)
        try:
            with self._session_factory() as session:
                session.execute(
                    insert(documents).values(
                        namespace=self._namespace,
                        id=record.id,
                        collection=record.collection,
                        attributes=attributes,
                        write_roles=write_roles,
                    )
                )
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(
                "Document insert failed",
                context={"namespace": self._namespace, "record_id": record.id, "error": str(exc)},
            ) from exc
        return record

    def update(self, record: Record, *, access: ElevatedAccess | None = None) -> Record:
        attributes, write_roles = _record_columns(record)
        try:
            with self._session_factory() as session:
                existing = self._get(session, record.id)
                if existing is None:
                    raise StoreError(
                        "Document not found",
                        context={"namespace": self._namespace, "record_id": record.id},
                    )
                authorize_write(existing, access)
                session.execute(
                    update(documents)
                    .where(documents.c.namespace == self._namespace, documents.c.id == record.id)
                    .values(
                        collection=record.collection,
                        attributes=attributes,
                        write_roles=write_roles,
                    )
                )
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(
                "Document update failed",
                context={"namespace": self._namespace, "record_id": record.id, "error": str(exc)},
            ) from exc
        return record

    def delete(self, record_id: str, *, access: ElevatedAccess | None = None) -> bool:
        try:
            with self._session_factory() as session:
                existing = self._get(session, record_id)
                if existing is None:
                    return False
                authorize_write(existing, access)
                result = session.execute(
                    delete(documents).where(
                        documents.c.namespace == self._namespace,
                        documents.c.id == record_id,
                    )
                )
                session.commit()
                return bool(result.rowcount)
        except SQLAlchemyError as exc:
            raise StoreError(
                "Document delete failed",
                context={"namespace": self._namespace, "record_id": record_id, "error": str(exc)},
            ) from exc

    def _get(self, session: Session, record_id: str) -> Record | None:
        row = session.execute(
            select(documents).where(
                documents.c.namespace == self._namespace,
                documents.c.id == record_id,
            )
        ).first()
        return _row_to_record(row) if row is not None else None


class SqlStoreProvider:
    """Hands out :class:`SqlDocumentStore` instances over one database.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
        settings: Namespace naming; defaults to the environment settings.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        settings: StoreSettings | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings or get_store_settings()

    def for_tenant(self, tenant_id: str) -> SqlDocumentStore:
        return SqlDocumentStore(self._session_factory, self.tenant_namespace(tenant_id))

    def control_plane(self) -> SqlDocumentStore:
        return SqlDocumentStore(self._session_factory, self._settings.control_plane_namespace)

    def tenant_namespace(self, tenant_id: str) -> str:
        return self._settings.tenant_namespace(tenant_id)

    def drop_tenant(self, tenant_id: str) -> None:
        """Delete every record of the tenant's namespace in one statement."""
        namespace = self.tenant_namespace(tenant_id)
        try:
            with self._session_factory() as session:
                result = session.execute(
                    delete(documents).where(documents.c.namespace == namespace)
                )
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(
                "Namespace drop failed",
                context={"namespace": namespace, "error": str(exc)},
            ) from exc
        logger.info(
            "tenant_namespace_dropped",
            extra={"namespace": namespace, "records": result.rowcount},
        )

    def ensure_schema(self) -> None:
        """Create the documents table if it does not exist."""
        with self._session_factory() as session:
            metadata.create_all(session.get_bind(), tables=[documents])


def _record_columns(record: Record) -> tuple[dict[str, Any], list[str]]:
    document = record.to_document()
    attributes = {
        key: value
        for key, value in document.items()
        if key not in (ID_FIELD, COLLECTION_FIELD, WRITE_FIELD)
    }
    return attributes, list(record.write_roles)


def _row_to_record(row: Any) -> Record:
    return Record.from_document(
        {
            ID_FIELD: row.id,
            COLLECTION_FIELD: row.collection,
            WRITE_FIELD: row.write_roles or [],
            **(row.attributes or {}),
        }
    )


def _compile_filter(f: Filter, dialect: str) -> ColumnElement[bool]:
    """Translate one filter into a SQL condition."""
    if f.field in (ID_FIELD, COLLECTION_FIELD):
        column = documents.c.id if f.field == ID_FIELD else documents.c.collection
        if f.operator is Operator.EQUAL:
            return column == f.value
        if not isinstance(f.value, str):
            return false()
        if dialect == "postgresql":
            column = column.collate("C")
        return column < f.value if f.operator is Operator.LESS_THAN else column > f.value

    json_type = _json_type(f.field, dialect)
    types = _JSON_TYPES.get(dialect, _JSON_TYPES["sqlite"])
    element = documents.c.attributes[f.field]

    if f.value is None:
        return json_type.in_(types["null"]) if f.operator is Operator.EQUAL else false()
    if isinstance(f.value, bool):
        if f.operator is not Operator.EQUAL:
            return false()
        value_expr = case((json_type.in_(types["boolean"]), element.as_boolean()))
    elif isinstance(f.value, int | float):
        value_expr = case((json_type.in_(types["number"]), element.as_float()))
    elif isinstance(f.value, str):
        value_expr = case((json_type.in_(types["string"]), element.as_string()))
        if dialect == "postgresql" and f.operator is not Operator.EQUAL:
            value_expr = value_expr.collate("C")
    else:
        return false()

    if f.operator is Operator.EQUAL:
        return value_expr == f.value
    if f.operator is Operator.LESS_THAN:
        return value_expr < f.value
    return value_expr > f.value


def _json_type(field_name: str, dialect: str) -> ColumnElement[str]:
    if dialect == "postgresql":
        return func.jsonb_typeof(documents.c.attributes[field_name])
    return func.json_type(documents.c.attributes, f'$."{field_name}"')
