"""SQL retention adapters for the audit and abuse-limit logs.

Both logs are append-only tables keyed by namespace with a ``time`` column
in unix seconds. ``cleanup`` removes the rows of the current namespace that
are older than the threshold and reports database failures as ``False``;
the purger decides whether that aborts the run.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    delete,
)
from sqlalchemy.exc import SQLAlchemyError

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

metadata = MetaData()

audit_logs = Table(
    "audit_logs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("namespace", String(255), nullable=False, index=True),
    Column("event", String(255), nullable=False),
    Column("resource", String(255), nullable=False, default=""),
    Column("data", JSON, nullable=False, default=dict),
    Column("time", BigInteger, nullable=False, index=True),
)

abuse_limits = Table(
    "abuse_limits",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("namespace", String(255), nullable=False, index=True),
    Column("key", String(255), nullable=False),
    Column("count", Integer, nullable=False, default=0),
    Column("time", BigInteger, nullable=False, index=True),
)


class SqlRetentionLog:
    """Retention cleanup over one namespaced log table.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
        table: Log table with ``namespace`` and ``time`` columns.
    """

    def __init__(self, session_factory: Callable[[], Session], table: Table) -> None:
        self._session_factory = session_factory
        self._table = table
        self._namespace: str | None = None

    @property
    def table_name(self) -> str:
        return self._table.name

    def set_namespace(self, namespace: str) -> None:
        self._namespace = namespace

    def cleanup(self, before: int) -> bool:
        """Delete the namespace's entries recorded before ``before``.

        Raises:
            ValueError: If no namespace was set.
        """
        if self._namespace is None:
            msg = f"Namespace must be set before cleaning {self._table.name}"
            raise ValueError(msg)
        try:
            with self._session_factory() as session:
                result = session.execute(
                    delete(self._table).where(
                        self._table.c.namespace == self._namespace,
                        self._table.c.time < before,
                    )
                )
                session.commit()
        except SQLAlchemyError as exc:
            logger.error(
                "retention_cleanup_failed",
                extra={
                    "table": self._table.name,
                    "namespace": self._namespace,
                    "error": str(exc),
                },
            )
            return False
        logger.debug(
            "retention_cleanup_completed",
            extra={
                "table": self._table.name,
                "namespace": self._namespace,
                "rows": result.rowcount,
            },
        )
        return True


class SqlRetentionLogProvider:
    """Creates fresh retention adapters over the audit and abuse tables."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def audit(self) -> SqlRetentionLog:
        return SqlRetentionLog(self._session_factory, audit_logs)

    def abuse(self) -> SqlRetentionLog:
        return SqlRetentionLog(self._session_factory, abuse_limits)

    def ensure_schema(self) -> None:
        """Create the log tables if they do not exist."""
        with self._session_factory() as session:
            metadata.create_all(session.get_bind())
