"""Port interfaces for audit and abuse log retention adapters."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class RetentionLog(Protocol):
    """A namespaced log that can drop entries older than a threshold.

    Example:
        >>> log.set_namespace("app_acme")
        >>> log.cleanup(1700000000)
        True
    """

    def set_namespace(self, namespace: str) -> None:
        """Scope subsequent cleanups to one tenant namespace."""
        ...

    def cleanup(self, before: int) -> bool:
        """Delete entries recorded before ``before`` (unix seconds).

        Returns:
            True on success, False if the cleanup failed.
        """
        ...


@runtime_checkable
class RetentionLogProvider(Protocol):
    """Creates the retention adapters used by the log purgers."""

    def audit(self) -> RetentionLog: ...

    def abuse(self) -> RetentionLog: ...
