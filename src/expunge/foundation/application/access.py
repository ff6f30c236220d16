"""Scoped elevated access for maintenance operations.

Deletion jobs are trusted maintenance work, not end-user requests, so they
may delete records whose write roles would otherwise refuse them. That
bypass is an explicit capability: :func:`elevated_access` opens a window and
yields an :class:`ElevatedAccess` token which callers pass to store
operations. The token is revoked when the window closes, on success or on
error, and a revoked token is rejected by every store.

A ContextVar tracks the open window so a second window cannot be opened
inside the first one.

Usage:
    from expunge.foundation.application.access import elevated_access

    with elevated_access("delete_by_group") as access:
        store.delete(record_id, access=access)
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from expunge.foundation.domain.exceptions import AuthorizationError
from expunge.foundation.domain.records import WILDCARD_ROLE

if TYPE_CHECKING:
    from collections.abc import Iterator

    from expunge.foundation.domain.records import Record


@dataclass(eq=False, slots=True)
class ElevatedAccess:
    """Capability token granting authorization bypass while active.

    Attributes:
        reason: Operation that requested the window (for logs).
        grant_id: Unique identifier of this grant.
    """

    reason: str
    grant_id: UUID = field(default_factory=uuid4)
    _active: bool = field(default=True, repr=False)

    @property
    def active(self) -> bool:
        return self._active

    def ensure_active(self) -> None:
        """Reject use of the token after its window closed.

        Raises:
            AuthorizationError: If the token has been revoked.
        """
        if not self._active:
            raise AuthorizationError(
                "Elevated access used outside its scope",
                context={"reason": self.reason, "grant_id": str(self.grant_id)},
            )

    def revoke(self) -> None:
        self._active = False


# ContextVar for the open window - None when no window is open
_current_access: ContextVar[ElevatedAccess | None] = ContextVar("elevated_access", default=None)


def current_access() -> ElevatedAccess | None:
    """Return the token of the open window, if any."""
    return _current_access.get()


@contextmanager
def elevated_access(reason: str) -> Iterator[ElevatedAccess]:
    """Open an elevated access window.

    Args:
        reason: Name of the operation requesting elevated access.

    Yields:
        A fresh, active token.

    Raises:
        AuthorizationError: If a window is already open in this context.
    """
    existing = _current_access.get()
    if existing is not None:
        raise AuthorizationError(
            "Elevated access window already open",
            context={"reason": reason, "open_reason": existing.reason},
        )
    access = ElevatedAccess(reason=reason)
    token = _current_access.set(access)
    try:
        yield access
    finally:
        access.revoke()
        _current_access.reset(token)


def authorize_write(record: Record, access: ElevatedAccess | None) -> None:
    """Check that the caller may modify or delete ``record``.

    Args:
        record: Record about to be written.
        access: Elevated access token, or None for a normal write.

    Raises:
        AuthorizationError: If the token is revoked, or if no token is given
            and the record's write roles do not include the wildcard role.
    """
    if access is not None:
        access.ensure_active()
        return
    if WILDCARD_ROLE not in record.write_roles:
        raise AuthorizationError(
            "Missing write permission",
            context={"record_id": record.id, "collection": record.collection},
        )
