"""Domain exception hierarchy for deletion jobs.

Exceptions carry a machine-readable error code and structured context so the
worker can log them consistently and the queue can classify them.

Two families matter to callers:

* Fatal errors (``ValidationError`` and ``CascadeAbortedError`` subtypes)
  abort the whole job. The queue owns retry and dead-lettering.
* ``StoreError`` is raised by store adapters. Inside a group delete it is a
  soft, per-record failure; elsewhere it propagates.

Example:
    >>> from expunge.foundation.domain.exceptions import MissingTimestampError
    >>> raise MissingTimestampError("audit")
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "AuthorizationError",
    "CascadeAbortedError",
    "CredentialRemovalError",
    "DomainError",
    "InvalidJobError",
    "MissingTimestampError",
    "RetentionPurgeError",
    "StoreError",
    "ValidationError",
]


class DomainError(Exception):
    """Root of the deletion engine's errors.

    Attributes:
        error_code: Stable code the worker logs and the queue classifies on.
        message: What went wrong, without the context.
        context: Identifiers of the job, tenant and record involved.

    Example:
        >>> str(DomainError("Namespace drop failed", context={"namespace": "app_acme"}))
        'Namespace drop failed (namespace=app_acme)'
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = dict(context) if context else {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, context={self.context!r})"


class ValidationError(DomainError):
    """A job input is missing or malformed; retrying cannot succeed.

    Example:
        >>> ValidationError("timestamp", "must be a positive unix time").message
        "Invalid 'timestamp': must be a positive unix time"
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str, **extra_context: Any) -> None:
        self.field = field
        self.reason = reason
        super().__init__(
            f"Invalid '{field}': {reason}",
            {"field": field, "reason": reason, **extra_context},
        )


class InvalidJobError(ValidationError):
    """Raised when a job of a known type carries an unusable payload.

    Permanent: re-delivering the same payload cannot succeed.
    """

    error_code: str = "INVALID_JOB"


class MissingTimestampError(ValidationError):
    """Raised when a log purge is requested without a threshold.

    Example:
        >>> MissingTimestampError("audit").message
        "Invalid 'timestamp': no timestamp provided for audit log purge"
    """

    error_code: str = "MISSING_TIMESTAMP"

    def __init__(self, kind: str) -> None:
        """Initialize missing timestamp error.

        Args:
            kind: Purge kind that was requested (e.g., "audit", "abuse").
        """
        super().__init__(
            "timestamp",
            f"no timestamp provided for {kind} log purge",
            kind=kind,
        )


class CascadeAbortedError(DomainError):
    """Raised when a strict cascade step fails and the job must stop.

    Unlike per-record failures inside a group delete, these indicate that
    continuing would leave unsafe or systemically broken state.
    """

    error_code: str = "CASCADE_ABORTED"


class CredentialRemovalError(CascadeAbortedError):
    """Raised when a deleted user's token or session record survives.

    Attributes:
        record_collection: "tokens" or "sessions".
        record_id: Identifier of the credential that could not be removed.
    """

    error_code: str = "CREDENTIAL_REMOVAL_FAILED"

    def __init__(self, record_collection: str, record_id: str, **extra_context: Any) -> None:
        self.record_collection = record_collection
        self.record_id = record_id
        message = f"Failed to remove {record_collection} record: {record_id}"
        context = {
            "record_collection": record_collection,
            "record_id": record_id,
            **extra_context,
        }
        super().__init__(message, context)


class RetentionPurgeError(CascadeAbortedError):
    """Raised when a tenant's audit or abuse log cleanup reports failure."""

    error_code: str = "RETENTION_PURGE_FAILED"

    def __init__(self, kind: str, tenant_id: str) -> None:
        self.kind = kind
        self.tenant_id = tenant_id
        super().__init__(
            f"Failed to delete {kind} logs for tenant {tenant_id}",
            {"kind": kind, "tenant_id": tenant_id},
        )


class AuthorizationError(DomainError):
    """Raised when a write is attempted without the required access.

    Covers both records whose write roles exclude the caller and elevated
    access tokens used after their window has closed.

    Example:
        >>> raise AuthorizationError("Elevated access used outside its scope")
    """

    error_code: str = "AUTHORIZATION_ERROR"


class StoreError(DomainError):
    """Raised by document store adapters when an operation cannot complete."""

    error_code: str = "STORE_ERROR"
