"""Worker error hierarchy for delete job failures.

Domain errors raised while processing a job are translated into these types
so the queue can classify the failed message: transient failures are worth
retrying, permanent ones belong in the dead-letter queue.
"""

from __future__ import annotations

from typing import Any


class WorkerError(Exception):
    """Base exception for all delete worker errors.

    Attributes:
        error_code: Code of the domain error that caused the failure.
        context: Structured context of the failure.
    """

    #: Whether this error type is considered transient (retryable).
    transient: bool = False

    def __init__(
        self,
        message: str,
        error_code: str = "WORKER_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        super().__init__(message)


class JobPayloadError(WorkerError):
    """Raised when a job payload is malformed or misses required input.

    Permanent: retrying the same payload fails the same way.
    """

    transient: bool = False


class JobExecutionError(WorkerError):
    """Raised when a cascade or purge aborts partway.

    Transient: every step is idempotent, so a retry resumes the cleanup.
    """

    transient: bool = True
