"""Delete job tasks bound to a TaskIQ broker.

Two tasks are registered:

- ``expunge.deletes.process`` consumes one delete job payload.
- ``expunge.deletes.sweep_retention`` runs the four retention purges on the
  schedule of ``RetentionSettings.sweep_cron``.

The deletion engine is synchronous, so each job runs in a worker thread with
the caller's context variables (log context included) copied in. Jobs of one
worker process run one at a time, whatever the broker's concurrency.

Usage:
    from expunge.infra.taskiq.tasks import enqueue_delete_job

    await enqueue_delete_job({"type": "audit", "timestamp": 1700000000})
"""

from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import asdict, is_dataclass
from typing import TYPE_CHECKING, Any

import structlog
from taskiq.kicker import AsyncKicker

from expunge.domain.deletes.context import DeletionContext
from expunge.domain.deletes.dispatcher import DeleteDispatcher
from expunge.domain.deletes.retention import retention_thresholds
from expunge.foundation.domain.exceptions import CascadeAbortedError, StoreError, ValidationError
from expunge.infra.observability import get_logger
from expunge.infra.persistence.database import get_sync_session_factory
from expunge.infra.persistence.document_store import SqlStoreProvider
from expunge.infra.persistence.log_retention import SqlRetentionLogProvider
from expunge.infra.storage.local_device import LocalDeviceProvider
from expunge.infra.taskiq.errors import JobExecutionError, JobPayloadError
from expunge.infra.taskiq.settings import get_retention_settings

if TYPE_CHECKING:
    from taskiq import AsyncBroker, AsyncTaskiqDecoratedTask, AsyncTaskiqTask

PROCESS_TASK_NAME = "expunge.deletes.process"
SWEEP_TASK_NAME = "expunge.deletes.sweep_retention"

logger = get_logger(__name__)

# Held for the whole of each job run in this process
_job_lock = threading.Lock()


def build_deletion_context() -> DeletionContext:
    """Construct the collaborators of one job from the environment settings."""
    session_factory = get_sync_session_factory()
    return DeletionContext(
        stores=SqlStoreProvider(session_factory),
        devices=LocalDeviceProvider(),
        retention_logs=SqlRetentionLogProvider(session_factory),
    )


async def process_delete_job(payload: dict[str, Any]) -> Any:
    """Run one delete job to completion.

    Returns:
        A JSON-friendly summary of the handler's result.

    Raises:
        JobPayloadError: If the payload is malformed or misses required input.
        JobExecutionError: If the job aborted partway.
    """
    job_type = payload.get("type") if isinstance(payload, dict) else None
    with structlog.contextvars.bound_contextvars(job_type=job_type):
        if not isinstance(payload, dict):
            raise JobPayloadError(
                "Delete job payload must be a mapping",
                error_code="INVALID_JOB",
                context={"payload_type": type(payload).__name__},
            )
        started = time.monotonic()
        result = await asyncio.to_thread(_run_job, payload)
        logger.info(
            "delete_job_completed",
            duration_seconds=round(time.monotonic() - started, 6),
        )
        return _summarize(result)


async def sweep_retention() -> dict[str, int]:
    """Purge aged executions, audit logs, abuse logs and realtime connections.

    Returns:
        The threshold used for each purge kind.
    """
    now = int(time.time())
    thresholds = {
        str(kind): threshold
        for kind, threshold in retention_thresholds(now, get_retention_settings().window()).items()
    }
    with structlog.contextvars.bound_contextvars(job_type="sweep_retention"):
        for kind, threshold in thresholds.items():
            await asyncio.to_thread(_run_job, {"type": kind, "timestamp": threshold})
        logger.info("retention_sweep_completed", thresholds=thresholds)
    return thresholds


def _run_job(payload: dict[str, Any]) -> Any:
    with _job_lock:
        return _dispatch(payload)


def _dispatch(payload: dict[str, Any]) -> Any:
    dispatcher = DeleteDispatcher(build_deletion_context())
    try:
        return dispatcher.run(payload)
    except ValidationError as exc:
        logger.warning("delete_job_rejected", error_code=exc.error_code, reason=exc.message)
        raise JobPayloadError(exc.message, error_code=exc.error_code, context=exc.context) from exc
    except (CascadeAbortedError, StoreError) as exc:
        logger.error("delete_job_aborted", error_code=exc.error_code, reason=exc.message)
        raise JobExecutionError(
            exc.message, error_code=exc.error_code, context=exc.context
        ) from exc
    except OSError as exc:
        logger.error("delete_job_aborted", error_code="STORAGE_FAILED", reason=str(exc))
        raise JobExecutionError(
            f"Storage cleanup failed: {exc}",
            error_code="STORAGE_FAILED",
            context={"path": exc.filename},
        ) from exc


def _summarize(result: Any) -> Any:
    if is_dataclass(result) and not isinstance(result, type):
        return asdict(result)
    return result


def register_tasks(broker: AsyncBroker) -> dict[str, AsyncTaskiqDecoratedTask[Any, Any]]:
    """Register the delete tasks on ``broker``.

    Returns:
        The decorated tasks keyed by task name.
    """
    return {
        PROCESS_TASK_NAME: broker.register_task(process_delete_job, task_name=PROCESS_TASK_NAME),
        SWEEP_TASK_NAME: broker.register_task(
            sweep_retention,
            task_name=SWEEP_TASK_NAME,
            schedule=[{"cron": get_retention_settings().sweep_cron}],
        ),
    }


async def enqueue_delete_job(
    payload: dict[str, Any],
    broker: AsyncBroker | None = None,
) -> AsyncTaskiqTask[Any]:
    """Send a delete job to the worker queue.

    Producers only need the task name, not this worker's code.

    Args:
        payload: Job mapping with a ``type`` tag.
        broker: Broker to send through; defaults to the Redis stream broker.
    """
    if broker is None:
        from expunge.infra.taskiq.broker import get_broker

        broker = get_broker()
    return await AsyncKicker(task_name=PROCESS_TASK_NAME, broker=broker, labels={}).kiq(payload)

