"""Expunge Infra TaskIQ -- delete job tasks, broker and scheduler factories."""

from expunge.infra.taskiq.broker import get_broker, get_result_backend, get_scheduler
from expunge.infra.taskiq.errors import JobExecutionError, JobPayloadError, WorkerError
from expunge.infra.taskiq.settings import (
    RetentionSettings,
    TaskIQSettings,
    get_retention_settings,
    get_taskiq_settings,
)
from expunge.infra.taskiq.tasks import (
    PROCESS_TASK_NAME,
    SWEEP_TASK_NAME,
    build_deletion_context,
    enqueue_delete_job,
    process_delete_job,
    register_tasks,
    sweep_retention,
)

__all__ = [
    "PROCESS_TASK_NAME",
    "SWEEP_TASK_NAME",
    "JobExecutionError",
    "JobPayloadError",
    "RetentionSettings",
    "TaskIQSettings",
    "WorkerError",
    "build_deletion_context",
    "enqueue_delete_job",
    "get_broker",
    "get_result_backend",
    "get_retention_settings",
    "get_scheduler",
    "get_taskiq_settings",
    "process_delete_job",
    "register_tasks",
    "sweep_retention",
]
