"""Redis stream broker, result backend and scheduler of the delete worker.

Delete jobs are read from one Redis stream by a consumer group and
acknowledged after the task returns, so a job whose worker dies is
redelivered. Tasks are registered separately by
:func:`expunge.infra.taskiq.tasks.register_tasks`.

Usage:
    taskiq worker expunge.infra.taskiq.worker:broker --max-async-tasks 1
    # one scheduler per deployment, or the retention sweep runs twice
    taskiq scheduler expunge.infra.taskiq.worker:scheduler --skip-first-run
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from taskiq import TaskiqScheduler
from taskiq.schedule_sources import LabelScheduleSource
from taskiq_redis import ListRedisScheduleSource, RedisAsyncResultBackend, RedisStreamBroker

from expunge.infra.taskiq.settings import get_taskiq_settings

if TYPE_CHECKING:
    from taskiq import AsyncBroker, ScheduleSource


@lru_cache(maxsize=1)
def get_result_backend() -> RedisAsyncResultBackend[object]:
    """Backend keeping each job's summary for ``TASKIQ_RESULT_TTL`` seconds."""
    taskiq_settings = get_taskiq_settings()
    return RedisAsyncResultBackend(
        redis_url=taskiq_settings.redis_url,
        result_ex_time=taskiq_settings.result_ttl,
    )


@lru_cache(maxsize=1)
def get_broker() -> RedisStreamBroker:
    """Broker consuming ``<stream_prefix>:deletes`` as group ``<stream_prefix>-workers``."""
    taskiq_settings = get_taskiq_settings()
    broker = RedisStreamBroker(
        url=taskiq_settings.redis_url,
        queue_name=taskiq_settings.queue_name,
        consumer_group_name=f"{taskiq_settings.stream_prefix}-workers",
    )
    return broker.with_result_backend(get_result_backend())


def schedule_sources(broker: AsyncBroker) -> list[ScheduleSource]:
    """Cron labels of registered tasks, plus schedules added at runtime in Redis."""
    taskiq_settings = get_taskiq_settings()
    return [
        LabelScheduleSource(broker),
        ListRedisScheduleSource(
            taskiq_settings.redis_url,
            prefix=f"{taskiq_settings.stream_prefix}:schedule",
        ),
    ]


@lru_cache(maxsize=1)
def get_scheduler() -> TaskiqScheduler:
    broker = get_broker()
    return TaskiqScheduler(broker=broker, sources=schedule_sources(broker))
