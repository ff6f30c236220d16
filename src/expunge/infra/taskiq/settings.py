"""Queue and retention configuration of the delete worker.

``TASKIQ_*`` variables describe where delete jobs are queued;
``RETENTION_*`` variables describe how long swept data is kept.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from expunge.domain.deletes.retention import RetentionWindow


class TaskIQSettings(BaseSettings):
    """Where the worker reads delete jobs and stores their summaries.

    Environment Variables:
        TASKIQ_REDIS_URL: Redis holding the job stream and results
            (default: redis://localhost:6379/1)
        TASKIQ_RESULT_TTL: Seconds a job summary is kept (default: 3600)
        TASKIQ_STREAM_PREFIX: Prefix of every Redis key the worker owns
            (default: expunge)

    Example:
        >>> TaskIQSettings(stream_prefix="maint").queue_name
        'maint:deletes'
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKIQ_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    redis_url: str = Field(default="redis://localhost:6379/1", description="Job queue Redis")
    result_ttl: int = Field(default=3600, ge=60, le=86400, description="Summary lifetime")
    stream_prefix: str = Field(default="expunge", min_length=1, description="Redis key prefix")

    @property
    def queue_name(self) -> str:
        """Redis stream holding delete jobs."""
        return f"{self.stream_prefix}:deletes"


class RetentionSettings(BaseSettings):
    """Retention periods and schedule of the maintenance sweep.

    Environment Variables:
        RETENTION_EXECUTIONS_SECONDS: Execution records kept (default: 14 days)
        RETENTION_AUDIT_SECONDS: Audit log entries kept (default: 14 days)
        RETENTION_ABUSE_SECONDS: Abuse-limit entries kept (default: 1 day)
        RETENTION_REALTIME_SECONDS: Idle realtime connections kept (default: 60)
        RETENTION_SWEEP_CRON: Cron expression of the sweep (default: 0 3 * * *)
    """

    model_config = SettingsConfigDict(
        env_prefix="RETENTION_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    executions_seconds: int = Field(default=1_209_600, gt=0)
    audit_seconds: int = Field(default=1_209_600, gt=0)
    abuse_seconds: int = Field(default=86_400, gt=0)
    realtime_seconds: int = Field(default=60, gt=0)
    sweep_cron: str = Field(default="0 3 * * *", description="Cron schedule of the sweep")

    @field_validator("sweep_cron")
    @classmethod
    def validate_sweep_cron(cls, v: str) -> str:
        """Require the five fields of a standard cron expression."""
        if len(v.split()) != 5:
            msg = f"sweep_cron must have 5 fields, got {v!r}"
            raise ValueError(msg)
        return v

    def window(self) -> RetentionWindow:
        return RetentionWindow(
            executions=self.executions_seconds,
            audit=self.audit_seconds,
            abuse=self.abuse_seconds,
            realtime=self.realtime_seconds,
        )


@lru_cache(maxsize=1)
def get_taskiq_settings() -> TaskIQSettings:
    """Queue settings read once per process."""
    return TaskIQSettings()


@lru_cache(maxsize=1)
def get_retention_settings() -> RetentionSettings:
    """Get cached RetentionSettings instance."""
    return RetentionSettings()
