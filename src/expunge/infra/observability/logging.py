"""structlog setup for the deletion worker.

Deletion steps report progress as structured events (chunk counts,
per-record outcomes, totals, elapsed time). Two sources feed them:

- Domain modules log through ``logging.getLogger(__name__)`` with ``extra=``
  fields, keeping the engine free of structlog.
- The queue binding logs through :func:`get_logger` and binds the job type
  into structlog contextvars.

:func:`configure_logging` renders both through one processor chain, as JSON
lines or as colored console output.

Usage:
    from expunge.infra.observability import configure_logging, get_logger

    configure_logging()
    get_logger(__name__).info("delete_job_completed", duration_seconds=0.4)
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Literal

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from collections.abc import MutableMapping

LogFormat = Literal["auto", "json", "console"]

REDACTED_VALUE = "***REDACTED***"

# Key fragments whose values never reach a log line. Record ids of removed
# tokens and sessions are logged, their secrets are not.
SENSITIVE_KEY_FRAGMENTS: tuple[str, ...] = ("password", "secret", "api_key", "apikey")
SENSITIVE_KEYS: frozenset[str] = frozenset({"authorization", "credential", "dsn"})

# Root stdlib handler installed by configure_logging, replaced on reconfigure
HANDLER_NAME = "expunge"


class LoggingSettings(BaseSettings):
    """Log level and rendering of the worker.

    Environment Variables:
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL (default: INFO)
        LOG_FORMAT: json, console or auto (default: auto)
        ENVIRONMENT: Deployment name; ``auto`` renders JSON in production
            (default: development)
    """

    model_config = SettingsConfigDict(env_prefix="", extra="ignore", populate_by_name=True)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )
    log_format: LogFormat = Field(default="auto", alias="LOG_FORMAT")
    environment: str = Field(default="development", alias="ENVIRONMENT")

    @field_validator("log_level", "log_format", mode="before")
    @classmethod
    def _normalize_case(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        return v.lower() if v.lower() in ("auto", "json", "console") else v.upper()

    @property
    def renders_json(self) -> bool:
        if self.log_format == "auto":
            return self.environment == "production"
        return self.log_format == "json"

    @property
    def level(self) -> int:
        return logging.getLevelNamesMapping()[self.log_level]


def redact_sensitive(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace the values of sensitive keys with :data:`REDACTED_VALUE`.

    Example:
        >>> redact_sensitive(None, "info", {"event": "x", "db_password": "p"})["db_password"]
        '***REDACTED***'
    """
    for key in event_dict:
        lowered = key.lower()
        if lowered in SENSITIVE_KEYS or any(f in lowered for f in SENSITIVE_KEY_FRAGMENTS):
            event_dict[key] = REDACTED_VALUE
    return event_dict


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Cached settings; ``cache_clear()`` it in tests that patch the environment."""
    return LoggingSettings()


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Route structlog events and stdlib records through one processor chain.

    Call once at worker startup; calling again replaces the previous setup.
    """
    settings = settings or get_logging_settings()
    chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_sensitive,
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if settings.renders_json
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*chain, structlog.processors.format_exc_info, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(settings.level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _install_root_handler(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[
                *chain,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.ExtraAdder(),
            ],
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        ),
        settings.level,
    )


def _install_root_handler(formatter: logging.Formatter, level: int) -> None:
    root = logging.getLogger()
    for handler in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(name: str | None = None) -> Any:
    """Lazily bound structlog logger; ``name`` is bound as the ``logger`` key.

    Module-level loggers created at import time pick up the configuration
    applied later by :func:`configure_logging`.
    """
    return structlog.get_logger(logger=name) if name else structlog.get_logger()
