"""Expunge Infra Observability -- structlog logging."""

from expunge.infra.observability.logging import (
    LoggingSettings,
    configure_logging,
    get_logger,
)

__all__ = [
    "LoggingSettings",
    "configure_logging",
    "get_logger",
]
