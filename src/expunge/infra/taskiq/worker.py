"""Worker entry point for the taskiq CLI.

Usage:
    taskiq worker expunge.infra.taskiq.worker:broker --max-async-tasks 1
    taskiq scheduler expunge.infra.taskiq.worker:scheduler --skip-first-run
"""

from __future__ import annotations

from expunge.infra.observability import configure_logging
from expunge.infra.taskiq.broker import get_broker, get_scheduler
from expunge.infra.taskiq.tasks import register_tasks

configure_logging()

broker = get_broker()
tasks = register_tasks(broker)
scheduler = get_scheduler()
