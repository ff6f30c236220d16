"""Dependency bundle threaded through every deletion handler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from expunge.foundation.domain.ports import (
        DeviceProvider,
        RetentionLogProvider,
        StoreProvider,
    )


@dataclass(frozen=True, slots=True)
class DeletionContext:
    """Collaborators of one delete job, constructed once per job.

    Attributes:
        stores: Namespace-bound document stores and namespace destruction.
        devices: Per-tenant storage devices and the certificates root.
        retention_logs: Audit and abuse log retention adapters.
    """

    stores: StoreProvider
    devices: DeviceProvider
    retention_logs: RetentionLogProvider
