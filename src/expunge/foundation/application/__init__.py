"""Expunge Foundation Application -- scoped elevated access."""

from expunge.foundation.application.access import (
    ElevatedAccess,
    authorize_write,
    current_access,
    elevated_access,
)

__all__ = [
    "ElevatedAccess",
    "authorize_write",
    "current_access",
    "elevated_access",
]
