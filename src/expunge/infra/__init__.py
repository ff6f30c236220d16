"""Expunge Infra -- persistence, storage, observability and queue adapters."""
