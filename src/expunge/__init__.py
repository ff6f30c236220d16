"""Expunge -- queue-triggered cascading deletion for a multi-tenant document store."""
