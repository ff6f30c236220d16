"""Expunge Foundation -- domain primitives and application services."""
