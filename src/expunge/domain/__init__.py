"""Expunge Domain -- deletion engine and cascade rules."""
