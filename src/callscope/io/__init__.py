"""Serialization and external process adapters."""
