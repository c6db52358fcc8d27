"""Incremental history synchronization."""
