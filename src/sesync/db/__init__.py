"""Database module for Smart Energy Sync."""

from sesync.db.base import Base, TimestampMixin
from sesync.db.engine import Database, create_engine, create_tables, drop_tables

__all__ = ["Base", "Database", "TimestampMixin", "create_engine", "create_tables", "drop_tables"]
