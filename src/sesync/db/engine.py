"""Database engine factory and serialized session management."""

import threading
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine
from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from sesync.config.settings import Settings
from sesync.db.base import Base
from sesync.utils.exceptions import PersistenceError


def create_engine(settings: Settings) -> Engine:
    """Create a SQLAlchemy engine from settings.

    SQLite databases use a single shared connection.

    Args:
        settings: Application settings containing database URL.

    Returns:
        Configured SQLAlchemy engine.
    """
    connect_args: dict = {}
    engine_args: dict = {}

    # SQLite-specific configuration
    if settings.database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        engine_args["poolclass"] = StaticPool
    else:
        engine_args["pool_size"] = 1
        engine_args["max_overflow"] = 0
        engine_args["pool_pre_ping"] = True

    engine = sa_create_engine(
        settings.database_url,
        connect_args=connect_args,
        echo=settings.log_level == "DEBUG",
        **engine_args,
    )

    return engine


def create_tables(engine: Engine) -> None:
    """Create all database tables.

    Args:
        engine: SQLAlchemy engine.
    """
    # Import models to ensure they're registered with Base
    from sesync.db import models as _  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_tables(engine: Engine) -> None:
    """Drop all database tables.

    Args:
        engine: SQLAlchemy engine.
    """
    from sesync.db import models as _  # noqa: F401

    Base.metadata.drop_all(bind=engine)


class Database:
    """One engine plus one mutex serializing every transaction.

    Repositories are handed the session yielded by ``session()``; the mutex is
    held only for the duration of that single transaction.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._lock = threading.Lock()
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Create a database for ``settings.database_url`` and ensure its tables exist."""
        database = cls(create_engine(settings))
        database.create_tables()
        return database

    def create_tables(self) -> None:
        with self._lock:
            create_tables(self.engine)

    def reset(self) -> None:
        """Drop and recreate every table."""
        with self._lock:
            try:
                drop_tables(self.engine)
                create_tables(self.engine)
            except SQLAlchemyError as e:
                raise PersistenceError(f"Failed to reset database: {e}") from e

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Get a serialized database session.

        Yields:
            Database session that will be automatically committed on success
            or rolled back on failure. SQLAlchemy errors are raised as
            ``PersistenceError``.
        """
        with self._lock:
            session = self._session_factory()
            try:
                yield session
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceError(str(e)) from e
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def dispose(self) -> None:
        self.engine.dispose()
