"""Base repository classes."""

from datetime import date, datetime, time
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

ModelT = TypeVar("ModelT")


def as_datetime(value: date | datetime) -> datetime:
    """Midnight of ``value`` if it is a plain date."""
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def as_date(value: Any) -> date:
    """Normalize a date column value; SQLite returns date expressions as text."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


class BaseRepository(Generic[ModelT]):
    """Base repository with common operations."""

    model: type[ModelT]

    def __init__(self, session: Session) -> None:
        """Initialize repository with a session.

        Args:
            session: SQLAlchemy session.
        """
        self.session = session

    @property
    def dialect(self) -> str:
        return self.session.bind.dialect.name if self.session.bind else "sqlite"

    def get_all(self) -> list[ModelT]:
        """Get all records.

        Returns:
            List of all model instances.
        """
        stmt = select(self.model)
        return list(self.session.scalars(stmt).all())

    def _upsert(
        self,
        model: type,
        rows: list[dict[str, Any]],
        key: str,
        update_columns: list[str],
    ) -> int:
        """Insert rows, overwriting ``update_columns`` when ``key`` already exists.

        Args:
            model: ORM model to write.
            rows: Column values, one dict per row.
            key: Unique column identifying a row.
            update_columns: Columns overwritten on conflict.

        Returns:
            Number of rows written.
        """
        if not rows:
            return 0

        dialect = self.dialect

        for row in rows:
            update_set = {column: row[column] for column in update_columns}
            update_set["updated_at"] = func.current_timestamp()
            if dialect == "postgresql":
                stmt = pg_insert(model).values(**row)
                stmt = stmt.on_conflict_do_update(index_elements=[key], set_=update_set)
            elif dialect in ("mysql", "mariadb"):
                stmt = mysql_insert(model).values(**row)
                stmt = stmt.on_duplicate_key_update(**update_set)
            else:
                stmt = sqlite_insert(model).values(**row)
                stmt = stmt.on_conflict_do_update(index_elements=[key], set_=update_set)
            self.session.execute(stmt)

        self.session.flush()
        return len(rows)
