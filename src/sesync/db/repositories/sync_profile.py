"""Sync profile repository."""

from datetime import date, datetime

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from sesync.db.models.sync_profile import SyncProfile
from sesync.db.repositories.base import BaseRepository, as_datetime
from sesync.utils.exceptions import NotFoundError

logger = structlog.get_logger(__name__)


class SyncProfileRepository(BaseRepository[SyncProfile]):
    """Repository for SyncProfile operations."""

    model = SyncProfile

    def get_by_id(self, id: int) -> SyncProfile | None:
        return self.session.get(SyncProfile, id)

    def get_by_name(self, name: str) -> SyncProfile | None:
        """Get a profile by its stream name.

        Args:
            name: Stream name, e.g. "electricity".

        Returns:
            SyncProfile or None.
        """
        stmt = select(SyncProfile).where(SyncProfile.name == name)
        return self.session.scalar(stmt)

    def get_all(self) -> list[SyncProfile]:
        stmt = select(SyncProfile).order_by(SyncProfile.id)
        return list(self.session.scalars(stmt).all())

    def get_or_create(self, name: str, base_unit: str, start_date: date | datetime) -> SyncProfile:
        """Get a profile by name, creating an active one if it does not exist.

        Creation inserts with "on conflict do nothing" and re-reads, so a
        concurrent creator of the same name never causes an error.

        Args:
            name: Stream name.
            base_unit: Display unit for a new profile.
            start_date: Start date for a new profile.

        Returns:
            The existing or newly created profile.
        """
        existing = self.get_by_name(name)
        if existing is not None:
            return existing

        data = {
            "name": name,
            "is_active": True,
            "start_date": as_datetime(start_date),
            "last_synced": None,
            "base_unit": base_unit,
        }

        dialect = self.dialect
        if dialect == "postgresql":
            stmt = pg_insert(SyncProfile).values(**data).on_conflict_do_nothing(
                index_elements=["name"]
            )
        elif dialect in ("mysql", "mariadb"):
            stmt = mysql_insert(SyncProfile).values(**data).prefix_with("IGNORE")
        else:
            stmt = sqlite_insert(SyncProfile).values(**data).on_conflict_do_nothing(
                index_elements=["name"]
            )

        self.session.execute(stmt)
        self.session.flush()
        logger.info("Created sync profile", name=name, start_date=str(data["start_date"]))

        return self.get_by_name(name)  # type: ignore

    def _require(self, id: int) -> SyncProfile:
        profile = self.get_by_id(id)
        if profile is None:
            raise NotFoundError(f"Sync profile {id} does not exist")
        return profile

    def update(
        self,
        id: int,
        is_active: bool,
        start_date: date | datetime,
        last_synced: date | datetime | None,
    ) -> SyncProfile:
        """Overwrite the mutable fields of a profile.

        Raises:
            NotFoundError: If no profile has ``id``.
        """
        profile = self._require(id)
        profile.is_active = is_active
        profile.start_date = as_datetime(start_date)
        profile.last_synced = as_datetime(last_synced) if last_synced is not None else None
        self.session.flush()
        return profile

    def update_settings(
        self, id: int, is_active: bool, start_date: date | datetime
    ) -> SyncProfile:
        """Apply user-edited settings.

        Moving ``start_date`` earlier clears ``last_synced`` so the newly
        requested history is downloaded; moving it later keeps the checkpoint.

        Raises:
            NotFoundError: If no profile has ``id``.
        """
        profile = self._require(id)
        new_start = as_datetime(start_date)
        last_synced = profile.last_synced

        if new_start < profile.start_date:
            logger.info(
                "Start date moved earlier, clearing checkpoint",
                name=profile.name,
                old_start=str(profile.start_date),
                new_start=str(new_start),
            )
            last_synced = None

        return self.update(id, is_active, new_start, last_synced)
