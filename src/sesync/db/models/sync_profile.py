"""Sync profile ORM model: per-stream activation and checkpoint."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from sesync.db.base import Base, TimestampMixin


class SyncProfile(Base, TimestampMixin):
    """One row per logical stream ("electricity", "gas")."""

    __tablename__ = "sync_profile"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    last_synced: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    base_unit: Mapped[str] = mapped_column(String(20), nullable=False, default="kWh")

    def __repr__(self) -> str:
        return (
            f"<SyncProfile(name={self.name}, active={self.is_active}, "
            f"start={self.start_date}, last_synced={self.last_synced})>"
        )
