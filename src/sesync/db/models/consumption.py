"""Consumption reading ORM models, one table per utility."""

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer
from sqlalchemy.orm import Mapped, mapped_column

from sesync.db.base import Base, TimestampMixin
from sesync.types import Utility


class ConsumptionColumns(TimestampMixin):
    """Columns shared by the per-utility consumption tables."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, unique=True, index=True)
    energy_consumption_kwh: Mapped[float] = mapped_column(Float, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__}(timestamp={self.timestamp}, "
            f"kwh={self.energy_consumption_kwh})>"
        )


class ElectricityConsumption(Base, ConsumptionColumns):
    """Half-hourly electricity consumption reading."""

    __tablename__ = "electricity_consumption"


class GasConsumption(Base, ConsumptionColumns):
    """Half-hourly gas consumption reading."""

    __tablename__ = "gas_consumption"


CONSUMPTION_MODELS: dict[Utility, type[ConsumptionColumns]] = {
    Utility.ELECTRICITY: ElectricityConsumption,
    Utility.GAS: GasConsumption,
}
