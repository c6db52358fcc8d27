"""Tariff ORM models: discrete standing charges, unit prices and plan versions."""

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sesync.db.base import Base, TimestampMixin
from sesync.types import Utility


class StandingChargeColumns(TimestampMixin):
    """Standing charge in pence per day, effective from ``start_date``."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, unique=True)
    standing_charge_pence: Mapped[float] = mapped_column(Float, nullable=False)


class UnitPriceColumns(TimestampMixin):
    """Unit price in pence per kWh, effective from ``price_effective_time``."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    price_effective_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, unique=True)
    unit_price_pence: Mapped[float] = mapped_column(Float, nullable=False)


class TariffPlanColumns(TimestampMixin):
    """Versioned tariff plan; ``plan`` holds the provider's JSON payload."""

    tariff_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    plan: Mapped[str] = mapped_column(Text, nullable=False)
    effective_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.tariff_id}, effective={self.effective_date})>"


class ElectricityStandingCharge(Base, StandingChargeColumns):
    __tablename__ = "electricity_standing_charge"


class GasStandingCharge(Base, StandingChargeColumns):
    __tablename__ = "gas_standing_charge"


class ElectricityUnitPrice(Base, UnitPriceColumns):
    __tablename__ = "electricity_unit_price"


class GasUnitPrice(Base, UnitPriceColumns):
    __tablename__ = "gas_unit_price"


class ElectricityTariffPlan(Base, TariffPlanColumns):
    __tablename__ = "electricity_tariff_plan"


class GasTariffPlan(Base, TariffPlanColumns):
    __tablename__ = "gas_tariff_plan"


STANDING_CHARGE_MODELS: dict[Utility, type[StandingChargeColumns]] = {
    Utility.ELECTRICITY: ElectricityStandingCharge,
    Utility.GAS: GasStandingCharge,
}

UNIT_PRICE_MODELS: dict[Utility, type[UnitPriceColumns]] = {
    Utility.ELECTRICITY: ElectricityUnitPrice,
    Utility.GAS: GasUnitPrice,
}

TARIFF_PLAN_MODELS: dict[Utility, type[TariffPlanColumns]] = {
    Utility.ELECTRICITY: ElectricityTariffPlan,
    Utility.GAS: GasTariffPlan,
}
