"""ORM models for cached energy data."""

from sesync.db.models.consumption import (
    CONSUMPTION_MODELS,
    ElectricityConsumption,
    GasConsumption,
)
from sesync.db.models.sync_profile import SyncProfile
from sesync.db.models.tariff import (
    STANDING_CHARGE_MODELS,
    TARIFF_PLAN_MODELS,
    UNIT_PRICE_MODELS,
    ElectricityStandingCharge,
    ElectricityTariffPlan,
    ElectricityUnitPrice,
    GasStandingCharge,
    GasTariffPlan,
    GasUnitPrice,
)

__all__ = [
    "CONSUMPTION_MODELS",
    "STANDING_CHARGE_MODELS",
    "TARIFF_PLAN_MODELS",
    "UNIT_PRICE_MODELS",
    "ElectricityConsumption",
    "ElectricityStandingCharge",
    "ElectricityTariffPlan",
    "ElectricityUnitPrice",
    "GasConsumption",
    "GasStandingCharge",
    "GasTariffPlan",
    "GasUnitPrice",
    "SyncProfile",
]
