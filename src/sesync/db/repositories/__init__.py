"""Repository classes for database operations."""

from sesync.db.repositories.consumption import (
    ENERGY_CONSUMPTION_KWH_ERROR_CODE,
    ConsumptionRepository,
)
from sesync.db.repositories.sync_profile import SyncProfileRepository
from sesync.db.repositories.tariff import TariffRepository, extract_plan_rates

__all__ = [
    "ENERGY_CONSUMPTION_KWH_ERROR_CODE",
    "ConsumptionRepository",
    "SyncProfileRepository",
    "TariffRepository",
    "extract_plan_rates",
]
