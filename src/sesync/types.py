"""Value records exchanged between providers, loaders and repositories."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class Utility(str, Enum):
    """A metered utility, one logical sync stream each."""

    ELECTRICITY = "electricity"
    GAS = "gas"


class DataKind(str, Enum):
    """Kind of history downloaded for a utility."""

    CONSUMPTION = "consumption"
    TARIFF = "tariff"


# Stream order is part of the event ordering contract.
STREAM_ORDER: tuple[Utility, ...] = (Utility.ELECTRICITY, Utility.GAS)


@dataclass(frozen=True)
class ConsumptionValue:
    """A single meter reading interval (typically 30 minutes)."""

    timestamp: datetime
    value: float


@dataclass(frozen=True)
class StandingChargeValue:
    """Standing charge in pence per day, effective from ``start_date``."""

    start_date: datetime
    value: float


@dataclass(frozen=True)
class UnitPriceValue:
    """Unit price in pence per kWh, effective from ``timestamp``."""

    timestamp: datetime
    value: float


@dataclass(frozen=True)
class TariffValues:
    """Provider-native discrete tariff entries."""

    standing_charges: list[StandingChargeValue] = field(default_factory=list)
    prices: list[UnitPriceValue] = field(default_factory=list)


@dataclass(frozen=True)
class TariffPlanValue:
    """Opaque versioned tariff plan; ``plan`` is the serialized JSON payload."""

    tariff_id: str
    plan: str
    effective_date: datetime
    display_name: str


TariffRecord = TariffValues | TariffPlanValue


@dataclass(frozen=True)
class PeriodTotal:
    """Consumption summed over a day or month starting at ``period_start``."""

    period_start: date
    value: float
