"""Daily cost calculation from consumption totals and tariff history."""

from bisect import bisect_right
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Protocol, TypeVar

import structlog

from sesync.types import PeriodTotal, StandingChargeValue, UnitPriceValue

logger = structlog.get_logger(__name__)


class _Valued(Protocol):
    value: float


ValuedT = TypeVar("ValuedT", bound=_Valued)


def collapse_changes(entries: Iterable[ValuedT]) -> list[ValuedT]:
    """Drop entries whose value equals the one before, keeping only price changes.

    ``entries`` must already be ordered by effective time.
    """
    collapsed: list[ValuedT] = []
    for entry in entries:
        if collapsed and collapsed[-1].value == entry.value:
            continue
        collapsed.append(entry)
    return collapsed


class StepFunction:
    """Ordered time series answering "latest value at or before an instant"."""

    def __init__(self, points: Iterable[tuple[datetime, float]]) -> None:
        ordered = sorted(points, key=lambda p: p[0])
        self._keys = [key for key, _ in ordered]
        self._values = [value for _, value in ordered]

    def __len__(self) -> int:
        return len(self._keys)

    def value_at(self, instant: datetime) -> float | None:
        """Value of the latest entry effective at or before ``instant``, or None."""
        index = bisect_right(self._keys, instant)
        if index == 0:
            return None
        return self._values[index - 1]

    @classmethod
    def from_standing_charges(cls, entries: Iterable[StandingChargeValue]) -> "StepFunction":
        return cls((e.start_date, e.value) for e in entries)

    @classmethod
    def from_unit_prices(cls, entries: Iterable[UnitPriceValue]) -> "StepFunction":
        return cls((e.timestamp, e.value) for e in entries)


@dataclass(frozen=True)
class DailyCost:
    """Cost of one day's consumption, in pence."""

    day: date
    consumption: float
    standing_charge_pence: float
    unit_price_pence: float
    cost_pence: float


def calculate_daily_costs(
    daily: Sequence[PeriodTotal],
    standing_charges: Iterable[StandingChargeValue],
    unit_prices: Iterable[UnitPriceValue],
) -> list[DailyCost]:
    """Cost each day as ``standing_charge + consumption * unit_price``.

    Days without a standing charge or unit price effective at or before the
    start of the day are dropped and a warning is logged.

    Args:
        daily: Daily consumption totals.
        standing_charges: Standing charge history.
        unit_prices: Unit price history.

    Returns:
        Costed days in input order.
    """
    standing_lookup = StepFunction.from_standing_charges(standing_charges)
    price_lookup = StepFunction.from_unit_prices(unit_prices)

    costs: list[DailyCost] = []
    for total in daily:
        instant = datetime.combine(total.period_start, time.min)
        standing = standing_lookup.value_at(instant)
        price = price_lookup.value_at(instant)

        if standing is None or price is None:
            logger.warning(
                "No tariff applies to day, skipping",
                day=str(total.period_start),
                missing_standing_charge=standing is None,
                missing_unit_price=price is None,
            )
            continue

        costs.append(
            DailyCost(
                day=total.period_start,
                consumption=total.value,
                standing_charge_pence=standing,
                unit_price_pence=price,
                cost_pence=standing + total.value * price,
            )
        )

    return costs
