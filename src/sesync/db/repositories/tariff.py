"""Tariff repository: discrete charges, unit prices and plan versions."""

import json
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from sesync.costs import collapse_changes
from sesync.db.models.tariff import (
    STANDING_CHARGE_MODELS,
    TARIFF_PLAN_MODELS,
    UNIT_PRICE_MODELS,
    TariffPlanColumns,
)
from sesync.db.repositories.base import BaseRepository
from sesync.types import StandingChargeValue, TariffPlanValue, TariffValues, UnitPriceValue, Utility

logger = structlog.get_logger(__name__)


def _to_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def extract_plan_rates(plan: str) -> tuple[float | None, float | None]:
    """Extract ``(standing_charge, unit_rate)`` from a serialized tariff plan.

    Plans look like ``[{"planDetail": [{"standing": "53.2"}, {"rate": "24.5"}]}]``;
    the first ``standing`` and ``rate`` found win. Missing or unparseable
    values come back as None.
    """
    try:
        data = json.loads(plan)
    except ValueError:
        return None, None

    standing: float | None = None
    rate: float | None = None
    blocks = data if isinstance(data, list) else [data]

    for block in blocks:
        if not isinstance(block, dict):
            continue
        for detail in block.get("planDetail") or []:
            if not isinstance(detail, dict):
                continue
            if standing is None and "standing" in detail:
                standing = _to_float(detail["standing"])
            if rate is None and "rate" in detail:
                rate = _to_float(detail["rate"])

    return standing, rate


class TariffRepository(BaseRepository[TariffPlanColumns]):
    """Repository for one utility's tariff history."""

    def __init__(self, session: Session, utility: Utility) -> None:
        super().__init__(session)
        self.utility = utility
        self.model = TARIFF_PLAN_MODELS[utility]
        self._standing_charge_model = STANDING_CHARGE_MODELS[utility]
        self._unit_price_model = UNIT_PRICE_MODELS[utility]

    def upsert_tariffs(self, values: list[TariffValues]) -> int:
        """Insert or update discrete standing charges and unit prices.

        Args:
            values: Tariff blocks from the provider.

        Returns:
            Number of records written.
        """
        standing_rows = [
            {"start_date": sc.start_date, "standing_charge_pence": sc.value}
            for tariff in values
            for sc in tariff.standing_charges
        ]
        price_rows = [
            {"price_effective_time": p.timestamp, "unit_price_pence": p.value}
            for tariff in values
            for p in tariff.prices
        ]
        written = self._upsert(
            self._standing_charge_model, standing_rows, "start_date", ["standing_charge_pence"]
        )
        written += self._upsert(
            self._unit_price_model, price_rows, "price_effective_time", ["unit_price_pence"]
        )
        return written

    def upsert_plans(self, plans: list[TariffPlanValue]) -> int:
        """Insert or update tariff plan versions by tariff id.

        Args:
            plans: Plan versions from the provider.

        Returns:
            Number of records written.
        """
        rows = [
            {
                "tariff_id": p.tariff_id,
                "plan": p.plan,
                "effective_date": p.effective_date,
                "display_name": p.display_name,
            }
            for p in plans
        ]
        return self._upsert(
            self.model, rows, "tariff_id", ["plan", "effective_date", "display_name"]
        )

    def get_plans(self) -> list[TariffPlanValue]:
        """Get all tariff plan versions, oldest first."""
        stmt = select(self.model).order_by(self.model.effective_date)
        return [
            TariffPlanValue(
                tariff_id=row.tariff_id,
                plan=row.plan,
                effective_date=row.effective_date,
                display_name=row.display_name,
            )
            for row in self.session.scalars(stmt)
        ]

    def _plan_rates(self) -> list[tuple[datetime, float | None, float | None]]:
        rates = []
        for plan in self.get_plans():
            standing, rate = extract_plan_rates(plan.plan)
            if standing is None and rate is None:
                logger.warning(
                    "Tariff plan has no standing charge or rate",
                    utility=self.utility.value,
                    tariff_id=plan.tariff_id,
                )
            rates.append((plan.effective_date, standing, rate))
        return rates

    def get_standing_charge_history(self) -> list[StandingChargeValue]:
        """Standing charge changes, oldest first, with repeated values collapsed."""
        model = self._standing_charge_model
        stmt = select(model.start_date, model.standing_charge_pence).order_by(model.start_date)
        entries = [
            StandingChargeValue(start_date=start, value=pence)
            for start, pence in self.session.execute(stmt)
        ]
        entries.extend(
            StandingChargeValue(start_date=effective, value=standing)
            for effective, standing, _ in self._plan_rates()
            if standing is not None
        )
        entries.sort(key=lambda e: e.start_date)
        return collapse_changes(entries)

    def get_unit_price_history(self) -> list[UnitPriceValue]:
        """Unit price changes, oldest first, with repeated values collapsed."""
        model = self._unit_price_model
        stmt = select(model.price_effective_time, model.unit_price_pence).order_by(
            model.price_effective_time
        )
        entries = [
            UnitPriceValue(timestamp=effective, value=pence)
            for effective, pence in self.session.execute(stmt)
        ]
        entries.extend(
            UnitPriceValue(timestamp=effective, value=rate)
            for effective, _, rate in self._plan_rates()
            if rate is not None
        )
        entries.sort(key=lambda e: e.timestamp)
        return collapse_changes(entries)
