"""Consumption reading repository."""

from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from sesync.db.models.consumption import CONSUMPTION_MODELS, ConsumptionColumns
from sesync.db.repositories.base import BaseRepository, as_date, as_datetime
from sesync.types import ConsumptionValue, PeriodTotal, Utility

# Value reported by meters for a failed reading; stored but never aggregated.
ENERGY_CONSUMPTION_KWH_ERROR_CODE = 16777.215


class ConsumptionRepository(BaseRepository[ConsumptionColumns]):
    """Repository for one utility's consumption readings.

    All range queries are half-open ``[start, end)`` and exclude the meter
    error sentinel.
    """

    def __init__(self, session: Session, utility: Utility) -> None:
        super().__init__(session)
        self.utility = utility
        self.model = CONSUMPTION_MODELS[utility]

    def upsert_batch(self, values: list[ConsumptionValue]) -> int:
        """Insert or update readings; the last write for a timestamp wins.

        Args:
            values: Readings to store.

        Returns:
            Number of records written.
        """
        rows = [
            {"timestamp": v.timestamp, "energy_consumption_kwh": v.value} for v in values
        ]
        return self._upsert(self.model, rows, "timestamp", ["energy_consumption_kwh"])

    def _in_range(self, stmt, start: date | datetime, end: date | datetime):
        return stmt.where(
            self.model.timestamp >= as_datetime(start),
            self.model.timestamp < as_datetime(end),
            self.model.energy_consumption_kwh != ENERGY_CONSUMPTION_KWH_ERROR_CODE,
        )

    def get_raw(self, start: date | datetime, end: date | datetime) -> list[ConsumptionValue]:
        """Get individual readings in ``[start, end)``, oldest first."""
        stmt = select(self.model.timestamp, self.model.energy_consumption_kwh)
        stmt = self._in_range(stmt, start, end).order_by(self.model.timestamp)
        return [ConsumptionValue(timestamp=ts, value=kwh) for ts, kwh in self.session.execute(stmt)]

    def _day(self):
        return func.date(self.model.timestamp)

    def _month(self):
        if self.dialect == "sqlite":
            return func.date(self.model.timestamp, "start of month")
        if self.dialect in ("mysql", "mariadb"):
            return func.date_format(self.model.timestamp, "%Y-%m-01")
        return func.date_trunc("month", self.model.timestamp)

    def _totals(self, period, start: date | datetime, end: date | datetime) -> list[PeriodTotal]:
        bucket = period.label("period_start")
        stmt = select(bucket, func.sum(self.model.energy_consumption_kwh))
        stmt = self._in_range(stmt, start, end).group_by(bucket).order_by(bucket)
        return [
            PeriodTotal(period_start=as_date(p), value=float(total))
            for p, total in self.session.execute(stmt)
        ]

    def get_daily(self, start: date | datetime, end: date | datetime) -> list[PeriodTotal]:
        """Get per-day totals for readings in ``[start, end)``."""
        return self._totals(self._day(), start, end)

    def get_monthly(self, start: date | datetime, end: date | datetime) -> list[PeriodTotal]:
        """Get per-calendar-month totals for readings in ``[start, end)``."""
        return self._totals(self._month(), start, end)
