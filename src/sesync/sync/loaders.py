"""Loaders binding one provider capability to one repository."""

import asyncio
from abc import ABC, abstractmethod
from datetime import date
from typing import Generic, TypeVar

from sesync.db.engine import Database
from sesync.db.repositories.consumption import ConsumptionRepository
from sesync.db.repositories.tariff import TariffRepository
from sesync.providers.base import EnergyDataProvider
from sesync.sync.windows import WindowPolicy
from sesync.types import (
    ConsumptionValue,
    DataKind,
    TariffPlanValue,
    TariffRecord,
    TariffValues,
    Utility,
)
from sesync.utils.exceptions import InsertError, LoadError, PersistenceError, ProviderError

RecordT = TypeVar("RecordT")


class DataLoader(ABC, Generic[RecordT]):
    """Fetch records for a date range and persist them.

    Loaders never retry; a failure is wrapped in ``LoadError`` or
    ``InsertError`` and left to the caller.
    """

    kind: DataKind

    def __init__(self, provider: EnergyDataProvider, utility: Utility, database: Database) -> None:
        self.provider = provider
        self.utility = utility
        self.database = database

    @property
    def policy(self) -> WindowPolicy:
        return self.provider.window_policy(self.kind)

    async def load(self, start: date, end: date) -> list[RecordT]:
        """Fetch records in ``[start, end)``.

        Raises:
            LoadError: If the provider call fails.
        """
        try:
            return await self._fetch(start, end)
        except ProviderError as e:
            raise LoadError(
                f"Failed to load {self.utility.value} {self.kind.value} "
                f"for {start}..{end}: {e}"
            ) from e

    async def insert(self, records: list[RecordT]) -> int:
        """Persist records in one transaction.

        Raises:
            InsertError: If the database write fails.
        """
        try:
            return await asyncio.to_thread(self._insert_sync, records)
        except PersistenceError as e:
            raise InsertError(
                f"Failed to insert {len(records)} {self.utility.value} {self.kind.value} "
                f"records: {e}"
            ) from e

    def _insert_sync(self, records: list[RecordT]) -> int:
        with self.database.session() as session:
            return self._store(session, records)

    @abstractmethod
    async def _fetch(self, start: date, end: date) -> list[RecordT]:
        pass

    @abstractmethod
    def _store(self, session, records: list[RecordT]) -> int:
        pass


class ConsumptionDataLoader(DataLoader[ConsumptionValue]):
    """Consumption readings for one utility."""

    kind = DataKind.CONSUMPTION

    async def _fetch(self, start: date, end: date) -> list[ConsumptionValue]:
        return await self.provider.get_consumption(self.utility, start, end)

    def _store(self, session, records: list[ConsumptionValue]) -> int:
        return ConsumptionRepository(session, self.utility).upsert_batch(records)


class TariffDataLoader(DataLoader[TariffRecord]):
    """Tariff history for one utility, discrete entries and plan versions alike."""

    kind = DataKind.TARIFF

    async def _fetch(self, start: date, end: date) -> list[TariffRecord]:
        return await self.provider.get_tariff_history(self.utility, start, end)

    def _store(self, session, records: list[TariffRecord]) -> int:
        repo = TariffRepository(session, self.utility)
        tariffs = [r for r in records if isinstance(r, TariffValues)]
        plans = [r for r in records if isinstance(r, TariffPlanValue)]
        return repo.upsert_tariffs(tariffs) + repo.upsert_plans(plans)


def build_loader(
    kind: DataKind, provider: EnergyDataProvider, utility: Utility, database: Database
) -> DataLoader:
    """Loader for one (utility, kind) stream."""
    if kind is DataKind.CONSUMPTION:
        return ConsumptionDataLoader(provider, utility, database)
    return TariffDataLoader(provider, utility, database)
