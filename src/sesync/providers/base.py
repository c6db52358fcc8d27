"""Uniform capability interface over remote energy data providers."""

from abc import ABC, abstractmethod
from datetime import date

from sesync.sync.windows import WindowPolicy
from sesync.types import ConsumptionValue, DataKind, TariffRecord, Utility


class EnergyDataProvider(ABC):
    """A remote source of consumption and tariff history.

    Date ranges are calendar dates and half-open: ``[start, end)``.
    Failures raise a ``ProviderError`` subclass.
    """

    name: str

    @abstractmethod
    def has_consumption(self, utility: Utility) -> bool:
        """Whether consumption history is available for ``utility``."""

    @abstractmethod
    async def get_consumption(
        self, utility: Utility, start: date, end: date
    ) -> list[ConsumptionValue]:
        """Fetch consumption readings in ``[start, end)``."""

    @abstractmethod
    def has_tariff_history(self, utility: Utility) -> bool:
        """Whether tariff history is available for ``utility``."""

    @abstractmethod
    async def get_tariff_history(
        self,
        utility: Utility,
        start: date | None = None,
        end: date | None = None,
    ) -> list[TariffRecord]:
        """Fetch tariff history; providers without range support ignore the range."""

    @abstractmethod
    def window_policy(self, kind: DataKind) -> WindowPolicy:
        """Largest request span the provider accepts for ``kind``."""

    def base_unit(self, utility: Utility) -> str:
        """Display unit for the utility's consumption stream."""
        return "kWh"

    async def close(self) -> None:
        """Release any network resources held by the provider."""
        return None
